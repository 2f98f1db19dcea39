"""
Conversion settings.

Defaults mirror what a GPU skinning shader with a 12-matrix uniform palette
and 4 influences per vertex expects.
"""

# Hard limit of texture coordinate sets a vertex can carry
MAX_UV_CHANNELS = 8

DEFAULT_MAX_BLEND_WEIGHTS = 4
DEFAULT_MAX_BONES_PER_PART = 12


class ConvertOptions:
    """Settings for one conversion job.

    max_blend_weights:        influences kept per control point
    force_max_blend_weights:  always emit max_blend_weights slots when skinned
    packed_colors:            store RGBA as one float (bit-packed bytes)
    max_bones_per_part:       bone slots per part (shader palette size)
    max_uv_channels:          UV sets to export, clamped to 0..MAX_UV_CHANNELS
    uv_transforms:            optional row-major 3x3 matrix per UV channel
    triangulate:              fan-triangulate polygons with more than 3 corners
    """

    def __init__(self, max_blend_weights=DEFAULT_MAX_BLEND_WEIGHTS,
                 force_max_blend_weights=True, packed_colors=False,
                 max_bones_per_part=DEFAULT_MAX_BONES_PER_PART,
                 max_uv_channels=MAX_UV_CHANNELS, uv_transforms=None,
                 triangulate=False):
        self.max_blend_weights = max(0, int(max_blend_weights))
        self.force_max_blend_weights = bool(force_max_blend_weights)
        self.packed_colors = bool(packed_colors)
        self.max_bones_per_part = max(0, int(max_bones_per_part))
        self.max_uv_channels = max(0, min(MAX_UV_CHANNELS, int(max_uv_channels)))
        self.uv_transforms = list(uv_transforms or [])
        self.triangulate = bool(triangulate)

    def uv_transform(self, channel):
        """Return the 3x3 UV matrix for a channel, or None for identity."""
        if channel < len(self.uv_transforms):
            m = self.uv_transforms[channel]
            if m is not None:
                if len(m) != 9:
                    raise ValueError(f"UV transform for channel {channel} needs 9 values, got {len(m)}")
                return m
        return None

    def __repr__(self):
        return (f"ConvertOptions(max_blend_weights={self.max_blend_weights}, "
                f"force_max_blend_weights={self.force_max_blend_weights}, "
                f"packed_colors={self.packed_colors}, "
                f"max_bones_per_part={self.max_bones_per_part}, "
                f"max_uv_channels={self.max_uv_channels}, "
                f"triangulate={self.triangulate})")
