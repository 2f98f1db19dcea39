"""
Vertex attribute set.

A bitset of the channels present in every vertex of a mesh, in the fixed
interleaving order:

    position(3) normal(3) color(4)|packed color(1) tangent(3) binormal(3)
    texcoord0..7(2 each) blend indices(n) blend weights(n)
"""

from .config import MAX_UV_CHANNELS

POSITION = 1 << 0
NORMAL = 1 << 1
COLOR = 1 << 2
COLOR_PACKED = 1 << 3
TANGENT = 1 << 4
BINORMAL = 1 << 5
TEXCOORD0 = 1 << 6          # TEXCOORD0..7 take bits 6..13
BLEND_INFO = 1 << 14

CHANNEL_WIDTHS = {
    POSITION: 3,
    NORMAL: 3,
    COLOR: 4,
    COLOR_PACKED: 1,
    TANGENT: 3,
    BINORMAL: 3,
}
TEXCOORD_WIDTH = 2


def texcoord(channel):
    if channel < 0 or channel >= MAX_UV_CHANNELS:
        raise ValueError(f"UV channel {channel} out of range 0..{MAX_UV_CHANNELS - 1}")
    return TEXCOORD0 << channel


class Attributes:
    def __init__(self, value=0, blend_weight_count=0):
        self.value = value
        self.blend_weight_count = blend_weight_count
        if value & COLOR and value & COLOR_PACKED:
            raise ValueError("color and packed color are mutually exclusive")

    def _set(self, flag, on):
        if on:
            self.value |= flag
        else:
            self.value &= ~flag

    def has(self, flag):
        return (self.value & flag) != 0

    def set(self, flag, on=True):
        # Only one color representation can be present
        if on and flag == COLOR:
            self._set(COLOR_PACKED, False)
        elif on and flag == COLOR_PACKED:
            self._set(COLOR, False)
        self._set(flag, on)

    def has_position(self):
        return self.has(POSITION)

    def has_normal(self):
        return self.has(NORMAL)

    def has_color(self):
        return self.has(COLOR)

    def has_color_packed(self):
        return self.has(COLOR_PACKED)

    def has_tangent(self):
        return self.has(TANGENT)

    def has_binormal(self):
        return self.has(BINORMAL)

    def has_uv(self, channel):
        return self.has(texcoord(channel))

    def has_blend_info(self):
        return self.has(BLEND_INFO)

    def uv_count(self):
        count = 0
        for i in range(MAX_UV_CHANNELS):
            if self.has_uv(i):
                count += 1
        return count

    def layout(self):
        """List of (name, offset, width) in interleaving order."""
        out = []
        offset = 0
        for flag, name in ((POSITION, "position"), (NORMAL, "normal"),
                           (COLOR, "color"), (COLOR_PACKED, "color_packed"),
                           (TANGENT, "tangent"), (BINORMAL, "binormal")):
            if self.has(flag):
                out.append((name, offset, CHANNEL_WIDTHS[flag]))
                offset += CHANNEL_WIDTHS[flag]
        for i in range(MAX_UV_CHANNELS):
            if self.has_uv(i):
                out.append((f"texcoord{i}", offset, TEXCOORD_WIDTH))
                offset += TEXCOORD_WIDTH
        if self.has_blend_info():
            n = self.blend_weight_count
            out.append(("blend_indices", offset, n))
            out.append(("blend_weights", offset + n, n))
        return out

    def offset_of(self, name):
        for entry_name, offset, _width in self.layout():
            if entry_name == name:
                return offset
        return None

    def vertex_size(self):
        """Number of floats per vertex."""
        size = sum(w for f, w in CHANNEL_WIDTHS.items() if self.has(f))
        size += TEXCOORD_WIDTH * self.uv_count()
        if self.has_blend_info():
            size += 2 * self.blend_weight_count
        return size

    def names(self):
        return [name for name, _offset, _width in self.layout()]

    def __eq__(self, other):
        return (isinstance(other, Attributes) and self.value == other.value
                and self.blend_weight_count == other.blend_weight_count)

    def __repr__(self):
        return f"Attributes({'|'.join(self.names()) or 'none'})"
