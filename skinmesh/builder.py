"""
Mesh builder.

Turns a SourceMesh into an engine-ready Mesh in two passes:

  1. plan:  blend weights per control point, then a part and bone slot set
            for every polygon
  2. emit:  one interleaved vertex record per polygon corner, interned in the
            shared VertexBuffer, its index appended to the polygon's part

Planning always completes before emission, since emitted blend indices are
slot numbers inside the slot set chosen for the polygon.
"""

import itertools
import struct
import threading
from concurrent.futures import ThreadPoolExecutor

from . import attributes as attr
from . import diagnostics as diag
from .blending import blend_weight_count, compute_point_blend_weights
from .config import ConvertOptions
from .diagnostics import Diagnostics
from .parts import PartPlanner
from .vertex_buffer import VertexBuffer

_shape_ids = itertools.count(1)
_shape_ids_lock = threading.Lock()


def mesh_id(name):
    if name is not None and len(name) > 1:
        return name
    with _shape_ids_lock:
        return f"shape{next(_shape_ids)}"


def pack_color(r, g, b, a):
    """RGBA 0..1 packed as ABGR bytes into the bit pattern of one float32."""
    def byte(c):
        return max(0, min(255, int(255.0 * c)))
    packed = (byte(a) << 24) | (byte(b) << 16) | (byte(g) << 8) | byte(r)
    return struct.pack('<I', packed)


def transform_uv(m, u, v):
    """Apply a row-major 3x3 affine matrix to (u, v)."""
    return (m[0] * u + m[1] * v + m[2],
            m[3] * u + m[4] * v + m[5])


# ============================================================
# Output data
# ============================================================

class UVBounds:
    """Min/max of one UV channel over a part. Fields stay None until the first update."""

    def __init__(self):
        self.min_u = None
        self.min_v = None
        self.max_u = None
        self.max_v = None

    @property
    def empty(self):
        return self.min_u is None

    def update(self, u, v):
        if self.min_u is None or u < self.min_u:
            self.min_u = u
        if self.min_v is None or v < self.min_v:
            self.min_v = v
        if self.max_u is None or u > self.max_u:
            self.max_u = u
        if self.max_v is None or v > self.max_v:
            self.max_v = v

    def as_tuple(self):
        return (self.min_u, self.min_v, self.max_u, self.max_v)

    def __repr__(self):
        if self.empty:
            return "UVBounds(empty)"
        return f"UVBounds(u=[{self.min_u:.4f}, {self.max_u:.4f}], v=[{self.min_v:.4f}, {self.max_v:.4f}])"


class MeshPart:
    def __init__(self, material_index, slot_set_index, uv_count):
        self.id = ""
        self.material_index = material_index
        self.slot_set_index = slot_set_index
        self.indices = []
        self.bone_clusters = []   # slot -> skin cluster index
        self.bones = []           # slot -> bone identifier of that cluster
        self.uv_bounds = [UVBounds() for _ in range(uv_count)]

    @property
    def key(self):
        return (self.material_index, self.slot_set_index)

    def __repr__(self):
        return (f"MeshPart({self.id}, material={self.material_index}, slot_set={self.slot_set_index}, "
                f"indices={len(self.indices)}, bones={len(self.bones)})")


class Mesh:
    def __init__(self, id, attributes, buffer, parts, uv_mapping=(), bones_overflow=False):
        self.id = id
        self.attributes = attributes
        self.buffer = buffer
        self.parts = parts
        self.uv_mapping = list(uv_mapping)
        self.bones_overflow = bones_overflow

    @property
    def vertex_size(self):
        return self.buffer.vertex_size

    @property
    def blend_weight_count(self):
        return self.attributes.blend_weight_count if self.attributes.has_blend_info() else 0

    @property
    def vertices(self):
        """Flat float values. Packed colors are not bit exact here, use to_bytes()."""
        return self.buffer.vertices

    @property
    def vertex_words(self):
        """Flat 32-bit patterns of every component, packed colors included."""
        return self.buffer.words

    def to_bytes(self):
        """Interleaved little-endian float32 vertex data, bit exact."""
        return self.buffer.to_bytes()

    def vertex_count(self):
        return self.buffer.vertex_count()

    def index_count(self):
        return sum(len(p.indices) for p in self.parts)

    def part(self, material_index, slot_set_index=0):
        for p in self.parts:
            if p.key == (material_index, slot_set_index):
                return p
        return None

    def summary(self):
        return {
            'id': self.id,
            'attributes': self.attributes.names(),
            'vertex_size': self.vertex_size,
            'vertices': self.vertex_count(),
            'indices': self.index_count(),
            'parts': [{'id': p.id, 'material': p.material_index, 'slot_set': p.slot_set_index,
                       'indices': len(p.indices), 'bones': list(p.bones)} for p in self.parts],
            'bones_overflow': self.bones_overflow,
        }

    def __repr__(self):
        return f"Mesh({self.id}, vertices={self.vertex_count()}, parts={len(self.parts)})"


# ============================================================
# Builder
# ============================================================

class MeshBuilder:
    def __init__(self, options=None, diagnostics=None):
        self.options = options if options is not None else ConvertOptions()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def uses_skin(self, source):
        return (source.skinned and self.options.max_bones_per_part > 0
                and self.options.max_blend_weights > 0)

    def compute_blend_weights(self, source):
        """Per control point weights, or (None, 0) when the skin is not used."""
        if not self.uses_skin(source):
            return None, 0
        weights, zero_points = compute_point_blend_weights(
            source.clusters, source.point_count, self.options.max_blend_weights)
        if zero_points:
            self.diagnostics.warning(
                diag.ZERO_WEIGHTS,
                f"{len(zero_points)} control point(s) with zero total weight left unweighted",
                mesh=source.name)
        count = blend_weight_count(weights, self.options.max_blend_weights,
                                   self.options.force_max_blend_weights)
        return weights, count

    def fetch_attributes(self, source, weight_count):
        a = attr.Attributes(attr.POSITION)
        a.set(attr.NORMAL, source.normals is not None)
        if source.colors is not None:
            a.set(attr.COLOR_PACKED if self.options.packed_colors else attr.COLOR)
        a.set(attr.TANGENT, source.tangents is not None)
        a.set(attr.BINORMAL, source.binormals is not None)
        for i in range(min(len(source.uvs), self.options.max_uv_channels)):
            a.set(attr.texcoord(i))
        if weight_count > 0:
            a.set(attr.BLEND_INFO)
            a.blend_weight_count = weight_count
        return a

    def build(self, source):
        point_weights, weight_count = self.compute_blend_weights(source)
        attributes = self.fetch_attributes(source, weight_count)
        uv_count = attributes.uv_count()

        plan = PartPlanner(self.options, self.diagnostics).plan(source, point_weights)

        parts = {}
        for key in plan.part_keys():
            part = MeshPart(key[0], key[1], uv_count)
            slot_set = plan.slot_set(*key)
            if slot_set is not None:
                part.bone_clusters = slot_set.bones()
                part.bones = [source.clusters[c].bone for c in part.bone_clusters]
            parts[key] = part

        buffer = VertexBuffer(attributes.vertex_size())
        uv_transforms = [self.options.uv_transform(i) for i in range(uv_count)]
        corner = 0
        for poly, points in enumerate(source.polygons):
            mp = plan.poly_part[poly]
            if mp is None:
                corner += len(points)
                continue
            part = parts[(mp, plan.poly_slot_set[poly])]
            slot_set = plan.slot_set(mp, plan.poly_slot_set[poly])
            poly_indices = []
            for point in points:
                record = self.vertex_record(source, attributes, poly, corner, point,
                                            point_weights, slot_set, uv_transforms)
                poly_indices.append(buffer.add(record))
                for i in range(uv_count):
                    u, v = source.uvs[i].get(poly, corner, point)[:2]
                    part.uv_bounds[i].update(u, v)
                corner += 1
            if self.options.triangulate and len(poly_indices) > 3:
                for i in range(1, len(poly_indices) - 1):
                    part.indices.extend((poly_indices[0], poly_indices[i], poly_indices[i + 1]))
            else:
                part.indices.extend(poly_indices)

        out_parts = [parts[key] for key in plan.part_keys() if parts[key].indices]
        mid = mesh_id(source.name)
        for n, part in enumerate(out_parts, 1):
            part.id = f"{mid}_part{n}"

        return Mesh(mid, attributes, buffer, out_parts,
                    uv_mapping=[source.uv_name(i) for i in range(uv_count)],
                    bones_overflow=plan.bones_overflow)

    def vertex_record(self, source, attributes, poly, corner, point, point_weights, slot_set, uv_transforms):
        """Bytes of one interleaved float32 vertex for a polygon corner."""
        out = bytearray()

        def floats(values):
            out.extend(struct.pack(f'<{len(values)}f', *values))

        floats(source.positions[point][:3])
        if attributes.has_normal():
            floats(source.normals.get(poly, corner, point)[:3])
        if attributes.has_color() or attributes.has_color_packed():
            c = source.colors.get(poly, corner, point)
            rgba = (tuple(c) + (1.0,))[:4] if len(c) == 3 else tuple(c[:4])
            if attributes.has_color_packed():
                out.extend(pack_color(*rgba))
            else:
                floats(rgba)
        if attributes.has_tangent():
            floats(source.tangents.get(poly, corner, point)[:3])
        if attributes.has_binormal():
            floats(source.binormals.get(poly, corner, point)[:3])
        for i, m in enumerate(uv_transforms):
            u, v = source.uvs[i].get(poly, corner, point)[:2]
            if m is not None:
                u, v = transform_uv(m, u, v)
            floats((u, v))
        if attributes.has_blend_info():
            n = attributes.blend_weight_count
            weights = point_weights[point]
            indices = [0.0] * n
            values = [0.0] * n
            for w, bw in enumerate(weights[:n]):
                slot = slot_set.index_of(bw.bone) if slot_set is not None else None
                # Bones lost to a slot overflow fall back to slot 0
                indices[w] = float(slot if slot is not None else 0)
                values[w] = bw.weight
            floats(indices)
            floats(values)
        return bytes(out)


# ============================================================
# Batch conversion
# ============================================================

def convert_meshes(sources, options=None, diagnostics=None, workers=1, cancel=None):
    """Convert independent meshes, optionally on a thread pool.

    Results keep the order of `sources`. A set `cancel` event stops
    conversion before the next mesh starts; meshes not converted are None.
    """
    options = options if options is not None else ConvertOptions()
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    sources = list(sources)

    def convert(source):
        if cancel is not None and cancel.is_set():
            return None
        return MeshBuilder(options, diagnostics).build(source)

    if workers <= 1:
        return [convert(s) for s in sources]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(convert, sources))
