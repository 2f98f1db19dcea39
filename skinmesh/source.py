"""
Source mesh data handed to the converter.

This is the plain-data view of a mesh as a scene reader delivers it:
control points, polygons referencing them, optional attribute layers and an
optional skin made of bone clusters. Layers follow the FBX layer element
conventions (MappingInformationType / ReferenceInformationType).
"""

# Mapping modes
BY_CONTROL_POINT = "ByVertice"
BY_POLYGON_VERTEX = "ByPolygonVertex"
BY_POLYGON = "ByPolygon"
ALL_SAME = "AllSame"

# Reference modes
DIRECT = "Direct"
INDEX_TO_DIRECT = "IndexToDirect"

_CONTROL_POINT_MODES = ("ByVertice", "ByVertex", "ByControlPoint")
_INDEXED_MODES = ("IndexToDirect", "Index")


class LayerElement:
    """One attribute layer (normals, a UV set, colors, ...).

    data:      list of component tuples
    mapping:   which element a value belongs to (control point, corner, ...)
    reference: Direct, or IndexToDirect with `indices` into `data`
    """

    def __init__(self, data, mapping=BY_POLYGON_VERTEX, reference=DIRECT, indices=None, name=""):
        self.data = [tuple(v) for v in data]
        self.mapping = mapping
        self.reference = reference
        self.indices = list(indices) if indices is not None else None
        self.name = name
        if self.indexed and self.indices is None:
            raise ValueError(f"Layer '{name}' uses {reference} but has no index array")

    @property
    def on_point(self):
        return self.mapping in _CONTROL_POINT_MODES

    @property
    def indexed(self):
        return self.reference in _INDEXED_MODES

    def resolve(self, poly, corner, point):
        """Index into `data` for one polygon corner.

        poly:   polygon number
        corner: running corner counter over the whole mesh
        point:  control point of the corner
        """
        if self.on_point:
            i = point
        elif self.mapping == BY_POLYGON:
            i = poly
        elif self.mapping == ALL_SAME:
            i = 0
        else:
            i = corner
        if self.indexed:
            i = self.indices[i]
        return i

    def get(self, poly, corner, point):
        return self.data[self.resolve(poly, corner, point)]

    def __len__(self):
        return len(self.data)

    def __repr__(self):
        return f"LayerElement({self.name or 'unnamed'}, {len(self.data)} values, {self.mapping}/{self.reference})"


class SkinCluster:
    """Influence of one bone: control point indices and their weights."""

    def __init__(self, bone, indices, weights):
        self.bone = bone
        self.indices = list(indices)
        self.weights = [float(w) for w in weights]
        if len(self.indices) != len(self.weights):
            raise ValueError(f"Cluster '{bone}' has {len(self.indices)} indices but {len(self.weights)} weights")

    def __repr__(self):
        return f"SkinCluster({self.bone}, {len(self.indices)} influences)"


class SourceMesh:
    """A mesh as read from a scene.

    material_indices: one entry per polygon (None entries allowed) or None
                      when the mesh declares no materials
    material_count:   number of declared materials, or None to derive it
                      from the highest index used
    """

    def __init__(self, name, positions, polygons, normals=None, tangents=None,
                 binormals=None, colors=None, uvs=(), uv_names=(),
                 material_indices=None, material_count=None, clusters=()):
        self.name = name
        self.positions = [tuple(p) for p in positions]
        self.polygons = [list(p) for p in polygons]
        self.normals = normals
        self.tangents = tangents
        self.binormals = binormals
        self.colors = colors
        self.uvs = list(uvs)
        self.uv_names = list(uv_names)
        self.material_indices = list(material_indices) if material_indices is not None else None
        self.material_count = material_count
        self.clusters = list(clusters)

    @property
    def point_count(self):
        return len(self.positions)

    @property
    def poly_count(self):
        return len(self.polygons)

    @property
    def corner_count(self):
        return sum(len(p) for p in self.polygons)

    @property
    def skinned(self):
        return len(self.clusters) > 0

    def material_index(self, poly):
        if self.material_indices is None:
            return None
        if poly >= len(self.material_indices):
            return None
        return self.material_indices[poly]

    def uv_name(self, channel):
        if channel < len(self.uv_names) and self.uv_names[channel]:
            return self.uv_names[channel]
        return self.uvs[channel].name if channel < len(self.uvs) else ""

    def __repr__(self):
        return (f"SourceMesh({self.name}, points={self.point_count}, polys={self.poly_count}, "
                f"uvs={len(self.uvs)}, clusters={len(self.clusters)})")
