"""
trimesh adapter.

Builds SourceMesh data from meshes loaded with trimesh, so any format trimesh
reads can be fed to the converter. trimesh stores attributes per vertex
(already split at seams), so every layer maps by control point.
"""

import trimesh

from .source import BY_CONTROL_POINT, BY_POLYGON, LayerElement, SourceMesh


def _colors_from_visual(mesh):
    visual = getattr(mesh, 'visual', None)
    kind = getattr(visual, 'kind', None)
    if kind == 'vertex':
        raw = visual.vertex_colors
        return LayerElement([[c / 255.0 for c in rgba] for rgba in raw.tolist()],
                            mapping=BY_CONTROL_POINT, name="colors")
    if kind == 'face':
        raw = visual.face_colors
        return LayerElement([[c / 255.0 for c in rgba] for rgba in raw.tolist()],
                            mapping=BY_POLYGON, name="colors")
    return None


def _uvs_from_visual(mesh):
    uv = getattr(getattr(mesh, 'visual', None), 'uv', None)
    if uv is None or len(uv) != len(mesh.vertices):
        return []
    return [LayerElement(uv.tolist(), mapping=BY_CONTROL_POINT, name="uv0")]


def source_from_trimesh(mesh, name=None):
    """Convert a trimesh.Trimesh to a SourceMesh."""
    if not isinstance(mesh, trimesh.Trimesh):
        raise TypeError(f"Expected trimesh.Trimesh, got {type(mesh).__name__}")
    if name is None:
        name = mesh.metadata.get('name') if mesh.metadata else None
    uvs = _uvs_from_visual(mesh)
    return SourceMesh(
        name or "",
        mesh.vertices.tolist(),
        mesh.faces.tolist(),
        normals=LayerElement(mesh.vertex_normals.tolist(), mapping=BY_CONTROL_POINT, name="normals"),
        colors=_colors_from_visual(mesh),
        uvs=uvs,
        uv_names=[layer.name for layer in uvs],
    )


def sources_from_scene(scene_or_mesh):
    """SourceMesh for every triangle mesh in a trimesh Scene (or a single mesh)."""
    if isinstance(scene_or_mesh, trimesh.Trimesh):
        return [source_from_trimesh(scene_or_mesh)]
    sources = []
    for name, geom in scene_or_mesh.geometry.items():
        if isinstance(geom, trimesh.Trimesh):
            sources.append(source_from_trimesh(geom, name=name))
    return sources


def load_sources(path):
    """Load a model file with trimesh and return its meshes as SourceMesh."""
    return sources_from_scene(trimesh.load(path))
