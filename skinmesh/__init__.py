"""
skinmesh: polygon meshes to engine-ready skinned meshes.

Deduplicated interleaved vertex buffers, index lists split into parts by
material and by bone palette, and per-part bone tables sized for shader
uniform arrays.
"""

from .attributes import Attributes
from .blending import BlendWeight, BoneSlotAllocator, BoneSlotSet, compute_point_blend_weights
from .builder import Mesh, MeshBuilder, MeshPart, UVBounds, convert_meshes
from .config import ConvertOptions
from .diagnostics import Diagnostics
from .parts import PartPlan, PartPlanner
from .source import LayerElement, SkinCluster, SourceMesh
from .vertex_buffer import VertexBuffer, vertex_hash

__version__ = "0.1.0"
