"""
Mesh part planning.

Polygons are grouped by material. For skinned meshes each material group is
further split by bone slot set, so a part is identified by
(material index, slot set index).
"""

from . import diagnostics as diag
from .blending import BoneSlotAllocator


class PartPlan:
    """Result of planning: part and slot set per polygon."""

    def __init__(self, part_count, poly_count, allocators=None):
        self.part_count = part_count
        self.poly_part = [None] * poly_count
        self.poly_slot_set = [0] * poly_count
        self.allocators = allocators

    @property
    def skinned(self):
        return self.allocators is not None

    @property
    def bones_overflow(self):
        return self.skinned and any(a.bones_overflow for a in self.allocators)

    def slot_set_count(self, part):
        if not self.skinned:
            return 1
        return len(self.allocators[part])

    def slot_set(self, part, index):
        if not self.skinned:
            return None
        return self.allocators[part][index]

    def part_keys(self):
        """All (material part, slot set) pairs in output order."""
        keys = []
        for part in range(self.part_count):
            for sp in range(self.slot_set_count(part)):
                keys.append((part, sp))
        return keys

    def __repr__(self):
        return f"PartPlan(parts={self.part_count}, keys={len(self.part_keys())}, skinned={self.skinned})"


def uses_materials(source):
    """False when the mesh declares no materials; every polygon then goes to part 0."""
    return source.material_indices is not None and source.material_count != 0


def count_material_parts(source):
    """Number of material parts: declared material count, else highest index + 1."""
    if not uses_materials(source):
        return 1
    if source.material_count is not None:
        return max(1, source.material_count)
    count = 0
    for mp in source.material_indices:
        if mp is not None and mp >= count:
            count = mp + 1
    return max(1, count)


class PartPlanner:
    def __init__(self, options, diagnostics):
        self.options = options
        self.diagnostics = diagnostics

    def resolve_part(self, source, poly, part_count):
        if not uses_materials(source):
            return 0
        mp = source.material_index(poly)
        if mp is None or mp < 0 or mp >= part_count:
            return None
        return mp

    def plan(self, source, point_weights=None):
        """Assign every polygon to a part, and to a bone slot set when skinned.

        point_weights: per control point BlendWeight lists, or None when the
        mesh is not skinned.
        """
        part_count = count_material_parts(source)
        allocators = None
        if point_weights is not None:
            allocators = [BoneSlotAllocator(self.options.max_bones_per_part) for _ in range(part_count)]
        plan = PartPlan(part_count, source.poly_count, allocators)

        for poly, points in enumerate(source.polygons):
            mp = self.resolve_part(source, poly, part_count)
            if mp is None:
                self.diagnostics.warning(
                    diag.NO_POLY_PART,
                    f"Polygon has no valid material index ({source.material_index(poly)})",
                    mesh=source.name, polygon=poly)
                continue
            plan.poly_part[poly] = mp
            if allocators is None:
                continue
            demand = [point_weights[p] for p in points]
            allocator = allocators[mp]
            plan.poly_slot_set[poly] = allocator.place(demand)
            if allocator.last_overflow:
                self.diagnostics.warning(
                    diag.BONES_OVERFLOW,
                    f"Polygon needs more than {allocator.capacity} bones",
                    mesh=source.name, polygon=poly)
        return plan
