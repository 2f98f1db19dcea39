from skinmesh import diagnostics as diag
from skinmesh.blending import BlendWeight
from skinmesh.config import ConvertOptions
from skinmesh.diagnostics import Diagnostics
from skinmesh.parts import PartPlanner, count_material_parts
from skinmesh.source import SourceMesh

SQUARE = [(0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0)]


def make_source(polygons, material_indices=None, material_count=None):
    return SourceMesh("body", SQUARE, polygons,
                      material_indices=material_indices, material_count=material_count)


def test_no_material_layer_gives_single_part():
    source = make_source([[0, 1, 2], [1, 3, 2]])
    d = Diagnostics()
    plan = PartPlanner(ConvertOptions(), d).plan(source)
    assert plan.part_count == 1
    assert plan.poly_part == [0, 0]
    assert not plan.skinned
    assert plan.part_keys() == [(0, 0)]
    assert len(d) == 0


def test_material_count_derived_from_indices():
    assert count_material_parts(make_source([[0, 1, 2]] * 2, [0, 2])) == 3
    assert count_material_parts(make_source([[0, 1, 2]] * 2, [0, 2], material_count=5)) == 5
    assert count_material_parts(make_source([[0, 1, 2]], [None])) == 1
    assert count_material_parts(make_source([[0, 1, 2]], [0], material_count=0)) == 1


def test_invalid_material_drops_polygon():
    source = make_source([[0, 1, 2]] * 5, [0, 1, None, -1, 5], material_count=2)
    d = Diagnostics()
    plan = PartPlanner(ConvertOptions(), d).plan(source)
    assert plan.poly_part == [0, 1, None, None, None]
    assert d.count(diag.NO_POLY_PART) == 3
    assert [e.polygon for e in d.entries] == [2, 3, 4]
    assert all(e.mesh == "body" for e in d.entries)


def test_short_material_layer_drops_extra_polygons():
    source = make_source([[0, 1, 2], [1, 3, 2]], [0])
    d = Diagnostics()
    plan = PartPlanner(ConvertOptions(), d).plan(source)
    assert plan.poly_part == [0, None]
    assert d.count(diag.NO_POLY_PART) == 1


def test_skinned_plan_splits_by_bone_palette():
    source = make_source([[0, 1, 2], [1, 3, 2], [0, 1, 3]], [0, 0, 1], material_count=2)
    point_weights = [
        [BlendWeight(0, 1.0)],
        [BlendWeight(1, 1.0)],
        [BlendWeight(2, 1.0)],
        [BlendWeight(3, 1.0)],
    ]
    d = Diagnostics()
    plan = PartPlanner(ConvertOptions(max_bones_per_part=3), d).plan(source, point_weights)
    assert plan.skinned
    # poly 0 needs {0, 1, 2}; poly 1 needs {1, 3, 2} and 3 does not fit in set 0
    assert plan.poly_slot_set[:2] == [0, 1]
    assert plan.slot_set(0, 0).bones() == [0, 1, 2]
    assert plan.slot_set(0, 1).bones() == [1, 3, 2]
    # material 1 has its own allocator
    assert plan.poly_slot_set[2] == 0
    assert plan.slot_set(1, 0).bones() == [0, 1, 3]
    assert plan.part_keys() == [(0, 0), (0, 1), (1, 0)]
    assert not plan.bones_overflow
    assert len(d) == 0


def test_bone_overflow_reported():
    source = make_source([[0, 1, 2]])
    point_weights = [[BlendWeight(0, 1.0)], [BlendWeight(1, 1.0)], [BlendWeight(2, 1.0)], []]
    d = Diagnostics()
    plan = PartPlanner(ConvertOptions(max_bones_per_part=2), d).plan(source, point_weights)
    assert plan.bones_overflow
    assert d.count(diag.BONES_OVERFLOW) == 1
    assert d.entries[0].polygon == 0
    assert plan.slot_set(0, 0).bones() == [0, 1]


def test_zero_declared_materials_keep_every_polygon():
    source = make_source([[0, 1, 2], [1, 3, 2]], [0, 3], material_count=0)
    d = Diagnostics()
    plan = PartPlanner(ConvertOptions(), d).plan(source)
    assert plan.part_count == 1
    assert plan.poly_part == [0, 0]
    assert len(d) == 0
