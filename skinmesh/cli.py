#!/usr/bin/env python3
"""
Convert model files to engine meshes and print what the converter produced.

Any format trimesh can load is accepted. For every mesh in the file the
vertex layout, vertex/index counts and the parts with their bone tables are
printed, followed by the conversion warnings.

Usage: skinmesh <input|directory> [--max-bones=12] [--max-weights=4]
                [--uv-channels=8] [--packed-colors] [--triangulate]
                [--workers=1] [--quiet]
"""

import os
import sys

from .builder import convert_meshes
from .config import ConvertOptions, DEFAULT_MAX_BLEND_WEIGHTS, DEFAULT_MAX_BONES_PER_PART, MAX_UV_CHANNELS
from .diagnostics import Diagnostics
from .trimesh_source import load_sources

USAGE = ("Usage: skinmesh <input|directory> [--max-bones=12] [--max-weights=4] "
         "[--uv-channels=8] [--packed-colors] [--triangulate] [--workers=1] [--quiet]")

MODEL_EXTENSIONS = ('.obj', '.glb', '.gltf', '.ply', '.stl', '.off', '.dae', '.fbx')


def parse_args(argv):
    """Split argv into (input path, ConvertOptions, settings dict)."""
    settings = {
        'max_bones': DEFAULT_MAX_BONES_PER_PART,
        'max_weights': DEFAULT_MAX_BLEND_WEIGHTS,
        'uv_channels': MAX_UV_CHANNELS,
        'packed_colors': False,
        'triangulate': False,
        'workers': 1,
        'quiet': False,
    }
    input_path = None
    for arg in argv:
        if arg.startswith("--max-bones="):
            settings['max_bones'] = int(arg.split("=")[1])
        elif arg.startswith("--max-weights="):
            settings['max_weights'] = int(arg.split("=")[1])
        elif arg.startswith("--uv-channels="):
            settings['uv_channels'] = int(arg.split("=")[1])
        elif arg.startswith("--workers="):
            settings['workers'] = int(arg.split("=")[1])
        elif arg == "--packed-colors":
            settings['packed_colors'] = True
        elif arg == "--triangulate":
            settings['triangulate'] = True
        elif arg == "--quiet":
            settings['quiet'] = True
        elif arg.startswith("--"):
            raise ValueError(f"Unknown option: {arg}")
        elif input_path is None:
            input_path = arg
        else:
            raise ValueError(f"Unexpected argument: {arg}")

    options = ConvertOptions(
        max_blend_weights=settings['max_weights'],
        packed_colors=settings['packed_colors'],
        max_bones_per_part=settings['max_bones'],
        max_uv_channels=settings['uv_channels'],
        triangulate=settings['triangulate'],
    )
    return input_path, options, settings


def print_mesh(mesh):
    print(f"  Mesh {mesh.id}: {', '.join(mesh.attributes.names())} ({mesh.vertex_size} floats/vertex)")
    print(f"    {mesh.vertex_count()} vertices, {mesh.index_count()} indices, {len(mesh.parts)} parts")
    for part in mesh.parts:
        line = f"    {part.id}: material={part.material_index} indices={len(part.indices)}"
        if part.bones:
            line += f" bones={len(part.bones)}"
        print(line)
        for i, bounds in enumerate(part.uv_bounds):
            if not bounds.empty:
                print(f"      uv{i}: {bounds}")
    if mesh.bones_overflow:
        print("    WARNING: bone slots overflowed, some polygons use more bones than a part can hold")


def convert_file(path, options, diagnostics, workers=1, quiet=False):
    """Convert every mesh in one file; returns the list of Mesh."""
    print(f"  Loading: {os.path.basename(path)}")
    sources = load_sources(path)
    if not sources:
        print(f"  WARNING: No meshes found in {path}")
        return []
    meshes = convert_meshes(sources, options, diagnostics, workers=workers)
    if not quiet:
        for mesh in meshes:
            print_mesh(mesh)
    total_verts = sum(m.vertex_count() for m in meshes)
    print(f"  -> {len(meshes)} meshes, {total_verts} vertices")
    return meshes


def convert_directory(dir_path, options, diagnostics, workers=1, quiet=False):
    """Convert all model files in a directory; returns (converted, total)."""
    files = [f for f in os.listdir(dir_path) if f.lower().endswith(MODEL_EXTENSIONS)]
    if not files:
        print(f"No model files found in {dir_path}")
        return 0, 0

    print(f"Converting {len(files)} model files in {dir_path}")
    print()

    success = 0
    for fname in sorted(files):
        try:
            convert_file(os.path.join(dir_path, fname), options, diagnostics, workers, quiet)
            success += 1
        except Exception as e:
            print(f"  ERROR converting {fname}: {e}")

    print(f"\nDone: {success}/{len(files)} converted successfully")
    return success, len(files)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    try:
        input_path, options, settings = parse_args(argv)
    except ValueError as e:
        print(e)
        print(USAGE)
        return 1
    if input_path is None:
        print(USAGE)
        return 1

    diagnostics = Diagnostics(echo=not settings['quiet'])
    if os.path.isdir(input_path):
        success, total = convert_directory(input_path, options, diagnostics,
                                           settings['workers'], settings['quiet'])
        ok = total > 0 and success == total
    elif os.path.isfile(input_path):
        try:
            convert_file(input_path, options, diagnostics, settings['workers'], settings['quiet'])
            ok = True
        except Exception as e:
            print(f"  ERROR converting {input_path}: {e}")
            ok = False
    else:
        print(f"File or directory not found: {input_path}")
        return 1

    print("Warnings:")
    diagnostics.report()
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
