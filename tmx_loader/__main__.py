#!/usr/bin/env python3

"""
TMX Loader - print a summary of a Tiled map or tileset

Usage:
    python -m tmx_loader <map.tmx|tileset.tsx> [--debug]

Options:
    --debug     Log every fetch, parse and cache hit to stderr
"""

import logging
import sys

from .errors import TiledError
from .layers import ImageLayer, LayerGroup, ObjectGroup, TileLayer
from .loader import Loader


def describe_tileset(tileset, first_gid=None):
    kind = "inline" if tileset.is_inline else tileset.source
    line = (f"tileset '{tileset.name}' ({kind}): {tileset.tilecount} tiles "
            f"of {tileset.tilewidth}x{tileset.tileheight}")
    if first_gid is not None:
        line += f", gids {first_gid}-{first_gid + tileset.gid_span - 1}"
    return line


def describe_layers(layers, indent="  "):
    lines = []
    for layer in layers:
        if isinstance(layer, TileLayer):
            if layer.is_infinite:
                size = f"{len(layer.data)} chunks"
            else:
                size = f"{layer.width}x{layer.height}"
            lines.append(f"{indent}tile layer '{layer.name}': {size}")
        elif isinstance(layer, ObjectGroup):
            lines.append(f"{indent}object group '{layer.name}': "
                         f"{len(layer.objects)} objects")
        elif isinstance(layer, ImageLayer):
            source = layer.image.source if layer.image else "no image"
            lines.append(f"{indent}image layer '{layer.name}': {source}")
        elif isinstance(layer, LayerGroup):
            lines.append(f"{indent}group '{layer.name}':")
            lines.extend(describe_layers(layer.layers, indent + "  "))
    return lines


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)
    debug = '--debug' in args
    paths = [a for a in args if a != '--debug']

    if len(paths) != 1:
        print(__doc__)
        return 1

    logging.basicConfig(level=logging.DEBUG if debug else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    source_path = paths[0]
    loader = Loader()
    try:
        if source_path.lower().endswith('.tsx'):
            tileset = loader.load_tileset(source_path)
            print(describe_tileset(tileset))
        else:
            level = loader.load_map(source_path)
            print(f"map {level.source}: {level.orientation} {level.width}x{level.height}"
                  f" tiles of {level.tilewidth}x{level.tileheight}"
                  f"{' (infinite)' if level.infinite else ''}")
            for entry in level.tilesets:
                print(describe_tileset(entry.tileset, entry.first_gid))
            print("layers:")
            for line in describe_layers(level.layers):
                print(line)
            print(f"objects: {sum(1 for _ in level.objects())}")
    except TiledError as e:
        print(f"Error: {e}")
        return 1

    print("cache:")
    for path in loader.cache.paths():
        print(f"  {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
