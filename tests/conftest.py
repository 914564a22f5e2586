from collections import Counter

import pytest

from tmx_loader import Loader, MemoryReader, ResourceCache


class CountingReader(MemoryReader):
    """MemoryReader that records how often each document was fetched."""

    def __init__(self, documents=None):
        super().__init__(documents)
        self.reads = Counter()

    def read(self, path):
        self.reads[path] += 1
        return super().read(path)


def tileset_xml(name="terrain", tilecount=10, columns=5, body="", image=True):
    image_elem = f'<image source="{name}.png" width="{columns * 16}" height="32"/>' if image else ""
    return (f'<tileset version="1.10" name="{name}" tilewidth="16" tileheight="16" '
            f'tilecount="{tilecount}" columns="{columns}">{image_elem}{body}</tileset>')


def csv_layer(name, rows, layer_id=1):
    height = len(rows)
    width = len(rows[0])
    text = ",\n".join(",".join(str(v) for v in row) for row in rows)
    return (f'<layer id="{layer_id}" name="{name}" width="{width}" height="{height}">'
            f'<data encoding="csv">{text}</data></layer>')


def map_xml(tilesets="", layers="", width=4, height=2, infinite=False):
    return (f'<map version="1.10" orientation="orthogonal" renderorder="right-down" '
            f'width="{width}" height="{height}" tilewidth="16" tileheight="16" '
            f'infinite="{1 if infinite else 0}">{tilesets}{layers}</map>')


@pytest.fixture
def reader():
    return CountingReader()


@pytest.fixture
def cache():
    return ResourceCache()


@pytest.fixture
def loader(reader, cache):
    return Loader(reader=reader, cache=cache)
