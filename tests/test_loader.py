import pytest

from conftest import CountingReader, csv_layer, map_xml, tileset_xml
from tmx_loader import (
    FilesystemReader, ImageLayer, LayerGroup, Loader, MemoryReader, ObjectGroup,
    ResourceCache, ResourceState, TileLayer, load_map, load_tileset,
)
from tmx_loader.errors import (
    CyclicReference, InvalidTileData, InvalidTileId, MalformedDocument,
    ResourceIOError,
)
from tmx_loader.reader import canonical_path

TERRAIN_REF = '<tileset firstgid="1" source="../tiles/terrain.tsx"/>'
ITEMS_REF = '<tileset firstgid="11" source="../tiles/items.tsx"/>'


@pytest.fixture
def world(reader):
    reader.add("tiles/terrain.tsx", tileset_xml("terrain", 10))
    reader.add("tiles/items.tsx", tileset_xml("items", 5))
    reader.add("maps/level1.tmx", map_xml(
        TERRAIN_REF + ITEMS_REF,
        csv_layer("ground", [[1, 2, 3, 0], [0, 2147483659, 15, 10]])))
    reader.add("maps/level2.tmx", map_xml(
        TERRAIN_REF, csv_layer("ground", [[4, 4, 4, 4], [0, 0, 0, 0]])))
    return reader


def test_canonical_path():
    assert canonical_path("../tiles/terrain.tsx", "maps/level1.tmx") == "tiles/terrain.tsx"
    assert canonical_path("terrain.tsx", "tiles/a.tsx") == "tiles/terrain.tsx"
    assert canonical_path("sub\\..\\x.tsx", "maps/m.tmx") == "maps/x.tsx"
    assert canonical_path("/abs/t.tsx", "maps/m.tmx") == "/abs/t.tsx"
    assert canonical_path("./maps/m.tmx") == "maps/m.tmx"


def test_canonical_path_keeps_drive_letter_paths():
    assert canonical_path("C:\\tiles\\a.tsx", "maps/m.tmx") == "C:/tiles/a.tsx"
    assert canonical_path("d:/art/../b.tsx", "maps/m.tmx") == "d:/b.tsx"
    assert canonical_path("C.tsx", "maps/m.tmx") == "maps/C.tsx"


def test_load_map_resolves_tiles(loader, world):
    level = loader.load_map("maps/level1.tmx")
    assert (level.width, level.height) == (4, 2)
    assert [e.first_gid for e in level.tilesets] == [1, 11]

    ground = level.get_layer_by_name("ground")
    assert isinstance(ground, TileLayer)
    assert ground.get_tile_gid(1, 1) == 0x8000000B
    ref = ground.get_tile(1, 1)
    assert ref.tileset.name == "items"
    assert ref.id == 0
    assert ref.flip_h
    assert ground.get_tile(3, 0) is None
    assert ground.get_tile(2, 1).id == 4
    assert [(x, y) for x, y, _ in ground.iter_tiles()] == [(0, 0), (1, 0), (2, 0),
                                                            (1, 1), (2, 1), (3, 1)]


def test_maps_share_cached_tilesets(loader, world):
    level1 = loader.load_map("maps/level1.tmx")
    level2 = loader.load_map("maps/level2.tmx")
    assert level1.tilesets[0].tileset is level2.tilesets[0].tileset
    assert world.reads["tiles/terrain.tsx"] == 1
    assert loader.cache.hits == 1
    assert loader.cache.paths() == ["tiles/terrain.tsx", "tiles/items.tsx"]


def test_loaders_sharing_a_cache(world):
    cache = ResourceCache()
    a = Loader(world, cache).load_map("maps/level1.tmx")
    b = Loader(world, cache).load_map("maps/level2.tmx")
    assert a.tilesets[0].tileset is b.tilesets[0].tileset


def test_separate_caches_do_not_share(world):
    a = Loader(world).load_map("maps/level1.tmx")
    b = Loader(world).load_map("maps/level1.tmx")
    assert a.tilesets[0].tileset is not b.tilesets[0].tileset
    assert world.reads["tiles/terrain.tsx"] == 2


def test_relative_spellings_collide(loader, reader):
    reader.add("tiles/terrain.tsx", tileset_xml())
    reader.add("maps/a.tmx", map_xml('<tileset firstgid="1" source="../tiles/terrain.tsx"/>'))
    reader.add("b.tmx", map_xml('<tileset firstgid="1" source="tiles/./terrain.tsx"/>'))
    a = loader.load_map("maps/a.tmx")
    b = loader.load_map("b.tmx")
    assert a.tilesets[0].tileset is b.tilesets[0].tileset
    assert reader.reads["tiles/terrain.tsx"] == 1


def test_top_level_tileset_load_is_cached(loader, world):
    terrain = loader.load_tileset("tiles/terrain.tsx")
    assert terrain.source == "tiles/terrain.tsx"
    level = loader.load_map("maps/level2.tmx")
    assert level.tilesets[0].tileset is terrain
    assert world.reads["tiles/terrain.tsx"] == 1


def test_module_level_functions(world):
    cache = ResourceCache()
    terrain = load_tileset("tiles/terrain.tsx", reader=world, cache=cache)
    level = load_map("maps/level2.tmx", reader=world, cache=cache)
    assert level.tilesets[0].tileset is terrain


def test_missing_tileset_fails_once(loader, reader):
    reader.add("maps/m.tmx", map_xml('<tileset firstgid="1" source="gone.tsx"/>'))
    with pytest.raises(ResourceIOError) as excinfo:
        loader.load_map("maps/m.tmx")
    assert excinfo.value.path == "maps/gone.tsx"
    assert loader.cache.state("maps/gone.tsx") is ResourceState.FAILED
    with pytest.raises(ResourceIOError):
        loader.load_map("maps/m.tmx")
    assert reader.reads["maps/gone.tsx"] == 1


def test_missing_map(loader):
    with pytest.raises(ResourceIOError):
        loader.load_map("nothing.tmx")


def test_malformed_xml(loader, reader):
    reader.add("bad.tmx", "<map><layer></map>")
    with pytest.raises(MalformedDocument) as excinfo:
        loader.load_map("bad.tmx")
    assert excinfo.value.path == "bad.tmx"


def test_wrong_root_element(loader, reader):
    reader.add("t.tsx", map_xml())
    with pytest.raises(MalformedDocument):
        loader.load_tileset("t.tsx")


def test_tileset_without_firstgid(loader, reader):
    reader.add("m.tmx", map_xml('<tileset source="t.tsx"/>'))
    with pytest.raises(MalformedDocument):
        loader.load_map("m.tmx")


def test_layer_gid_outside_tilesets(loader, world):
    world.add("maps/bad.tmx", map_xml(TERRAIN_REF, csv_layer("walls", [[1, 11, 0, 0],
                                                                       [0, 0, 0, 0]])))
    with pytest.raises(InvalidTileId) as excinfo:
        loader.load_map("maps/bad.tmx")
    assert excinfo.value.gid == 11
    assert "layer 'walls'" in str(excinfo.value)


def test_layer_payload_size_mismatch(loader, world):
    world.add("maps/bad.tmx", map_xml(
        TERRAIN_REF, '<layer name="x" width="4" height="2"><data encoding="csv">1,2,3</data></layer>'))
    with pytest.raises(InvalidTileData):
        loader.load_map("maps/bad.tmx")


def test_embedded_tileset(loader, reader):
    reader.add("m.tmx", map_xml(
        '<tileset firstgid="1" name="inline" tilewidth="16" tileheight="16" '
        'tilecount="4" columns="2"><image source="img/inline.png" width="32" height="32"/></tileset>',
        csv_layer("g", [[1, 4, 0, 0], [0, 0, 0, 0]])))
    level = loader.load_map("m.tmx")
    tileset = level.tilesets[0].tileset
    assert tileset.is_inline
    assert tileset.image.source == "img/inline.png"
    assert len(loader.cache) == 0
    assert level.get_tileset_for_gid(4) is tileset
    assert level.get_tileset_for_gid(5) is None


def test_infinite_map(loader, world):
    chunk = ",".join(["1"] * 256)
    world.add("maps/open.tmx", map_xml(
        TERRAIN_REF,
        '<layer id="1" name="ground" width="32" height="16"><data encoding="csv">'
        f'<chunk x="-16" y="0" width="16" height="16">{chunk}</chunk>'
        f'<chunk x="0" y="0" width="16" height="16">{chunk}</chunk>'
        '</data></layer>', width=32, height=16, infinite=True))
    level = loader.load_map("maps/open.tmx")
    assert level.infinite
    ground = level.tile_layers()[0]
    assert ground.is_infinite
    assert len(list(ground.chunks())) == 2
    assert ground.get_chunk(-16, 0) is not None
    assert ground.get_tile(-5, 3).id == 0
    assert ground.get_tile(40, 3) is None


def test_chunk_access_on_finite_layer_is_api_misuse(loader, world):
    ground = loader.load_map("maps/level1.tmx").get_layer_by_name("ground")
    with pytest.raises(TypeError):
        list(ground.chunks())
    with pytest.raises(TypeError):
        ground.get_chunk(0, 0)


def test_layer_kinds_and_groups(loader, world):
    world.add("maps/full.tmx", map_xml(
        TERRAIN_REF,
        '<properties><property name="music" value="calm.ogg"/>'
        '<property name="level" type="int" value="3"/></properties>'
        '<imagelayer id="1" name="sky" repeatx="1"><image source="../img/sky.png"/></imagelayer>'
        '<group id="2" name="gameplay" opacity="0.5">'
        + csv_layer("ground", [[1, 0, 0, 0], [0, 0, 0, 0]], layer_id=3) +
        '<objectgroup id="4" name="spawns" color="#ff0000">'
        '<object id="1" name="player" type="spawn" x="16" y="32"><point/></object>'
        '<object id="2" x="0" y="0"><polygon points="0,0 16,0 16,16"/></object>'
        '<object id="3" gid="2147483650" x="0" y="16" width="16" height="16"/>'
        '</objectgroup></group>'))
    level = loader.load_map("maps/full.tmx")

    assert level.properties["music"].value == "calm.ogg"
    assert level.properties["level"].value == 3
    sky, group = level.layers
    assert isinstance(sky, ImageLayer)
    assert sky.repeatx and not sky.repeaty
    assert sky.image.source == "img/sky.png"
    assert isinstance(group, LayerGroup)
    assert group.opacity == 0.5
    assert [l.name for l in level.get_all_layers_flat()] == ["sky", "ground", "spawns"]

    spawns = level.get_layer_by_name("spawns")
    assert isinstance(spawns, ObjectGroup)
    player, triangle, crate = level.objects()
    assert player.shape == "point"
    assert (player.x, player.y) == (16.0, 32.0)
    assert triangle.shape == "polygon"
    assert triangle.points == [(0.0, 0.0), (16.0, 0.0), (16.0, 16.0)]
    assert crate.tile.id == 1
    assert crate.tile.flip_h


def test_filesystem_reader(tmp_path):
    (tmp_path / "maps").mkdir()
    (tmp_path / "tiles").mkdir()
    (tmp_path / "tiles" / "terrain.tsx").write_text(tileset_xml("terrain", 10))
    (tmp_path / "maps" / "level.tmx").write_text(
        map_xml(TERRAIN_REF, csv_layer("g", [[1, 2, 3, 4], [5, 6, 7, 8]])))

    level = Loader(FilesystemReader(tmp_path)).load_map("maps/level.tmx")
    assert level.get_layer_by_name("g").get_tile(3, 1).id == 7

    absolute = Loader().load_map(str(tmp_path / "maps" / "level.tmx"))
    assert absolute.tilesets[0].tileset.source == canonical_path(
        str(tmp_path / "tiles" / "terrain.tsx"))


def test_filesystem_reader_missing_file(tmp_path):
    with pytest.raises(ResourceIOError):
        FilesystemReader(tmp_path).read("missing.tmx")


def test_custom_reader_oserror_is_wrapped():
    class BrokenReader:
        def read(self, path):
            raise PermissionError("denied")

    with pytest.raises(ResourceIOError):
        Loader(BrokenReader()).load_map("m.tmx")


def test_memory_reader_accepts_text_and_bytes():
    reader = MemoryReader({"a/./b.tsx": "<x/>", "c.tmx": b"<y/>"})
    assert reader.read("a/b.tsx") == b"<x/>"
    assert reader.read("c.tmx") == b"<y/>"


def test_tileset_template_cycle(loader, reader):
    reader.add("tiles/terrain.tsx", tileset_xml("terrain", 10, body=(
        '<tile id="0"><objectgroup draworder="index">'
        '<object id="1" template="loop.tx"/>'
        '</objectgroup></tile>')))
    reader.add("tiles/loop.tx",
               '<template><tileset firstgid="1" source="terrain.tsx"/>'
               '<object gid="1" width="16" height="16"/></template>')
    with pytest.raises(CyclicReference) as excinfo:
        loader.load_tileset("tiles/terrain.tsx")
    assert excinfo.value.chain == ("tiles/terrain.tsx", "tiles/loop.tx",
                                   "tiles/terrain.tsx")
    assert reader.reads["tiles/terrain.tsx"] == 1


def test_cycle_reached_from_a_map(loader, reader):
    reader.add("tiles/terrain.tsx", tileset_xml("terrain", 10, body=(
        '<tile id="0"><objectgroup><object id="1" template="loop.tx"/></objectgroup></tile>')))
    reader.add("tiles/loop.tx",
               '<template><tileset firstgid="1" source="terrain.tsx"/>'
               '<object gid="1"/></template>')
    reader.add("m.tmx", map_xml('<tileset firstgid="1" source="tiles/terrain.tsx"/>'))
    with pytest.raises(CyclicReference):
        loader.load_map("m.tmx")


def test_template_referencing_itself(loader, reader):
    reader.add("self.tx", '<template><object template="self.tx"/></template>')
    reader.add("m.tmx", map_xml(
        layers='<objectgroup id="1"><object id="1" template="self.tx"/></objectgroup>'))
    with pytest.raises(CyclicReference):
        loader.load_map("m.tmx")


def test_loader_defaults():
    loader = Loader()
    assert isinstance(loader.reader, FilesystemReader)
    assert isinstance(loader.cache, ResourceCache)


def test_counting_reader_fixture(reader):
    assert isinstance(reader, CountingReader)
