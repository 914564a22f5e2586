import pytest

from conftest import map_xml, tileset_xml
from tmx_loader import Template
from tmx_loader.errors import InvalidTileId, MalformedDocument

CHEST_TX = (
    '<template>'
    '<tileset firstgid="1" source="../tiles/items.tsx"/>'
    '<object name="chest" type="container" gid="3" width="16" height="16">'
    '<properties>'
    '<property name="gold" type="int" value="10"/>'
    '<property name="locked" type="bool" value="true"/>'
    '</properties>'
    '</object>'
    '</template>'
)


def object_layer(*objects):
    return '<objectgroup id="1" name="objects">' + "".join(objects) + '</objectgroup>'


@pytest.fixture
def assets(reader):
    reader.add("tiles/terrain.tsx", tileset_xml("terrain", 10))
    reader.add("tiles/items.tsx", tileset_xml("items", 5))
    reader.add("objs/chest.tx", CHEST_TX)
    return reader


def test_instance_overrides_template(loader, assets):
    assets.add("maps/m.tmx", map_xml(
        '<tileset firstgid="1" source="../tiles/terrain.tsx"/>'
        '<tileset firstgid="11" source="../tiles/items.tsx"/>',
        object_layer(
            '<object id="7" template="../objs/chest.tx" x="64" y="96" name="gold chest">'
            '<properties><property name="gold" type="int" value="99"/></properties>'
            '</object>')))
    level = loader.load_map("maps/m.tmx")
    chest, = level.objects()

    assert chest.id == 7
    assert (chest.x, chest.y) == (64.0, 96.0)
    assert chest.name == "gold chest"
    assert chest.type == "container"
    assert (chest.width, chest.height) == (16.0, 16.0)
    assert chest.template == "objs/chest.tx"
    assert chest.properties["gold"].value == 99
    assert chest.properties["locked"].value is True


def test_template_gid_is_rebased_on_the_map(loader, assets):
    assets.add("maps/m.tmx", map_xml(
        '<tileset firstgid="1" source="../tiles/terrain.tsx"/>'
        '<tileset firstgid="11" source="../tiles/items.tsx"/>',
        object_layer('<object id="1" template="../objs/chest.tx" x="0" y="0"/>')))
    level = loader.load_map("maps/m.tmx")
    chest, = level.objects()

    template = loader.load_template("objs/chest.tx")
    assert template.object.gid == 3
    assert chest.gid == 13
    assert chest.tile.tileset is template.tileset
    assert chest.tile.tileset is level.tilesets[1].tileset
    assert chest.tile.id == 2


def test_template_flags_survive_rebasing(loader, assets):
    assets.add("objs/flipped.tx",
               '<template><tileset firstgid="1" source="../tiles/items.tsx"/>'
               '<object gid="1073741825"/></template>')
    assets.add("m.tmx", map_xml(
        '<tileset firstgid="1" source="tiles/terrain.tsx"/>'
        '<tileset firstgid="11" source="tiles/items.tsx"/>',
        object_layer('<object id="1" template="objs/flipped.tx"/>')))
    obj, = loader.load_map("m.tmx").objects()
    assert obj.gid == 0x4000000B
    assert obj.tile.flip_v
    assert obj.tile.id == 0


def test_instance_gid_wins(loader, assets):
    assets.add("m.tmx", map_xml(
        '<tileset firstgid="1" source="tiles/items.tsx"/>',
        object_layer('<object id="1" template="objs/chest.tx" gid="5"/>')))
    obj, = loader.load_map("m.tmx").objects()
    assert obj.gid == 5
    assert obj.tile.id == 4


def test_map_without_template_tileset(loader, assets):
    assets.add("m.tmx", map_xml(
        '<tileset firstgid="1" source="tiles/terrain.tsx"/>',
        object_layer('<object id="1" template="objs/chest.tx"/>')))
    with pytest.raises(InvalidTileId):
        loader.load_map("m.tmx")


def test_template_parsed_once_for_many_instances(loader, assets):
    assets.add("maps/m.tmx", map_xml(
        '<tileset firstgid="1" source="../tiles/items.tsx"/>',
        object_layer(*(f'<object id="{i}" template="../objs/chest.tx" x="{i * 16}" y="0"/>'
                       for i in range(1, 6)))))
    level = loader.load_map("maps/m.tmx")
    objects = list(level.objects())
    assert len(objects) == 5
    assert [o.x for o in objects] == [16.0, 32.0, 48.0, 64.0, 80.0]
    assert assets.reads["objs/chest.tx"] == 1
    assert assets.reads["tiles/items.tsx"] == 1
    objects[0].properties["gold"].value = 0
    assert loader.load_template("objs/chest.tx").object.properties["gold"].value == 10


def test_population_order_is_depth_first(loader, assets):
    assets.add("maps/m.tmx", map_xml(
        '<tileset firstgid="1" source="../tiles/terrain.tsx"/>'
        '<tileset firstgid="11" source="../tiles/items.tsx"/>',
        object_layer('<object id="1" template="../objs/chest.tx"/>')))
    loader.load_map("maps/m.tmx")
    assert loader.cache.paths() == ["tiles/terrain.tsx", "tiles/items.tsx", "objs/chest.tx"]


def test_shape_template_without_tileset(loader, reader):
    reader.add("zone.tx", '<template><object name="zone" width="32" height="8">'
                          '<ellipse/></object></template>')
    reader.add("m.tmx", map_xml(layers=object_layer(
        '<object id="2" template="zone.tx" x="5" y="6" width="64"/>')))
    zone, = loader.load_map("m.tmx").objects()
    assert zone.shape == "ellipse"
    assert zone.width == 64.0
    assert zone.height == 8.0
    assert zone.gid is None
    assert zone.tile is None

    template = loader.load_template("zone.tx")
    assert isinstance(template, Template)
    assert template.tileset is None


def test_embedded_tileset_in_template(loader, reader):
    reader.add("t.tx", '<template><tileset firstgid="1" name="e" tilewidth="8" tileheight="8" '
                       'tilecount="4" columns="2"/><object gid="2"/></template>')
    template = loader.load_template("t.tx")
    assert template.tileset.is_inline
    assert template.object.tile.id == 1


def test_template_without_object(loader, reader):
    reader.add("empty.tx", '<template/>')
    with pytest.raises(MalformedDocument):
        loader.load_template("empty.tx")


def test_tile_collision_object_keeps_template_tile(loader, assets):
    assets.add("tiles/props.tsx", tileset_xml("props", 4, columns=2, body=(
        '<tile id="1"><objectgroup>'
        '<object id="1" template="../objs/chest.tx" x="2" y="2"/>'
        '</objectgroup></tile>')))
    props = loader.load_tileset("tiles/props.tsx")
    obj = props.get_tile(1).objectgroup.objects[0]
    assert obj.gid is None
    assert obj.tile.tileset.name == "items"
    assert obj.tile.id == 2


def test_nested_class_properties_are_not_shared(loader, reader):
    reader.add("door.tx", '<template><object name="door" width="16" height="32">'
                          '<properties><property name="lock" type="class" propertytype="Lock">'
                          '<properties><property name="key" value="brass"/></properties>'
                          '</property></properties></object></template>')
    reader.add("m.tmx", map_xml('', object_layer(
        '<object id="1" template="door.tx" x="0" y="0"/>'
        '<object id="2" template="door.tx" x="16" y="0"/>')))
    first, second = loader.load_map("m.tmx").objects()
    first.properties["lock"].value["key"].value = "iron"
    assert second.properties["lock"].value["key"].value == "brass"
    cached = loader.load_template("door.tx").object
    assert cached.properties["lock"].value["key"].value == "brass"
