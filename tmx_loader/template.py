"""
Object templates (.tx files)

=============================================================================
WHAT IS A TEMPLATE?
=============================================================================

A template is a reusable object definition stored in its own file:

    <template>
        <tileset firstgid="1" source="items.tsx"/>
        <object name="chest" type="container" gid="5" width="32" height="32"/>
    </template>

Maps place instances of it, overriding only what differs:

    <object id="12" template="chest.tx" x="64" y="96" name="gold chest"/>

=============================================================================
MERGE RULES
=============================================================================

- Any field present on the instance wins; absent fields come from the
  template object. Position and id always come from the instance.
- Properties merge key by key, instance values replacing template values.
- A template tile object's GID is only meaningful against the template's own
  <tileset> list. Each instance gets its GID recomputed against the
  referencing map's tileset list, where the same (cached, shared) tileset may
  sit at a different first_gid.
=============================================================================
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Dict, Optional

from .errors import InvalidTileId
from .gid import encode_gid
from .resolver import TilesetList

if TYPE_CHECKING:
    from .layers.objects import MapObject
    from .tileset import Tileset


@dataclass(frozen=True)
class Template:
    """A parsed template: its object definition plus the tilesets it uses."""
    object: 'MapObject'
    tilesets: TilesetList
    source: Optional[str] = None                     # Canonical .tx path

    @property
    def tileset(self) -> Optional['Tileset']:
        """The tileset the template's tile object draws from, if any."""
        if self.object.tile is not None:
            return self.object.tile.tileset
        return self.tilesets[0].tileset if len(self.tilesets) else None


def resolve_object(overrides: Dict[str, Any], template: Optional[Template] = None,
                   tilesets: Optional[TilesetList] = None,
                   path: Optional[str] = None) -> 'MapObject':
    """
    Build the final object from instance overrides and an optional template.

    Parameters:
    -----------
    overrides : dict
        Fields explicitly present on the instance (see object_overrides)
    template : Template, optional
        Template the instance refers to
    tilesets : TilesetList, optional
        Tilesets of the referencing document; GIDs are resolved against it.
        None inside tilesets, where objects keep the template's tile as-is.
    """
    from .layers.objects import MapObject

    fields = {k: v for k, v in overrides.items() if k not in ('gid', 'properties')}
    base = template.object if template is not None else None

    if base is None:
        obj = MapObject(**fields)
    else:
        # Instances must not share mutable state with the cached template
        properties = {name: _copy_property(prop) for name, prop in base.properties.items()}
        obj = replace(base, id=0, x=0.0, y=0.0, template=template.source,
                      points=list(base.points), properties=properties)
        obj = replace(obj, **fields)
    obj.properties.update(overrides.get('properties', {}))

    if 'gid' in overrides:
        obj.gid = overrides['gid']
        obj.tile = tilesets.resolve(obj.gid) if tilesets is not None else None
    elif base is not None and base.tile is not None:
        if tilesets is None:
            obj.gid = None
            obj.tile = base.tile
        else:
            entry = tilesets.find(base.tile.tileset)
            if entry is None:
                raise InvalidTileId(
                    f"template {template.source} uses tileset "
                    f"'{base.tile.tileset.name}' which the map does not include",
                    gid=base.gid, path=path)
            obj.gid = encode_gid(entry.first_gid + base.tile.id, base.tile.flags)
            obj.tile = tilesets.resolve(obj.gid)

    return obj


def _copy_property(prop):
    """Copy a property, recursing into the members of class properties."""
    if prop.type == 'class' and isinstance(prop.value, dict):
        return replace(prop, value={name: _copy_property(member)
                                    for name, member in prop.value.items()})
    return replace(prop)
