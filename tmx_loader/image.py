"""Image references used by tilesets, tiles and image layers."""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional

from .document import int_attr
from .reader import canonical_path


@dataclass(frozen=True)
class Image:
    """
    Image reference used in tilesets.

    ==========================================================================
    ATTRIBUTES
    ==========================================================================

    source: Canonical path of the image file (resolved relative to the
            TMX/TSX file that referenced it)
    width:  Image width in pixels (optional, for validation)
    height: Image height in pixels (optional)
    trans:  Transparent color in hex (e.g., "ff00ff" for magenta)
            Pixels of this color become transparent

    ==========================================================================
    """
    source: str                          # Path to image file
    width: Optional[int] = None          # Image width (pixels)
    height: Optional[int] = None         # Image height (pixels)
    trans: Optional[str] = None          # Transparent color (RRGGBB)

    @classmethod
    def from_xml(cls, elem: ET.Element, path: Optional[str] = None) -> 'Image':
        """Parse image from XML element; ``path`` is the referencing document."""
        return cls(
            source=canonical_path(elem.get('source', ''), path),
            # Width/height are optional - use None if not present
            width=int_attr(elem, 'width', None, path),
            height=int_attr(elem, 'height', None, path),
            trans=elem.get('trans'),
        )
