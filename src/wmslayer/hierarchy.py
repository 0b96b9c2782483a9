"""
Lookups over the server layer hierarchy.

Layer and style names are case sensitive. All searches are pre-order and
depth-first: a node is inspected before its children, and children are
visited in advertised order, stopping at the first match.
"""

from typing import Iterator, List, Optional

from .types import ServerLayer


def iter_layers(root: Optional[ServerLayer]) -> Iterator[ServerLayer]:
    """Yield every layer of the tree rooted at ``root`` in pre-order."""
    if root is None:
        return
    stack = [root]
    while stack:
        layer = stack.pop()
        yield layer
        stack.extend(reversed(layer.children))


def find_layer(root: Optional[ServerLayer], name: str) -> Optional[ServerLayer]:
    """Return the first layer called ``name``, or None."""
    for layer in iter_layers(root):
        if layer.name == name:
            return layer
    return None


def layer_exists(root: Optional[ServerLayer], name: str) -> bool:
    """Check whether a layer called ``name`` is advertised anywhere under ``root``."""
    return find_layer(root, name) is not None


def style_exists(root: Optional[ServerLayer], name: str) -> bool:
    """Check whether any layer under ``root`` advertises a style called ``name``."""
    for layer in iter_layers(root):
        if any(style.name == name for style in layer.styles):
            return True
    return False


def named_layers(root: Optional[ServerLayer]) -> List[str]:
    return [layer.name for layer in iter_layers(root) if layer.name]
