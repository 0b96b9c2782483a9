"""Selection of the GetMap transport binding."""

from typing import Sequence

from .errors import NoTransportAvailable
from .types import TransportBinding

# Body submission first, it copes with larger requests.
METHOD_PREFERENCE = ("post", "get")


def choose_preferred(bindings: Sequence[TransportBinding]) -> TransportBinding:
    """
    Return the binding to use for GetMap.

    The first POST binding wins, then the first GET binding; failing both the
    first advertised binding is used whatever its method.
    """
    if not bindings:
        raise NoTransportAvailable("Capability document advertises no GetMap transport")

    for method in METHOD_PREFERENCE:
        for binding in bindings:
            if binding.method.lower() == method:
                return binding
    return bindings[0]
