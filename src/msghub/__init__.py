""" Python implementation of msghub: request/response correlation and
    channel routing between two independent execution contexts, layered on
    any transport that can carry a message from one side to the other.
"""

# Utility components.

from . import config
from . import identity

# Submodules used by multiple other components.

from . import errors
from . import protocol
from . import transport

# Primary public-facing interfaces.

from .compose import compose
from .router import Router, Context
from .hub import Hub
from .messagehub import MessageHub

from .errors import HubError, CompositionError, HandlerNotFound, HubClosed, RemoteError


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
