"""Exception hierarchy for the correlation and routing layers.

Transport failures have their own hierarchy in :mod:`msghub.transport.base`
so that the core stays transport-agnostic.
"""

from __future__ import annotations

from typing import Any


class HubError(Exception):
    """Base class for all hub-level errors."""


class CompositionError(HubError):
    """A continuation in a composed handler chain was invoked twice."""


class HandlerNotFound(HubError, LookupError):
    """No handler is registered for the requested method or channel."""


class HubClosed(HubError):
    """The hub was closed while a call was still pending."""


class RemoteError(HubError):
    """The peer answered a request with a failure response.

    Attributes:
        data: The failure payload exactly as the peer sent it.
    """

    def __init__(self, data: Any):
        self.data = data

        if isinstance(data, dict) and 'text' in data:
            text = "%s: %s" % (data.get('type', 'Error'), data['text'])
        else:
            text = repr(data)

        super().__init__(text)

    @property
    def type(self):
        """The remote exception class name, if the peer supplied one."""
        try:
            return self.data['type']
        except (KeyError, TypeError):
            return None


__all__ = [
    "HubError",
    "CompositionError",
    "HandlerNotFound",
    "HubClosed",
    "RemoteError",
]
