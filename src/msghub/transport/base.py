"""Transport interface.

This is the (small) contract that transport implementations should follow.
It lives outside :mod:`msghub.protocol` so the protocol remains
transport-agnostic: a transport moves one envelope dictionary at a time
and knows nothing about requests, responses or correlation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class TransportClosed(TransportError):
    """The transport was used after it was closed."""


Receiver = Callable[[Any, Dict[str, Any]], None]


class Transport(ABC):
    """Minimal contract for a duplex, at-most-once message channel."""

    @abstractmethod
    def open(self, callback: Receiver) -> None:
        """Start delivering inbound envelopes.

        *callback* is invoked as ``callback(source, envelope)`` exactly once
        per envelope received, where *source* identifies the peer that sent
        it in terms the same transport accepts as a *target*.
        """

    @abstractmethod
    def close(self) -> None:
        """Stop delivery and release any underlying resources."""

    @abstractmethod
    def send_message(self, target: Any, envelope: Dict[str, Any]) -> None:
        """Hand one envelope to the transport for delivery to *target*."""

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently delivering messages."""
        return False
