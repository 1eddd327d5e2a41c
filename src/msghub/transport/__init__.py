"""Transport layer implementations."""

from .. import config
from .base import (
    Transport,
    TransportError,
    TransportConnectionError,
    TransportClosed,
)
from . import loopback


def create(kind=None, **kwargs):
    """Return a new transport of the requested *kind*.

    The default kind comes from the ``MSGHUB_TRANSPORT`` environment
    variable. Keyword arguments are passed to the transport constructor; a
    loopback transport accepts *channel* and *name*, a zmq transport accepts
    the arguments of :class:`msghub.transport.zmq.PairTransport`.
    """

    if kind is None:
        kind = config.transport

    if kind == "loopback":
        channel = kwargs.pop("channel", None)
        if channel is None:
            channel = loopback.Channel()
        return channel.attach(**kwargs)

    if kind == "zmq":
        from .zmq import PairTransport
        return PairTransport(**kwargs)

    raise ValueError(f"unknown transport backend: {kind!r}")
