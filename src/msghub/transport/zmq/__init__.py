"""ZeroMQ transport backend."""

from .pair import PairTransport
