"""ZeroMQ PAIR transport.

A PAIR socket is an exclusive duplex connection between two endpoints, the
closest ZeroMQ analogue to a page/worker message port. One side binds, the
other connects; after that the two are symmetric.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Dict, Optional

import zmq

from ... import config
from ..base import Transport, TransportClosed, TransportConnectionError
from .framing import FramingError, from_frames, to_frames

logger = logging.getLogger(__name__)

zmq_context = zmq.Context()


class PairTransport(Transport):
    """Carry envelopes over a ZeroMQ PAIR socket.

    The socket is only ever touched by the background thread: outbound
    envelopes are queued and the thread is woken through an inproc signal
    socket, the same arrangement the request client uses to keep ZeroMQ
    sockets confined to one thread.

    :ivar peer: The name handed to the receive callback as the source of
        every inbound envelope. Targets passed to :func:`send_message` are
        accepted for interface compatibility; a PAIR socket has exactly one
        peer, so they do not affect delivery.
    """

    poll_interval = 100

    def __init__(
        self,
        address: str,
        *,
        bind: bool = False,
        peer: Any = "peer",
        linger: Optional[int] = None,
        context: Optional[zmq.Context] = None,
    ):
        self.address = address
        self.bind = bind
        self.peer = peer
        self.linger = config.linger if linger is None else int(linger)
        self.context = zmq_context if context is None else context

        self.callback = None
        self.socket = None

        self._outbox: queue.SimpleQueue = queue.SimpleQueue()
        self._signal_rx = None
        self._signal_tx = None
        self._signal_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._shutdown = False

    def __repr__(self) -> str:
        mode = "bind" if self.bind else "connect"
        return f"PairTransport({self.address!r}, {mode})"

    @property
    def is_open(self) -> bool:
        return self._thread is not None and not self._shutdown

    def open(self, callback) -> None:
        if self._shutdown:
            raise TransportClosed(f"transport is closed: {self.address}")
        if self._thread is not None:
            raise RuntimeError(f"transport is already open: {self.address}")

        self.socket = self.context.socket(zmq.PAIR)
        self.socket.setsockopt(zmq.LINGER, self.linger)

        try:
            if self.bind:
                self.socket.bind(self.address)
            else:
                self.socket.connect(self.address)
        except zmq.ZMQError as exc:
            self.socket.close()
            self.socket = None
            raise TransportConnectionError(f"{self.address}: {exc}") from exc

        internal = f"inproc://msghub.PairTransport:signal:{id(self)}"
        self._signal_rx = self.context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = self.context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)

        self.callback = callback
        self._thread = threading.Thread(target=self.run, name=f"zmq-pair-{self.address}")
        self._thread.daemon = True
        self._thread.start()

    def close(self) -> None:
        if self._shutdown:
            return

        self._shutdown = True

        if self._thread is None:
            return

        self._signal()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=1)

    def send_message(self, target: Any, envelope: Dict[str, Any]) -> None:
        if self._shutdown or self._thread is None:
            raise TransportClosed(f"transport is not open: {self.address}")

        frames = to_frames(envelope)
        logger.debug("%s -> %r: %r", self.address, target, envelope)
        self._outbox.put(frames)
        self._signal()

    def _signal(self) -> None:
        # The signal socket is shared by every sending thread.
        with self._signal_lock:
            if self._signal_tx.closed:
                return
            self._signal_tx.send(b"")

    def _handle_outgoing(self) -> None:
        self._signal_rx.recv(flags=zmq.NOBLOCK)

        try:
            frames = self._outbox.get(block=False)
        except queue.Empty:
            return

        self.socket.send_multipart(frames)

    def _handle_incoming(self) -> None:
        parts = self.socket.recv_multipart()

        try:
            envelope = from_frames(parts)
        except FramingError as exc:
            logger.warning("%s: dropping undecodable message: %s", self.address, exc)
            return

        try:
            self.callback(self.peer, envelope)
        except Exception:
            logger.exception("%s: failed to deliver envelope", self.address)

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        try:
            while not self._shutdown:
                for active, _flag in poller.poll(self.poll_interval):
                    if active == self._signal_rx:
                        self._handle_outgoing()
                    elif active == self.socket:
                        self._handle_incoming()

            # Flush anything queued before the shutdown request.
            while True:
                try:
                    frames = self._outbox.get(block=False)
                except queue.Empty:
                    break
                self.socket.send_multipart(frames)
        finally:
            self.socket.close()
            with self._signal_lock:
                self._signal_rx.close()
                self._signal_tx.close()
