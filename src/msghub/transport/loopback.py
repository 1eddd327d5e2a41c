""" In-process transport. A :class:`Channel` connects any number of
    :class:`LoopbackTransport` endpoints; an envelope sent to the wildcard
    target reaches every other endpoint on the channel, an envelope sent
    to a named target reaches only the endpoint with that name.

    Delivery is asynchronous: each endpoint has its own inbox and a
    background thread that hands envelopes to the receiving hub, so a send
    never runs the receiver's code on the sender's thread. Envelopes are
    deep-copied on the way through, so neither side can observe changes the
    other makes to a message after it was sent.
"""

import copy
import itertools
import logging
import queue
import threading

from ..protocol import fields
from .base import Transport, TransportClosed

logger = logging.getLogger(__name__)


class Channel:
    """ A shared medium for :class:`LoopbackTransport` endpoints.
    """

    def __init__(self):

        self.endpoints = list()
        self.lock = threading.Lock()
        self._names = itertools.count(1)


    def attach(self, name=None):
        """ Return a new :class:`LoopbackTransport` connected to this
            channel. If *name* is not specified a unique one is assigned.
        """

        with self.lock:
            if name is None:
                name = 'endpoint-%d' % (next(self._names))

            for endpoint in self.endpoints:
                if endpoint.name == name:
                    raise ValueError('endpoint name already in use: ' + repr(name))

            endpoint = LoopbackTransport(self, name)
            self.endpoints.append(endpoint)

        return endpoint


    def detach(self, endpoint):

        with self.lock:
            try:
                self.endpoints.remove(endpoint)
            except ValueError:
                pass


    def deliver(self, sender, target, envelope):

        with self.lock:
            endpoints = tuple(self.endpoints)

        for endpoint in endpoints:
            if endpoint is sender:
                continue

            if target is not None and target != fields.WILDCARD and target != endpoint.name:
                continue

            endpoint._enqueue(sender.name, copy.deepcopy(envelope))


# end of class Channel



class LoopbackTransport(Transport):
    """ One endpoint on a :class:`Channel`. Envelopes received before
        :func:`open` is called are held until delivery starts.
    """

    def __init__(self, channel, name):

        self.channel = channel
        self.name = name
        self.callback = None

        self._inbox = queue.SimpleQueue()
        self._thread = None
        self._closed = False


    def __repr__(self):
        return "LoopbackTransport(%r)" % (self.name)


    @property
    def is_open(self):
        return self._thread is not None and not self._closed


    def open(self, callback):

        if self._closed:
            raise TransportClosed('transport is closed: ' + repr(self.name))

        if self._thread is not None:
            raise RuntimeError('transport is already open: ' + repr(self.name))

        self.callback = callback
        self._thread = threading.Thread(target=self.run, name='loopback-' + str(self.name))
        self._thread.daemon = True
        self._thread.start()


    def close(self):

        if self._closed:
            return

        self._closed = True
        self.channel.detach(self)

        # Wake up the delivery thread so that it notices the shutdown.

        self._inbox.put(None)

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1)


    def send_message(self, target, envelope):

        if self._closed:
            raise TransportClosed('transport is closed: ' + repr(self.name))

        logger.debug("%s -> %r: %r", self.name, target, envelope)
        self.channel.deliver(self, target, envelope)


    def _enqueue(self, source, envelope):

        if self._closed:
            return

        self._inbox.put((source, envelope))


    def run(self):

        while self._closed == False:
            dequeued = self._inbox.get()

            if dequeued is None:
                continue

            source, envelope = dequeued

            try:
                self.callback(source, envelope)
            except Exception:
                logger.exception("%s: failed to deliver envelope from %r", self.name, source)


# end of class LoopbackTransport



def pair(names=('left', 'right')):
    """ Return two :class:`LoopbackTransport` instances connected to each
        other over a private :class:`Channel`.
    """

    channel = Channel()
    left, right = names
    return channel.attach(left), channel.attach(right)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
