""" The routing variant of the hub. A :class:`MessageHub` is bound to a
    single peer; requests arriving from that peer are handled by running
    the channel named in the request through a :class:`msghub.router.Router`,
    so that middleware registered with :func:`MessageHub.use` wraps the
    terminal handlers registered with :func:`MessageHub.route`.

    Alongside request/response calls (:func:`MessageHub.fetch`) a
    :class:`MessageHub` carries fire-and-forget events
    (:func:`MessageHub.emit`), delivered to listeners registered with
    :func:`MessageHub.on` and never answered.
"""

import logging
import threading

from .hub import AbstractHub
from .protocol import fields
from .router import Router

logger = logging.getLogger(__name__)


class MessageHub(AbstractHub):
    """ Exchange messages with the *peer* reachable through *transport*.
        If *peer* is the wildcard, requests are broadcast and inbound
        messages are accepted from any source; otherwise envelopes from any
        other source are ignored. The *prefix_lookup* argument is passed
        to the :class:`msghub.router.Router`.

        Example::

            hub.use(logging_middleware)
            hub.route('user.get', lambda context, next: setattr(context, 'response', lookup(context.request)))
            future = hub.fetch('user.get', {'id': 3})
    """

    def __init__(self, transport, peer=fields.WILDCARD, workers=None, prefix_lookup=False):

        self.peer = peer
        self.router = Router(prefix_lookup)

        self._listeners = dict()
        self._listeners_lock = threading.Lock()

        AbstractHub.__init__(self, transport, workers)


    def use(self, scope, middleware=None):
        """ Register middleware, see :func:`msghub.router.Router.use`.
            Returns this :class:`MessageHub` for chained calls.
        """

        self.router.use(scope, middleware)
        return self


    def route(self, channel, *handlers):
        """ Register terminal handlers, see :func:`msghub.router.Router.route`.
            Returns this :class:`MessageHub` for chained calls.
        """

        self.router.route(channel, *handlers)
        return self


    def fetch(self, channel, data=None):
        """ Send *data* to *channel* on the peer and return a
            :class:`concurrent.futures.Future` for the peer's response.
            A *data* dictionary with a callable ``onprogress`` entry receives
            any progress updates the peer's handlers send.
        """

        return self._request(self.peer, channel, [data])


    def emit(self, channel, data=None):
        """ Send *data* to the listeners for *channel* on the peer. No
            response is sent back.
        """

        self._notify(self.peer, channel, [data])


    def on(self, channel, callback):
        """ Register *callback* for events on *channel*. Listeners run in
            the order they were registered; a listener that returns False
            prevents the listeners after it from running.
        """

        if not callable(callback):
            raise TypeError('callback must be callable, not ' + repr(callback))

        with self._listeners_lock:
            try:
                listeners = self._listeners[channel]
            except KeyError:
                listeners = list()
                self._listeners[channel] = listeners

            listeners.append(callback)


    def off(self, channel, callback=None):
        """ Remove *callback* from the listeners for *channel*, or every
            listener for *channel* if *callback* is not specified.
        """

        with self._listeners_lock:
            try:
                listeners = self._listeners[channel]
            except KeyError:
                return

            if callback is None:
                del self._listeners[channel]
                return

            try:
                listeners.remove(callback)
            except ValueError:
                pass

            if len(listeners) == 0:
                del self._listeners[channel]


    def _accepts(self, source):

        if self.peer == fields.WILDCARD:
            return True

        return source == self.peer


    def _broadcast(self, channel, data):

        with self._listeners_lock:
            listeners = tuple(self._listeners.get(channel, ()))

        if len(listeners) == 0:
            logger.warning("%s: no corresponding callback for %r", self.instance_id, channel)
            return

        for listener in listeners:
            try:
                result = listener(data)
            except Exception:
                logger.exception("%s: listener for %r failed", self.instance_id, channel)
                continue

            if result is False:
                break


    def _dispatch(self, source, request):

        if request.args:
            data = request.args[0]
        else:
            data = None

        channel = request.method_name

        if request.is_event:
            self._broadcast(channel, data)
            return None

        context = self.router.create_context(channel, data, id=request.message_id, source=source)

        try:
            return self.router.run(context)
        except Exception:
            logger.warning("%s: run middleware failed for %r", self.instance_id, channel, exc_info=True)
            raise


# end of class MessageHub


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
