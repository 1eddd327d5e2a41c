""" Request/response correlation between two hubs. A hub turns a bare
    fire-and-forget transport into calls that can be answered: every
    outbound request carries this hub's instance identifier and a fresh
    sequence number, and the pending-call table ties the eventual
    :class:`msghub.protocol.Response` (and any intermediate
    :class:`msghub.protocol.Progress` updates) back to the
    :class:`concurrent.futures.Future` handed to the caller.

    :class:`AbstractHub` holds the correlation machinery. :class:`Hub` is
    the point-to-point variant, dispatching inbound requests to handlers
    registered per peer target; see :mod:`msghub.messagehub` for the
    variant that routes requests through middleware.
"""

import concurrent.futures
import logging
import threading

from . import config
from . import identity
from .compose import settle
from .errors import HandlerNotFound, HubClosed, RemoteError
from .protocol import factory
from .protocol import fields
from .protocol import message
from .transport.base import TransportError

logger = logging.getLogger(__name__)


class PendingCall:
    """ Client-side record of one outstanding request. The *future* is
        settled by the terminal response; the optional *progress* callable
        receives the data of every progress update that precedes it.
    """

    def __init__(self, request, future, progress=None):

        self.request = request
        self.future = future
        self.progress = progress


    @property
    def key(self):
        return self.request.key


    def _progress(self, data):
        """ Relay one progress update to the local callback. Exceptions
            raised by the callback stay local, they are logged and dropped.
        """

        if self.progress is None:
            return

        try:
            self.progress(data)
        except Exception:
            logger.warning("progress callback for %r failed on %r", self.request, data, exc_info=True)


    def _complete(self, response):

        if self.future.done():
            return

        if response.is_success:
            self.future.set_result(response.data)
        else:
            self.future.set_exception(RemoteError(response.data))


# end of class PendingCall



class AbstractHub:
    """ Correlate requests, responses and progress updates over a
        *transport*. Subclasses provide the public registration methods
        and implement :func:`_dispatch` to handle inbound requests.

        Inbound requests are handled on a pool of *workers* threads so that
        a slow handler does not hold up the correlation of other messages;
        each response is sent as soon as its own handler completes, with no
        ordering guarantee between responses.

        :ivar instance_id: This hub's address on the channel.
    """

    def __init__(self, transport, workers=None):

        if workers is None:
            workers = config.workers

        self.instance_id = identity.generate_instance_id()
        self.transport = transport

        self._closed = False
        self._pending = dict()
        self._pending_lock = threading.Lock()
        self._sequence = identity.Sequencer()
        self._workers = concurrent.futures.ThreadPoolExecutor(max_workers=workers, thread_name_prefix='msghub')

        transport.open(self.on_message)


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.close()


    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.instance_id)


    @property
    def closed(self):
        return self._closed


    def close(self):
        """ Detach from the transport and fail every pending call with
            :class:`HubClosed`. Calling :func:`close` more than once is
            harmless.
        """

        if self._closed:
            return

        self._closed = True
        self.transport.close()

        with self._pending_lock:
            pending = list(self._pending.values())
            self._pending.clear()

        for call in pending:
            if not call.future.done():
                call.future.set_exception(HubClosed('hub closed with request pending: ' + repr(call.request)))

        self._workers.shutdown(wait=False)


    def send_message(self, target, envelope):
        """ Hand one envelope to the transport for delivery to *target*.
        """

        logger.debug("%s -> %r: %r", self.instance_id, target, envelope)
        self.transport.send_message(target, envelope.to_dict())


    def _request(self, target, method_name, args, **extra):
        """ Send a request for *method_name* to *target* and return the
            :class:`concurrent.futures.Future` that its response will settle.
        """

        if self._closed:
            raise HubClosed('hub is closed: ' + repr(self.instance_id))

        request = factory.request(self.instance_id, next(self._sequence), method_name, args, **extra)
        request, progress = factory.strip_progress(target, request)

        future = concurrent.futures.Future()
        future.set_running_or_notify_cancel()
        pending = PendingCall(request, future, progress)

        # The pending call is registered before the request goes out; a
        # transport is free to deliver the response before send returns.

        with self._pending_lock:
            self._pending[pending.key] = pending

        try:
            self.send_message(target, request)
        except Exception:
            with self._pending_lock:
                self._pending.pop(pending.key, None)
            raise

        return future


    def _notify(self, target, method_name, args, **extra):
        """ Send a request that expects no response of any kind.
        """

        if self._closed:
            raise HubClosed('hub is closed: ' + repr(self.instance_id))

        extra[fields.EVENT_FLAG] = True
        request = factory.request(self.instance_id, next(self._sequence), method_name, args, **extra)
        self.send_message(target, request)


    def _accepts(self, source):
        """ Return True if envelopes from *source* should be considered at
            all. The default accepts every source.
        """

        return True


    def on_message(self, source, raw):
        """ Entry point for the transport: handle one inbound envelope
            received from *source*.
        """

        if self._closed or raw is None:
            return

        if not self._accepts(source):
            return

        msg = message.from_dict(raw)

        if msg is None:
            logger.warning("%s: ignoring envelope with no recognizable type from %r: %r", self.instance_id, source, raw)
            return

        logger.debug("%s <- %r: %r", self.instance_id, source, msg)

        if isinstance(msg, message.Request):
            if message.is_request(msg, self.instance_id):
                try:
                    self._workers.submit(self._handle_request, source, msg)
                except RuntimeError:
                    # The worker pool shut down between the check above
                    # and now; the hub is closing.
                    logger.debug("%s: dropping request after close: %r", self.instance_id, msg)
            return

        self._resolve(msg)


    def _resolve(self, msg):
        """ Match a response or progress update against the pending calls.
        """

        if msg.to_instance != self.instance_id:
            # Addressed to some other hub sharing the channel.
            return

        with self._pending_lock:
            pending = self._pending.get(msg.key)

            if pending is not None and message.is_response(pending.request, msg, self.instance_id):
                del self._pending[msg.key]

        if pending is None:
            logger.warning("%s: unowned message with id %r: %r", self.instance_id, msg.message_id, msg)
            return

        if message.is_progress(pending.request, msg, self.instance_id):
            pending._progress(msg.data)
        elif message.is_response(pending.request, msg, self.instance_id):
            pending._complete(msg)
        else:
            logger.warning("%s: unowned message with id %r: %r", self.instance_id, msg.message_id, msg)


    def _handle_request(self, source, request):
        """ Run the handler for an inbound *request* and send the terminal
            response back to *source*. Handler exceptions are packaged into
            a failure response; nothing raised here reaches the transport.
        """

        if request.progress and request.args and isinstance(request.args[0], dict):
            def onprogress(data):
                self._reply(source, factory.progress(self.instance_id, request, data))

            request.args[0][fields.ONPROGRESS] = onprogress

        try:
            data = settle(self._dispatch(source, request))
        except RemoteError as e:
            # Pass a peer's failure through untouched.
            response = factory.response(self.instance_id, request, e.data, False)
        except Exception as e:
            response = factory.response(self.instance_id, request, factory.error_payload(e), False)
        else:
            response = factory.response(self.instance_id, request, data, True)

        if request.is_event:
            return

        self._reply(source, response)


    def _reply(self, target, envelope):

        if self._closed:
            return

        try:
            self.send_message(target, envelope)
        except TransportError:
            logger.warning("%s: failed to send %r to %r", self.instance_id, envelope, target, exc_info=True)
        except Exception as e:
            if isinstance(envelope, message.Response) and envelope.is_success:
                # The result could not be put on the wire; the caller still
                # gets a terminal response, describing why.
                logger.warning("%s: unable to send result for %r to %r", self.instance_id, envelope.message_id, target, exc_info=True)
                failure = message.Response(envelope.from_instance, envelope.message_id, envelope.to_instance, False, factory.error_payload(e))
                self._reply(target, failure)
            else:
                logger.exception("%s: failed to send %r to %r", self.instance_id, envelope, target)


    def _dispatch(self, source, request):
        """ Handle an inbound *request* from *source*, returning the result
            (or a :class:`concurrent.futures.Future` for it) or raising an
            exception. Must be implemented by subclasses.
        """

        raise NotImplementedError('_dispatch() must be implemented by subclasses')


# end of class AbstractHub



class Registration:
    """ The handlers bound to a single *target*: either one catch-all
        *function*, which receives the method name as its first argument,
        or a mapping of *methods* from method name to handler. Exactly one
        of the two is set.
    """

    def __init__(self, target, handlers):

        self.target = target
        self.function = None
        self.methods = None
        self.merge(handlers)


    def __repr__(self):

        if self.function is not None:
            return "Registration(%r, %r)" % (self.target, self.function)

        return "Registration(%r, %r)" % (self.target, sorted(self.methods))


    def merge(self, handlers):
        """ A function replaces whatever is registered; a mapping replaces
            a function, or is merged into an existing mapping.
        """

        if callable(handlers):
            self.function = handlers
            self.methods = None
        elif self.methods is None:
            self.function = None
            self.methods = dict(handlers)
        else:
            self.methods.update(handlers)


    def remove(self, method_name):
        """ Remove the handler for *method_name*. Returns True if nothing is
            left registered afterwards.
        """

        if self.methods is None:
            return False

        self.methods.pop(method_name, None)
        return len(self.methods) == 0


    def resolve(self, method_name, args):
        """ Return the handler and the argument list to invoke it with, or
            (None, args) if nothing handles *method_name*.
        """

        if self.function is not None:
            return self.function, [method_name] + list(args)

        handler = self.methods.get(method_name)

        if not callable(handler):
            return None, args

        return handler, args


# end of class Registration



class Hub(AbstractHub):
    """ Point-to-point hub. Handlers are registered per peer *target*, the
        same value the transport reports as the source of inbound messages;
        the :data:`wildcard <msghub.protocol.fields.WILDCARD>` target
        handles requests from any peer that has no registration of its own.

        Example::

            hub.on('worker', {'add': lambda args: args['a'] + args['b']})
            future = hub.emit('worker', 'add', {'a': 1, 'b': 2})
            future.result(timeout=5)
    """

    def __init__(self, transport, workers=None):

        self._registrations = list()
        self._registrations_lock = threading.Lock()

        AbstractHub.__init__(self, transport, workers)


    def _find(self, target):

        for registration in self._registrations:
            if registration.target == target:
                return registration

        return None


    def on(self, target, handlers, handler=None):
        """ Register handlers for requests from *target*. The *handlers*
            argument is either a method name (with *handler* as the third
            argument), a dictionary mapping method names to handlers, or a
            single callable that handles every method. Registering again for
            the same target merges into the existing registration.
        """

        if isinstance(handlers, str):
            if not callable(handler):
                raise TypeError('handler must be callable, not ' + repr(handler))
            handlers = {handlers: handler}
        elif handler is not None:
            raise TypeError('a handler argument requires a method name')
        elif not callable(handlers) and not isinstance(handlers, dict):
            raise TypeError('handlers must be a callable or a dictionary, not ' + repr(handlers))

        with self._registrations_lock:
            registration = self._find(target)

            if registration is not None:
                registration.merge(handlers)
                return

            registration = Registration(target, handlers)

            if target == fields.WILDCARD:
                self._registrations.insert(0, registration)
            else:
                self._registrations.append(registration)


    def off(self, target, method_name=None):
        """ Remove the handler for *method_name* registered for *target*,
            or the entire registration if *method_name* is not specified.
        """

        with self._registrations_lock:
            registration = self._find(target)

            if registration is None:
                return

            if method_name is None or registration.remove(method_name):
                self._registrations.remove(registration)


    def emit(self, target, method_name, *args):
        """ Invoke *method_name* on the hub at *target* with *args*, and
            return a :class:`concurrent.futures.Future` for the result.
            If the first argument is a dictionary with a callable
            ``onprogress`` entry, that callable receives every progress
            update the remote handler sends; it is never transmitted.
            A failure response sets a :class:`msghub.errors.RemoteError`.
        """

        return self._request(target, method_name, args)


    def _has_listeners(self):
        return len(self._registrations) > 0


    def _lookup(self, source):

        with self._registrations_lock:
            registration = self._find(source)

            if registration is None and self._has_listeners():
                first = self._registrations[0]
                if first.target == fields.WILDCARD:
                    registration = first

        return registration


    def _dispatch(self, source, request):

        method_name = request.method_name
        registration = self._lookup(source)

        if registration is None:
            handler = None
        else:
            handler, args = registration.resolve(method_name, request.args)

        if handler is None:
            logger.warning("%s: no corresponding handler found for %r, message from %r", self.instance_id, method_name, source)
            raise HandlerNotFound('no corresponding handler found for ' + repr(method_name))

        return handler(*args)


# end of class Hub


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
