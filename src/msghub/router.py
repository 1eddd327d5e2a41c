""" Channel routing for inbound requests. Middleware is registered against
    a *scope*, a string that is matched against the channel name of each
    request; the scopes are kept in a compressed prefix trie, where the key
    of every node is a prefix of every scope stored beneath it. A wildcard
    scope, unique to each :class:`Router`, sits at the root of the trie and
    applies to every channel.

    Terminal handlers are registered separately with :func:`Router.route`,
    by exact channel name, and always run after the matching middleware.
"""

import logging
import secrets
import threading

from .compose import compose

logger = logging.getLogger(__name__)


class Context:
    """ The per-request state handed to every handler in a chain. The
        *channel* and *request* describe the inbound request; handlers
        answer it by assigning *response*. Any additional keyword arguments
        become attributes, allowing a hub to attach details such as the
        message id or the peer the request came from.
    """

    def __init__(self, channel, request=None, **kwargs):

        self.channel = channel
        self.request = request
        self.response = None

        for key,value in kwargs.items():
            setattr(self, key, value)


    def __repr__(self):
        return "Context(%r, %r)" % (self.channel, self.request)


# end of class Context



class RoutingNode:
    """ A single node in the scope trie: the middleware registered for
        exactly this scope, and the child nodes keyed by more specific scopes.
    """

    __slots__ = ('middlewares', 'children')

    def __init__(self, middlewares=None, children=None):

        if middlewares is None:
            middlewares = list()

        if children is None:
            children = dict()

        self.middlewares = middlewares
        self.children = children


    def __repr__(self):
        return "RoutingNode(%d, %r)" % (len(self.middlewares), self.children)


# end of class RoutingNode



class Router:
    """ Store middleware and terminal handlers, and run the appropriate
        chain for a channel. If *prefix_lookup* is True a scope only matches
        channels that start with it; by default a scope matches any channel
        that contains it, which is more permissive than the strict prefix
        relationship enforced between scopes on insertion.

        Registration and lookup may happen from different threads; the
        trie and the route table are only touched with *lock* held.

        :ivar wildcard: The scope that matches every channel.
    """

    def __init__(self, prefix_lookup=False):

        self.prefix_lookup = prefix_lookup
        self.wildcard = secrets.token_hex(16)
        self.root = RoutingNode()
        self.routes = dict()
        self.lock = threading.Lock()


    def use(self, scope, middleware=None):
        """ Register *middleware* for channels matching *scope*. If *scope*
            is itself a callable it is registered on the wildcard scope.
            Returns this :class:`Router` to allow chained calls.
        """

        if callable(scope) and middleware is None:
            middleware = scope
            scope = self.wildcard

        if not callable(middleware):
            raise TypeError('middleware must be callable, not ' + repr(middleware))

        self.add_middleware(scope, middleware)
        return self


    def route(self, channel, *handlers):
        """ Register one or more terminal *handlers* for an exact *channel*.
            The *channel* may also be a dictionary mapping channel names to
            a handler or a list of handlers. Returns this :class:`Router`.
        """

        if isinstance(channel, dict):
            routes = channel
        else:
            routes = {channel: list(handlers)}

        for name,registered in routes.items():
            if callable(registered):
                registered = [registered]

            registered = list(registered)

            if len(registered) == 0:
                continue

            for handler in registered:
                if not callable(handler):
                    raise TypeError('route handlers must be callable, not ' + repr(handler))

            with self.lock:
                try:
                    existing = self.routes[name]
                except KeyError:
                    existing = list()
                    self.routes[name] = existing

                existing.extend(registered)

        return self


    def add_middleware(self, scope, middleware):
        """ Insert *middleware* into the trie at *scope*, restructuring the
            trie if *scope* is a prefix of an existing sibling key.
        """

        with self.lock:
            self._insert(scope, middleware)


    def _insert(self, scope, middleware):

        if scope == self.wildcard:
            self.root.middlewares.append(middleware)
            return

        children = self.root.children

        while True:
            match = None
            relation = None

            # Most recently inserted siblings are checked first. The three
            # relations are mutually exclusive for any one key; they are
            # checked in this order of priority.

            for key in reversed(list(children.keys())):
                if key == scope:
                    relation = 'equal'
                elif scope.startswith(key):
                    relation = 'descend'
                elif key.startswith(scope):
                    relation = 'adopt'
                else:
                    continue

                match = key
                break

            if relation is None:
                children[scope] = RoutingNode([middleware])
                return

            if relation == 'equal':
                children[match].middlewares.append(middleware)
                return

            if relation == 'descend':
                children = children[match].children
                continue

            # The new scope is a prefix of an existing key: the existing node
            # becomes the sole child of a new node for the shorter scope.

            existing = children.pop(match)
            children[scope] = RoutingNode([middleware], {match: existing})
            return


    def _matches(self, key, channel):

        if self.prefix_lookup:
            return channel.startswith(key)

        return key in channel


    def get_middlewares(self, channel):
        """ Return the list of middleware that applies to *channel*: the
            wildcard middleware first, then the middleware of each matching
            node from the least to the most specific scope.
        """

        with self.lock:
            return self._collect(channel)


    def _collect(self, channel):

        middlewares = list(self.root.middlewares)
        children = self.root.children

        while children:
            for key,node in children.items():
                if self._matches(key, channel):
                    break
            else:
                break

            middlewares.extend(node.middlewares)
            children = node.children

        return middlewares


    def create_context(self, channel, request=None, **kwargs):
        return Context(channel, request, **kwargs)


    def run(self, channel, request=None):
        """ Run the chain for *channel*. The *channel* may be a channel name,
            in which case a new :class:`Context` is created around *request*,
            or an existing :class:`Context`. Returns the response assigned by
            the chain; any exception raised by a handler propagates to the
            caller. If no middleware or route applies to the channel a
            warning is logged and None is returned.
        """

        if isinstance(channel, Context):
            context = channel
        else:
            context = self.create_context(channel, request)

        channel = context.channel
        with self.lock:
            handlers = self._collect(channel)
            handlers.extend(self.routes.get(channel, ()))

        if len(handlers) == 0:
            logger.warning("no corresponding router for %r", channel)
            return None

        compose(handlers)(context)
        return context.response


# end of class Router


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
