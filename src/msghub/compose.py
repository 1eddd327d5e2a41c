""" Onion-style composition of handler chains. Each handler is invoked as
    ``handler(context, next)``; calling ``next()`` runs the remainder of the
    chain and returns its result, so a handler can act both before and after
    the handlers that follow it. A handler that never calls ``next()``
    short-circuits everything after it.

    A handler may return a :class:`concurrent.futures.Future` to indicate
    that its work completes later; the chain waits for it to settle, and
    an exception set on the future propagates exactly as if the handler
    had raised it.
"""

import concurrent.futures
import functools

from .errors import CompositionError


def settle(result):
    """ Wait for *result* if it is a :class:`concurrent.futures.Future`,
        returning its value (or raising its exception); any other value
        is returned unchanged.
    """

    if isinstance(result, concurrent.futures.Future):
        return result.result()

    return result



def compose(handlers):
    """ Return a callable ``run(context, terminal=None)`` that invokes the
        sequence of *handlers* in order against a shared *context*. The
        optional *terminal* handler runs after the last entry in *handlers*,
        if the chain gets that far.

        Each invocation of ``run`` keeps its own position in the chain;
        calling a continuation a second time raises :class:`CompositionError`.
    """

    handlers = tuple(handlers)

    for handler in handlers:
        if not callable(handler):
            raise TypeError('handlers must be callable, not ' + repr(handler))

    def run(context, terminal=None):

        index = -1

        def dispatch(position):
            nonlocal index

            if position <= index:
                raise CompositionError('next() called multiple times')

            index = position

            if position < len(handlers):
                handler = handlers[position]
            elif position == len(handlers):
                handler = terminal
            else:
                handler = None

            if handler is None:
                return None

            continuation = functools.partial(dispatch, position + 1)
            return settle(handler(context, continuation))

        return dispatch(0)

    return run


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
