""" Hub identity and message sequencing. Every hub carries an instance
    identifier that is used as its address on a shared channel; there is
    no central allocator, the identifier is simply a long random token.
    Two hubs colliding is possible in principle and accepted in practice.
"""

import itertools
import secrets
import threading


_alphabet = '0123456789abcdefghijklmnopqrstuvwxyz'


def _token(length=11):
    """ Return a random base-36 string of the requested *length*.
    """

    return ''.join(secrets.choice(_alphabet) for index in range(length))


def generate_instance_id():
    """ Return a new instance identifier: three random tokens joined by
        dashes, for example ``'k2j9c0x1q7a-0fz81mzp3ld-v8s1z0a7u3e'``.
    """

    return '-'.join(_token() for index in range(3))


class Sequencer:
    """ Issue strictly increasing message identification numbers. The first
        number issued is 1, as zero is reserved to mean "no id" on the wire.
        Numbers are never reused over the lifetime of an instance.
    """

    def __init__(self, start=1):

        if start < 1:
            raise ValueError('sequence numbers must start at 1 or higher')

        self._lock = threading.Lock()
        self._ticker = itertools.count(start)
        self.last = start - 1


    def __iter__(self):
        return self


    def __next__(self):

        # The lock keeps 'last' in step with the ticker when several threads
        # are building requests at the same time.

        with self._lock:
            id = next(self._ticker)
            self.last = id

        return id


# end of class Sequencer


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
