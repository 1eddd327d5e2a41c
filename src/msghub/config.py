""" Process-wide defaults for msghub. Values are read from the environment
    once, at import time; hub and transport constructors accept explicit
    overrides for every setting here.

    ==================  ==========================================  =======
    Variable            Meaning                                     Default
    ==================  ==========================================  =======
    MSGHUB_TRANSPORT    Backend used by :func:`transport.create`    zmq
    MSGHUB_WORKERS      Size of the per-hub handler worker pool     10
    MSGHUB_LINGER       ZeroMQ socket linger, in milliseconds       0
    ==================  ==========================================  =======
"""

import os


def _integer(name, default):

    value = os.environ.get(name)

    if value is None or value == '':
        return default

    try:
        value = int(value)
    except ValueError:
        raise ValueError("%s must be an integer, not %s" % (name, repr(value)))

    return value


transport = os.environ.get('MSGHUB_TRANSPORT', 'zmq').lower()
workers = _integer('MSGHUB_WORKERS', 10)
linger = _integer('MSGHUB_LINGER', 0)

if workers < 1:
    raise ValueError('MSGHUB_WORKERS must be at least 1')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
