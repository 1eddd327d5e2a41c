"""
msghub Protocol Layer
=====================

This package defines the transport-agnostic envelopes exchanged between two
hubs. It MUST NOT depend on any transport implementation.

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

User Code
    │
    ▼
Hubs (hub.py, messagehub.py)
    Correlation of requests, responses and progress
    - on() / off()
    - emit() / fetch()

    │
    ▼
Envelope Factory (factory.py)
    - Consistent envelope creation
    - Progress callback stripping
    - Error payload rendering

    │
    ▼
Envelope Model (message.py)
    - Request / Response / Progress
    - Validity predicates

    │
    ▼
Field Vocabulary (fields.py)
    Canonical names for envelope keys and type tags

---------------------------------------------------------------------

Below the Protocol Layer
------------------------

Transport Layer (msghub.transport)
    Moves envelope dictionaries between two endpoints
    - in-process loopback
    - ZeroMQ

---------------------------------------------------------------------
"""

from . import fields
from . import message
from . import factory

from .message import Envelope, Request, Response, Progress, from_dict
from .factory import error_payload


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
