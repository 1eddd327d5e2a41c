""" Transport codec for envelope dictionaries. Envelopes go on the wire as
    JSON; the most performant JSON library available is selected once, at
    import time, and :func:`encode` always returns bytes whichever library
    is in use.
"""

# Libraries are tried in order of preference; the standard library is only
# imported when neither of the faster ones is installed.

msgspec = None
orjson = None
json = None

try:
    import msgspec
except ImportError:
    pass

if msgspec is None:
    try:
        import orjson
    except ImportError:
        pass

if msgspec is None and orjson is None:
    import json


if msgspec is not None:
    _encoder = msgspec.json.Encoder()
    _decoder = msgspec.json.Decoder()
    _dumps = _encoder.encode
    _loads = _decoder.decode
    DecodeError = msgspec.DecodeError
elif orjson is not None:
    _dumps = orjson.dumps
    _loads = orjson.loads
    DecodeError = orjson.JSONDecodeError
else:
    def _dumps(envelope):
        return json.dumps(envelope, separators=(',', ':')).encode()
    _loads = json.loads
    DecodeError = json.JSONDecodeError


def encode(envelope):
    """ Return the JSON bytes for one *envelope* dictionary. Values the
        selected library cannot represent raise :class:`TypeError`.
    """

    return _dumps(envelope)


def decode(raw):
    """ Interpret *raw* bytes as one envelope dictionary. Empty input,
        malformed JSON, and JSON that is not an object all raise
        :class:`ValueError`.
    """

    if raw in (b'', None):
        raise ValueError('empty envelope')

    try:
        envelope = _loads(raw)
    except DecodeError as e:
        raise ValueError('undecodable envelope: ' + str(e))

    if not isinstance(envelope, dict):
        raise ValueError('envelope must decode to an object, not ' + type(envelope).__name__)

    return envelope


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
