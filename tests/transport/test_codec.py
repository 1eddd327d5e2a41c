import pytest

from msghub.protocol import message
from msghub.transport import codec


def roundtrip(envelope):

    encoded = codec.encode(envelope.to_dict())
    assert isinstance(encoded, bytes)

    decoded = codec.decode(encoded)
    assert decoded == envelope.to_dict()

    return message.from_dict(decoded)


def test_request():

    request = message.Request('me', 3, 'add', [{'a': 1, 'b': 2}, None, True],
                              to_instance='you', progress=True, extra={'event': False})

    decoded = roundtrip(request)

    assert isinstance(decoded, message.Request)
    assert decoded == request
    assert decoded.progress is True
    assert decoded.extra == {'event': False}


def test_response():

    success = roundtrip(message.Response('you', 3, 'me', True, [1.5, 'two']))
    assert isinstance(success, message.Response)
    assert success.is_success
    assert success.data == [1.5, 'two']

    error = {'type': 'ValueError', 'text': 'bad value', 'debug': 'Traceback ...'}
    failure = roundtrip(message.Response('you', 4, 'me', False, error))
    assert not failure.is_success
    assert failure.data == error


def test_progress():

    progress = roundtrip(message.Progress('you', 3, 'me', {'done': 0.25}))
    assert isinstance(progress, message.Progress)
    assert progress.data == {'done': 0.25}


def test_decode_rejects():

    for raw in (b'', None, b'[1, 2]', b'"request"', b'42', b'{not json'):
        with pytest.raises(ValueError):
            codec.decode(raw)


def test_encode_rejects_unserializable():

    envelope = message.Response('you', 3, 'me', True, object()).to_dict()

    with pytest.raises(TypeError):
        codec.encode(envelope)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
