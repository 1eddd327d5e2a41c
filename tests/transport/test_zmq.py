import itertools
import logging
import threading
import pytest

import msghub
from msghub.transport import TransportClosed, TransportConnectionError, create
from msghub.transport.zmq import PairTransport
from msghub.transport.zmq import framing

timeout = 5
_addresses = itertools.count()


def address():
    return 'inproc://msghub-test-%d' % (next(_addresses))


@pytest.fixture
def connected():

    endpoint = address()
    server = PairTransport(endpoint, bind=True, peer='client')
    client = PairTransport(endpoint, peer='server')

    yield server, client

    client.close()
    server.close()


def test_framing():

    envelope = {'type': 'request', 'args': [1, 'two', None]}
    frames = framing.to_frames(envelope)

    assert frames[0] == framing.version
    assert framing.from_frames(frames) == envelope


def test_framing_errors():

    with pytest.raises(framing.FramingError):
        framing.from_frames((framing.version,))

    with pytest.raises(framing.FramingError):
        framing.from_frames((b'z', b'{}'))

    with pytest.raises(framing.FramingError):
        framing.from_frames((framing.version, b'[1, 2]'))

    with pytest.raises(framing.FramingError):
        framing.from_frames((framing.version, b''))


def test_send_and_receive(connected):

    server, client = connected
    received = list()
    done = threading.Event()

    def collect(source, envelope):
        received.append((source, envelope))
        done.set()

    server.open(collect)
    client.open(lambda source, envelope: None)

    client.send_message('server', {'type': 'request', 'messageID': 1})

    assert done.wait(timeout)
    assert received == [('client', {'type': 'request', 'messageID': 1})]


def test_hub_roundtrip(connected):

    server_transport, client_transport = connected

    server = msghub.Hub(server_transport, workers=2)
    client = msghub.Hub(client_transport, workers=2)

    try:
        server.on('client', {'add': lambda args: args['a'] + args['b']})
        seen = list()

        def count(options):
            for step in range(options['steps']):
                options['onprogress'](step)
            return 'counted'

        server.on('client', {'count': count})

        assert client.emit('server', 'add', {'a': 1, 'b': 2}).result(timeout) == 3
        assert client.emit('server', 'count', {'steps': 3, 'onprogress': seen.append}).result(timeout) == 'counted'
        assert seen == [0, 1, 2]

        with pytest.raises(msghub.RemoteError):
            client.emit('server', 'missing').result(timeout)
    finally:
        client.close()
        server.close()


def test_unencodable_result(connected, caplog):
    """ A result that cannot be put on the wire still settles the call,
        as a failure describing the encoding error.
    """

    server_transport, client_transport = connected

    server = msghub.Hub(server_transport, workers=2)
    client = msghub.Hub(client_transport, workers=2)

    try:
        server.on('*', {'bad': lambda: object(), 'good': lambda: 'fine'})

        with caplog.at_level(logging.WARNING, logger='msghub.hub'):
            with pytest.raises(msghub.RemoteError) as caught:
                client.emit('server', 'bad').result(timeout)

        assert caught.value.data['text']
        assert 'Traceback' in caught.value.data['debug']
        assert 'unable to send result' in caplog.text

        # The hub keeps working afterwards.
        assert client.emit('server', 'good').result(timeout) == 'fine'
    finally:
        client.close()
        server.close()


def test_closed():

    transport = PairTransport(address(), bind=True)

    with pytest.raises(TransportClosed):
        transport.send_message('peer', {})

    transport.open(lambda source, envelope: None)
    assert transport.is_open

    transport.close()
    assert not transport.is_open
    transport.close()

    with pytest.raises(TransportClosed):
        transport.send_message('peer', {})


def test_bad_address():

    transport = PairTransport('not-an-endpoint', bind=True)

    with pytest.raises(TransportConnectionError):
        transport.open(lambda source, envelope: None)


def test_create():

    transport = create('zmq', address=address(), bind=True)
    assert isinstance(transport, PairTransport)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
