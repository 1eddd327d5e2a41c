import pytest

import msghub
from msghub.transport import loopback
from msghub.transport.base import Transport


class RecordingTransport(Transport):
    """ A transport that never delivers anything; every envelope sent is
        kept in *sent* so a test can inspect it, and inbound envelopes are
        injected by calling the hub's on_message() directly.
    """

    def __init__(self):
        self.sent = list()
        self.callback = None
        self.closed = False

    @property
    def is_open(self):
        return self.callback is not None and not self.closed

    def open(self, callback):
        self.callback = callback

    def close(self):
        self.closed = True

    def send_message(self, target, envelope):
        self.sent.append((target, envelope))


@pytest.fixture
def recording():
    return RecordingTransport()


@pytest.fixture
def lonely_hub(recording):
    hub = msghub.Hub(recording, workers=2)
    yield hub
    hub.close()


@pytest.fixture
def hubs():
    """ Two point-to-point hubs connected over a loopback pair; the first
        is known to the second as 'main', the second to the first as 'worker'.
    """

    main_transport, worker_transport = loopback.pair(('main', 'worker'))

    main = msghub.Hub(main_transport, workers=4)
    worker = msghub.Hub(worker_transport, workers=4)

    yield main, worker

    main.close()
    worker.close()


@pytest.fixture
def message_hubs():
    """ Two routing hubs bound to each other over a loopback pair.
    """

    page_transport, worker_transport = loopback.pair(('page', 'worker'))

    page = msghub.MessageHub(page_transport, peer='worker', workers=4)
    worker = msghub.MessageHub(worker_transport, peer='page', workers=4)

    yield page, worker

    page.close()
    worker.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
