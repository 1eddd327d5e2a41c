import threading

import msghub


def test_instance_id_format():

    instance_id = msghub.identity.generate_instance_id()

    parts = instance_id.split('-')
    assert len(parts) == 3

    for part in parts:
        assert len(part) == 11
        assert part.isalnum()
        assert part == part.lower()


def test_instance_ids_differ():

    generated = set()
    for count in range(1000):
        generated.add(msghub.identity.generate_instance_id())

    assert len(generated) == 1000


def test_sequence_starts_at_one():

    sequence = msghub.identity.Sequencer()
    assert sequence.last == 0
    assert next(sequence) == 1
    assert next(sequence) == 2
    assert sequence.last == 2


def test_sequence_threaded():
    """ Concurrent callers must never see the same number twice.
    """

    sequence = msghub.identity.Sequencer()
    issued = list()
    lock = threading.Lock()

    def take():
        local = [next(sequence) for count in range(500)]
        with lock:
            issued.extend(local)

    threads = [threading.Thread(target=take) for count in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(issued) == 4000
    assert len(set(issued)) == 4000
    assert min(issued) == 1
    assert max(issued) == 4000


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
