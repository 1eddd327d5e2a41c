import logging
import pytest
import threading

import msghub


def tagger(tag):
    """ Return a middleware that records *tag* in the context and continues.
    """

    def middleware(context, next):
        context.response = (context.response or []) + [tag]
        return next()

    middleware.tag = tag
    return middleware


def tags(middlewares):
    return [middleware.tag for middleware in middlewares]


def test_insertion_order_insensitive():

    first = msghub.Router()
    first.use('a', tagger('a1'))
    first.use('ab', tagger('ab'))
    first.use('a', tagger('a2'))
    first.use(tagger('wild'))

    second = msghub.Router()
    second.use('a', tagger('a1'))
    second.use('a', tagger('a2'))
    second.use('ab', tagger('ab'))
    second.use(tagger('wild'))

    expected = ['wild', 'a1', 'a2', 'ab']

    assert tags(first.get_middlewares('abc')) == expected
    assert tags(second.get_middlewares('abc')) == expected


def test_restructure_shorter_scope():

    router = msghub.Router()
    router.use('user.profile', tagger('profile'))
    router.use('user', tagger('user'))

    assert list(router.root.children.keys()) == ['user']
    node = router.root.children['user']
    assert list(node.children.keys()) == ['user.profile']

    assert tags(router.get_middlewares('user.profile.get')) == ['user', 'profile']
    assert tags(router.get_middlewares('user.settings')) == ['user']


def test_descend_creates_children():

    router = msghub.Router()
    router.use('a', tagger('a'))
    router.use('ab', tagger('ab'))
    router.use('abc', tagger('abc'))

    assert tags(router.get_middlewares('abcd')) == ['a', 'ab', 'abc']
    assert tags(router.get_middlewares('ab')) == ['a', 'ab']


def test_unrelated_siblings():

    router = msghub.Router()
    router.use('user', tagger('user'))
    router.use('order', tagger('order'))

    assert sorted(router.root.children.keys()) == ['order', 'user']
    assert tags(router.get_middlewares('order.create')) == ['order']
    assert tags(router.get_middlewares('nothing')) == []


def test_wildcard_first():

    router = msghub.Router()
    router.use('x', tagger('x'))
    router.use(tagger('wild'))

    assert tags(router.get_middlewares('xyz')) == ['wild', 'x']
    assert tags(router.get_middlewares('unmatched')) == ['wild']

    router.add_middleware(router.wildcard, tagger('wild2'))
    assert tags(router.get_middlewares('xyz')) == ['wild', 'wild2', 'x']


def test_wildcard_is_unique():
    assert msghub.Router().wildcard != msghub.Router().wildcard


def test_substring_lookup():

    router = msghub.Router()
    router.use('user', tagger('user'))

    assert tags(router.get_middlewares('get.user')) == ['user']


def test_prefix_lookup():

    router = msghub.Router(prefix_lookup=True)
    router.use('user', tagger('user'))

    assert tags(router.get_middlewares('get.user')) == []
    assert tags(router.get_middlewares('user.get')) == ['user']


def test_use_requires_callable():

    router = msghub.Router()

    with pytest.raises(TypeError):
        router.use('scope')


def test_use_chains():
    router = msghub.Router()
    assert router.use(tagger('a')) is router
    assert router.route('channel', tagger('b')) is router


def test_run_routes_last():

    router = msghub.Router()
    router.use(tagger('wild'))
    router.use('math', tagger('math'))
    router.route('math.add', tagger('add'))
    router.route('math.sub', tagger('sub'))

    assert router.run('math.add') == ['wild', 'math', 'add']
    assert router.run('math.sub') == ['wild', 'math', 'sub']


def test_route_mapping():

    def add(context, next):
        context.response = context.request['a'] + context.request['b']

    def double(context, next):
        next()
        context.response *= 2

    router = msghub.Router()
    router.route({'add': [double, add], 'noop': []})

    assert router.run('add', {'a': 1, 'b': 2}) == 6
    assert 'noop' not in router.routes


def test_route_appends():

    router = msghub.Router()
    router.route('channel', tagger('one'))
    router.route('channel', tagger('two'), tagger('three'))

    assert router.run('channel') == ['one', 'two', 'three']


def test_run_without_handlers(caplog):

    router = msghub.Router()

    with caplog.at_level(logging.WARNING, logger='msghub.router'):
        assert router.run('missing', 'payload') is None

    assert 'no corresponding router' in caplog.text


def test_run_propagates_errors():

    def broken(context, next):
        raise RuntimeError('handler failed')

    router = msghub.Router()
    router.route('broken', broken)

    with pytest.raises(RuntimeError):
        router.run('broken')


def test_run_with_context():

    router = msghub.Router()
    router.route('echo', lambda context, next: setattr(context, 'response', context.source))

    context = router.create_context('echo', None, source='peer')
    assert router.run(context) == 'peer'


def test_lookup_during_registration():
    """ Looking up and running chains while other middleware and routes
        are being registered never sees a half-built trie.
    """

    router = msghub.Router()
    router.route('s-lookup', lambda context, next: setattr(context, 'response', 'done'))

    errors = list()
    stop = threading.Event()

    def lookup():
        while not stop.is_set():
            try:
                router.get_middlewares('s-lookup')
                router.run('s-lookup')
            except Exception as e:
                errors.append(e)
                return

    threads = [threading.Thread(target=lookup) for count in range(4)]

    for thread in threads:
        thread.start()

    try:
        for count in range(2000):
            router.use('s%06d' % count, tagger(count))
            router.route('r%06d' % count, tagger(count))
    finally:
        stop.set()
        for thread in threads:
            thread.join()

    assert errors == []
    assert len(router.root.children) == 2000
    assert router.run('s-lookup') == 'done'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
