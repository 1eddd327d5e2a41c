""" Two hubs in one process, talking over a ZeroMQ PAIR socket. The quote
    service answers price requests and reports progress while it looks up
    each metal; the client prints the progress and the final answer.
"""

import logging
import msghub

from msghub.transport.zmq import PairTransport

address = 'inproc://prices'


def lookup(options):

    prices = dict()
    metals = options['metals']

    for metal in metals:
        prices[metal] = get_spot_value(metal, 'usd', 'grams')
        options['onprogress'](len(prices) / len(metals))

    return prices


def get_spot_value(metal, currency, units):

    # Presumably this involves a call to some external service; assume that
    # is exactly what would occur here, and a bare number came back.
    current_price = 100.4

    return float(current_price)


def main():

    logging.basicConfig(level=logging.INFO)

    service = msghub.Hub(PairTransport(address, bind=True, peer='client'))
    client = msghub.Hub(PairTransport(address, peer='service'))

    with service, client:
        service.on('client', {'lookup': lookup})

        options = dict()
        options['metals'] = ('gold', 'silver', 'platinum')
        options['onprogress'] = lambda done: print('%3d%% complete' % (done * 100))

        prices = client.emit('service', 'lookup', options).result(timeout=5)
        print(prices)


if __name__ == '__main__':
    main()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
