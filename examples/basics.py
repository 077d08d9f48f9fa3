import sys

import promissory
from promissory import Promise, PromiseRejection
promissory.init(sys.argv[1] if len(sys.argv) > 1 else 'basic')

from promissory.stack import eventloop
from promissory.util import deferred


class Countdown(object):
    # not a Promise, but it has a callable then(), so promises follow it
    def __init__(self, n):
        self.n = n

    def then(self, on_fulfilled, on_rejected):
        if self.n < 0:
            on_rejected("can't count down from %d" % self.n)
        elif self.n == 0:
            on_fulfilled("liftoff")
        else:
            print(self.n)
            eventloop.queue_task(0.2, on_fulfilled, Countdown(self.n - 1))


def lookup(d, key):
    return Promise(lambda resolve, reject: resolve(d[key]))


@promissory.o
def main():
    # a promise resolved with a thenable waits for it, however deep
    print((yield Promise.resolve(Countdown(3))))

    try:
        yield Countdown(-1)
    except PromiseRejection as e:
        print("Caught rejection:", e.reason)

    # an exception raised in an executor or handler becomes a rejection
    missing = lookup({}, 'x').then(lambda v: "not reached")
    print("recovered:", (yield missing.catch(lambda e: type(e).__name__)))

    # settle a promise from outside, after the fact
    d = deferred()
    eventloop.queue_task(0.1, d.resolve, 41)
    print("answer:", (yield d.promise.then(lambda v: v + 1)))

    eventloop.halt()

promissory.launch(main)
eventloop.run()
