import sys

import promissory
from promissory import Promise
promissory.init(sys.argv[1] if len(sys.argv) > 1 else 'basic')

from promissory.stack import eventloop


class Thenable(object):
    # any object with a callable then() is followed like a promise
    def __init__(self, value):
        self.value = value

    def then(self, on_fulfilled, on_rejected):
        eventloop.queue_task(0.5, on_fulfilled, self.value)


def done(value):
    print("result:", value)
    eventloop.halt()


p = Promise(lambda resolve, reject: resolve(1))
p.then(lambda x: x + 1) \
 .then(lambda x: Thenable(x * 10)) \
 .then(lambda x: Promise.reject("boom: %s" % x)) \
 .then(lambda x: print("not reached")) \
 .catch(lambda reason: len(reason)) \
 .then(done)
eventloop.run()
