from promissory.promise import Promise
from promissory.stack.eventloop import queue_task


def sleep(seconds):
    return Promise(lambda resolve, reject: queue_task(seconds, resolve, None))


class Deferred(object):
    """
    The producer side of a Promise: whoever holds the Deferred settles
    ``promise`` through ``resolve`` and ``reject``.
    """
    def __init__(self):
        self.promise = Promise(self._executor)

    def _executor(self, resolve, reject):
        self.resolve = resolve
        self.reject = reject


def deferred():
    return Deferred()
