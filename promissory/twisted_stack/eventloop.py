import threading
from collections import deque

from twisted.internet import reactor
from twisted.internet.error import ReactorNotRunning

from promissory.core import launch

__all__ = ['EventLoop', 'evlp', 'queue_task', 'run', 'halt']


# thanks to Peter Norvig
def singleton(object, message="singleton class already instantiated",
              instantiated=[]):
    """
    Raise an exception if an object of this class has been instantiated before.
    """
    assert object.__class__ not in instantiated, message
    instantiated.append(object.__class__)


class EventLoop(object):
    def __init__(self):
        singleton(self, "Twisted can only have one EventLoop (reactor)")
        self._halted = False
        self._thread_ident = threading.get_ident()
        self._ready = deque()
        self._flush_call = None

    def queue_task(self, delay, callable, *args, **kw):
        if threading.get_ident() != self._thread_ident:
            reactor.callFromThread(self.queue_task, delay, callable,
                                   *args, **kw)
        elif delay:
            reactor.callLater(delay, launch, callable, *args, **kw)
        else:
            # callLater doesn't keep calls with equal deadlines in order,
            # so zero-delay tasks share one FIFO flushed by a single call
            self._ready.append((callable, args, kw))
            if self._flush_call is None:
                self._flush_call = reactor.callLater(0, self._flush)

    def _flush(self):
        self._flush_call = None
        ready, self._ready = self._ready, deque()
        for callable, args, kw in ready:
            launch(callable, *args, **kw)

    def run(self):
        if not self._halted:
            self._thread_ident = threading.get_ident()
            reactor.run()

    def halt(self):
        try:
            reactor.stop()
        except ReactorNotRunning:
            self._halted = True

evlp = EventLoop()
queue_task = evlp.queue_task
run = evlp.run
halt = evlp.halt
