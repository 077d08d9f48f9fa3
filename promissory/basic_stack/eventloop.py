import time
import heapq
import itertools
import threading

from promissory.core import launch

__all__ = ['EventLoop', 'evlp', 'queue_task', 'run', 'halt']


class EventLoop(object):
    """
    A plain in-process task queue.  run() works through the queue and
    returns once it's empty or halt() is called.
    """
    def __init__(self):
        self._running = False
        self._queue = []
        self._seq = itertools.count()
        self._cond = threading.Condition()

    def queue_task(self, delay, callable, *args, **kw):
        when = time.monotonic() + delay
        with self._cond:
            # the sequence number keeps equal deadlines in FIFO order
            heapq.heappush(self._queue,
                           (when, next(self._seq), callable, args, kw))
            self._cond.notify()

    def pending(self):
        with self._cond:
            return len(self._queue)

    def run(self):
        self._running = True
        try:
            while self._running:
                with self._cond:
                    if not self._queue:
                        break
                    timeout = self._queue[0][0] - time.monotonic()
                    if timeout > 0:
                        self._cond.wait(timeout)
                        continue
                    when, seq, callable, args, kw = heapq.heappop(self._queue)
                launch(callable, *args, **kw)
        finally:
            self._running = False

    def halt(self):
        with self._cond:
            self._running = False
            self._cond.notify()

evlp = EventLoop()
queue_task = evlp.queue_task
run = evlp.run
halt = evlp.halt
