import asyncio
import threading
from collections import deque

from promissory.core import launch

__all__ = ['EventLoop', 'evlp', 'queue_task', 'run', 'halt']


class EventLoop(object):
    """
    Runs tasks on an asyncio event loop: the one passed in, else the loop
    last seen running on the thread that uses this EventLoop.  Other
    threads only ever hand tasks to that loop; tasks they queue before
    any loop has been seen are held until one is.
    """
    def __init__(self, loop=None):
        self._fixed = loop is not None
        self._loop = loop
        self._thread_ident = threading.get_ident()
        self._lock = threading.Lock()
        self._held = deque()
        if loop is None:
            self._adopt_running_loop()

    def _adopt_running_loop(self):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        if loop is not self._loop:
            if self._fixed:
                return None
            self._set_loop(loop)
        return loop

    def _set_loop(self, loop):
        with self._lock:
            self._loop = loop
            self._thread_ident = threading.get_ident()
            held, self._held = self._held, deque()
        for delay, task in held:
            self._call_threadsafe(loop, delay, task)
        return loop

    def _call_threadsafe(self, loop, delay, task):
        if delay:
            loop.call_soon_threadsafe(loop.call_later, delay, task)
        else:
            loop.call_soon_threadsafe(task)

    def queue_task(self, delay, callable, *args, **kw):
        def task():
            return launch(callable, *args, **kw)

        loop = self._adopt_running_loop()
        if loop is not None:
            if delay:
                loop.call_later(delay, task)
            else:
                loop.call_soon(task)
            return

        with self._lock:
            loop = self._loop
            if loop is None and threading.get_ident() != self._thread_ident:
                self._held.append((delay, task))
                return
        if loop is None:
            # our own thread, with no loop yet: make the one run() will use
            loop = self._set_loop(asyncio.new_event_loop())
        self._call_threadsafe(loop, delay, task)

    def run(self):
        loop = self._loop
        if loop is None:
            loop = asyncio.new_event_loop()
        self._set_loop(loop)
        loop.run_forever()

    def halt(self):
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._loop.stop)

evlp = EventLoop()
queue_task = evlp.queue_task
run = evlp.run
halt = evlp.halt
