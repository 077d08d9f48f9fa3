import asyncio
import threading
from collections import deque

import tornado.ioloop

from promissory.core import launch

__all__ = ['EventLoop', 'evlp', 'queue_task', 'run', 'halt']


class Task(object):
    def __init__(self, tornado_ioloop, timeout):
        self._timeout = timeout
        self._tornado_ioloop = tornado_ioloop

    def cancel(self):
        self._tornado_ioloop.remove_timeout(self._timeout)


class EventLoop(object):
    def __init__(self, tornado_ioloop=None):
        self._fixed = tornado_ioloop is not None
        self._tornado_ioloop = tornado_ioloop
        self._thread_ident = threading.get_ident()
        self._lock = threading.Lock()
        self._held = deque()
        if tornado_ioloop is None:
            self._adopt_current_ioloop()

    def _adopt_current_ioloop(self):
        # only a thread with a running loop may look up IOLoop.current()
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return None
        ioloop = tornado.ioloop.IOLoop.current()
        if ioloop is not self._tornado_ioloop:
            if self._fixed:
                return None
            self._set_ioloop(ioloop)
        return ioloop

    def _set_ioloop(self, ioloop):
        with self._lock:
            self._tornado_ioloop = ioloop
            self._thread_ident = threading.get_ident()
            held, self._held = self._held, deque()
        for delay, task in held:
            self._add_threadsafe(ioloop, delay, task)
        return ioloop

    def _add_threadsafe(self, ioloop, delay, task):
        if delay:
            ioloop.add_callback(ioloop.call_later, delay, task)
        else:
            ioloop.add_callback(task)

    def queue_task(self, delay, callable, *args, **kw):
        def task():
            return launch(callable, *args, **kw)

        ioloop = self._adopt_current_ioloop()
        if ioloop is not None:
            if delay:
                return Task(ioloop, ioloop.call_later(delay, task))
            # add_callback runs callbacks in the order they were added
            ioloop.add_callback(task)
            return

        with self._lock:
            ioloop = self._tornado_ioloop
            if ioloop is None and threading.get_ident() != self._thread_ident:
                self._held.append((delay, task))
                return
        if ioloop is None:
            ioloop = self._set_ioloop(tornado.ioloop.IOLoop.current())
        # add_callback is the one IOLoop method safe to call from any thread
        self._add_threadsafe(ioloop, delay, task)

    def run(self):
        ioloop = self._tornado_ioloop
        if ioloop is None:
            ioloop = tornado.ioloop.IOLoop.current()
        self._set_ioloop(ioloop)
        ioloop.start()

    def halt(self):
        if self._tornado_ioloop is not None:
            self._tornado_ioloop.add_callback(self._tornado_ioloop.stop)

evlp = EventLoop()
queue_task = evlp.queue_task
run = evlp.run
halt = evlp.halt
