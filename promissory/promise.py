# A Promises/A+ style promise.  Unlike Callback-style deferreds, reactions
# never fire synchronously: every drain of the reaction queue goes through
# the configured stack's queue_task.

import time
import logging
from collections import deque, namedtuple

from promissory import core

log = logging.getLogger("promissory.promise")

PENDING = 'pending'
FULFILLED = 'fulfilled'
REJECTED = 'rejected'


# Either handler may be None, in which case nothing fires for that state.
Reaction = namedtuple('Reaction', ['on_fulfilled', 'on_rejected'])


def _queue(f, *args):
    from promissory.stack import eventloop
    eventloop.queue_task(0, f, *args)


class _Latch(object):
    """
    A one-shot flag.  claim() returns True exactly once.
    """
    def __init__(self):
        self._claimed = False

    def claim(self):
        if self._claimed:
            return False
        self._claimed = True
        return True

    @property
    def claimed(self):
        return self._claimed


class Promise(object):
    """
    A value that isn't available yet.

    The executor is called synchronously with two functions, resolve and
    reject.  The first call to either of them wins; later calls are
    ignored.  If the executor raises, the promise is rejected with the
    exception::

        p = Promise(lambda resolve, reject: resolve(1))
        p.then(lambda x: x + 1).then(print)

    resolve() runs the resolution procedure, so resolving with another
    promise or with any object that has a callable ``then`` attribute
    makes this promise follow it.  reject() never unwraps its reason.
    """

    def __init__(self, executor):
        self.state = PENDING
        self.value = None
        self._callbacks = deque()

        resolve, reject = self._resolving_functions()
        try:
            executor(resolve, reject)
        except Exception as e:
            reject(e)

    def __repr__(self):
        if self.state == PENDING:
            return "<%s.%s object at 0x%x; %s>" % (self.__class__.__module__,
                                                   self.__class__.__name__,
                                                   id(self), self.state)
        return "<%s.%s object at 0x%x; %s: %r>" % (self.__class__.__module__,
                                                   self.__class__.__name__,
                                                   id(self), self.state,
                                                   self.value)

    def __await__(self):
        from promissory.asyncio_stack.utils import promise_to_future
        return promise_to_future(self).__await__()

    def _resolving_functions(self):
        # once resolve() has been called the promise is locked in, even
        # if it stays pending while it follows a thenable
        latch = _Latch()

        def resolve(value=None):
            if latch.claim():
                self._resolver(value)

        def reject(reason=None):
            if latch.claim():
                self._reject(reason)

        return resolve, reject

    def _transition(self, state, value):
        if self.state != PENDING:
            return
        self.value = value
        self.state = state
        self._execute_callbacks()

    def _fulfill(self, value):
        self._transition(FULFILLED, value)

    def _reject(self, reason):
        self._transition(REJECTED, reason)

    def _add_callback(self, reaction):
        self._callbacks.append(reaction)
        self._execute_callbacks()

    def _execute_callbacks(self):
        if self.state == PENDING or not self._callbacks:
            return
        _queue(self._fire)

    def _fire(self):
        # Safe to run any number of times: only reactions still in the
        # queue fire, each exactly once.
        while self._callbacks:
            reaction = self._callbacks.popleft()
            if self.state == FULFILLED:
                handler = reaction.on_fulfilled
            else:
                handler = reaction.on_rejected
            if handler is None:
                continue

            start = time.time()
            try:
                handler(self.value)
            except Exception:
                if self._callbacks:
                    _queue(self._fire)
                raise
            finally:
                core.warn_if_blocked(start, handler)

    def _resolver(self, value):
        if value is self:
            return self._reject(
                TypeError("The promise and its value refer to the same object"))

        if isinstance(value, Promise):
            return value._add_callback(Reaction(self._resolver, self._reject))

        if value is not None:
            try:
                then = value.then
            except AttributeError:
                then = None
            except Exception as e:
                return self._reject(e)

            if callable(then):
                # call the foreign then() from the loop rather than the
                # current stack, so long thenable chains don't recurse
                return _queue(self._follow_thenable, value, then)

        self._fulfill(value)

    def _follow_thenable(self, thenable, then):
        latch = _Latch()

        def on_fulfilled(value=None):
            if latch.claim():
                self._resolver(value)

        def on_rejected(reason=None):
            if latch.claim():
                self._reject(reason)

        try:
            then(on_fulfilled, on_rejected)
        except Exception as e:
            if latch.claim():
                self._reject(e)
            else:
                log.debug("ignoring %r raised by %r after it settled",
                          e, thenable)

    def then(self, on_fulfilled=None, on_rejected=None):
        """
        Returns a new Promise for the result of on_fulfilled or
        on_rejected, whichever applies once this promise settles.

        An omitted (or non-callable) handler passes the value or reason
        through unchanged.  A handler that raises rejects the new promise
        with the exception; a handler that returns a thenable makes the
        new promise follow it.
        """
        def executor(resolve, reject):
            def member(f, fallback):
                if not callable(f):
                    return fallback

                def handler(value):
                    try:
                        result = f(value)
                    except Exception as e:
                        reject(e)
                    else:
                        resolve(result)
                return handler

            self._add_callback(Reaction(member(on_fulfilled, resolve),
                                        member(on_rejected, reject)))
        return Promise(executor)

    def catch(self, on_rejected):
        return self.then(None, on_rejected)

    @staticmethod
    def resolve(value=None):
        return Promise(lambda resolve, reject: resolve(value))

    @staticmethod
    def reject(reason=None):
        return Promise(lambda resolve, reject: reject(reason))
