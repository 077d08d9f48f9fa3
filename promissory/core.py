import sys
import types
import logging
import time
import inspect
import functools

from promissory import promise
from promissory.errors import InvalidYieldException, as_exception

logging.basicConfig(stream=sys.stderr,
                    format="%(message)s")
log = logging.getLogger("promissory")

blocking_warn_threshold = 500 # ms


class Return(object):
    def __init__(self, *args):
        # mimic the semantics of the return statement
        if len(args) == 0:
            self.value = None
        elif len(args) == 1:
            self.value = args[0]
        else:
            self.value = args

    def __repr__(self):
        return "<%s.%s object at 0x%x; value: %s>" % (self.__class__.__module__,
                                                      self.__class__.__name__,
                                                      id(self),
                                                      repr(self.value))


def warn_if_blocked(start, what):
    duration = (time.time() - start) * 1000
    if duration <= blocking_warn_threshold:
        return
    if inspect.isgenerator(what) and inspect.isframe(what.gi_frame):
        fi = inspect.getframeinfo(what.gi_frame)
        log.warning("o-routine '%s' blocked for %dms before %s:%s",
                    what.__name__, duration, fi.filename, fi.lineno)
    else:
        log.warning("'%s' blocked for %dms",
                    getattr(what, '__qualname__', what), duration)


def is_thenable(value):
    """
    Screens what an o-routine yields.  ``then`` is looked for but never
    read here, so its getter runs once, inside the resolution procedure,
    and any error it raises becomes the rejection.
    """
    if isinstance(value, promise.Promise):
        return True
    if 'then' in getattr(value, '__dict__', ()):
        return True
    return any('then' in vars(klass) or '__getattr__' in vars(klass)
               for klass in type(value).__mro__)


def _promise_chain(g, resolve, reject, to_gen=None, failed=False):
    # Each resumption happens from a reaction, i.e. in a fresh task on the
    # event loop, so the stack stays flat however long the o-routine runs.
    # Only invalid yields are handled in place, hence the loop.
    while True:
        start = time.time()
        try:
            try:
                if failed:
                    from_gen = g.throw(as_exception(to_gen))
                else:
                    from_gen = g.send(to_gen)
            finally:
                warn_if_blocked(start, g)
        except StopIteration as e:
            # "return" statement (or fell off the end of the generator)
            from_gen = Return(e.value)
        except Exception as e:
            reject(e)
            return

        if isinstance(from_gen, Return):
            try:
                g.close()
            except Exception as e:
                reject(e)
            else:
                resolve(from_gen.value)
            return

        if not is_thenable(from_gen):
            to_gen = InvalidYieldException(
                "Unexpected value '%s' of type '%s' yielded from o-routine "
                "'%s'.  O-routines can only yield thenables and Return "
                "types." % (from_gen, type(from_gen).__name__, g.__name__))
            failed = True
            continue

        promise.Promise.resolve(from_gen).then(
            lambda value: _promise_chain(g, resolve, reject, value),
            lambda reason: _promise_chain(g, resolve, reject, reason, True))
        return


def maybe_promise_generator(f, *args, **kw):
    try:
        result = f(*args, **kw)
    except Exception as e:
        return promise.Promise.reject(e)

    if isinstance(result, types.GeneratorType):
        return promise.Promise(
            lambda resolve, reject: _promise_chain(result, resolve, reject))
    elif isinstance(result, promise.Promise):
        return result
    return promise.Promise.resolve(result)


# @_o
def _o(f):
    """
    Lets you write code that waits on promises as if it were a regular
    sequential function::

        @_o
        def foo():
            result = yield make_some_request()
            print(result)

    Anything thenable can be yielded; the generator is resumed with the
    fulfillment value (via send) or has the rejection reason thrown into
    it.  Reasons that aren't exceptions arrive wrapped in
    PromiseRejection.

    Calling foo() returns a Promise for the generator's result.  Use
    ``return value`` or ``yield Return(value)`` to finish with a value;
    an exception escaping the generator rejects the Promise::

        @_o
        def foo():
            result = yield make_some_request()
            if result == 'foo':
                yield Return('success')
            else:
                raise Exception('fail')

    Yielding anything other than a thenable or a Return throws an
    InvalidYieldException into the generator.
    """
    @functools.wraps(f)
    def unwind_generator(*args, **kwargs):
        return maybe_promise_generator(f, *args, **kwargs)
    return unwind_generator
o = _o


def log_exception(e=None):
    if e is None:
        e = sys.exc_info()[1]

    if isinstance(e, BaseException):
        log.error("%s", e, exc_info=(type(e), e, e.__traceback__))
    else:
        log.error("unhandled rejection: %r", e)


def launch(f, *args, **kwargs):
    """
    Calls f, logging anything it raises.  If f produces a generator or a
    promise, its eventual rejection is logged too, and a Promise is
    returned.
    """
    try:
        result = f(*args, **kwargs)
    except Exception:
        log_exception()
        return None

    if isinstance(result, types.GeneratorType):
        g = result
        result = promise.Promise(
            lambda resolve, reject: _promise_chain(g, resolve, reject))
    if isinstance(result, promise.Promise):
        result.then(None, log_exception)
    return result
