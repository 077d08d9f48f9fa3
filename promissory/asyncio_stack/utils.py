import asyncio

from promissory.promise import Promise
from promissory.errors import as_exception


def promise_to_future(p, loop=None):
    """
    Returns an asyncio Future settled from p.  Must be called with a
    running loop unless one is passed in.
    """
    if loop is None:
        loop = asyncio.get_running_loop()
    future = loop.create_future()

    def set_result(value):
        if not future.done():
            future.set_result(value)

    def set_exception(reason):
        if not future.done():
            future.set_exception(as_exception(reason))

    p.then(lambda value: loop.call_soon_threadsafe(set_result, value),
           lambda reason: loop.call_soon_threadsafe(set_exception, reason))
    return future


def future_to_promise(future):
    """
    Returns a Promise settled from an asyncio (or concurrent.futures)
    Future.
    """
    def executor(resolve, reject):
        def done(f):
            if f.cancelled():
                reject(asyncio.CancelledError())
            elif f.exception() is not None:
                reject(f.exception())
            else:
                resolve(f.result())
        future.add_done_callback(done)
    return Promise(executor)
