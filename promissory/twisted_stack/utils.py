from twisted.python.failure import Failure
from twisted.internet.defer import Deferred

from promissory.promise import Promise
from promissory.errors import as_exception


def promise_to_deferred(p):
    df = Deferred()
    def errback(reason, df=df):
        e = as_exception(reason)
        df.errback(Failure(e, type(e), None))
    p.then(df.callback, errback)
    return df


def deferred_to_promise(df):
    """
    Returns a Promise settled from df.  The result passes through df
    untouched, so callbacks added to df later still see it.
    """
    def executor(resolve, reject):
        def callback(value):
            resolve(value)
            return value

        def errback(f):
            reject(f.value)
            return f

        df.addCallbacks(callback, errback)
    return Promise(executor)
