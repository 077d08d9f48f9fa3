class PromiseRejection(Exception):
    """
    Wraps a rejection reason that isn't an exception so that it can be
    raised, thrown into a generator or stored on a future.
    """
    def __init__(self, reason):
        Exception.__init__(self, reason)
        self.reason = reason

    def __str__(self):
        return repr(self.reason)


class InvalidYieldException(Exception):
    pass


def as_exception(reason):
    if isinstance(reason, BaseException):
        return reason
    return PromiseRejection(reason)
