import pytest

import promissory
promissory.init('basic')

from promissory.stack import eventloop


@pytest.fixture
def flush():
    """Runs queued tasks until the basic event loop is idle."""
    return eventloop.run


@pytest.fixture(autouse=True)
def drain_event_loop():
    yield
    eventloop.run()


class Recorder(object):
    """Collects what a promise settles with."""

    def __init__(self, p):
        self.fulfilled = []
        self.rejected = []
        p.then(self.fulfilled.append, self.rejected.append)

    @property
    def calls(self):
        return len(self.fulfilled) + len(self.rejected)


@pytest.fixture
def record():
    return Recorder
