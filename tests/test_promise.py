import logging

import pytest

from promissory import Promise, PENDING, FULFILLED, REJECTED
from promissory import core
from promissory.promise import Reaction
from promissory.util import deferred


class Thenable(object):
    def __init__(self, then):
        self.then = then


def fulfilled_thenable(value):
    return Thenable(lambda on_fulfilled, on_rejected: on_fulfilled(value))


def rejected_thenable(reason):
    return Thenable(lambda on_fulfilled, on_rejected: on_rejected(reason))


@pytest.mark.parametrize("value", [None, 0, False, "", "x", [1, 2], {"a": 1},
                                   object(), 3.5])
def test_resolve_with_plain_value(flush, record, value):
    r = record(Promise.resolve(value))
    flush()
    assert r.fulfilled == [value]
    assert r.fulfilled[0] is value
    assert r.rejected == []


@pytest.mark.parametrize("reason", [None, "boom", ValueError("bad"),
                                    fulfilled_thenable(1),
                                    Promise.resolve(2)])
def test_reject_never_unwraps(flush, record, reason):
    r = record(Promise.reject(reason))
    flush()
    assert r.fulfilled == []
    assert r.rejected[0] is reason


def test_then_without_handlers_passes_through(flush, record):
    ok = record(Promise.resolve("v").then().then())
    bad = record(Promise.reject("r").then().then(lambda x: "nope"))
    flush()
    assert ok.fulfilled == ["v"]
    assert bad.rejected == ["r"]


def test_non_callable_handlers_are_ignored(flush, record):
    r = record(Promise.resolve(5).then(42, "x"))
    flush()
    assert r.fulfilled == [5]


def test_resolving_with_itself_rejects(flush, record):
    d = deferred()
    r = record(d.promise)
    d.resolve(d.promise)
    flush()
    assert r.fulfilled == []
    assert len(r.rejected) == 1
    assert isinstance(r.rejected[0], TypeError)


def test_handler_returning_its_own_promise_rejects(flush, record):
    holder = []
    p = Promise.resolve(1).then(lambda v: holder[0])
    holder.append(p)
    r = record(p)
    flush()
    assert isinstance(r.rejected[0], TypeError)


def test_reactions_never_fire_synchronously(flush):
    seen = []
    p = Promise(lambda resolve, reject: resolve(1))
    assert p.state == FULFILLED
    p.then(seen.append)
    assert seen == []
    flush()
    assert seen == [1]

    d = deferred()
    d.promise.then(seen.append)
    d.resolve(2)
    assert seen == [1]
    flush()
    assert seen == [1, 2]


def test_reaction_on_settled_promise_fires_once(flush):
    seen = []
    p = Promise.reject("r")
    flush()
    p.then(None, seen.append)
    p.then(None, seen.append)
    flush()
    flush()
    assert seen == ["r", "r"]


def test_reactions_fire_in_registration_order(flush):
    order = []
    d = deferred()
    for i in range(5):
        d.promise.then(lambda v, i=i: order.append(i))
    d.resolve(None)
    for i in range(5, 10):
        d.promise.then(lambda v, i=i: order.append(i))
    flush()
    assert order == list(range(10))


def test_reaction_added_while_draining_still_fires(flush):
    order = []
    p = Promise.resolve("x")

    def first(value):
        order.append("first")
        p.then(lambda v: order.append("nested"))

    p.then(first)
    p.then(lambda v: order.append("second"))
    flush()
    assert order == ["first", "second", "nested"]


def test_settles_at_most_once(flush, record):
    d = deferred()
    r = record(d.promise)
    d.resolve(1)
    d.resolve(2)
    d.reject(3)
    flush()
    assert r.fulfilled == [1]
    assert r.rejected == []


def test_resolving_with_a_thenable_locks_the_promise_in(flush, record):
    d = deferred()
    pending = deferred()
    r = record(d.promise)
    d.resolve(pending.promise)
    d.reject("too late")
    d.resolve("also too late")
    flush()
    assert d.promise.state == PENDING
    pending.resolve("followed")
    flush()
    assert r.fulfilled == ["followed"]
    assert r.rejected == []


def test_executor_exception_rejects(flush, record):
    error = RuntimeError("setup failed")

    def executor(resolve, reject):
        raise error

    r = record(Promise(executor))
    flush()
    assert r.rejected == [error]


def test_executor_exception_after_resolve_is_ignored(flush, record):
    def executor(resolve, reject):
        resolve("done")
        raise RuntimeError("ignored")

    r = record(Promise(executor))
    flush()
    assert r.fulfilled == ["done"]


def test_handler_exception_rejects_derived(flush, record):
    error = ValueError("handler")

    def handler(value):
        raise error

    r = record(Promise.resolve(1).then(handler))
    flush()
    assert r.rejected == [error]


def test_increment_scenario(flush, record):
    r = record(Promise(lambda resolve, reject: resolve(1)).then(lambda x: x + 1))
    flush()
    assert r.fulfilled == [2]


def test_recover_from_rejection_scenario(flush, record):
    r = record(Promise.reject("boom").then(None, lambda reason: len(reason)))
    flush()
    assert r.fulfilled == [4]


def test_catch(flush, record):
    r = record(Promise.reject("oops").catch(lambda reason: reason.upper()))
    flush()
    assert r.fulfilled == ["OOPS"]


def test_follows_own_promise(flush, record):
    inner = deferred()
    r = record(Promise.resolve(inner.promise))
    flush()
    assert r.calls == 0
    inner.reject("inner")
    flush()
    assert r.rejected == ["inner"]


def test_resolve_unwraps_foreign_thenables(flush, record):
    ok = record(Promise.resolve(fulfilled_thenable("y")))
    bad = record(Promise.resolve(rejected_thenable("n")))
    flush()
    assert ok.fulfilled == ["y"]
    assert bad.rejected == ["n"]


def test_thenable_returned_from_handler_is_unwrapped(flush, record):
    a = deferred()
    b = a.promise.then(lambda x: fulfilled_thenable(x * 10))
    c = b.then(lambda y: y + 1)
    r = record(c)
    a.resolve(4)
    flush()
    assert r.fulfilled == [41]


def test_deep_chain_of_thenables(flush, record):
    def nest(value, depth):
        t = fulfilled_thenable(value)
        for i in range(depth):
            t = fulfilled_thenable(t)
        return t

    p = Promise.resolve("x")
    for i in range(50):
        p = p.then(lambda v: nest(v, 3))
    r = record(p)
    flush()
    assert r.fulfilled == ["x"]


def test_very_deep_synchronous_thenable_chain_does_not_recurse(flush, record):
    t = fulfilled_thenable("bottom")
    for i in range(5000):
        t = fulfilled_thenable(t)
    r = record(Promise.resolve(t))
    flush()
    assert r.fulfilled == ["bottom"]


def test_thenable_calling_back_twice_uses_first_call(flush, record):
    def then(on_fulfilled, on_rejected):
        on_fulfilled("first")
        on_fulfilled("second")
        on_rejected("third")

    r = record(Promise.resolve(Thenable(then)))
    flush()
    assert r.fulfilled == ["first"]
    assert r.rejected == []


def test_thenable_raising_after_callback_is_ignored(flush, record):
    def then(on_fulfilled, on_rejected):
        on_rejected("rejected")
        raise RuntimeError("ignored")

    r = record(Promise.resolve(Thenable(then)))
    flush()
    assert r.rejected == ["rejected"]


def test_thenable_raising_rejects(flush, record):
    error = RuntimeError("then blew up")

    def then(on_fulfilled, on_rejected):
        raise error

    r = record(Promise.resolve(Thenable(then)))
    flush()
    assert r.rejected == [error]


def test_then_is_read_once_and_getter_errors_reject(flush, record):
    error = KeyError("then")
    reads = []

    class Tricky(object):
        @property
        def then(self):
            reads.append(1)
            if len(reads) > 1:
                raise error
            return lambda on_fulfilled, on_rejected: on_fulfilled("once")

    class Broken(object):
        @property
        def then(self):
            raise error

    ok = record(Promise.resolve(Tricky()))
    bad = record(Promise.resolve(Broken()))
    flush()
    assert ok.fulfilled == ["once"]
    assert reads == [1]
    assert bad.rejected == [error]


def test_non_callable_then_is_a_plain_value(flush, record):
    value = Thenable(5)
    r = record(Promise.resolve(value))
    flush()
    assert r.fulfilled[0] is value


def test_thenable_settling_later(flush, record):
    callbacks = []
    r = record(Promise.resolve(Thenable(lambda f, rj: callbacks.append(f))))
    flush()
    assert r.calls == 0
    callbacks[0]("late")
    flush()
    assert r.fulfilled == ["late"]


def test_raising_reaction_does_not_drop_the_rest(flush, caplog):
    seen = []

    def explode(value):
        raise RuntimeError("internal reaction failed")

    p = Promise.resolve(1)
    p._add_callback(Reaction(explode, None))
    p._add_callback(Reaction(seen.append, None))
    with caplog.at_level(logging.ERROR, logger="promissory"):
        flush()
    assert seen == [1]
    assert "internal reaction failed" in caplog.text


def test_slow_handler_is_reported(flush, caplog, monkeypatch):
    monkeypatch.setattr(core, "blocking_warn_threshold", -1)
    Promise.resolve(1).then(lambda v: v)
    with caplog.at_level(logging.WARNING, logger="promissory"):
        flush()
    assert "blocked for" in caplog.text


def test_repr_and_state(flush):
    d = deferred()
    assert "pending" in repr(d.promise)
    d.reject("why")
    assert d.promise.state == REJECTED
    assert d.promise.value == "why"
    assert "rejected: 'why'" in repr(d.promise)
