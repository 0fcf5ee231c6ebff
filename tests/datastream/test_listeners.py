import pytest

from solana_tracker.datastream.listeners import ListenerMap
from solana_tracker.datastream.telemetry import telemetry


def test_notify_calls_in_registration_order():
    calls = []
    m = ListenerMap()
    m.add("room", lambda x: calls.append(("a", x)))
    m.add("room", lambda x: calls.append(("b", x)))
    assert m.notify("room", 1) == 2
    assert calls == [("a", 1), ("b", 1)]
    assert m.notify("other", 1) == 0


def test_failing_listener_does_not_stop_siblings():
    telemetry.reset()
    calls = []

    def boom(_):
        raise RuntimeError("listener bug")

    m = ListenerMap()
    m.add("room", boom)
    m.add("room", calls.append)
    m.notify("room", "x")
    assert calls == ["x"]
    assert telemetry.counter("datastream_listener_errors_total") == 1


def test_handle_removes_only_its_listener():
    calls = []
    m = ListenerMap()
    h1 = m.add("room", lambda x: calls.append(1))
    m.add("room", lambda x: calls.append(2))
    h1()
    h1.unsubscribe()  # second call is harmless
    assert not h1.active
    m.notify("room", None)
    assert calls == [2]
    assert m.count("room") == 1


def test_listener_removed_during_notify_is_skipped():
    calls = []
    m = ListenerMap()
    handles = []

    def first(_):
        calls.append("first")
        handles[1]()

    handles.append(m.add("room", first))
    handles.append(m.add("room", lambda _: calls.append("second")))
    m.notify("room", None)
    assert calls == ["first"]


def test_removing_last_listener_and_rejecting_non_callables():
    m = ListenerMap()
    h = m.add("room", print)
    assert m.count() == 1
    h()
    assert m.count() == 0
    assert not m.remove(h)
    with pytest.raises(TypeError):
        m.add("room", "not callable")
