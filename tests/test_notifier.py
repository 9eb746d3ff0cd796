"""Tests for subscriber registration and dispatch."""

from metrics_exporter.config.notifier import ChangeNotifier


def test_notify_in_registration_order():
    notifier = ChangeNotifier()
    order = []
    notifier.subscribe("port", lambda k, v: order.append(("first", k, v)))
    notifier.subscribe("port", lambda k, v: order.append(("second", k, v)))
    notifier.notify("port", "2004")
    assert order == [("first", "port", "2004"), ("second", "port", "2004")]


def test_notify_only_subscribers_of_key(recorder):
    notifier = ChangeNotifier()
    notifier.subscribe("host", recorder)
    notifier.notify("port", "1")
    assert recorder.calls == []


def test_failing_callback_does_not_stop_others(recorder):
    notifier = ChangeNotifier()

    def boom(key, value):
        raise RuntimeError("restart failed")

    notifier.subscribe("host", boom)
    notifier.subscribe("host", recorder)
    failed = notifier.notify("host", None)
    assert failed == 1
    assert recorder.calls == [("host", None)]


def test_subscribe_during_dispatch_does_not_affect_current_dispatch(recorder):
    notifier = ChangeNotifier()

    def late_subscriber(key, value):
        notifier.subscribe(key, recorder)

    notifier.subscribe("host", late_subscriber)
    notifier.notify("host", "a")
    assert recorder.calls == []
    notifier.notify("host", "b")
    assert recorder.calls == [("host", "b")]
