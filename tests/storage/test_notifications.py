from __future__ import annotations

from prefect_attendance.storage.notifications import ChangeNotifier, LocalBroadcastHub


def test_notifier_isolates_failing_listeners():
    notifier = ChangeNotifier()
    received = []

    def broken(_records):
        raise ValueError("boom")

    notifier.add_listener(broken)
    notifier.add_listener(received.append)

    notifier.notify(["a", "b"])

    assert received == [["a", "b"]]


def test_unsubscribe_is_idempotent():
    notifier = ChangeNotifier()
    received = []
    unsubscribe = notifier.add_listener(received.append)

    unsubscribe()
    unsubscribe()
    notifier.notify(["a"])

    assert received == []
    assert len(notifier) == 0


def test_same_callback_registered_twice_gets_two_handles():
    notifier = ChangeNotifier()
    received = []
    first = notifier.add_listener(received.append)
    notifier.add_listener(received.append)

    first()
    notifier.notify([1])

    assert received == [[1]]


def test_hub_does_not_echo_to_the_sender():
    hub = LocalBroadcastHub()
    a, b, c = hub.open(), hub.open(), hub.open()
    got = {"a": [], "b": [], "c": []}
    a.subscribe(got["a"].append)
    b.subscribe(got["b"].append)
    c.subscribe(got["c"].append)

    a.publish({"key": "records"})

    assert got == {"a": [], "b": [{"key": "records"}], "c": [{"key": "records"}]}


def test_closed_endpoint_stops_receiving():
    hub = LocalBroadcastHub()
    a, b = hub.open(), hub.open()
    got = []
    b.subscribe(got.append)

    b.close()
    a.publish({"key": "records"})

    assert got == []
