"""Change bus: subscribe/unsubscribe and failing listeners."""

from predsim.store import ChangeBus


def test_publish_and_unsubscribe():
    bus = ChangeBus()
    calls = []
    unsubscribe = bus.subscribe(lambda: calls.append(1))
    bus.publish()
    assert calls == [1]
    unsubscribe()
    unsubscribe()
    bus.publish()
    assert calls == [1]
    assert len(bus) == 0


def test_failing_listener_does_not_block_others():
    bus = ChangeBus()
    calls = []

    def boom():
        raise RuntimeError("listener bug")

    bus.subscribe(boom)
    bus.subscribe(lambda: calls.append("ok"))
    bus.publish()
    assert calls == ["ok"]


def test_listener_may_unsubscribe_during_publish():
    bus = ChangeBus()
    calls = []
    handles = {}

    def once():
        calls.append("once")
        handles["once"]()

    handles["once"] = bus.subscribe(once)
    bus.publish()
    bus.publish()
    assert calls == ["once"]
