import pytest

from pane_fakes import FakePane, TimerSpy
from panesync.models.pane import Axis
from panesync.widgets import sync_engine as sync_engine_module
from panesync.widgets.sync_engine import ScrollSyncEngine

V = Axis.VERTICAL
H = Axis.HORIZONTAL


@pytest.fixture
def timer(monkeypatch):
    TimerSpy.calls.clear()
    monkeypatch.setattr(sync_engine_module, "QTimer", TimerSpy)
    return TimerSpy


@pytest.fixture
def panes():
    return FakePane("a", content=2000, visible=500), FakePane("b", content=1000, visible=400)


def make_engine(pane_a, pane_b):
    engine = ScrollSyncEngine(settle_ms=50)
    engine.bind(pane_a, pane_b)
    return engine


def test_scroll_on_a_moves_b_proportionally(timer, panes):
    pane_a, pane_b = panes
    make_engine(pane_a, pane_b)

    pane_a.scroll_to(750)

    assert pane_b.offsets[V] == 300
    # The echo from b was ignored, so a was never written.
    assert pane_a.writes == []
    assert pane_b.writes == [(V, 300, False)]


def test_settle_window_is_scheduled_after_a_write(timer, panes):
    pane_a, pane_b = panes
    engine = make_engine(pane_a, pane_b)

    pane_a.scroll_to(750)

    assert engine.state.suspended is True
    assert len(timer.calls) == 1
    assert timer.calls[0][0] == 50

    timer.fire_all()
    assert engine.state.suspended is False


def test_events_while_suspended_are_dropped(timer, panes):
    pane_a, pane_b = panes
    make_engine(pane_a, pane_b)

    pane_a.scroll_to(750)
    pane_b.scroll_to(100)

    assert pane_a.offsets[V] == 750
    assert pane_a.writes == []


def test_source_moving_during_settle_window_is_caught_up(timer, panes):
    pane_a, pane_b = panes
    engine = make_engine(pane_a, pane_b)

    pane_a.scroll_to(750)
    pane_a.scroll_to(1200)
    pane_a.scroll_to(1500)
    assert pane_b.offsets[V] == 300

    timer.fire_all()
    assert pane_b.offsets[V] == 600
    assert engine.state.suspended is True

    timer.fire_all()
    assert engine.state.suspended is False
    assert timer.calls == []
    assert pane_a.writes == []


def test_scroll_on_b_moves_a(timer, panes):
    pane_a, pane_b = panes
    make_engine(pane_a, pane_b)

    pane_b.scroll_to(600)

    assert pane_a.offsets[V] == 1500
    assert pane_b.writes == []


def test_at_most_one_write_per_pane_and_axis(timer):
    pane_a = FakePane("a", content=2000, visible=500, h_content=900, h_visible=300)
    pane_b = FakePane("b", content=1000, visible=400, h_content=1200, h_visible=300)
    make_engine(pane_a, pane_b)

    pane_a.scroll_to(750)

    assert pane_a.writes == []
    assert [write[0] for write in pane_b.writes] == [V]


def test_horizontal_axis_is_synchronized(timer):
    pane_a = FakePane("a", h_content=900, h_visible=300)
    pane_b = FakePane("b", h_content=1200, h_visible=300)
    make_engine(pane_a, pane_b)

    pane_a.scroll_to(300, axis=H)

    assert pane_b.offsets[H] == 450
    assert pane_b.offsets[V] == 0


def test_no_write_when_target_already_matches(timer, panes):
    pane_a, pane_b = panes
    engine = make_engine(pane_a, pane_b)
    pane_b.offsets[V] = 300

    pane_a.scroll_to(750)

    assert pane_b.writes == []
    assert timer.calls == []
    assert engine.state.suspended is False


def test_disabled_engine_does_not_propagate(timer, panes):
    pane_a, pane_b = panes
    engine = make_engine(pane_a, pane_b)
    changes = []
    engine.enabled_changed.connect(changes.append)

    assert engine.toggle() is False
    pane_a.scroll_to(750)
    assert pane_b.offsets[V] == 0

    assert engine.toggle() is True
    assert changes == [False, True]
    pane_a.scroll_to(1000)
    assert pane_b.offsets[V] == 400


def test_set_enabled_is_idempotent(timer):
    engine = ScrollSyncEngine(settle_ms=50)
    changes = []
    engine.enabled_changed.connect(changes.append)

    engine.set_enabled(True)
    engine.set_enabled(False)
    engine.set_enabled(False)

    assert changes == [False]


def test_bind_twice_keeps_one_listener_per_pane(timer, panes):
    pane_a, pane_b = panes
    engine = make_engine(pane_a, pane_b)
    engine.bind(pane_a, pane_b)

    assert len(pane_a.listeners) == 1
    assert len(pane_b.listeners) == 1


def test_rebind_releases_previous_panes(timer, panes):
    pane_a, pane_b = panes
    pane_c = FakePane("c", content=1000, visible=400)
    engine = make_engine(pane_a, pane_b)

    engine.bind(pane_a, pane_c)

    assert pane_b.listeners == []
    pane_a.scroll_to(750)
    assert pane_c.offsets[V] == 300
    assert pane_b.offsets[V] == 0


def test_unbind_is_safe_and_detaches(timer, panes):
    pane_a, pane_b = panes
    engine = ScrollSyncEngine(settle_ms=50)
    engine.unbind()

    engine.bind(pane_a, pane_b)
    engine.unbind()
    engine.unbind()

    assert pane_a.listeners == []
    assert pane_b.listeners == []
    assert engine.is_bound is False


def test_stale_settle_callback_does_nothing(timer, panes):
    pane_a, pane_b = panes
    engine = make_engine(pane_a, pane_b)
    pane_a.scroll_to(750)
    stale = list(timer.calls)

    engine.unbind()
    engine.bind(pane_a, pane_b)
    pane_a.scroll_to(1500)
    assert engine.state.suspended is True

    for _delay, callback in stale:
        callback()
    assert engine.state.suspended is True


def test_measurement_failure_is_reported_and_sync_recovers(timer, panes):
    pane_a, pane_b = panes
    engine = make_engine(pane_a, pane_b)
    failures = []
    engine.sync_failed.connect(lambda name, message: failures.append(name))

    pane_a.fail_measure = True
    pane_a.scroll_to(750)

    assert failures == ["a"]
    assert engine.is_bound
    assert engine.state.suspended is False

    pane_a.fail_measure = False
    pane_a.scroll_to(1000)
    assert pane_b.offsets[V] == 400


def test_mutation_failure_is_reported(timer, panes):
    pane_a, pane_b = panes
    engine = make_engine(pane_a, pane_b)
    failures = []
    engine.sync_failed.connect(lambda name, message: failures.append((name, message)))
    sources = []
    engine.propagated.connect(sources.append)

    pane_b.fail_mutation = True
    pane_a.scroll_to(750)

    assert [name for name, _message in failures] == ["b"]
    assert "Error during scroll sync" in failures[0][1]
    assert sources == []
    assert timer.calls == []
    assert engine.state.suspended is False

    pane_b.fail_mutation = False
    pane_a.scroll_to(1000)
    assert pane_b.offsets[V] == 400


def test_propagated_signal_names_the_source(timer, panes):
    pane_a, pane_b = panes
    engine = make_engine(pane_a, pane_b)
    sources = []
    engine.propagated.connect(sources.append)

    pane_a.scroll_to(750)

    assert sources == ["a"]
