import pytest

from pane_fakes import FakeDocument, FakePane, TimerSpy
from panesync.models.pane import Axis
from panesync.utils.strategy_loader import build_detection_config
from panesync.widgets import sync_engine as sync_engine_module
from panesync.widgets.scroll_sync import ScrollSync
from panesync.widgets.sync_engine import ScrollSyncEngine

V = Axis.VERTICAL

DETECTION = build_detection_config({
    "strategies": [{"name": "document-pane", "selector": ".document-pane"}],
    "fallback": {"selector": "QAbstractScrollArea"},
})


@pytest.fixture(autouse=True)
def timer(monkeypatch):
    TimerSpy.calls.clear()
    monkeypatch.setattr(sync_engine_module, "QTimer", TimerSpy)
    return TimerSpy


def make_sync(document):
    sync = ScrollSync(document, detection=DETECTION, engine=ScrollSyncEngine(settle_ms=50))
    events = {"panes": [], "failures": []}
    sync.panes_changed.connect(lambda left, right: events["panes"].append((left.name, right.name)))
    sync.resolution_failed.connect(lambda reason, detail: events["failures"].append(reason))
    return sync, events


def document_panes():
    left = FakePane("left", object_name="left-document", classes=("document-pane",),
                    content=2000, visible=500)
    right = FakePane("right", object_name="right-document", classes=("document-pane",),
                     content=1000, visible=400)
    return left, right


def test_init_auto_detects_and_binds():
    left, right = document_panes()
    sync, events = make_sync(FakeDocument(left, right))

    assert sync.init() is True

    assert events["panes"] == [("left", "right")]
    left.scroll_to(750)
    assert right.offsets[V] == 300
    assert sync.status() == {
        "enabled": True,
        "left_pane": "left",
        "right_pane": "right",
        "strategy": "document-pane",
        "bound": True,
    }


def test_init_failure_reports_reason_and_stays_unbound():
    sync, events = make_sync(FakeDocument(FakePane("only", width=50, height=50)))

    assert sync.init() is False

    assert events["failures"] == ["auto-detect-failed"]
    status = sync.status()
    assert status["bound"] is False
    assert status["left_pane"] is None


def test_init_twice_rebinds_once():
    left, right = document_panes()
    sync, _events = make_sync(FakeDocument(left, right))

    sync.init()
    sync.init()

    assert len(left.listeners) == 1
    assert len(right.listeners) == 1


def test_set_panes_before_init_is_used_by_init():
    left, right = document_panes()
    extra = FakePane("extra", object_name="extra", content=4000, visible=400)
    sync, events = make_sync(FakeDocument(left, right, extra))

    assert sync.set_panes("#left-document", "#extra") is True
    assert events["panes"] == []
    assert sync.engine.is_bound is False

    sync.init()

    assert events["panes"] == [("left", "extra")]
    assert sync.status()["strategy"] == "explicit"
    left.scroll_to(750)
    assert extra.offsets[V] == 1800


def test_set_panes_while_running_moves_the_binding():
    left, right = document_panes()
    extra = FakePane("extra", object_name="extra")
    sync, events = make_sync(FakeDocument(left, right, extra))
    sync.init()

    sync.set_panes("#left-document", "#extra")

    assert events["panes"][-1] == ("left", "extra")
    assert right.listeners == []
    assert len(extra.listeners) == 1


@pytest.mark.parametrize(("left", "right", "reason"), [
    ("#missing", "#right-document", "left-not-found"),
    ("#left-document", "#missing", "right-not-found"),
])
def test_set_panes_failure_reports_side(left, right, reason):
    sync, events = make_sync(FakeDocument(*document_panes()))

    assert sync.set_panes(left, right) is False

    assert events["failures"] == [reason]
    assert sync.locators is None
    assert sync.engine.is_bound is False


def test_clear_panes_returns_to_auto_detection():
    left, right = document_panes()
    sync, _events = make_sync(FakeDocument(left, right))
    sync.set_panes("#right-document", "#left-document")

    sync.clear_panes()
    sync.init()

    assert sync.status()["strategy"] == "document-pane"
    assert sync.status()["left_pane"] == "left"


def test_toggle_enable_and_disable():
    left, right = document_panes()
    sync, _events = make_sync(FakeDocument(left, right))
    sync.init()

    assert sync.toggle() is False
    left.scroll_to(750)
    assert right.offsets[V] == 0

    sync.enable()
    assert sync.status()["enabled"] is True
    sync.disable()
    assert sync.status()["enabled"] is False


def test_destroy_detaches_and_is_repeatable():
    left, right = document_panes()
    sync, _events = make_sync(FakeDocument(left, right))
    sync.init()

    sync.destroy()
    sync.destroy()

    assert left.listeners == []
    assert right.listeners == []
    assert sync.status()["left_pane"] is None
    left.scroll_to(750)
    assert right.offsets[V] == 0
