import pytest

from freeshot import emit, finish
from freeshot.config import Config
from freeshot.errors import ClipboardError
from freeshot.finish import CLIPBOARD_NOTICE, TOO_SMALL_NOTICE, finish_selection
from freeshot.output import OutputOptions, OutputResult
from freeshot.selection import SelectionSession

TRIANGLE = [(2, 2), (20, 2), (2, 20)]


@pytest.fixture
def session(raster_factory, clock):
    return SelectionSession(raster_factory(30, 30), throttle_ms=100, clock=clock)


@pytest.fixture
def events():
    seen = []
    emit.add_handler(seen.append)
    return seen


@pytest.fixture
def delivered(monkeypatch):
    crops = []

    def fake_deliver(raster, options, config):
        crops.append(raster)
        return OutputResult(path=None, width=raster.width, height=raster.height, timestamp="t")

    monkeypatch.setattr(finish, "deliver", fake_deliver)
    return crops


def gesture(session, clock, points):
    session.press(*points[0])
    for x, y in points:
        clock.advance_ms(100)
        session.move(x, y)


def release(session, operation_id=None):
    return finish_selection(session, 0, 0, OutputOptions(), Config(), operation_id)


def test_delivered_selection_finishes(session, clock, delivered, events):
    gesture(session, clock, TRIANGLE)
    outcome = release(session, operation_id="op-1")

    assert outcome.finished
    assert outcome.notice is None
    assert outcome.result.width == 18
    assert len(delivered) == 1
    assert events[0]["event_type"] == "selection.completed"
    assert events[0]["data"]["operation_id"] == "op-1"
    assert events[0]["data"]["bbox"] == {"x": 2, "y": 2, "width": 18, "height": 18}


def test_too_small_selection_keeps_window_open(session, clock, delivered, events):
    gesture(session, clock, [(1, 1), (5, 5)])
    outcome = release(session)

    assert not outcome.finished
    assert outcome.notice == TOO_SMALL_NOTICE
    assert delivered == []
    assert [e["data"]["stage"] for e in events] == ["selection"]

    # The next gesture works normally
    gesture(session, clock, TRIANGLE)
    assert release(session).finished


def test_clipboard_failure_allows_retry(session, clock, monkeypatch, events):
    attempts = []

    def failing(raster, options, config):
        attempts.append(raster)
        raise ClipboardError("Clipboard command not found: wl-copy")

    monkeypatch.setattr(finish, "deliver", failing)
    gesture(session, clock, TRIANGLE)
    outcome = release(session)

    assert not outcome.finished
    assert outcome.notice == CLIPBOARD_NOTICE
    assert outcome.crop is not None
    assert [e["event_type"] for e in events] == ["selection.completed", "error.handled"]
    assert events[-1]["data"]["stage"] == "output"
    assert not session.selecting

    gesture(session, clock, TRIANGLE)
    release(session)
    assert len(attempts) == 2


def test_release_without_gesture_does_nothing(session, delivered, events):
    outcome = release(session)
    assert not outcome.finished
    assert outcome.notice is None
    assert delivered == []
    assert events == []
