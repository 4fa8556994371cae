from __future__ import annotations

import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from slideshow.media import EmptyCatalogError, MediaItem, OrderingMode, SlideshowConfig
from slideshow.poller import PollerConfig, SlideshowPoller
from slideshow.timeline import resolve

FAST = PollerConfig(
    min_interval=0.01,
    max_interval=0.02,
    empty_interval=0.01,
    retry_interval=0.01,
    shutdown_timeout=1.0,
)


class Recorder:
    def __init__(self) -> None:
        self.windows = []
        self.changed = threading.Event()

    def __call__(self, window) -> None:
        self.windows.append(window)
        self.changed.set()


@pytest.fixture()
def fetch_from_timeline():
    catalog = [MediaItem(id=f"P{index}", ordinal=index) for index in range(3)]
    config = SlideshowConfig(ordering=OrderingMode.SEQUENTIAL, photo_duration=timedelta(milliseconds=30))
    epoch = datetime.now(timezone.utc)

    def fetch():
        return resolve(catalog, config, epoch, datetime.now(timezone.utc))

    return fetch


def test_start_is_non_blocking_when_nothing_to_show():
    content_ready = threading.Event()
    recorder = Recorder()
    window = resolve(
        [MediaItem(id="P1")],
        SlideshowConfig(),
        datetime.now(timezone.utc),
        datetime.now(timezone.utc),
    )

    def fetch():
        if not content_ready.is_set():
            raise EmptyCatalogError("nothing yet")
        return window

    poller = SlideshowPoller(fetch, recorder, config=FAST)

    start_time = time.monotonic()
    assert poller.start() is True
    assert time.monotonic() - start_time < 0.05

    assert recorder.changed.wait(timeout=1)
    assert recorder.windows == [None]
    recorder.changed.clear()

    content_ready.set()
    assert poller.wait_until_running(timeout=1) is True
    assert recorder.changed.wait(timeout=1)
    assert recorder.windows[-1] == window
    assert poller.current == window
    poller.stop()


def test_poller_follows_the_timeline(fetch_from_timeline):
    recorder = Recorder()
    poller = SlideshowPoller(fetch_from_timeline, recorder, config=FAST)

    assert poller.start(block_until_ready=True, timeout=1) is True
    deadline = time.monotonic() + 2
    while len({window.item.id for window in recorder.windows}) < 3 and time.monotonic() < deadline:
        time.sleep(0.01)
    poller.stop()

    assert {window.item.id for window in recorder.windows} == {"P0", "P1", "P2"}
    for current, following in zip(recorder.windows, recorder.windows[1:]):
        assert current.start < following.start


def test_unchanged_window_is_reported_once():
    window = resolve(
        [MediaItem(id="P1")],
        SlideshowConfig(photo_duration=timedelta(hours=1)),
        datetime.now(timezone.utc),
        datetime.now(timezone.utc),
    )
    calls = threading.Event()
    counter = {"fetches": 0}

    def fetch():
        counter["fetches"] += 1
        if counter["fetches"] >= 5:
            calls.set()
        return window

    recorder = Recorder()
    poller = SlideshowPoller(fetch, recorder, config=FAST)
    poller.start()
    assert calls.wait(timeout=1)
    poller.stop()

    assert recorder.windows == [window]


def test_fetch_errors_are_retried():
    window = resolve(
        [MediaItem(id="P1")],
        SlideshowConfig(),
        datetime.now(timezone.utc),
        datetime.now(timezone.utc),
    )
    attempts = {"count": 0}

    def fetch():
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise ConnectionError("backend unavailable")
        return window

    poller = SlideshowPoller(fetch, Recorder(), config=FAST)

    assert poller.start(block_until_ready=True, timeout=1) is True
    assert attempts["count"] >= 3
    poller.stop()


def test_start_timeout_returns_false():
    def fetch():
        raise EmptyCatalogError("nothing to show")

    poller = SlideshowPoller(fetch, Recorder(), config=FAST)

    assert poller.start(block_until_ready=True, timeout=0.05) is False
    poller.stop()
    assert poller.wait_until_running(timeout=0.01) is False


def test_delay_is_clamped_to_configured_bounds():
    now = datetime(2026, 3, 1, tzinfo=timezone.utc)
    poller = SlideshowPoller(
        lambda: None,
        Recorder(),
        config=PollerConfig(min_interval=1.0, max_interval=30.0),
        clock=lambda: now,
    )

    assert poller._delay_until(now + timedelta(seconds=5)) == 5.0
    assert poller._delay_until(now - timedelta(seconds=5)) == 1.0
    assert poller._delay_until(now + timedelta(minutes=5)) == 30.0
