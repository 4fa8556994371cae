"""Map a wall-clock instant onto a device's slideshow timeline.

The timeline is the endless repetition of passes produced by
:mod:`slideshow.sequencer`, laid end to end starting at the device's
epoch.  It is never stored.  Each query recomputes the pass that contains
``now`` and the item inside it, so every poller asking about the same
instant gets the same answer.

All arithmetic happens in whole microseconds, the resolution of
:class:`datetime.timedelta`, which keeps window boundaries exact no
matter how far ``now`` is from the epoch.
"""

from __future__ import annotations

import bisect
import itertools
from datetime import datetime, timedelta
from typing import Iterator, List, Sequence

from .durations import resolve_duration, validate_config
from .media import EmptyCatalogError, MediaItem, PlaybackWindow, SlideshowConfig
from .sequencer import build_pass

__all__ = ["iter_windows", "pass_length", "resolve", "upcoming"]

_MICROSECOND = timedelta(microseconds=1)


def _durations_us(items: Sequence[MediaItem], config: SlideshowConfig) -> List[int]:
    return [resolve_duration(item, config) // _MICROSECOND for item in items]


def pass_length(catalog: Sequence[MediaItem], config: SlideshowConfig) -> timedelta:
    """Total length of one pass.

    Every pass contains each item exactly once, so the sum does not depend
    on the order chosen for a particular pass.
    """

    validate_config(config)
    if not catalog:
        raise EmptyCatalogError("catalog has no eligible media")
    return timedelta(microseconds=sum(_durations_us(catalog, config)))


def iter_windows(
    catalog: Sequence[MediaItem],
    config: SlideshowConfig,
    epoch: datetime,
    now: datetime,
) -> Iterator[PlaybackWindow]:
    """Yield the window containing ``now`` followed by every later window.

    The configuration is validated and the catalog checked eagerly, before
    the first window is requested.
    """

    validate_config(config)
    if not catalog:
        raise EmptyCatalogError("catalog has no eligible media")
    return _walk(catalog, config, epoch, now)


def _walk(
    catalog: Sequence[MediaItem],
    config: SlideshowConfig,
    epoch: datetime,
    now: datetime,
) -> Iterator[PlaybackWindow]:
    length_us = pass_length(catalog, config) // _MICROSECOND
    elapsed_us = max(now - epoch, timedelta(0)) // _MICROSECOND
    pass_index, offset_us = divmod(elapsed_us, length_us)
    length = timedelta(microseconds=length_us)

    while True:
        items = build_pass(catalog, config, pass_index)
        durations = _durations_us(items, config)
        starts = list(itertools.accumulate(durations, initial=0))[:-1]
        position = bisect.bisect_right(starts, offset_us) - 1
        pass_start_us = pass_index * length_us
        for index in range(position, len(items)):
            start_us = pass_start_us + starts[index]
            yield PlaybackWindow(
                item=items[index],
                start=epoch + timedelta(microseconds=start_us),
                end=epoch + timedelta(microseconds=start_us + durations[index]),
                pass_index=pass_index,
                position=index,
                pass_length=length,
                epoch=epoch,
            )
        pass_index += 1
        offset_us = 0


def resolve(
    catalog: Sequence[MediaItem],
    config: SlideshowConfig,
    epoch: datetime,
    now: datetime,
) -> PlaybackWindow:
    """Return the window that is current at ``now``.

    ``now`` earlier than ``epoch`` is treated as the epoch itself.

    Raises
    ------
    InvalidConfigurationError
        When the configured durations are not positive.
    EmptyCatalogError
        When ``catalog`` has no items.
    """

    return next(iter_windows(catalog, config, epoch, now))


def upcoming(
    catalog: Sequence[MediaItem],
    config: SlideshowConfig,
    epoch: datetime,
    now: datetime,
    count: int,
) -> List[PlaybackWindow]:
    """Return the current window and the ``count - 1`` windows after it."""

    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")
    return list(itertools.islice(iter_windows(catalog, config, epoch, now), count))
