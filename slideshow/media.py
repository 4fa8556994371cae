"""Value types shared by the slideshow engine.

Every object in this module is an immutable snapshot.  The engine never
keeps them around between calls: a catalog and a configuration are
handed in, a :class:`PlaybackWindow` is handed back, and nothing is
remembered.  The fingerprints computed here are what the service facade
stores next to a device's epoch to notice content or settings changes.
"""

from __future__ import annotations

import enum
import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

__all__ = [
    "EmptyCatalogError",
    "InvalidConfigurationError",
    "MediaItem",
    "MediaKind",
    "OrderingMode",
    "PlaybackWindow",
    "SlideshowConfig",
    "SlideshowError",
    "catalog_fingerprint",
    "config_fingerprint",
    "timeline_fingerprint",
]

DEFAULT_PHOTO_DURATION = timedelta(seconds=10)


class SlideshowError(Exception):
    """Base class for failures reported by the slideshow engine."""


class EmptyCatalogError(SlideshowError):
    """Raised when a device has no eligible media to display."""


class InvalidConfigurationError(SlideshowError, ValueError):
    """Raised when a slideshow configuration cannot drive a timeline."""


class MediaKind(str, enum.Enum):
    PHOTO = "photo"
    VIDEO = "video"


class OrderingMode(str, enum.Enum):
    SEQUENTIAL = "sequential"
    SHUFFLE = "shuffle"


@dataclass(frozen=True, slots=True)
class MediaItem:
    """A single photo or video as seen by the engine.

    ``ordinal`` is the stable insertion order of the item.  It decides the
    sequential order and is part of the catalog fingerprint.  ``duration``
    is only meaningful for videos; the remaining fields are carried along
    for the caller and never influence scheduling.
    """

    id: str
    kind: MediaKind = MediaKind.PHOTO
    ordinal: int = 0
    duration: Optional[timedelta] = None
    url: Optional[str] = None
    date_taken: Optional[datetime] = None
    location: Optional[str] = None
    width: int = 0
    height: int = 0


@dataclass(frozen=True, slots=True)
class SlideshowConfig:
    """Playback settings for one device."""

    ordering: OrderingMode = OrderingMode.SHUFFLE
    photo_duration: timedelta = DEFAULT_PHOTO_DURATION
    max_video_duration: Optional[timedelta] = None
    transition: str = "fade"
    transition_duration_ms: int = 1000
    image_fit: str = "contain"


@dataclass(frozen=True, slots=True)
class PlaybackWindow:
    """The item that is on screen during ``[start, end)``."""

    item: MediaItem
    start: datetime
    end: datetime
    pass_index: int
    position: int
    pass_length: timedelta
    epoch: datetime

    @property
    def next_poll(self) -> datetime:
        """Instant at which the displayed item changes."""
        return self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


def _digest(lines: Iterable[str]) -> str:
    sha = hashlib.sha256()
    for line in lines:
        sha.update(line.encode("utf-8"))
        sha.update(b"\n")
    return sha.hexdigest()


def _micros(value: Optional[timedelta]) -> str:
    if value is None:
        return "-"
    return str(value // timedelta(microseconds=1))


def catalog_fingerprint(items: Iterable[MediaItem]) -> str:
    """Stable hash over the member ids and ordinals of a catalog.

    The input order does not matter; members are rendered in ordinal
    order so two providers returning the same set agree on the value.
    """

    members = sorted(items, key=lambda item: (item.ordinal, item.id))
    return _digest(f"{item.id}:{item.ordinal}" for item in members)


def config_fingerprint(config: SlideshowConfig) -> str:
    return _digest(
        [
            f"ordering={config.ordering.value}",
            f"photo_duration={_micros(config.photo_duration)}",
            f"max_video_duration={_micros(config.max_video_duration)}",
            f"transition={config.transition}",
            f"transition_duration_ms={config.transition_duration_ms}",
            f"image_fit={config.image_fit}",
        ]
    )


def timeline_fingerprint(items: Iterable[MediaItem], config: SlideshowConfig) -> str:
    """Combined identity of everything a timeline is derived from.

    Besides the catalog and config fingerprints this covers the kind and
    intrinsic duration of every member, so a video whose length is
    corrected after import also restarts the timeline.
    """

    members = sorted(items, key=lambda item: (item.ordinal, item.id))
    timing = _digest(f"{item.id}:{item.kind.value}:{_micros(item.duration)}" for item in members)
    return _digest([catalog_fingerprint(members), config_fingerprint(config), timing])
