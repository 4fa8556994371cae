"""Stateless slideshow scheduling for networked picture frames.

Given a device's eligible media, its playback settings and the epoch its
timeline started at, the engine computes which item is on screen at any
instant.  Nothing about the playback position is stored, so every frame
polling the backend, and the backend after a restart, agree on the answer.
The public API is re-exported here; the implementation lives in the
submodules.
"""

from .media import (
    EmptyCatalogError,
    InvalidConfigurationError,
    MediaItem,
    MediaKind,
    OrderingMode,
    PlaybackWindow,
    SlideshowConfig,
    SlideshowError,
)
from .poller import PollerConfig, SlideshowPoller
from .service import EpochRecord, InMemoryEpochStore, SlideshowService, UnknownDurationReports

__all__ = [
    "EmptyCatalogError",
    "EpochRecord",
    "InMemoryEpochStore",
    "InvalidConfigurationError",
    "MediaItem",
    "MediaKind",
    "OrderingMode",
    "PlaybackWindow",
    "PollerConfig",
    "SlideshowConfig",
    "SlideshowError",
    "SlideshowPoller",
    "SlideshowService",
    "UnknownDurationReports",
]
