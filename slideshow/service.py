"""Per-device entry point into the slideshow engine.

:class:`SlideshowService` glues three collaborators together: a catalog
provider returning the eligible media of a device, a config provider
returning its playback settings, and an epoch store remembering when the
device's timeline started.  The service itself keeps no playback
position.  The only thing it writes is a new epoch, and only when a
device is seen for the first time or its content or settings changed.

The collaborators are described as :class:`typing.Protocol` classes so
the web layer can hand in database backed implementations while tests
use plain objects.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from . import timeline
from .durations import has_known_duration
from .media import MediaItem, PlaybackWindow, SlideshowConfig, timeline_fingerprint

__all__ = [
    "CatalogProvider",
    "ConfigProvider",
    "EpochRecord",
    "EpochStore",
    "InMemoryEpochStore",
    "SlideshowService",
    "UNKNOWN_DURATION_REPORTS",
    "UnknownDurationReports",
]

MAX_UPCOMING = 50


@dataclass(frozen=True, slots=True)
class EpochRecord:
    """Start of a device's timeline together with what it was built from."""

    epoch: datetime
    fingerprint: str


class CatalogProvider(Protocol):
    def load_eligible_media(self, device_id: str) -> Sequence[MediaItem]:  # pragma: no cover - protocol
        """Return the filtered media of ``device_id`` in ordinal order."""


class ConfigProvider(Protocol):
    def load_config(self, device_id: str) -> SlideshowConfig:  # pragma: no cover - protocol
        """Return the playback settings of ``device_id``."""


class EpochStore(Protocol):
    def get_epoch(self, device_id: str) -> Optional[EpochRecord]:  # pragma: no cover - protocol
        """Return the stored record or ``None`` for unknown devices."""

    def set_epoch(
        self,
        device_id: str,
        record: EpochRecord,
        *,
        expected: Optional[EpochRecord] = None,
    ) -> EpochRecord:  # pragma: no cover - protocol
        """Store ``record`` if the current value equals ``expected``.

        Returns the record that is stored after the call.  When another
        writer got there first, that writer's record is returned instead.
        """


class InMemoryEpochStore:
    """Thread-safe epoch store for tests and single-process deployments."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[str, EpochRecord] = {}

    def get_epoch(self, device_id: str) -> Optional[EpochRecord]:
        with self._lock:
            return self._records.get(device_id)

    def set_epoch(
        self,
        device_id: str,
        record: EpochRecord,
        *,
        expected: Optional[EpochRecord] = None,
    ) -> EpochRecord:
        with self._lock:
            current = self._records.get(device_id)
            if current is not None and current != expected:
                return current
            self._records[device_id] = record
            return record


class UnknownDurationReports:
    """Remember which ``(device_id, fingerprint)`` pairs were already warned about.

    Web handlers build a fresh :class:`SlideshowService` per request, so the
    memory lives at module level.  The oldest entries are dropped once
    ``maxsize`` is reached.
    """

    def __init__(self, maxsize: int = 1024) -> None:
        self._maxsize = maxsize
        self._lock = threading.Lock()
        self._seen: OrderedDict[Tuple[str, str], None] = OrderedDict()

    def first_time(self, device_id: str, fingerprint: str) -> bool:
        """Record the pair and return ``True`` unless it was already seen."""

        key = (device_id, fingerprint)
        with self._lock:
            if key in self._seen:
                self._seen.move_to_end(key)
                return False
            self._seen[key] = None
            while len(self._seen) > self._maxsize:
                self._seen.popitem(last=False)
            return True

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)


UNKNOWN_DURATION_REPORTS = UnknownDurationReports()


class SlideshowService:
    """Answer "what is showing now" for any device.

    Parameters
    ----------
    catalog_provider:
        Object implementing :class:`CatalogProvider`.
    config_provider:
        Object implementing :class:`ConfigProvider`.
    epoch_store:
        Object implementing :class:`EpochStore`.  It should offer a
        compare-and-set write; concurrent first resolutions for the same
        device then agree on one epoch.
    logger:
        Optional :class:`logging.Logger`.  When omitted a module level
        logger is used.
    reported:
        Optional :class:`UnknownDurationReports`.  Defaults to the process
        wide :data:`UNKNOWN_DURATION_REPORTS` so short lived instances
        share it.
    """

    def __init__(
        self,
        catalog_provider: CatalogProvider,
        config_provider: ConfigProvider,
        epoch_store: EpochStore,
        *,
        logger: Optional[logging.Logger] = None,
        reported: Optional[UnknownDurationReports] = None,
    ) -> None:
        self._catalog_provider = catalog_provider
        self._config_provider = config_provider
        self._epoch_store = epoch_store
        self._logger = logger or logging.getLogger("slideshow.service")
        self._reported = reported if reported is not None else UNKNOWN_DURATION_REPORTS

    # ------------------------------------------------------------------
    def get_current(self, device_id: str, now: datetime) -> PlaybackWindow:
        """Return the window that is on screen for ``device_id`` at ``now``.

        Raises
        ------
        EmptyCatalogError
            When the device has nothing to display.
        InvalidConfigurationError
            When the device's settings have a non-positive duration.
        """

        catalog, config, record = self._prepare(device_id, now)
        return timeline.resolve(catalog, config, record.epoch, now)

    # ------------------------------------------------------------------
    def get_upcoming(self, device_id: str, now: datetime, count: int = 10) -> List[PlaybackWindow]:
        """Return the current window followed by the next ones for preloading.

        ``count`` is clamped to ``1..50``.
        """

        count = min(max(int(count), 1), MAX_UPCOMING)
        catalog, config, record = self._prepare(device_id, now)
        return timeline.upcoming(catalog, config, record.epoch, now, count)

    # ------------------------------------------------------------------
    def get_next(self, device_id: str, now: datetime) -> PlaybackWindow:
        """Return the window that follows the current one.

        Nothing advances: asking twice at the same ``now`` gives the same
        window.  After the last item of a pass this is the first item of
        the next pass.
        """

        catalog, config, record = self._prepare(device_id, now)
        return timeline.upcoming(catalog, config, record.epoch, now, 2)[1]

    # ------------------------------------------------------------------
    def get_count(self, device_id: str) -> int:
        """Return how many items the device currently cycles through."""

        return len(self._catalog_provider.load_eligible_media(device_id))

    # ------------------------------------------------------------------
    def reset(self, device_id: str, now: datetime) -> EpochRecord:
        """Restart the device's timeline at ``now``."""

        catalog = list(self._catalog_provider.load_eligible_media(device_id))
        config = self._config_provider.load_config(device_id)
        current = self._epoch_store.get_epoch(device_id)
        record = EpochRecord(epoch=now, fingerprint=timeline_fingerprint(catalog, config))
        stored = self._epoch_store.set_epoch(device_id, record, expected=current)
        self._logger.info("Slideshow for device %s reset at %s", device_id, stored.epoch.isoformat())
        return stored

    # ------------------------------------------------------------------
    def _prepare(self, device_id: str, now: datetime):
        catalog = list(self._catalog_provider.load_eligible_media(device_id))
        config = self._config_provider.load_config(device_id)
        fingerprint = timeline_fingerprint(catalog, config)
        record = self._ensure_epoch(device_id, fingerprint, now)
        self._report_unknown_durations(device_id, catalog, fingerprint)
        return catalog, config, record

    # ------------------------------------------------------------------
    def _ensure_epoch(self, device_id: str, fingerprint: str, now: datetime) -> EpochRecord:
        """Return the device's epoch, starting a new one when it is stale."""

        current = self._epoch_store.get_epoch(device_id)
        if current is not None and current.fingerprint == fingerprint:
            return current
        if current is None:
            self._logger.info("Starting slideshow timeline for new device %s", device_id)
        else:
            self._logger.info(
                "Content or settings changed for device %s, restarting timeline", device_id
            )
        record = EpochRecord(epoch=now, fingerprint=fingerprint)
        stored = self._epoch_store.set_epoch(device_id, record, expected=current)
        if stored != record:
            self._logger.debug("Epoch for device %s was set concurrently, using stored value", device_id)
        return stored

    # ------------------------------------------------------------------
    def _report_unknown_durations(
        self, device_id: str, catalog: Sequence[MediaItem], fingerprint: str
    ) -> None:
        missing = [item.id for item in catalog if not has_known_duration(item)]
        if missing and self._reported.first_time(device_id, fingerprint):
            self._logger.warning(
                "Device %s: %d video(s) without a known duration use the photo duration: %s",
                device_id,
                len(missing),
                ", ".join(missing),
            )
