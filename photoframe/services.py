"""Database backed collaborators for :class:`slideshow.SlideshowService`."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from slideshow import (
    EpochRecord,
    MediaItem,
    MediaKind,
    OrderingMode,
    SlideshowConfig,
    SlideshowService,
)

from . import crud, models


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_naive_utc(value: datetime) -> datetime:
    return _to_utc(value).replace(tzinfo=None)


def media_item_from_model(item: models.MediaItem) -> MediaItem:
    kind = MediaKind.VIDEO if item.media_type == models.MediaType.VIDEO else MediaKind.PHOTO
    duration = None
    if kind is MediaKind.VIDEO and item.duration:
        duration = timedelta(seconds=float(item.duration))
    return MediaItem(
        id=str(item.id),
        kind=kind,
        ordinal=item.id,
        duration=duration,
        url=item.url,
        date_taken=item.date_taken,
        location=item.location,
        width=item.width or 0,
        height=item.height or 0,
    )


def config_from_settings(settings: models.DisplaySettings) -> SlideshowConfig:
    """Translate stored settings without clamping invalid durations.

    A zero or negative ``slide_duration`` is passed through unchanged so the
    engine reports it as an invalid configuration instead of hiding it.
    """

    max_video = settings.max_video_duration
    return SlideshowConfig(
        ordering=OrderingMode.SHUFFLE if settings.shuffle else OrderingMode.SEQUENTIAL,
        photo_duration=timedelta(seconds=settings.slide_duration if settings.slide_duration is not None else 0),
        max_video_duration=timedelta(seconds=max_video) if max_video is not None else None,
        transition=settings.transition or "fade",
        transition_duration_ms=settings.transition_duration or 0,
        image_fit=settings.image_fit or "contain",
    )


class DatabaseCatalogProvider:
    def __init__(self, db: Session) -> None:
        self._db = db

    def load_eligible_media(self, device_id: str) -> List[MediaItem]:
        settings = crud.get_settings_for_device(self._db, device_id)
        return [media_item_from_model(item) for item in crud.get_eligible_media(self._db, settings)]


class DatabaseConfigProvider:
    def __init__(self, db: Session) -> None:
        self._db = db

    def load_config(self, device_id: str) -> SlideshowConfig:
        return config_from_settings(crud.get_settings_for_device(self._db, device_id))


class DatabaseEpochStore:
    """Epoch store on the ``slideshow_epochs`` table.

    SQLite keeps naive timestamps, so epochs are stored as naive UTC and
    handed back to the engine as aware UTC datetimes.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def get_epoch(self, device_id: str) -> Optional[EpochRecord]:
        row = crud.get_epoch(self._db, device_id)
        if row is None:
            return None
        return EpochRecord(epoch=_to_utc(row.epoch), fingerprint=row.fingerprint)

    def set_epoch(
        self,
        device_id: str,
        record: EpochRecord,
        *,
        expected: Optional[EpochRecord] = None,
    ) -> EpochRecord:
        row = crud.compare_and_set_epoch(
            self._db,
            device_id,
            _to_naive_utc(record.epoch),
            record.fingerprint,
            expected_epoch=_to_naive_utc(expected.epoch) if expected else None,
            expected_fingerprint=expected.fingerprint if expected else None,
        )
        return EpochRecord(epoch=_to_utc(row.epoch), fingerprint=row.fingerprint)


def build_slideshow_service(db: Session) -> SlideshowService:
    return SlideshowService(
        DatabaseCatalogProvider(db),
        DatabaseConfigProvider(db),
        DatabaseEpochStore(db),
    )
