from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas

logger = logging.getLogger(__name__)


def get_media_item(db: Session, media_id: int) -> Optional[models.MediaItem]:
    return db.query(models.MediaItem).filter(models.MediaItem.id == media_id).first()


def get_media_items(db: Session) -> List[models.MediaItem]:
    return db.query(models.MediaItem).order_by(models.MediaItem.id).all()


def create_media_item(db: Session, item: schemas.MediaItemCreate) -> models.MediaItem:
    db_item = models.MediaItem(**item.model_dump())
    db.add(db_item)
    db.commit()
    db.refresh(db_item)
    return db_item


def get_album(db: Session, album_id: int) -> Optional[models.Album]:
    return db.query(models.Album).filter(models.Album.id == album_id).first()


def get_albums(db: Session) -> List[models.Album]:
    return db.query(models.Album).order_by(models.Album.name).all()


def create_album(db: Session, album: schemas.AlbumCreate) -> models.Album:
    db_album = models.Album(**album.model_dump())
    db.add(db_album)
    db.commit()
    db.refresh(db_album)
    return db_album


def get_tag(db: Session, tag_id: int) -> Optional[models.Tag]:
    return db.query(models.Tag).filter(models.Tag.id == tag_id).first()


def get_tags(db: Session) -> List[models.Tag]:
    return db.query(models.Tag).order_by(models.Tag.name).all()


def create_tag(db: Session, tag: schemas.TagCreate) -> models.Tag:
    db_tag = models.Tag(**tag.model_dump())
    db.add(db_tag)
    db.commit()
    db.refresh(db_tag)
    return db_tag


def _media_by_ids(db: Session, media_ids: Iterable[int]) -> List[models.MediaItem]:
    ids = set(media_ids)
    if not ids:
        return []
    return db.query(models.MediaItem).filter(models.MediaItem.id.in_(ids)).all()


def add_media_to_album(db: Session, album: models.Album, media_ids: Iterable[int]) -> models.Album:
    for item in _media_by_ids(db, media_ids):
        if item not in album.media:
            album.media.append(item)
    db.commit()
    db.refresh(album)
    return album


def add_media_to_tag(db: Session, tag: models.Tag, media_ids: Iterable[int]) -> models.Tag:
    for item in _media_by_ids(db, media_ids):
        if item not in tag.media:
            tag.media.append(item)
    db.commit()
    db.refresh(tag)
    return tag


def get_eligible_media(db: Session, settings: models.DisplaySettings) -> List[models.MediaItem]:
    """Return the media selected by ``settings`` ordered by insertion."""

    query = db.query(models.MediaItem)
    source_type = settings.source_type or models.SourceType.ALL
    if source_type == models.SourceType.ALBUM and settings.source_id is not None:
        query = query.filter(models.MediaItem.albums.any(models.Album.id == settings.source_id))
    elif source_type == models.SourceType.TAG and settings.source_id is not None:
        query = query.filter(models.MediaItem.tags.any(models.Tag.id == settings.source_id))
    elif source_type == models.SourceType.FAVORITES:
        query = query.filter(models.MediaItem.is_favorite == True)  # noqa: E712
    return query.order_by(models.MediaItem.id).all()


def get_settings(db: Session, settings_id: int) -> Optional[models.DisplaySettings]:
    return db.query(models.DisplaySettings).filter(models.DisplaySettings.id == settings_id).first()


def get_all_settings(db: Session) -> List[models.DisplaySettings]:
    return db.query(models.DisplaySettings).order_by(models.DisplaySettings.name).all()


def get_active_settings(db: Session) -> models.DisplaySettings:
    """Return the active settings, creating defaults on an empty database."""

    settings = (
        db.query(models.DisplaySettings)
        .filter(models.DisplaySettings.is_active == True)  # noqa: E712
        .first()
    )
    if settings:
        return settings
    settings = db.query(models.DisplaySettings).order_by(models.DisplaySettings.id).first()
    if settings:
        logger.info("No active display settings, activating settings %s", settings.id)
        settings.is_active = True
        db.commit()
        db.refresh(settings)
        return settings
    logger.info("No display settings found, creating default settings")
    settings = models.DisplaySettings(name="Default", is_active=True)
    db.add(settings)
    db.commit()
    db.refresh(settings)
    return settings


def create_settings(db: Session, settings: schemas.DisplaySettingsCreate) -> models.DisplaySettings:
    has_active = (
        db.query(models.DisplaySettings)
        .filter(models.DisplaySettings.is_active == True)  # noqa: E712
        .first()
        is not None
    )
    db_settings = models.DisplaySettings(**settings.model_dump(), is_active=not has_active)
    db.add(db_settings)
    db.commit()
    db.refresh(db_settings)
    logger.info("Created display settings %s with name %r", db_settings.id, db_settings.name)
    return db_settings


def update_settings(
    db: Session, settings_id: int, settings: schemas.DisplaySettingsUpdate
) -> Optional[models.DisplaySettings]:
    db_settings = get_settings(db, settings_id)
    if not db_settings:
        return None
    for key, value in settings.model_dump(exclude_unset=True).items():
        if value is None and key not in {"source_id", "max_video_duration"}:
            continue
        setattr(db_settings, key, value)
    db.commit()
    db.refresh(db_settings)
    logger.info("Updated display settings %s", settings_id)
    return db_settings


def delete_settings(db: Session, settings_id: int) -> bool:
    db_settings = get_settings(db, settings_id)
    if not db_settings:
        return False
    if db.query(models.DisplaySettings).count() <= 1:
        logger.warning("Cannot delete the last display settings configuration")
        return False
    was_active = bool(db_settings.is_active)
    for device in list(db_settings.devices):
        device.settings_id = None
    db.delete(db_settings)
    db.commit()
    logger.info("Deleted display settings %s", settings_id)
    if was_active:
        replacement = db.query(models.DisplaySettings).order_by(models.DisplaySettings.id).first()
        if replacement:
            replacement.is_active = True
            db.commit()
    return True


def set_active_settings(db: Session, settings_id: int) -> Optional[models.DisplaySettings]:
    db_settings = get_settings(db, settings_id)
    if not db_settings:
        return None
    for candidate in db.query(models.DisplaySettings).all():
        candidate.is_active = candidate.id == settings_id
    db.commit()
    db.refresh(db_settings)
    logger.info("Set display settings %s as active", settings_id)
    return db_settings


def get_device(db: Session, device_id: str) -> Optional[models.Device]:
    return db.query(models.Device).filter(models.Device.id == device_id).first()


def assign_device(db: Session, device_id: str, assignment: schemas.DeviceAssignment) -> models.Device:
    db_device = get_device(db, device_id)
    if db_device is None:
        db_device = models.Device(id=device_id)
        db.add(db_device)
    db_device.name = assignment.name
    db_device.settings_id = assignment.settings_id
    db.commit()
    db.refresh(db_device)
    return db_device


def get_settings_for_device(db: Session, device_id: str) -> models.DisplaySettings:
    """Return the settings bound to ``device_id`` or the active settings."""

    device = get_device(db, device_id)
    if device is not None and device.settings is not None:
        return device.settings
    return get_active_settings(db)


def get_epoch(db: Session, device_id: str) -> Optional[models.SlideshowEpoch]:
    return db.query(models.SlideshowEpoch).filter(models.SlideshowEpoch.device_id == device_id).first()


def compare_and_set_epoch(
    db: Session,
    device_id: str,
    epoch: datetime,
    fingerprint: str,
    *,
    expected_epoch: Optional[datetime],
    expected_fingerprint: Optional[str],
) -> models.SlideshowEpoch:
    """Write the epoch of ``device_id`` unless another writer changed it.

    The update is a single conditional ``UPDATE`` (or ``INSERT`` for new
    devices), so two requests racing on the same device end up with one
    stored value.  The row that is stored after the call is returned.
    """

    if expected_epoch is None or get_epoch(db, device_id) is None:
        db.add(models.SlideshowEpoch(device_id=device_id, epoch=epoch, fingerprint=fingerprint))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.debug("Epoch for device %s was created concurrently", device_id)
    else:
        db.execute(
            update(models.SlideshowEpoch)
            .where(models.SlideshowEpoch.device_id == device_id)
            .where(models.SlideshowEpoch.epoch == expected_epoch)
            .where(models.SlideshowEpoch.fingerprint == expected_fingerprint)
            .values(epoch=epoch, fingerprint=fingerprint, updated_at=datetime.utcnow())
        )
        db.commit()
    db.expire_all()
    return get_epoch(db, device_id)
