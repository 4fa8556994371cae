from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Query
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from slideshow import EmptyCatalogError, InvalidConfigurationError, PlaybackWindow

from . import __version__ as APP_VERSION
from . import crud, database, models, schemas, services

models.Base.metadata.create_all(bind=database.engine)

DEFAULT_DEVICE_ID = os.environ.get("PHOTOFRAME_DEFAULT_DEVICE", "default")

app = FastAPI(
    title="Photoframe",
    description="Slideshow backend for networked picture frames",
    version=APP_VERSION,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _window_out(window: PlaybackWindow) -> schemas.PlaybackWindowOut:
    item = window.item
    return schemas.PlaybackWindowOut(
        media_id=item.id,
        media_type=item.kind.value,
        url=item.url,
        date_taken=item.date_taken,
        location=item.location,
        width=item.width,
        height=item.height,
        start=window.start,
        end=window.end,
        next_poll=window.next_poll,
        pass_index=window.pass_index,
        position=window.position,
        pass_length_seconds=window.pass_length.total_seconds(),
    )


def _slideshow_error(exc: Exception) -> HTTPException:
    if isinstance(exc, EmptyCatalogError):
        return HTTPException(
            status_code=404,
            detail=schemas.ApiError(
                code="NO_PHOTOS_AVAILABLE",
                message="No photos are available for the current slideshow settings.",
            ).model_dump(),
        )
    return HTTPException(
        status_code=422,
        detail=schemas.ApiError(code="INVALID_CONFIGURATION", message=str(exc)).model_dump(),
    )


@app.on_event("startup")
def ensure_default_settings():
    db = database.SessionLocal()
    try:
        crud.get_active_settings(db)
    except OperationalError:
        logger.error("Could not prepare default display settings", exc_info=True)
        raise
    finally:
        db.close()


@app.get("/api/display/photos/current", response_model=schemas.PlaybackWindowOut)
def get_current_photo(device_id: str = DEFAULT_DEVICE_ID, db: Session = Depends(database.get_db)):
    service = services.build_slideshow_service(db)
    try:
        window = service.get_current(device_id, _utcnow())
    except (EmptyCatalogError, InvalidConfigurationError) as exc:
        raise _slideshow_error(exc) from exc
    return _window_out(window)


@app.get("/api/display/photos/next", response_model=schemas.PlaybackWindowOut)
def get_next_photo(device_id: str = DEFAULT_DEVICE_ID, db: Session = Depends(database.get_db)):
    service = services.build_slideshow_service(db)
    try:
        window = service.get_next(device_id, _utcnow())
    except (EmptyCatalogError, InvalidConfigurationError) as exc:
        raise _slideshow_error(exc) from exc
    return _window_out(window)


@app.get("/api/display/photos/preload", response_model=List[schemas.PlaybackWindowOut])
def get_preload_photos(
    count: int = Query(10),
    device_id: str = DEFAULT_DEVICE_ID,
    db: Session = Depends(database.get_db),
):
    service = services.build_slideshow_service(db)
    try:
        windows = service.get_upcoming(device_id, _utcnow(), count)
    except EmptyCatalogError:
        return []
    except InvalidConfigurationError as exc:
        raise _slideshow_error(exc) from exc
    return [_window_out(window) for window in windows]


@app.get("/api/display/photos/count", response_model=schemas.PhotoCount)
def get_photo_count(device_id: str = DEFAULT_DEVICE_ID, db: Session = Depends(database.get_db)):
    service = services.build_slideshow_service(db)
    return schemas.PhotoCount(total_photos=service.get_count(device_id))


@app.post("/api/display/photos/reset", response_model=schemas.ResetResponse)
def reset_sequence(device_id: str = DEFAULT_DEVICE_ID, db: Session = Depends(database.get_db)):
    service = services.build_slideshow_service(db)
    record = service.reset(device_id, _utcnow())
    return schemas.ResetResponse(
        success=True,
        message="Slideshow sequence has been reset.",
        epoch=record.epoch,
    )


@app.get("/api/display/settings", response_model=List[schemas.DisplaySettings])
def list_display_settings(db: Session = Depends(database.get_db)):
    return crud.get_all_settings(db)


@app.get("/api/display/settings/active", response_model=schemas.DisplaySettings)
def get_active_display_settings(db: Session = Depends(database.get_db)):
    return crud.get_active_settings(db)


@app.post("/api/display/settings", response_model=schemas.DisplaySettings)
def create_display_settings(settings: schemas.DisplaySettingsCreate, db: Session = Depends(database.get_db)):
    return crud.create_settings(db, settings)


@app.get("/api/display/settings/{settings_id}", response_model=schemas.DisplaySettings)
def get_display_settings(settings_id: int, db: Session = Depends(database.get_db)):
    settings = crud.get_settings(db, settings_id)
    if not settings:
        raise HTTPException(status_code=404, detail="Display settings not found")
    return settings


@app.put("/api/display/settings/{settings_id}", response_model=schemas.DisplaySettings)
def update_display_settings(
    settings_id: int,
    settings: schemas.DisplaySettingsUpdate,
    db: Session = Depends(database.get_db),
):
    updated = crud.update_settings(db, settings_id, settings)
    if not updated:
        raise HTTPException(status_code=404, detail="Display settings not found")
    return updated


@app.delete("/api/display/settings/{settings_id}")
def delete_display_settings(settings_id: int, db: Session = Depends(database.get_db)):
    if not crud.get_settings(db, settings_id):
        raise HTTPException(status_code=404, detail="Display settings not found")
    if not crud.delete_settings(db, settings_id):
        raise HTTPException(status_code=400, detail="The last display settings cannot be deleted")
    return {"detail": "Display settings deleted"}


@app.post("/api/display/settings/{settings_id}/activate", response_model=schemas.DisplaySettings)
def activate_display_settings(settings_id: int, db: Session = Depends(database.get_db)):
    settings = crud.set_active_settings(db, settings_id)
    if not settings:
        raise HTTPException(status_code=404, detail="Display settings not found")
    return settings


@app.put("/api/display/devices/{device_id}", response_model=schemas.Device)
def assign_device(device_id: str, assignment: schemas.DeviceAssignment, db: Session = Depends(database.get_db)):
    if assignment.settings_id is not None and not crud.get_settings(db, assignment.settings_id):
        raise HTTPException(status_code=404, detail="Display settings not found")
    return crud.assign_device(db, device_id, assignment)


@app.get("/api/media", response_model=List[schemas.MediaItem])
def list_media(db: Session = Depends(database.get_db)):
    return crud.get_media_items(db)


@app.post("/api/media", response_model=schemas.MediaItem)
def create_media(item: schemas.MediaItemCreate, db: Session = Depends(database.get_db)):
    return crud.create_media_item(db, item)


@app.get("/api/albums", response_model=List[schemas.Album])
def list_albums(db: Session = Depends(database.get_db)):
    return crud.get_albums(db)


@app.post("/api/albums", response_model=schemas.Album)
def create_album(album: schemas.AlbumCreate, db: Session = Depends(database.get_db)):
    return crud.create_album(db, album)


@app.post("/api/albums/{album_id}/media", response_model=schemas.Album)
def add_album_media(album_id: int, payload: schemas.MediaIds, db: Session = Depends(database.get_db)):
    album = crud.get_album(db, album_id)
    if not album:
        raise HTTPException(status_code=404, detail="Album not found")
    return crud.add_media_to_album(db, album, payload.media_ids)


@app.get("/api/tags", response_model=List[schemas.Tag])
def list_tags(db: Session = Depends(database.get_db)):
    return crud.get_tags(db)


@app.post("/api/tags", response_model=schemas.Tag)
def create_tag(tag: schemas.TagCreate, db: Session = Depends(database.get_db)):
    return crud.create_tag(db, tag)


@app.post("/api/tags/{tag_id}/media", response_model=schemas.Tag)
def add_tag_media(tag_id: int, payload: schemas.MediaIds, db: Session = Depends(database.get_db)):
    tag = crud.get_tag(db, tag_id)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return crud.add_media_to_tag(db, tag, payload.media_ids)


@app.get("/health")
def health_check():
    return {"status": "ok", "version": APP_VERSION}
