from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from photoframe import crud, models, schemas, services
from slideshow import EpochRecord, MediaKind, OrderingMode

SECOND = timedelta(seconds=1)


@pytest.fixture()
def db(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'store.db'}")
    models.Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    engine.dispose()


def test_media_rows_become_engine_items(db):
    video = crud.create_media_item(
        db, schemas.MediaItemCreate(filename="clip.mp4", media_type="video", duration=12.5)
    )
    unknown = crud.create_media_item(db, schemas.MediaItemCreate(filename="raw.mov", media_type="video"))

    item = services.media_item_from_model(video)
    assert item.id == str(video.id)
    assert item.kind is MediaKind.VIDEO
    assert item.ordinal == video.id
    assert item.duration == timedelta(seconds=12.5)
    assert services.media_item_from_model(unknown).duration is None


def test_settings_become_engine_config(db):
    settings = crud.create_settings(
        db,
        schemas.DisplaySettingsCreate(slide_duration=15, shuffle=False, max_video_duration=60),
    )

    config = services.config_from_settings(settings)

    assert config.ordering is OrderingMode.SEQUENTIAL
    assert config.photo_duration == 15 * SECOND
    assert config.max_video_duration == 60 * SECOND


def test_epoch_store_round_trips_aware_instants(db, t0):
    store = services.DatabaseEpochStore(db)
    record = EpochRecord(epoch=t0, fingerprint="abc")

    assert store.get_epoch("frame-1") is None
    assert store.set_epoch("frame-1", record) == record
    assert store.get_epoch("frame-1") == record


def test_epoch_store_compare_and_set(db, t0):
    store = services.DatabaseEpochStore(db)
    first = EpochRecord(epoch=t0, fingerprint="abc")
    stale = EpochRecord(epoch=t0 - SECOND, fingerprint="old")
    newer = EpochRecord(epoch=t0 + 30 * SECOND, fingerprint="def")
    store.set_epoch("frame-1", first)

    assert store.set_epoch("frame-1", newer, expected=None) == first
    assert store.set_epoch("frame-1", newer, expected=stale) == first
    assert store.set_epoch("frame-1", newer, expected=first) == newer
    assert store.get_epoch("frame-1") == newer


def test_service_over_database(db, t0):
    for index in range(3):
        crud.create_media_item(db, schemas.MediaItemCreate(filename=f"p{index}.jpg"))
    settings = crud.get_active_settings(db)
    crud.update_settings(db, settings.id, schemas.DisplaySettingsUpdate(shuffle=False, slide_duration=10))
    service = services.build_slideshow_service(db)

    service.get_current("frame-1", t0)
    window = service.get_current("frame-1", t0 + 25 * SECOND)

    assert window.position == 2
    assert window.start == t0 + 20 * SECOND


def test_unbound_device_uses_active_settings(db):
    active = crud.get_active_settings(db)
    other = crud.create_settings(db, schemas.DisplaySettingsCreate(name="Other"))
    crud.assign_device(db, "hall", schemas.DeviceAssignment(settings_id=other.id))

    assert crud.get_settings_for_device(db, "lobby").id == active.id
    assert crud.get_settings_for_device(db, "hall").id == other.id
