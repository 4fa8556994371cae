from __future__ import annotations

from datetime import timedelta

import pytest

from slideshow.durations import has_known_duration, resolve_duration, validate_config
from slideshow.media import InvalidConfigurationError, MediaItem, MediaKind, SlideshowConfig


def test_photo_uses_configured_duration():
    config = SlideshowConfig(photo_duration=timedelta(seconds=7))
    item = MediaItem(id="p1", kind=MediaKind.PHOTO)

    assert resolve_duration(item, config) == timedelta(seconds=7)


def test_video_uses_intrinsic_duration():
    config = SlideshowConfig(photo_duration=timedelta(seconds=10))
    item = MediaItem(id="v1", kind=MediaKind.VIDEO, duration=timedelta(seconds=42.5))

    assert resolve_duration(item, config) == timedelta(seconds=42.5)
    assert has_known_duration(item)


@pytest.mark.parametrize("duration", [None, timedelta(0)])
def test_video_without_length_falls_back_to_photo_duration(duration):
    config = SlideshowConfig(photo_duration=timedelta(seconds=10))
    item = MediaItem(id="v1", kind=MediaKind.VIDEO, duration=duration)

    assert resolve_duration(item, config) == timedelta(seconds=10)
    assert not has_known_duration(item)


def test_long_video_is_capped():
    config = SlideshowConfig(
        photo_duration=timedelta(seconds=10),
        max_video_duration=timedelta(seconds=30),
    )
    long_video = MediaItem(id="v1", kind=MediaKind.VIDEO, duration=timedelta(minutes=5))
    short_video = MediaItem(id="v2", kind=MediaKind.VIDEO, duration=timedelta(seconds=12))

    assert resolve_duration(long_video, config) == timedelta(seconds=30)
    assert resolve_duration(short_video, config) == timedelta(seconds=12)


@pytest.mark.parametrize("seconds", [0, -5])
def test_non_positive_photo_duration_is_rejected(seconds):
    config = SlideshowConfig(photo_duration=timedelta(seconds=seconds))
    item = MediaItem(id="p1", kind=MediaKind.PHOTO)

    with pytest.raises(InvalidConfigurationError):
        resolve_duration(item, config)


def test_invalid_video_cap_is_rejected():
    config = SlideshowConfig(max_video_duration=timedelta(0))

    with pytest.raises(InvalidConfigurationError):
        validate_config(config)


def test_invalid_configuration_is_a_value_error():
    with pytest.raises(ValueError):
        validate_config(SlideshowConfig(photo_duration=timedelta(seconds=-1)))
