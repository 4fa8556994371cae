"""Display duration of a single media item."""

from __future__ import annotations

from datetime import timedelta

from .media import InvalidConfigurationError, MediaItem, MediaKind, SlideshowConfig

__all__ = ["has_known_duration", "resolve_duration", "validate_config"]

_ZERO = timedelta(0)


def validate_config(config: SlideshowConfig) -> None:
    """Reject configurations that would produce non-positive windows."""

    if config.photo_duration is None or config.photo_duration <= _ZERO:
        raise InvalidConfigurationError(
            f"photo duration must be positive, got {config.photo_duration!r}"
        )
    if config.max_video_duration is not None and config.max_video_duration <= _ZERO:
        raise InvalidConfigurationError(
            f"maximum video duration must be positive, got {config.max_video_duration!r}"
        )


def has_known_duration(item: MediaItem) -> bool:
    """Return ``False`` for videos whose length is missing or zero."""

    if item.kind is not MediaKind.VIDEO:
        return True
    return item.duration is not None and item.duration > _ZERO


def resolve_duration(item: MediaItem, config: SlideshowConfig) -> timedelta:
    """Return how long ``item`` stays on screen.

    Photos use the configured photo duration.  Videos use their intrinsic
    length, capped by ``max_video_duration`` when one is configured.  A
    video without a usable length falls back to the photo duration; the
    caller can detect that case with :func:`has_known_duration`.
    """

    validate_config(config)
    if item.kind is MediaKind.PHOTO or not has_known_duration(item):
        return config.photo_duration
    duration = item.duration
    if config.max_video_duration is not None and duration > config.max_video_duration:
        return config.max_video_duration
    return duration
