from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

MediaTypeName = Literal["photo", "video"]
SourceTypeName = Literal["all", "album", "tag", "favorites"]
TransitionName = Literal["fade", "slide", "kenburns"]
ImageFitName = Literal["contain", "cover"]


class MediaItemBase(BaseModel):
    filename: str
    file_path: str = ""
    media_type: MediaTypeName = "photo"
    duration: Optional[float] = None
    width: int = 0
    height: int = 0
    date_taken: Optional[datetime] = None
    location: Optional[str] = None
    is_favorite: bool = False

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        if value < 0:
            raise ValueError("Duration must not be negative")
        return value


class MediaItemCreate(MediaItemBase):
    pass


class MediaItem(MediaItemBase):
    id: int
    date_added: datetime
    url: str
    model_config = ConfigDict(from_attributes=True)


class AlbumBase(BaseModel):
    name: str
    description: str = ""


class AlbumCreate(AlbumBase):
    pass


class Album(AlbumBase):
    id: int
    model_config = ConfigDict(from_attributes=True)


class TagCreate(BaseModel):
    name: str


class Tag(TagCreate):
    id: int
    model_config = ConfigDict(from_attributes=True)


class MediaIds(BaseModel):
    media_ids: List[int]


def _check_positive_seconds(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    if value <= 0:
        raise ValueError("Duration must be a positive number of seconds")
    return value


class DisplaySettingsBase(BaseModel):
    name: str = "Default"
    slide_duration: int = 10
    transition: TransitionName = "fade"
    transition_duration: int = 1000
    source_type: SourceTypeName = "all"
    source_id: Optional[int] = None
    shuffle: bool = True
    image_fit: ImageFitName = "contain"
    max_video_duration: Optional[int] = None


class DisplaySettingsCreate(DisplaySettingsBase):
    @field_validator("slide_duration", "max_video_duration")
    @classmethod
    def validate_durations(cls, value: Optional[int]) -> Optional[int]:
        return _check_positive_seconds(value)

    @field_validator("transition_duration")
    @classmethod
    def validate_transition_duration(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Transition duration must not be negative")
        return value


class DisplaySettingsUpdate(BaseModel):
    name: Optional[str] = None
    slide_duration: Optional[int] = None
    transition: Optional[TransitionName] = None
    transition_duration: Optional[int] = None
    source_type: Optional[SourceTypeName] = None
    source_id: Optional[int] = None
    shuffle: Optional[bool] = None
    image_fit: Optional[ImageFitName] = None
    max_video_duration: Optional[int] = None

    @field_validator("slide_duration", "max_video_duration")
    @classmethod
    def validate_durations(cls, value: Optional[int]) -> Optional[int]:
        return _check_positive_seconds(value)


class DisplaySettings(DisplaySettingsBase):
    id: int
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class DeviceAssignment(BaseModel):
    settings_id: Optional[int] = None
    name: str = ""


class Device(BaseModel):
    id: str
    name: str
    settings_id: Optional[int] = None
    model_config = ConfigDict(from_attributes=True)


class PlaybackWindowOut(BaseModel):
    media_id: str
    media_type: MediaTypeName
    url: Optional[str] = None
    date_taken: Optional[datetime] = None
    location: Optional[str] = None
    width: int = 0
    height: int = 0
    start: datetime
    end: datetime
    next_poll: datetime
    pass_index: int
    position: int
    pass_length_seconds: float


class PhotoCount(BaseModel):
    total_photos: int


class ResetResponse(BaseModel):
    success: bool
    message: str
    epoch: datetime


class ApiError(BaseModel):
    code: str
    message: str
