from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from .database import Base


album_media = Table(
    "album_media",
    Base.metadata,
    Column("album_id", Integer, ForeignKey("albums.id", ondelete="CASCADE"), primary_key=True),
    Column("media_id", Integer, ForeignKey("media_items.id", ondelete="CASCADE"), primary_key=True),
)

media_tags = Table(
    "media_tags",
    Base.metadata,
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Column("media_id", Integer, ForeignKey("media_items.id", ondelete="CASCADE"), primary_key=True),
)


class MediaType:
    PHOTO = "photo"
    VIDEO = "video"


class SourceType:
    ALL = "all"
    ALBUM = "album"
    TAG = "tag"
    FAVORITES = "favorites"


class MediaItem(Base):
    __tablename__ = "media_items"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), nullable=False)
    file_path = Column(String(1024), nullable=False, default="")
    media_type = Column(String, nullable=False, default=MediaType.PHOTO)
    duration = Column(Float, nullable=True)
    width = Column(Integer, default=0)
    height = Column(Integer, default=0)
    date_taken = Column(DateTime, nullable=True)
    date_added = Column(DateTime, default=datetime.utcnow)
    location = Column(String(512), nullable=True)
    is_favorite = Column(Boolean, default=False)

    albums = relationship("Album", secondary=album_media, back_populates="media")
    tags = relationship("Tag", secondary=media_tags, back_populates="media")

    @property
    def url(self) -> str:
        return f"/api/media/{self.id}/file"


class Album(Base):
    __tablename__ = "albums"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, default="")

    media = relationship("MediaItem", secondary=album_media, back_populates="albums")


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)

    media = relationship("MediaItem", secondary=media_tags, back_populates="tags")


class DisplaySettings(Base):
    __tablename__ = "display_settings"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, default="Default")
    slide_duration = Column(Integer, default=10)
    transition = Column(String, default="fade")
    transition_duration = Column(Integer, default=1000)
    source_type = Column(String, default=SourceType.ALL)
    source_id = Column(Integer, nullable=True)
    shuffle = Column(Boolean, default=True)
    image_fit = Column(String, default="contain")
    max_video_duration = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True)

    devices = relationship("Device", back_populates="settings")


class Device(Base):
    __tablename__ = "devices"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, default="")
    settings_id = Column(Integer, ForeignKey("display_settings.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    settings = relationship("DisplaySettings", back_populates="devices")


class SlideshowEpoch(Base):
    __tablename__ = "slideshow_epochs"

    device_id = Column(String, primary_key=True)
    epoch = Column(DateTime, nullable=False)
    fingerprint = Column(String(64), nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
