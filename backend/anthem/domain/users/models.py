"""Typed user profile records and the sparse update object."""

from __future__ import annotations

from enum import IntEnum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field


class MusicProvider(IntEnum):
	SPOTIFY = 0
	APPLE_MUSIC = 1


class Artist(BaseModel):
	uri: str
	name: str


class Album(BaseModel):
	uri: str
	cover_url: str


class Track(BaseModel):
	"""A user's anthem. Stored and replaced as a whole, never field by field."""

	uri: str
	name: str
	artists: list[Artist] = Field(default_factory=list)
	album: Album


class User(BaseModel):
	model_config = ConfigDict(validate_assignment=True)

	id: Annotated[str, Field(min_length=1)]
	music_provider: MusicProvider
	nickname: Optional[str] = None
	picture_url: Optional[str] = None
	bio: Optional[str] = None
	anthem: Optional[Track] = None
	chat_ids: set[str] = Field(default_factory=set)


class UserUpdate(BaseModel):
	"""Total patch over the editable profile fields.

	A field left as ``None`` removes the stored attribute; any other value
	replaces it. There is no "leave untouched" state.
	"""

	nickname: Optional[str] = None
	picture_url: Optional[str] = None
	bio: Optional[str] = None
	anthem: Optional[Track] = None


__all__ = ["Album", "Artist", "MusicProvider", "Track", "User", "UserUpdate"]
