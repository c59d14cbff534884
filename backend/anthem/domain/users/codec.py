"""Conversion between typed user records and generic store attributes."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar

from anthem.domain.users.attributes import (
	AttributeValue,
	GenericRecord,
	ListAttr,
	MapAttr,
	NumberAttr,
	StringAttr,
	StringSetAttr,
	tag_of,
)
from anthem.domain.users.errors import MalformedAttributeError
from anthem.domain.users.models import Album, Artist, MusicProvider, Track, User

ID = "Id"
MUSIC_PROVIDER = "MusicProvider"
NICKNAME = "Nickname"
PICTURE_URL = "PictureUrl"
BIO = "Bio"
ANTHEM = "Anthem"
CHAT_IDS = "ChatIds"

_URI = "Uri"
_NAME = "Name"
_ARTISTS = "Artists"
_ALBUM = "Album"
_COVER_URL = "CoverUrl"

A = TypeVar("A", StringAttr, NumberAttr, StringSetAttr, ListAttr, MapAttr)
T = TypeVar("T")


def encode_string(value: str) -> StringAttr:
	return StringAttr(value)


def encode_number(value: int) -> NumberAttr:
	return NumberAttr(str(int(value)))


def encode_string_set(values: Iterable[str]) -> StringSetAttr:
	return StringSetAttr.of(values)


def encode_artist(artist: Artist) -> MapAttr:
	return MapAttr({_URI: encode_string(artist.uri), _NAME: encode_string(artist.name)})


def encode_album(album: Album) -> MapAttr:
	return MapAttr({_URI: encode_string(album.uri), _COVER_URL: encode_string(album.cover_url)})


def encode_track(track: Track) -> MapAttr:
	return MapAttr(
		{
			_URI: encode_string(track.uri),
			_NAME: encode_string(track.name),
			_ARTISTS: ListAttr(tuple(encode_artist(artist) for artist in track.artists)),
			_ALBUM: encode_album(track.album),
		}
	)


def encode_record(user: User) -> GenericRecord:
	"""Encode a full user record; unset optional fields are left out."""
	record: GenericRecord = {
		ID: encode_string(user.id),
		MUSIC_PROVIDER: encode_number(user.music_provider),
		CHAT_IDS: encode_string_set(user.chat_ids),
	}
	if user.nickname is not None:
		record[NICKNAME] = encode_string(user.nickname)
	if user.picture_url is not None:
		record[PICTURE_URL] = encode_string(user.picture_url)
	if user.bio is not None:
		record[BIO] = encode_string(user.bio)
	if user.anthem is not None:
		record[ANTHEM] = encode_track(user.anthem)
	return record


def _expect(value: Any, kind: type[A], path: str) -> A:
	if not isinstance(value, kind):
		raise MalformedAttributeError(path, f"expected {kind.tag} attribute, found {tag_of(value)}")
	return value


def _require(fields: Mapping[str, AttributeValue], name: str, path: str) -> AttributeValue:
	try:
		return fields[name]
	except KeyError:
		raise MalformedAttributeError(path, "required attribute is missing") from None


def _optional(
	fields: Mapping[str, AttributeValue],
	name: str,
	decoder: Callable[[AttributeValue, str], T],
) -> Optional[T]:
	if name not in fields:
		return None
	return decoder(fields[name], name)


def decode_string(value: AttributeValue, path: str) -> str:
	return _expect(value, StringAttr, path).value


def decode_number(value: AttributeValue, path: str) -> int:
	raw = _expect(value, NumberAttr, path).value
	try:
		return int(raw)
	except ValueError:
		raise MalformedAttributeError(path, f"{raw!r} is not an integer") from None


def decode_music_provider(value: AttributeValue, path: str) -> MusicProvider:
	code = decode_number(value, path)
	try:
		return MusicProvider(code)
	except ValueError:
		raise MalformedAttributeError(path, f"unknown music provider code {code}") from None


def decode_string_set(value: AttributeValue, path: str) -> set[str]:
	return set(_expect(value, StringSetAttr, path).values)


def decode_artist(value: AttributeValue, path: str) -> Artist:
	fields = _expect(value, MapAttr, path).fields
	return Artist(
		uri=decode_string(_require(fields, _URI, f"{path}.{_URI}"), f"{path}.{_URI}"),
		name=decode_string(_require(fields, _NAME, f"{path}.{_NAME}"), f"{path}.{_NAME}"),
	)


def decode_album(value: AttributeValue, path: str) -> Album:
	fields = _expect(value, MapAttr, path).fields
	return Album(
		uri=decode_string(_require(fields, _URI, f"{path}.{_URI}"), f"{path}.{_URI}"),
		cover_url=decode_string(_require(fields, _COVER_URL, f"{path}.{_COVER_URL}"), f"{path}.{_COVER_URL}"),
	)


def decode_track(value: AttributeValue, path: str) -> Track:
	fields = _expect(value, MapAttr, path).fields
	artists_path = f"{path}.{_ARTISTS}"
	artists = _expect(_require(fields, _ARTISTS, artists_path), ListAttr, artists_path).items
	return Track(
		uri=decode_string(_require(fields, _URI, f"{path}.{_URI}"), f"{path}.{_URI}"),
		name=decode_string(_require(fields, _NAME, f"{path}.{_NAME}"), f"{path}.{_NAME}"),
		artists=[decode_artist(item, f"{artists_path}[{idx}]") for idx, item in enumerate(artists)],
		album=decode_album(_require(fields, _ALBUM, f"{path}.{_ALBUM}"), f"{path}.{_ALBUM}"),
	)


def decode_record(record: Mapping[str, AttributeValue]) -> User:
	"""Decode a stored user.

	``Id``, ``MusicProvider`` and ``ChatIds`` must be present. A record
	without ``ChatIds`` was not written by :func:`encode_record` and is
	reported rather than read as an empty set.
	"""
	user_id = decode_string(_require(record, ID, ID), ID)
	if not user_id:
		raise MalformedAttributeError(ID, "must not be empty")
	return User(
		id=user_id,
		music_provider=decode_music_provider(_require(record, MUSIC_PROVIDER, MUSIC_PROVIDER), MUSIC_PROVIDER),
		nickname=_optional(record, NICKNAME, decode_string),
		picture_url=_optional(record, PICTURE_URL, decode_string),
		bio=_optional(record, BIO, decode_string),
		anthem=_optional(record, ANTHEM, decode_track),
		chat_ids=decode_string_set(_require(record, CHAT_IDS, CHAT_IDS), CHAT_IDS),
	)


def encode_key(user_id: str) -> GenericRecord:
	return {ID: encode_string(user_id)}


__all__ = [
	"ID",
	"MUSIC_PROVIDER",
	"NICKNAME",
	"PICTURE_URL",
	"BIO",
	"ANTHEM",
	"CHAT_IDS",
	"encode_string",
	"encode_number",
	"encode_string_set",
	"encode_artist",
	"encode_album",
	"encode_track",
	"encode_record",
	"encode_key",
	"decode_string",
	"decode_number",
	"decode_music_provider",
	"decode_string_set",
	"decode_artist",
	"decode_album",
	"decode_track",
	"decode_record",
]
