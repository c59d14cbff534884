"""Compile user patches into store update expressions.

A :class:`~anthem.domain.users.models.UserUpdate` is total over the editable
fields: every field either replaces the stored attribute (``SET``) or removes
it (``REMOVE``). Fields are always visited in :data:`PATCH_FIELDS` order so
the generated expression is stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from anthem.domain.users import codec
from anthem.domain.users.attributes import AttributeValue
from anthem.domain.users.models import MusicProvider, UserUpdate


@dataclass(frozen=True, slots=True)
class PatchField:
	attribute: str
	placeholder: str
	model_field: str
	encode: Callable[[Any], AttributeValue]

	def read(self, update: UserUpdate) -> Any:
		return getattr(update, self.model_field)


PATCH_FIELDS: tuple[PatchField, ...] = (
	PatchField(codec.NICKNAME, ":nickname", "nickname", codec.encode_string),
	PatchField(codec.PICTURE_URL, ":pictureUrl", "picture_url", codec.encode_string),
	PatchField(codec.BIO, ":bio", "bio", codec.encode_string),
	PatchField(codec.ANTHEM, ":anthem", "anthem", codec.encode_track),
)


@dataclass(frozen=True, slots=True)
class CompiledPatch:
	set_clauses: tuple[str, ...] = ()
	remove_clauses: tuple[str, ...] = ()
	values: Mapping[str, AttributeValue] = field(default_factory=dict)

	@property
	def expression(self) -> str:
		parts: list[str] = []
		if self.set_clauses:
			parts.append("SET " + ", ".join(self.set_clauses))
		if self.remove_clauses:
			parts.append("REMOVE " + ", ".join(self.remove_clauses))
		return " ".join(parts)


def compile_fields(update: UserUpdate, fields: tuple[PatchField, ...] = PATCH_FIELDS) -> CompiledPatch:
	set_clauses: list[str] = []
	remove_clauses: list[str] = []
	values: dict[str, AttributeValue] = {}
	for patch_field in fields:
		value = patch_field.read(update)
		if value is None:
			remove_clauses.append(patch_field.attribute)
			continue
		set_clauses.append(f"{patch_field.attribute} = {patch_field.placeholder}")
		values[patch_field.placeholder] = patch_field.encode(value)
	return CompiledPatch(tuple(set_clauses), tuple(remove_clauses), values)


def compile_patch(update: UserUpdate) -> CompiledPatch:
	"""Compile ``update`` into SET/REMOVE clauses and bound values. Never fails."""
	return compile_fields(update, PATCH_FIELDS)


def compile_music_provider(provider: MusicProvider) -> CompiledPatch:
	placeholder = ":musicProvider"
	return CompiledPatch(
		set_clauses=(f"{codec.MUSIC_PROVIDER} = {placeholder}",),
		values={placeholder: codec.encode_number(provider)},
	)


__all__ = ["PATCH_FIELDS", "CompiledPatch", "PatchField", "compile_fields", "compile_patch", "compile_music_provider"]
