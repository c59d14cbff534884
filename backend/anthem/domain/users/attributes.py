"""Generic attribute values understood by the key-value store.

Every stored attribute is one of five shapes. They mirror the DynamoDB
attribute value tags (``S``, ``N``, ``SS``, ``L``, ``M``), and
:func:`to_wire` / :func:`from_wire` convert to and from that JSON form so a
real client can be plugged in behind :mod:`anthem.infra.store`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Mapping, Union

from anthem.domain.users.errors import MalformedAttributeError


@dataclass(frozen=True, slots=True)
class StringAttr:
	value: str

	tag: ClassVar[str] = "S"


@dataclass(frozen=True, slots=True)
class NumberAttr:
	"""Number carried as its decimal string, as the store does."""

	value: str

	tag: ClassVar[str] = "N"


@dataclass(frozen=True, slots=True)
class StringSetAttr:
	values: frozenset[str] = frozenset()

	tag: ClassVar[str] = "SS"

	@classmethod
	def of(cls, values: Iterable[str]) -> "StringSetAttr":
		return cls(frozenset(values))


@dataclass(frozen=True, slots=True)
class ListAttr:
	items: tuple["AttributeValue", ...] = ()

	tag: ClassVar[str] = "L"


@dataclass(frozen=True, slots=True)
class MapAttr:
	fields: Mapping[str, "AttributeValue"] = field(default_factory=dict)

	tag: ClassVar[str] = "M"


AttributeValue = Union[StringAttr, NumberAttr, StringSetAttr, ListAttr, MapAttr]
GenericRecord = dict[str, AttributeValue]

ATTRIBUTE_TYPES: tuple[type, ...] = (StringAttr, NumberAttr, StringSetAttr, ListAttr, MapAttr)


def tag_of(value: Any) -> str:
	"""Return the store tag for ``value`` or its Python type name for foreign objects."""
	if isinstance(value, ATTRIBUTE_TYPES):
		return value.tag
	return type(value).__name__


def to_wire(value: AttributeValue) -> dict[str, Any]:
	if isinstance(value, StringAttr):
		return {"S": value.value}
	if isinstance(value, NumberAttr):
		return {"N": value.value}
	if isinstance(value, StringSetAttr):
		return {"SS": sorted(value.values)}
	if isinstance(value, ListAttr):
		return {"L": [to_wire(item) for item in value.items]}
	if isinstance(value, MapAttr):
		return {"M": {name: to_wire(nested) for name, nested in value.fields.items()}}
	raise TypeError(f"not an attribute value: {type(value).__name__}")


def from_wire(payload: Any, *, path: str = "<value>") -> AttributeValue:
	"""Parse one DynamoDB-JSON attribute; ``path`` names it in error messages."""
	if not isinstance(payload, Mapping) or len(payload) != 1:
		raise MalformedAttributeError(path, "expected a single-tag attribute object")
	tag, raw = next(iter(payload.items()))
	if tag == "S":
		if not isinstance(raw, str):
			raise MalformedAttributeError(path, "S payload must be a string")
		return StringAttr(raw)
	if tag == "N":
		if not isinstance(raw, str):
			raise MalformedAttributeError(path, "N payload must be a decimal string")
		return NumberAttr(raw)
	if tag == "SS":
		if not isinstance(raw, (list, tuple)) or not all(isinstance(item, str) for item in raw):
			raise MalformedAttributeError(path, "SS payload must be a list of strings")
		return StringSetAttr.of(raw)
	if tag == "L":
		if not isinstance(raw, (list, tuple)):
			raise MalformedAttributeError(path, "L payload must be a list")
		return ListAttr(tuple(from_wire(item, path=f"{path}[{idx}]") for idx, item in enumerate(raw)))
	if tag == "M":
		if not isinstance(raw, Mapping):
			raise MalformedAttributeError(path, "M payload must be an object")
		return MapAttr({str(name): from_wire(nested, path=f"{path}.{name}") for name, nested in raw.items()})
	raise MalformedAttributeError(path, f"unsupported attribute tag {tag!r}")


def record_to_wire(record: Mapping[str, AttributeValue]) -> dict[str, dict[str, Any]]:
	return {name: to_wire(value) for name, value in record.items()}


def record_from_wire(payload: Mapping[str, Any]) -> GenericRecord:
	return {str(name): from_wire(value, path=str(name)) for name, value in payload.items()}


__all__ = [
	"AttributeValue",
	"GenericRecord",
	"ListAttr",
	"MapAttr",
	"NumberAttr",
	"StringAttr",
	"StringSetAttr",
	"from_wire",
	"record_from_wire",
	"record_to_wire",
	"tag_of",
	"to_wire",
]
