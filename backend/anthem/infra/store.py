"""Attribute store port.

The users service talks to the key-value store only through
:class:`AttributeStore`. The concrete client is registered once at startup
with :func:`set_store` and can be swapped (e.g. for an in-memory fake in
tests) without touching callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Sequence

from anthem.domain.users.attributes import AttributeValue, GenericRecord


class StoreError(Exception):
	"""Transport or store-side failure reported by an :class:`AttributeStore`."""

	def __init__(self, message: str, *, code: Optional[str] = None) -> None:
		super().__init__(message)
		self.code = code


@dataclass(frozen=True, slots=True)
class BatchStatement:
	"""One PartiQL statement with its positional parameters."""

	statement: str
	parameters: tuple[AttributeValue, ...]


@dataclass(frozen=True, slots=True)
class BatchStatementResult:
	"""Outcome of one statement of a batch, aligned with the request order."""

	error_code: Optional[str] = None
	error_message: Optional[str] = None

	@property
	def ok(self) -> bool:
		return self.error_code is None


class AttributeStore(Protocol):
	async def get_item(self, table: str, key: Mapping[str, AttributeValue]) -> Optional[GenericRecord]:
		...

	async def put_item(self, table: str, item: Mapping[str, AttributeValue]) -> None:
		...

	async def update_item(
		self,
		table: str,
		key: Mapping[str, AttributeValue],
		update_expression: str,
		values: Mapping[str, AttributeValue],
		*,
		return_new: bool = True,
	) -> GenericRecord:
		...

	async def batch_execute(self, statements: Sequence[BatchStatement]) -> list[BatchStatementResult]:
		...


_store: Optional[AttributeStore] = None


def set_store(store: Optional[AttributeStore]) -> None:
	global _store
	_store = store


def get_store() -> AttributeStore:
	if _store is None:
		raise RuntimeError("attribute store is not configured; call set_store() at startup")
	return _store


__all__ = [
	"AttributeStore",
	"BatchStatement",
	"BatchStatementResult",
	"StoreError",
	"get_store",
	"set_store",
]
