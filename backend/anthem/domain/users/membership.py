"""Batch "add to set" statements for set-valued user attributes."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from anthem.domain.users import codec
from anthem.infra.store import BatchStatement
from anthem.settings import settings

ATTRIBUTE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
TABLE_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,255}$")


def _guard_name(pattern: re.Pattern[str], name: str, what: str) -> None:
	if not pattern.match(name or ""):
		raise ValueError(f"invalid {what}: {name!r}")


def compile_batch_add_to_set(
	keys: Sequence[str],
	attribute_name: str,
	value: str,
	*,
	table: Optional[str] = None,
) -> list[BatchStatement]:
	"""Build one ``ADD`` statement per key, in key order.

	Each statement touches a single item, so keys succeed or fail
	independently. ``ADD`` creates the set when the item does not have it
	yet.
	"""
	table = table or settings.users_table
	if not keys:
		raise ValueError("keys must not be empty")
	_guard_name(ATTRIBUTE_NAME_RE, attribute_name, "attribute name")
	_guard_name(TABLE_NAME_RE, table, "table name")
	template = f'UPDATE "{table}" ADD {attribute_name} ? WHERE {codec.ID} = ?'
	element = codec.encode_string_set([value])
	statements: list[BatchStatement] = []
	for key in keys:
		if not key:
			raise ValueError("keys must be non-empty strings")
		statements.append(BatchStatement(template, (element, codec.encode_string(key))))
	return statements


__all__ = ["ATTRIBUTE_NAME_RE", "TABLE_NAME_RE", "compile_batch_add_to_set"]
