import asyncio
import re
import sys
from pathlib import Path
from typing import Mapping, Optional, Sequence

import pytest

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from anthem.domain.users.attributes import AttributeValue, StringAttr, StringSetAttr
from anthem.infra import store as store_module
from anthem.infra.store import BatchStatement, BatchStatementResult, StoreError
from anthem.obs import logging as obs_logging
from anthem.settings import settings


_SECTION_RE = re.compile(r"\b(SET|REMOVE)\b")
_ADD_RE = re.compile(r'^UPDATE "([A-Za-z0-9_.-]+)" ADD (\w+) \? WHERE (\w+) = \?$')


class FakeAttributeStore:
	"""In-memory stand-in for the key-value store.

	Understands the ``SET a = :a, ... REMOVE b, ...`` update expressions and
	the ``UPDATE "<table>" ADD <attr> ? WHERE Id = ?`` batch statements the users
	service emits. ``fail_with`` makes every call raise, ``failing_keys`` makes
	batch statements for those keys report an error, ``delay`` slows calls down.
	"""

	def __init__(self) -> None:
		self.tables: dict[str, dict[str, dict[str, AttributeValue]]] = {}
		self.calls: list[tuple] = []
		self.fail_with: Optional[Exception] = None
		self.failing_keys: dict[str, str] = {}
		self.delay: float = 0.0
		self.truncate_batch_results = False

	def table(self, name: str) -> dict[str, dict[str, AttributeValue]]:
		return self.tables.setdefault(name, {})

	async def _enter(self, *call) -> None:
		self.calls.append(call)
		if self.delay:
			await asyncio.sleep(self.delay)
		if self.fail_with is not None:
			raise self.fail_with

	@staticmethod
	def _key(key: Mapping[str, AttributeValue]) -> str:
		value = key["Id"]
		assert isinstance(value, StringAttr)
		return value.value

	async def get_item(self, table, key):
		await self._enter("get_item", table, dict(key))
		item = self.table(table).get(self._key(key))
		return dict(item) if item is not None else None

	async def put_item(self, table, item):
		await self._enter("put_item", table, dict(item))
		self.table(table)[self._key(item)] = dict(item)

	async def update_item(self, table, key, update_expression, values, *, return_new=True):
		await self._enter("update_item", table, dict(key), update_expression, dict(values))
		items = self.table(table)
		item = dict(items.get(self._key(key)) or dict(key))
		sections = _SECTION_RE.split(update_expression)
		assert sections[0].strip() == "", update_expression
		for keyword, body in zip(sections[1::2], sections[2::2]):
			for clause in (part.strip() for part in body.split(",")):
				if keyword == "SET":
					name, placeholder = (part.strip() for part in clause.split("="))
					item[name] = values[placeholder]
				else:
					item.pop(clause, None)
		items[self._key(key)] = item
		return dict(item) if return_new else {}

	async def batch_execute(self, statements: Sequence[BatchStatement]):
		await self._enter("batch_execute", list(statements))
		results = []
		for statement in statements:
			match = _ADD_RE.match(statement.statement)
			assert match, statement.statement
			table, attribute, key_name = match.groups()
			element, key = statement.parameters
			assert key_name == "Id" and isinstance(key, StringAttr) and isinstance(element, StringSetAttr)
			if key.value in self.failing_keys:
				results.append(BatchStatementResult(self.failing_keys[key.value], "injected failure"))
				continue
			item = self.table(table).get(key.value)
			if item is None:
				results.append(BatchStatementResult("ConditionalCheckFailed", "item does not exist"))
				continue
			current = item.get(attribute)
			merged = set(element.values)
			if isinstance(current, StringSetAttr):
				merged |= current.values
			item[attribute] = StringSetAttr.of(merged)
			results.append(BatchStatementResult())
		if self.truncate_batch_results:
			results = results[:-1]
		return results


@pytest.fixture
def fake_store():
	original = store_module._store
	fake = FakeAttributeStore()
	store_module.set_store(fake)
	try:
		yield fake
	finally:
		store_module.set_store(original)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Pin table name and timeout so tests do not depend on the environment."""
	original_table = settings.users_table
	original_timeout = settings.store_timeout_seconds
	settings.users_table = "Users"
	settings.store_timeout_seconds = 1.0
	try:
		yield
	finally:
		settings.users_table = original_table
		settings.store_timeout_seconds = original_timeout
		obs_logging.clear_context()
