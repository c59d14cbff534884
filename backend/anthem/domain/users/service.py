"""Record-access helpers for user profiles stored in the attribute store."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Optional, Sequence, TypeVar

from anthem.domain.users import codec, membership, patch
from anthem.domain.users.errors import (
	BatchExecutionError,
	MalformedAttributeError,
	StoreOperationError,
	UpdateExecutionError,
)
from anthem.domain.users.models import MusicProvider, User, UserUpdate
from anthem.infra.store import StoreError, get_store
from anthem.obs import logging as obs_logging
from anthem.obs import metrics as obs_metrics
from anthem.settings import settings


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class MembershipOutcome:
	"""Per-user result of a batch chat id addition."""

	user_id: str
	error_code: Optional[str] = None
	error_message: Optional[str] = None

	@property
	def ok(self) -> bool:
		return self.error_code is None


def _observe(operation: str, outcome: str, started: float) -> None:
	try:
		obs_metrics.observe_store_call(operation, outcome, time.perf_counter() - started)
	except Exception:  # pragma: no cover - metrics backend failures should not block store calls
		logger.warning("Failed to record store call metric", exc_info=True)


async def _store_call(operation: str, call: Awaitable[T]) -> T:
	"""Await one store round trip, bounded by ``settings.store_timeout_seconds``."""
	started = time.perf_counter()
	try:
		result = await asyncio.wait_for(call, timeout=settings.store_timeout_seconds)
	except asyncio.TimeoutError as exc:
		_observe(operation, "timeout", started)
		raise StoreError(
			f"{operation} timed out after {settings.store_timeout_seconds}s", code="timeout"
		) from exc
	except StoreError:
		_observe(operation, "error", started)
		raise
	_observe(operation, "ok", started)
	return result


async def load_user(user_id: str) -> Optional[User]:
	"""Fetch a user; ``None`` when no record exists for ``user_id``."""
	store = get_store()
	try:
		record = await _store_call("get", store.get_item(settings.users_table, codec.encode_key(user_id)))
	except StoreError as exc:
		logger.warning("Failed to load user", extra={"user_id": user_id, "operation": "load"})
		raise StoreOperationError("load_failed", operation="load", user_id=user_id, cause=exc) from exc
	if record is None:
		return None
	return codec.decode_record(record)


async def save_user(user: User) -> User:
	"""Write the whole record, replacing whatever is stored under ``user.id``."""
	store = get_store()
	try:
		await _store_call("put", store.put_item(settings.users_table, codec.encode_record(user)))
	except StoreError as exc:
		logger.warning("Failed to save user", extra={"user_id": user.id, "operation": "save"})
		raise StoreOperationError("save_failed", operation="save", user_id=user.id, cause=exc) from exc
	return user


async def _apply(user_id: str, compiled: patch.CompiledPatch, *, operation: str) -> User:
	store = get_store()
	tokens = obs_logging.bind_context(user_id=user_id, operation=operation)
	try:
		try:
			record = await _store_call(
				"update",
				store.update_item(
					settings.users_table,
					codec.encode_key(user_id),
					compiled.expression,
					compiled.values,
					return_new=True,
				),
			)
		except StoreError as exc:
			logger.warning(
				"Failed to execute user update",
				extra={"expression": compiled.expression, "store_code": exc.code},
			)
			_count_update("error")
			raise UpdateExecutionError(user_id, exc, operation=operation) from exc
		try:
			user = codec.decode_record(record)
		except MalformedAttributeError as exc:
			logger.warning(
				"Updated user record is malformed",
				extra={"expression": compiled.expression, "field": exc.field},
			)
			_count_update("malformed")
			raise
		_count_update("ok")
		logger.info(
			"User updated",
			extra={"set": list(compiled.set_clauses), "removed": list(compiled.remove_clauses)},
		)
		return user
	finally:
		obs_logging.reset_context(tokens)


def _count_update(outcome: str) -> None:
	try:
		obs_metrics.inc_user_update(outcome)
	except Exception:  # pragma: no cover - metrics backend failures should not block profile saves
		logger.warning("Failed to record user update metric", exc_info=True)


def _count_membership(result: str, count: int) -> None:
	try:
		obs_metrics.inc_chat_membership_add(result, count)
	except Exception:  # pragma: no cover
		logger.warning("Failed to record chat membership metric", exc_info=True)


async def update_user(user_id: str, update: UserUpdate) -> User:
	"""Apply a total patch and return the record as stored afterwards.

	Fields left as ``None`` on ``update`` are removed from the stored record.

	The store upserts: patching an id that has no record writes a partial
	item (``Id`` plus the set fields) and then raises
	:class:`MalformedAttributeError` because ``MusicProvider`` and ``ChatIds``
	are missing. That partial item stays behind, so later ``load_user`` calls
	for the id raise the same error until the record is saved in full.
	"""
	return await _apply(user_id, patch.compile_patch(update), operation="update")


async def update_music_provider(user_id: str, provider: MusicProvider) -> User:
	return await _apply(user_id, patch.compile_music_provider(provider), operation="update_music_provider")


async def add_chat_id_to_all(user_ids: Sequence[str], chat_id: str) -> list[MembershipOutcome]:
	"""Add ``chat_id`` to the ``ChatIds`` set of every listed user in one batch call.

	Returns one outcome per user in input order. Users whose statement failed
	inside an otherwise successful batch are reported with the store's error
	code; re-fetch users to observe their new state.
	"""
	statements = membership.compile_batch_add_to_set(
		user_ids, codec.CHAT_IDS, chat_id, table=settings.users_table
	)
	store = get_store()
	try:
		results = await _store_call("batch_execute", store.batch_execute(statements))
	except StoreError as exc:
		logger.warning(
			"Failed to add chat id",
			extra={"chat_id": chat_id, "users": len(user_ids), "operation": "batch_add_chat_id"},
		)
		_count_membership("batch_error", len(user_ids))
		raise BatchExecutionError(user_ids, exc) from exc
	if len(results) != len(statements):
		cause = StoreError(f"expected {len(statements)} batch responses, got {len(results)}")
		logger.warning(
			"Batch response does not match request",
			extra={"chat_id": chat_id, "users": len(user_ids), "responses": len(results)},
		)
		_count_membership("batch_error", len(user_ids))
		raise BatchExecutionError(user_ids, cause, reason="batch_response_mismatch")

	outcomes = [
		MembershipOutcome(user_id=user_id, error_code=result.error_code, error_message=result.error_message)
		for user_id, result in zip(user_ids, results)
	]
	failed = [outcome for outcome in outcomes if not outcome.ok]
	for outcome in failed:
		logger.warning(
			"Chat id not added for user",
			extra={
				"user_id": outcome.user_id,
				"chat_id": chat_id,
				"store_code": outcome.error_code,
				"detail": outcome.error_message,
			},
		)
	_count_membership("ok", len(outcomes) - len(failed))
	_count_membership("error", len(failed))
	return outcomes


__all__ = [
	"MembershipOutcome",
	"add_chat_id_to_all",
	"load_user",
	"save_user",
	"update_music_provider",
	"update_user",
]
