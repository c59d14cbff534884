"""Structured JSON logging for user store operations.

Every line carries the service identity, the user and operation bound by
:func:`bind_context`, and, when a store call is involved, the store fields
(``store_code``, ``chat_id``, ``expression``) at the top level. Any other
``extra`` fields go under ``"extra"``, sanitised.
"""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from anthem.settings import settings

_USER_ID: ContextVar[Optional[str]] = ContextVar("obs_user_id", default=None)
_OPERATION: ContextVar[Optional[str]] = ContextVar("obs_operation", default=None)

_LOGGER_NAME = "anthem"

# Lifted out of ``extra`` so dashboards can filter on them directly
_STORE_FIELDS = ("user_id", "operation", "store_code", "chat_id", "expression")

_REDACTED_KEYS = ("token", "secret", "password", "credential")
_MAX_TEXT = 256
_MAX_ITEMS = 10

_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class UserContext:
	"""Tokens returned by :func:`bind_context`; pass back to :func:`reset_context`."""

	__slots__ = ("user_id", "operation")

	def __init__(self, user_id: Optional[Token], operation: Optional[Token]) -> None:
		self.user_id = user_id
		self.operation = operation


def bind_context(*, user_id: Optional[str] = None, operation: Optional[str] = None) -> UserContext:
	"""Tag log lines emitted by the current task with the user and operation."""
	return UserContext(
		_USER_ID.set(user_id) if user_id is not None else None,
		_OPERATION.set(operation) if operation is not None else None,
	)


def reset_context(context: UserContext) -> None:
	if context.operation is not None:
		_OPERATION.reset(context.operation)
	if context.user_id is not None:
		_USER_ID.reset(context.user_id)


def clear_context() -> None:
	_USER_ID.set(None)
	_OPERATION.set(None)


def _sanitize(key: str, value: Any) -> Any:
	if any(word in key.lower() for word in _REDACTED_KEYS):
		return "[redacted]"
	if isinstance(value, str):
		return value if len(value) <= _MAX_TEXT else f"{value[:_MAX_TEXT]}…"
	if isinstance(value, (set, frozenset)):
		value = sorted(value, key=str)
	if isinstance(value, (list, tuple)):
		items = [_sanitize(key, item) for item in value[:_MAX_ITEMS]]
		if len(value) > _MAX_ITEMS:
			items.append(f"+{len(value) - _MAX_ITEMS} more")
		return items
	if isinstance(value, (int, float, bool)) or value is None:
		return value
	return str(value)


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per line: service identity, user context, store fields, extra."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
			"user_id": _USER_ID.get(),
			"operation": _OPERATION.get(),
		}
		extra: Dict[str, Any] = {}
		for key, value in vars(record).items():
			if key in _STANDARD_ATTRS or key.startswith("_"):
				continue
			if key in _STORE_FIELDS:
				payload[key] = _sanitize(key, value)
			else:
				extra[key] = _sanitize(key, value)
		for key in _STORE_FIELDS:
			if payload.get(key) is None:
				payload.pop(key, None)
		if extra:
			payload["extra"] = extra
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(payload, separators=(",", ":"))


class InfoSamplingFilter(logging.Filter):
	"""Randomly sample info-level logs, keep everything else."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = max(0.0, min(1.0, settings.obs_log_sampling_rate_info))
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> logging.Logger:
	"""Route the root logger through :class:`JSONLogFormatter`."""
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)
