"""Error types raised by the users store layer."""

from __future__ import annotations

from typing import Optional, Sequence


class UsersError(Exception):
	"""Base error carrying a short machine-readable reason."""

	def __init__(self, reason: str, message: Optional[str] = None) -> None:
		super().__init__(message or reason)
		self.reason = reason


class MalformedAttributeError(UsersError):
	"""A stored attribute does not have the shape its domain field expects."""

	def __init__(self, field: str, detail: str) -> None:
		super().__init__("malformed_attribute", f"{field}: {detail}")
		self.field = field
		self.detail = detail


class StoreOperationError(UsersError):
	"""A call to the attribute store failed for one user."""

	def __init__(
		self,
		reason: str,
		*,
		operation: str,
		user_id: Optional[str] = None,
		cause: Optional[BaseException] = None,
	) -> None:
		message = f"{reason} ({operation}"
		if user_id is not None:
			message += f", user {user_id}"
		message += ")"
		if cause is not None:
			message += f": {cause}"
		super().__init__(reason, message)
		self.operation = operation
		self.user_id = user_id
		self.cause = cause


class UpdateExecutionError(StoreOperationError):
	def __init__(self, user_id: str, cause: BaseException, *, operation: str = "update") -> None:
		super().__init__("update_failed", operation=operation, user_id=user_id, cause=cause)


class BatchExecutionError(StoreOperationError):
	"""The batch call as a whole failed; no per-key outcome is available."""

	def __init__(self, user_ids: Sequence[str], cause: BaseException, *, reason: str = "batch_failed") -> None:
		super().__init__(reason, operation="batch_add_chat_id", cause=cause)
		self.user_ids = tuple(user_ids)


__all__ = [
	"UsersError",
	"MalformedAttributeError",
	"StoreOperationError",
	"UpdateExecutionError",
	"BatchExecutionError",
]
