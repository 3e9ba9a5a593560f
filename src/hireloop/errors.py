from __future__ import annotations


class HireloopError(Exception):
    """Base class for conditions the session engine reports to its caller."""


class NotFoundError(HireloopError, LookupError):
    pass


class EntryNotFoundError(NotFoundError):
    def __init__(self, entry_id: str):
        super().__init__(f"history entry {entry_id} not found")
        self.entry_id = entry_id


class IndexOutOfRangeError(NotFoundError, IndexError):
    def __init__(self, index: int, size: int):
        super().__init__(f"staged bullet index {index} out of range (size {size})")
        self.index = index
        self.size = size


class DuplicateBulletError(HireloopError, ValueError):
    def __init__(self, text: str):
        super().__init__(f"bullet already staged: {text!r}")
        self.text = text


class RecoveryPendingError(HireloopError):
    """Raised when a session is used before the recovery decision is made."""

    def __init__(self, message: str = "a persisted session exists; choose continue or start fresh first"):
        super().__init__(message)


class InvalidRecoveryAction(HireloopError, ValueError):
    pass


class NotABackupError(HireloopError, ValueError):
    def __init__(self, entry_id: str):
        super().__init__(f"history entry {entry_id} holds no pre-restore backup")
        self.entry_id = entry_id


class CorruptSessionError(HireloopError):
    def __init__(self, key: str, detail: str):
        super().__init__(f"stored session '{key}' is unreadable: {detail}; run reset to discard it")
        self.key = key
        self.detail = detail
