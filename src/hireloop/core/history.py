from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta

from hireloop.core.diff import diff_text
from hireloop.errors import EntryNotFoundError, NotABackupError
from hireloop.types import DiffLine, Step, VersionHistoryEntry, utc_now

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "Automatic backup before restoring"
UNDO_PREFIX = "Undid restore of"


class VersionHistoryLog:
    """Append-only log of full document snapshots.

    Wraps a list owned by the session so that appends are visible to whatever
    serializes the session. Entries are frozen and never removed.
    """

    def __init__(
        self,
        entries: list[VersionHistoryEntry] | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.entries = entries if entries is not None else []
        self.clock = clock

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[VersionHistoryEntry]:
        return iter(list(self.entries))

    def latest(self) -> VersionHistoryEntry | None:
        return self.entries[-1] if self.entries else None

    def get(self, entry_id: str) -> VersionHistoryEntry:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        raise EntryNotFoundError(entry_id)

    def append(
        self,
        step_completed: Step,
        document_snapshot: str,
        change_description: str,
        *,
        restored_from: str | None = None,
        backup_snapshot: str | None = None,
    ) -> VersionHistoryEntry:
        entry = VersionHistoryEntry(
            timestamp=self._next_timestamp(),
            step_completed=step_completed,
            document_snapshot=document_snapshot,
            change_description=change_description,
            restored_from=restored_from,
            backup_snapshot=backup_snapshot,
        )
        self.entries.append(entry)
        logger.debug("History entry appended id=%s step=%s", entry.id, step_completed)
        return entry

    def restore(self, entry_id: str, current_document: str, step: Step) -> VersionHistoryEntry:
        target = self.get(entry_id)
        label = target.change_description or target.id
        backup = self.append(
            step,
            target.document_snapshot,
            f"{BACKUP_PREFIX} '{label}'",
            restored_from=target.id,
            backup_snapshot=current_document,
        )
        logger.info("Restored history entry id=%s backup_id=%s", target.id, backup.id)
        return backup

    def undo_restore(self, entry_id: str, current_document: str, step: Step) -> VersionHistoryEntry:
        """Bring back the text a restore replaced.

        The undo is itself recorded like a restore, holding the text it
        replaced, so it can be undone in turn.
        """
        backup = self.get(entry_id)
        if backup.backup_snapshot is None:
            raise NotABackupError(entry_id)
        label = backup.change_description or backup.id
        undo = self.append(
            step,
            backup.backup_snapshot,
            f"{UNDO_PREFIX} '{label}'",
            restored_from=backup.id,
            backup_snapshot=current_document,
        )
        logger.info("Undid restore id=%s undo_id=%s", backup.id, undo.id)
        return undo

    def diff(self, entry_id_a: str, entry_id_b: str) -> list[DiffLine]:
        old = self.get(entry_id_a)
        new = self.get(entry_id_b)
        return diff_text(old.document_snapshot, new.document_snapshot)

    def _next_timestamp(self) -> datetime:
        now = self.clock()
        latest = self.latest()
        if latest is not None and now <= latest.timestamp:
            return latest.timestamp + timedelta(microseconds=1)
        return now
