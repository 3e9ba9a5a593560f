import pytest

from hireloop.core.history import BACKUP_PREFIX, UNDO_PREFIX, VersionHistoryLog
from hireloop.errors import EntryNotFoundError, NotABackupError, NotFoundError


def _log(clock) -> VersionHistoryLog:
    return VersionHistoryLog(clock=clock)


def test_append_keeps_order_and_returns_entry(clock) -> None:
    log = _log(clock)
    first = log.append("profile", "v1", "Original document")
    clock.advance(seconds=5)
    second = log.append("gap_analysis", "v2", "Edited summary")

    assert len(log) == 2
    assert [entry.id for entry in log] == [first.id, second.id]
    assert log.latest() == second
    assert first.timestamp < second.timestamp


def test_timestamps_stay_strictly_ordered_when_clock_stalls(clock) -> None:
    log = _log(clock)
    entries = [log.append("profile", f"v{n}", "save") for n in range(3)]
    assert entries[0].timestamp < entries[1].timestamp < entries[2].timestamp


def test_entries_are_immutable(clock) -> None:
    entry = _log(clock).append("profile", "v1", "Original document")
    with pytest.raises(Exception):
        entry.document_snapshot = "changed"


def test_restore_appends_backup_and_preserves_working_text(clock) -> None:
    log = _log(clock)
    original = log.append("profile", "A\nB", "Original document")
    log.append("customization", "A\nB\nC", "Added C")

    backup = log.restore(original.id, current_document="A\nB\nC\nunsaved", step="customization")

    assert len(log) == 3
    assert log.latest() == backup
    assert backup.document_snapshot == "A\nB"
    assert backup.backup_snapshot == "A\nB\nC\nunsaved"
    assert backup.restored_from == original.id
    assert backup.change_description.startswith(BACKUP_PREFIX)


def test_restore_then_diff_against_latest_is_clean(clock) -> None:
    log = _log(clock)
    target = log.append("profile", "one\ntwo", "Original document")
    log.append("gap_analysis", "one\nthree\nfour", "Rewrite")

    log.restore(target.id, current_document="one\nthree\nfour", step="gap_analysis")
    diff = log.diff(target.id, log.latest().id)

    assert all(line.type == "unchanged" for line in diff)


def test_restore_unknown_entry_has_no_side_effects(clock) -> None:
    log = _log(clock)
    log.append("profile", "v1", "Original document")

    with pytest.raises(EntryNotFoundError):
        log.restore("missing", current_document="v1", step="profile")
    assert len(log) == 1


def test_diff_unknown_entry_raises_not_found(clock) -> None:
    log = _log(clock)
    entry = log.append("profile", "v1", "Original document")
    with pytest.raises(NotFoundError):
        log.diff(entry.id, "missing")


def test_length_never_decreases_across_operations(clock) -> None:
    log = _log(clock)
    sizes = [len(log)]
    first = log.append("profile", "a", "Original document")
    sizes.append(len(log))
    second = log.append("profile", "a\nb", "edit")
    sizes.append(len(log))
    log.restore(first.id, "a\nb", "profile")
    sizes.append(len(log))
    log.restore(second.id, "a", "profile")
    sizes.append(len(log))

    assert sizes == [0, 1, 2, 3, 4]


def test_log_writes_through_to_shared_list(clock) -> None:
    entries = []
    VersionHistoryLog(entries, clock=clock).append("profile", "v1", "Original document")
    assert len(entries) == 1


def test_undo_restore_brings_back_replaced_text(clock) -> None:
    log = _log(clock)
    original = log.append("profile", "A\nB", "Original document")
    backup = log.restore(original.id, current_document="A\nB\nunsaved work", step="profile")

    undo = log.undo_restore(backup.id, current_document="A\nB", step="profile")

    assert undo.document_snapshot == "A\nB\nunsaved work"
    assert undo.backup_snapshot == "A\nB"
    assert undo.restored_from == backup.id
    assert undo.change_description.startswith(UNDO_PREFIX)
    assert len(log) == 3

    again = log.undo_restore(undo.id, current_document="A\nB\nunsaved work", step="profile")
    assert again.document_snapshot == "A\nB"


def test_undo_restore_requires_a_backup_entry(clock) -> None:
    log = _log(clock)
    entry = log.append("profile", "v1", "Original document")

    with pytest.raises(NotABackupError):
        log.undo_restore(entry.id, current_document="v1", step="profile")
    with pytest.raises(EntryNotFoundError):
        log.undo_restore("missing", current_document="v1", step="profile")
    assert len(log) == 1
