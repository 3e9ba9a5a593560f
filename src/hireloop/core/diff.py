from __future__ import annotations

from collections.abc import Sequence

from hireloop.types import DiffLine, DiffSummary


def diff_text(old_text: str, new_text: str) -> list[DiffLine]:
    return diff_lines(old_text.splitlines(), new_text.splitlines())


def diff_lines(old: Sequence[str], new: Sequence[str]) -> list[DiffLine]:
    """Greedy line diff.

    Walks both sequences with one cursor each. On a mismatch, a line that
    reappears later on the other side is kept for a later match and only the
    other cursor advances; when neither or both reappear the pair is reported
    as a removal followed by an addition. Each step advances at least one
    cursor, so the result never exceeds ``len(old) + len(new)`` lines.
    """
    old_last = _last_positions(old)
    new_last = _last_positions(new)

    result: list[DiffLine] = []
    i = j = 0
    while i < len(old) and j < len(new):
        old_line = old[i]
        new_line = new[j]
        if old_line == new_line:
            result.append(_line("unchanged", old_line, i, j))
            i += 1
            j += 1
            continue

        old_reappears = new_last.get(old_line, -1) > j
        new_reappears = old_last.get(new_line, -1) > i
        if old_reappears and not new_reappears:
            result.append(_line("added", new_line, None, j))
            j += 1
        elif new_reappears and not old_reappears:
            result.append(_line("removed", old_line, i, None))
            i += 1
        else:
            result.append(_line("removed", old_line, i, None))
            result.append(_line("added", new_line, None, j))
            i += 1
            j += 1

    for index in range(i, len(old)):
        result.append(_line("removed", old[index], index, None))
    for index in range(j, len(new)):
        result.append(_line("added", new[index], None, index))
    return result


def summarize(diff: Sequence[DiffLine]) -> DiffSummary:
    summary = DiffSummary()
    for line in diff:
        setattr(summary, line.type, getattr(summary, line.type) + 1)
    return summary


def _last_positions(lines: Sequence[str]) -> dict[str, int]:
    positions: dict[str, int] = {}
    for index, line in enumerate(lines):
        positions[line] = index
    return positions


def _line(kind: str, content: str, old_index: int | None, new_index: int | None) -> DiffLine:
    return DiffLine(
        type=kind,
        content=content,
        old_line_number=None if old_index is None else old_index + 1,
        new_line_number=None if new_index is None else new_index + 1,
    )
