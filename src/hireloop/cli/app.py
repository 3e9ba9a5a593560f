from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import typer

from hireloop.config import get_settings
from hireloop.core.diff import summarize
from hireloop.core.engine import SessionEngine
from hireloop.db.init import init_database
from hireloop.db.repositories import Repository, SqlSessionStorage
from hireloop.db.session import SessionLocal
from hireloop.errors import HireloopError
from hireloop.logging_config import configure_logging
from hireloop.types import DiffLine, RawInput

app = typer.Typer(help="hireloop CLI")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


def _echo(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


@contextmanager
def open_engine(key: str | None, *, pending: RawInput | None = None) -> Iterator[SessionEngine]:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            engine = SessionEngine(SqlSessionStorage(db), key=key, pending_input=pending)
            yield engine
        except HireloopError as exc:
            typer.echo(f"error: {exc}", err=True)
            raise typer.Exit(code=1) from exc


@contextmanager
def open_session(key: str | None) -> Iterator[SessionEngine]:
    # Running a session command against a stored session is an explicit choice to continue it.
    with open_engine(key) as engine:
        if engine.needs_decision:
            engine.continue_session()
        yield engine


def _diff_payload(lines: list[DiffLine]) -> dict[str, Any]:
    return {
        "summary": summarize(lines).model_dump(),
        "lines": [line.model_dump() for line in lines],
    }


def _parse_fact_value(raw: str) -> Any:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return raw
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        return value
    if isinstance(value, list):
        return [str(item) for item in value]
    return raw


@app.command("init")
def init_cmd() -> None:
    """Create the data directory and session tables."""
    configure_logging()
    result = init_database()
    _echo({"ok": True, **result})


@app.command("start")
def start_cmd(
    resume: Path = typer.Option(..., "--resume", exists=True, readable=True),
    job: Path = typer.Option(None, "--job", exists=True, readable=True),
    title: str = typer.Option(None, "--title"),
    company: str = typer.Option(None, "--company"),
    continue_: bool = typer.Option(False, "--continue", help="Keep the stored session, discard this input"),
    fresh: bool = typer.Option(False, "--fresh", help="Discard the stored session and use this input"),
    key: str = typer.Option(None, "--key"),
) -> None:
    """Submit a resume and job description, resolving any stored session."""
    if continue_ and fresh:
        raise typer.BadParameter("choose only one of --continue or --fresh")

    pending = RawInput(
        document_text=resume.read_text(encoding="utf-8"),
        spec_text=job.read_text(encoding="utf-8") if job else "",
        title=title,
        organization=company,
    )
    with open_engine(key, pending=pending) as engine:
        if engine.needs_decision:
            if not (continue_ or fresh):
                persisted = engine.persisted_session
                _echo(
                    {
                        "needs_decision": True,
                        "stored_session_id": persisted.session_id if persisted else None,
                        "stored_step": persisted.current_step if persisted else None,
                        "hint": "rerun with --continue or --fresh",
                    }
                )
                raise typer.Exit(code=1)
            if continue_:
                engine.continue_session()
            else:
                engine.start_fresh()

        status = engine.last_input_status
        if status == "no_usable_input":
            _echo({"status": status, "hint": "provide a job description with --job"})
            raise typer.Exit(code=1)
        _echo({"status": status or "continued", **engine.describe()})


@app.command("status")
def status_cmd(key: str = typer.Option(None, "--key")) -> None:
    with open_session(key) as engine:
        _echo({**engine.describe(), "expired": engine.is_expired()})


@app.command("next")
def next_cmd(key: str = typer.Option(None, "--key")) -> None:
    with open_session(key) as engine:
        moved = engine.advance_step()
        _echo({"moved": moved, "current_step": engine.session.current_step})


@app.command("back")
def back_cmd(key: str = typer.Option(None, "--key")) -> None:
    with open_session(key) as engine:
        moved = engine.retreat_step()
        _echo({"moved": moved, "current_step": engine.session.current_step})


@app.command("goto")
def goto_cmd(step: str = typer.Argument(...), key: str = typer.Option(None, "--key")) -> None:
    with open_session(key) as engine:
        try:
            moved = engine.go_to_step(step)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        _echo({"moved": moved, "current_step": engine.session.current_step})


@app.command("edit")
def edit_cmd(
    file: Path = typer.Option(..., "--file", exists=True, readable=True),
    key: str = typer.Option(None, "--key"),
) -> None:
    """Replace the working document with the contents of a file (unsaved)."""
    with open_session(key) as engine:
        engine.update_document(file.read_text(encoding="utf-8"))
        _echo(engine.describe())


@app.command("save")
def save_cmd(
    message: str = typer.Option("Saved changes", "--message", "-m"),
    key: str = typer.Option(None, "--key"),
) -> None:
    with open_session(key) as engine:
        entry = engine.save(message)
        _echo({"entry": entry.model_dump(mode="json") if entry else None})


@app.command("history")
def history_cmd(key: str = typer.Option(None, "--key")) -> None:
    with open_session(key) as engine:
        _echo(
            [
                {
                    "id": entry.id,
                    "timestamp": entry.timestamp.isoformat(),
                    "step_completed": entry.step_completed,
                    "change_description": entry.change_description,
                    "restored_from": entry.restored_from,
                    "lines": len(entry.document_snapshot.splitlines()),
                }
                for entry in engine.history_entries()
            ]
        )


@app.command("diff")
def diff_cmd(
    entry_a: str = typer.Argument(...),
    entry_b: str = typer.Argument(None, help="Defaults to the working document"),
    key: str = typer.Option(None, "--key"),
) -> None:
    with open_session(key) as engine:
        lines = engine.diff(entry_a, entry_b) if entry_b else engine.diff_working(entry_a)
        _echo(_diff_payload(lines))


@app.command("restore")
def restore_cmd(
    entry_id: str = typer.Argument(...),
    undo: bool = typer.Option(False, "--undo", help="Bring back the text a restore entry replaced"),
    key: str = typer.Option(None, "--key"),
) -> None:
    with open_session(key) as engine:
        backup = engine.undo_restore(entry_id) if undo else engine.restore(entry_id)
        _echo({"backup": backup.model_dump(mode="json", exclude={"document_snapshot", "backup_snapshot"})})


@app.command("stage")
def stage_cmd(
    text: str = typer.Argument(...),
    requirement: str = typer.Option(None, "--requirement"),
    section: str = typer.Option(None, "--section"),
    key: str = typer.Option(None, "--key"),
) -> None:
    with open_session(key) as engine:
        added = engine.add_staged_bullet(text, requirement_id=requirement, section_hint=section)
        _echo({"added": added, "staged_bullets": len(engine.session.staged_bullets)})


@app.command("unstage")
def unstage_cmd(index: int = typer.Argument(...), key: str = typer.Option(None, "--key")) -> None:
    with open_session(key) as engine:
        removed = engine.remove_staged_bullet(index)
        _echo({"removed": removed.model_dump()})


@app.command("draft")
def draft_cmd(
    text: bool = typer.Option(False, "--text", help="Print the assembled draft as plain text"),
    key: str = typer.Option(None, "--key"),
) -> None:
    with open_session(key) as engine:
        if text:
            typer.echo(engine.draft.render())
            return
        groups = engine.grouped_bullets()
        _echo({section: [bullet.text for bullet in bullets] for section, bullets in groups.items()})


@app.command("confirm")
def confirm_cmd(
    field_key: str = typer.Argument(...),
    value: str = typer.Argument(..., help="Plain text, a number, or a JSON list of strings"),
    key: str = typer.Option(None, "--key"),
) -> None:
    with open_session(key) as engine:
        try:
            stored = engine.confirm_fact(field_key, _parse_fact_value(value))
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        _echo({"field_key": field_key.strip(), "value": stored})


@app.command("blueprint")
def blueprint_cmd(
    file: Path = typer.Option(..., "--file", exists=True, readable=True),
    key: str = typer.Option(None, "--key"),
) -> None:
    """Load an analysis result (fit blueprint JSON) into the session."""
    try:
        payload = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"invalid blueprint: {exc}") from exc
    with open_session(key) as engine:
        engine.begin_analysis("Loading fit blueprint")
        try:
            blueprint = engine.complete_analysis(payload)
        except ValueError as exc:
            engine.fail_analysis(exc)
            raise typer.BadParameter(f"invalid blueprint: {exc}") from exc
        _echo(
            {
                "overall_fit_score": blueprint.overall_fit_score,
                "requirements": len(blueprint.requirements),
                "evidence": len(blueprint.evidence_inventory),
            }
        )


@app.command("score")
def score_cmd(key: str = typer.Option(None, "--key")) -> None:
    with open_session(key) as engine:
        _echo(engine.score().model_dump())


@app.command("reset")
def reset_cmd(key: str = typer.Option(None, "--key")) -> None:
    """Discard the stored session without reading it."""
    configure_logging()
    ensure_initialized()
    key = key or get_settings().session_key
    with SessionLocal() as db:
        deleted = SqlSessionStorage(db).delete(key)
    _echo({"ok": True, "key": key, "deleted": deleted})


@app.command("sessions")
def sessions_cmd(limit: int = typer.Option(20, "--limit")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        rows = Repository(db).list_documents(limit=limit)
        _echo(
            [
                {
                    "key": row.key,
                    "session_id": row.session_id,
                    "current_step": row.current_step,
                    "updated_at": row.updated_at.isoformat() if row.updated_at else None,
                }
                for row in rows
            ]
        )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
