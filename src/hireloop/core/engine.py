from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from pydantic import TypeAdapter, ValidationError

from hireloop.config import Settings, get_settings
from hireloop.core.diff import diff_text
from hireloop.core.draft import DraftAssembler
from hireloop.core.history import VersionHistoryLog
from hireloop.core.placeholders import ConfirmableBullet, confirmable_bullets, resolve_placeholders
from hireloop.core.recovery import RecoveryGate
from hireloop.core.scoring import DEFAULT_TREND_THRESHOLD, compute_score
from hireloop.core.steps import STEP_TITLES, StepCursor, parse_step
from hireloop.core.storage import SessionStorage
from hireloop.errors import CorruptSessionError, RecoveryPendingError
from hireloop.types import (
    DiffLine,
    FactValue,
    FitBlueprint,
    InputStatus,
    RawInput,
    ScoreBreakdown,
    Session,
    StagedBullet,
    Step,
    VersionHistoryEntry,
    utc_now,
)

logger = logging.getLogger(__name__)

_FACT_VALUE = TypeAdapter(FactValue)


def score_session(session: Session, *, trend_threshold: int = DEFAULT_TREND_THRESHOLD) -> ScoreBreakdown:
    return compute_score(
        session.blueprint,
        session.staged_bullets,
        session.confirmed_facts,
        trend_threshold=trend_threshold,
    )


class SessionEngine:
    def __init__(
        self,
        storage: SessionStorage,
        *,
        key: str | None = None,
        pending_input: RawInput | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or get_settings()
        self.storage = storage
        self.key = key or self.settings.session_key
        self.clock = clock
        self.last_input_status: InputStatus | None = None
        self._session: Session | None = None

        self.recovery = RecoveryGate.open(self._load_persisted(), pending_input)
        if not self.recovery.needs_decision:
            self._session = self._new_session()
            if pending_input is not None:
                self._apply_pending(pending_input)

    # Recovery

    @property
    def needs_decision(self) -> bool:
        return self.recovery.needs_decision

    @property
    def persisted_session(self) -> Session | None:
        return self.recovery.persisted

    @property
    def pending_input(self) -> RawInput | None:
        return self.recovery.pending

    def continue_session(self) -> Session:
        self.recovery.resolve("continue")
        if self.recovery.pending is not None:
            logger.info("Discarding pending input in favour of persisted session key=%s", self.key)
        self.recovery.pending = None
        self._session = self.recovery.persisted
        return self.session

    def start_fresh(self) -> Session:
        self.recovery.resolve("fresh")
        pending = self.recovery.pending
        self.recovery.pending = None
        self.storage.delete(self.key)
        self._session = self._new_session()
        if pending is not None:
            self._apply_pending(pending)
        return self.session

    # Session state

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RecoveryPendingError()
        return self._session

    @property
    def history(self) -> VersionHistoryLog:
        return VersionHistoryLog(self.session.history, clock=self.clock)

    @property
    def draft(self) -> DraftAssembler:
        return DraftAssembler(self.session.staged_bullets)

    def set_input(
        self,
        document_text: str,
        spec_text: str,
        title: str | None = None,
        organization: str | None = None,
    ) -> InputStatus:
        new_input = RawInput(
            document_text=document_text,
            spec_text=spec_text,
            title=title,
            organization=organization,
        )
        if self.recovery.needs_decision:
            self.recovery.offer(new_input)
            self.last_input_status = "pending_decision"
            return self.last_input_status

        session = self.session
        current = session.raw_input
        if not new_input.spec_text.strip():
            if not session.has_data():
                logger.warning("No usable input: job description missing and no session data")
                self.last_input_status = "no_usable_input"
                return self.last_input_status
            new_input = new_input.model_copy(update={"spec_text": current.spec_text})

        if new_input == current:
            self.last_input_status = "unchanged"
            return self.last_input_status

        session.raw_input = new_input
        if new_input.document_text != current.document_text:
            session.working_document = new_input.document_text
            if new_input.document_text.strip():
                label = "Source document replaced" if session.history else "Original document"
                self.history.append(session.current_step, new_input.document_text, label)

        self._touch()
        self.last_input_status = "accepted"
        return self.last_input_status

    def advance_step(self) -> bool:
        target = StepCursor(self.session.current_step).next()
        if target is None:
            return False
        return self._move_to(target)

    def retreat_step(self) -> bool:
        target = StepCursor(self.session.current_step).previous()
        if target is None:
            return False
        return self._move_to(target)

    def go_to_step(self, step: str) -> bool:
        target = parse_step(step)
        if target == self.session.current_step:
            return False
        return self._move_to(target)

    def has_active_session(self) -> bool:
        raw = self.session.raw_input
        return bool(raw.document_text.strip() and raw.spec_text.strip())

    def is_expired(self) -> bool:
        saved = self.session.last_saved_at
        if saved is None:
            return False
        return self.clock() - saved >= timedelta(hours=self.settings.session_expiry_hours)

    def get_session_age(self) -> str | None:
        saved = self.session.last_saved_at
        if saved is None:
            return None
        age = self.clock() - saved
        if age < timedelta(minutes=1):
            return "Just now"
        if age < timedelta(hours=1):
            return f"{int(age.total_seconds() // 60)}m ago"
        return saved.astimezone().strftime("%I:%M %p").lstrip("0")

    def reset(self) -> Session:
        self.storage.delete(self.key)
        self.recovery = RecoveryGate()
        self._session = self._new_session()
        logger.info("Session reset key=%s", self.key)
        return self._session

    def set_processing(self, is_processing: bool, message: str = "") -> None:
        session = self.session
        session.is_processing = is_processing
        session.processing_message = message if is_processing else ""

    # Analysis round trip

    def begin_analysis(self, message: str = "Analyzing your resume against the job description") -> None:
        self.set_processing(True, message)
        self.session.error = None

    def complete_analysis(self, blueprint: FitBlueprint | dict[str, Any]) -> FitBlueprint:
        if not isinstance(blueprint, FitBlueprint):
            blueprint = FitBlueprint.model_validate(blueprint)
        self.session.blueprint = blueprint
        self.session.error = None
        self.set_processing(False)
        self._touch()
        return blueprint

    def fail_analysis(self, error: str | Exception) -> None:
        logger.warning("Analysis failed key=%s error=%s", self.key, error)
        self.set_processing(False)
        self.session.error = str(error)

    # Working document and history

    def update_document(self, text: str) -> None:
        self.session.working_document = text
        self._touch()

    def save(self, description: str = "Saved changes") -> VersionHistoryEntry | None:
        session = self.session
        history = self.history
        latest = history.latest()
        if latest is None or latest.document_snapshot != session.working_document:
            latest = history.append(session.current_step, session.working_document, description)
        session.last_saved_at = self.clock()
        self.persist()
        return latest

    def history_entries(self) -> list[VersionHistoryEntry]:
        return list(self.session.history)

    def restore(self, entry_id: str) -> VersionHistoryEntry:
        session = self.session
        backup = self.history.restore(entry_id, session.working_document, session.current_step)
        session.working_document = backup.document_snapshot
        self._touch()
        return backup

    def undo_restore(self, entry_id: str) -> VersionHistoryEntry:
        session = self.session
        undo = self.history.undo_restore(entry_id, session.working_document, session.current_step)
        session.working_document = undo.document_snapshot
        self._touch()
        return undo

    def diff(self, entry_id_a: str, entry_id_b: str) -> list[DiffLine]:
        return self.history.diff(entry_id_a, entry_id_b)

    def diff_working(self, entry_id: str) -> list[DiffLine]:
        entry = self.history.get(entry_id)
        return diff_text(entry.document_snapshot, self.session.working_document)

    # Draft

    def add_staged_bullet(
        self,
        bullet: StagedBullet | str,
        *,
        requirement_id: str | None = None,
        section_hint: str | None = None,
    ) -> bool:
        if isinstance(bullet, str):
            bullet = StagedBullet(text=bullet, requirement_id=requirement_id, section_hint=section_hint)
        added = self.draft.add(bullet)
        if added:
            self._touch()
        return added

    def remove_staged_bullet(self, index: int) -> StagedBullet:
        removed = self.draft.remove(index)
        self._touch()
        return removed

    def update_staged_bullet(self, index: int, text: str) -> StagedBullet:
        updated = self.draft.update(index, text)
        self._touch()
        return updated

    def clear_staged_bullets(self) -> int:
        count = self.draft.clear()
        if count:
            self._touch()
        return count

    def grouped_bullets(self) -> dict[str, list[StagedBullet]]:
        return self.draft.group_by_section_hint()

    # Facts

    def confirm_fact(self, key: str, value: FactValue) -> FactValue:
        key = key.strip()
        if not key:
            raise ValueError("fact key must not be empty")
        validated = _FACT_VALUE.validate_python(value)
        self.session.confirmed_facts[key] = validated
        self._touch()
        return validated

    def resolve_placeholders(self, text: str) -> str:
        return resolve_placeholders(text, self.session.confirmed_facts)

    def confirmable_bullets(self) -> list[ConfirmableBullet]:
        return confirmable_bullets(self.session.blueprint, self.session.confirmed_facts)

    # Scoring and persistence

    def score(self) -> ScoreBreakdown:
        return score_session(self.session, trend_threshold=self.settings.trend_threshold)

    def persist(self) -> None:
        self.storage.save(self.key, self.session.to_document())
        logger.debug("Session persisted key=%s", self.key)

    def describe(self) -> dict[str, Any]:
        session = self.session
        latest = self.history.latest()
        return {
            "session_id": session.session_id,
            "key": self.key,
            "current_step": session.current_step,
            "step_title": STEP_TITLES[session.current_step],
            "title": session.raw_input.title,
            "organization": session.raw_input.organization,
            "has_active_session": self.has_active_session(),
            "session_age": self.get_session_age(),
            "is_processing": session.is_processing,
            "processing_message": session.processing_message,
            "error": session.error,
            "history_entries": len(session.history),
            "latest_entry_id": latest.id if latest else None,
            "unsaved_changes": bool(latest) and latest.document_snapshot != session.working_document,
            "staged_bullets": len(session.staged_bullets),
            "confirmed_facts": len(session.confirmed_facts),
            "has_blueprint": session.blueprint is not None,
        }

    def _move_to(self, target: Step) -> bool:
        session = self.session
        latest = self.history.latest()
        if session.working_document.strip() and (
            latest is None or latest.document_snapshot != session.working_document
        ):
            self.history.append(
                session.current_step,
                session.working_document,
                f"Completed {STEP_TITLES[session.current_step]} step",
            )
        logger.info("Step transition %s -> %s key=%s", session.current_step, target, self.key)
        session.current_step = target
        self._touch()
        return True

    def _touch(self) -> None:
        self.session.last_saved_at = self.clock()
        if self.settings.autosave:
            self.persist()

    def _new_session(self) -> Session:
        return Session(created_at=self.clock())

    def _apply_pending(self, pending: RawInput) -> None:
        self.set_input(
            pending.document_text,
            pending.spec_text,
            title=pending.title,
            organization=pending.organization,
        )

    def _load_persisted(self) -> Session | None:
        document = self.storage.load(self.key)
        if document is None:
            return None
        try:
            session = Session.from_document(document)
        except ValidationError as exc:
            logger.exception("Persisted session is unreadable key=%s", self.key)
            raise CorruptSessionError(self.key, f"{exc.error_count()} validation error(s)") from exc
        session.is_processing = False
        session.processing_message = ""
        if not session.has_data():
            return None
        return session
