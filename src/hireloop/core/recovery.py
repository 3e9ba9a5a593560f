from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from hireloop.errors import InvalidRecoveryAction
from hireloop.types import RawInput, Session

logger = logging.getLogger(__name__)

RecoveryState = Literal["needs_decision", "resolved"]
RecoveryChoice = Literal["continue", "fresh"]


@dataclass(slots=True)
class RecoveryGate:
    """Decision point between a persisted session and newly supplied input.

    Nothing is merged: the caller must pick one side explicitly.
    """

    persisted: Session | None = None
    pending: RawInput | None = None
    state: RecoveryState = "resolved"
    choice: RecoveryChoice | None = None

    @classmethod
    def open(cls, persisted: Session | None, pending: RawInput | None) -> RecoveryGate:
        if persisted is None:
            return cls(persisted=None, pending=pending, state="resolved")
        logger.info(
            "Persisted session found session_id=%s pending_input=%s",
            persisted.session_id,
            pending is not None,
        )
        return cls(persisted=persisted, pending=pending, state="needs_decision")

    @property
    def needs_decision(self) -> bool:
        return self.state == "needs_decision"

    def offer(self, pending: RawInput) -> None:
        if not self.needs_decision:
            raise InvalidRecoveryAction("recovery already resolved")
        self.pending = pending

    def resolve(self, choice: RecoveryChoice) -> None:
        if not self.needs_decision:
            raise InvalidRecoveryAction("recovery already resolved")
        if choice not in ("continue", "fresh"):
            raise InvalidRecoveryAction(f"unknown recovery choice '{choice}'")
        self.state = "resolved"
        self.choice = choice
        logger.info("Recovery resolved choice=%s", choice)
