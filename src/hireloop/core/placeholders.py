from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from hireloop.core.scoring import is_confirmed
from hireloop.types import FactValue, FitBlueprint

_PLACEHOLDER_PATTERN = re.compile(r"\[([A-Za-z][A-Za-z0-9_]*)\]")


@dataclass(slots=True)
class ConfirmableBullet:
    bullet: str
    resolved: str
    required_fields: list[str] = field(default_factory=list)
    filled_fields: list[str] = field(default_factory=list)
    target_requirement_ids: list[str] = field(default_factory=list)

    @property
    def can_confirm(self) -> bool:
        return bool(self.required_fields) and len(self.filled_fields) == len(self.required_fields)

    @property
    def progress(self) -> float:
        if not self.required_fields:
            return 0.0
        return len(self.filled_fields) / len(self.required_fields) * 100


def format_fact(value: FactValue) -> str:
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def placeholder_keys(text: str) -> list[str]:
    return list(dict.fromkeys(_PLACEHOLDER_PATTERN.findall(text)))


def resolve_placeholders(text: str, facts: Mapping[str, FactValue]) -> str:
    def _replace(match: re.Match[str]) -> str:
        value = facts.get(match.group(1))
        if not is_confirmed(value):
            return match.group(0)
        return format_fact(value)

    return _PLACEHOLDER_PATTERN.sub(_replace, text)


def confirmable_bullets(blueprint: FitBlueprint | None, facts: Mapping[str, FactValue]) -> list[ConfirmableBullet]:
    if blueprint is None:
        return []

    items: list[ConfirmableBullet] = []
    for placeholder in blueprint.inferred_placeholders:
        required = list(placeholder.required_fields) or placeholder_keys(placeholder.bullet)
        items.append(
            ConfirmableBullet(
                bullet=placeholder.bullet,
                resolved=resolve_placeholders(placeholder.bullet, facts),
                required_fields=required,
                filled_fields=[key for key in required if is_confirmed(facts.get(key))],
                target_requirement_ids=list(placeholder.target_requirement_ids),
            )
        )
    return items
