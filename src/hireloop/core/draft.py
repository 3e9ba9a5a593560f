from __future__ import annotations

import logging
from collections.abc import Iterator

from hireloop.errors import DuplicateBulletError, IndexOutOfRangeError
from hireloop.types import StagedBullet

logger = logging.getLogger(__name__)


class DraftAssembler:
    def __init__(self, bullets: list[StagedBullet] | None = None):
        self.bullets = bullets if bullets is not None else []

    def __len__(self) -> int:
        return len(self.bullets)

    def __iter__(self) -> Iterator[StagedBullet]:
        return iter(list(self.bullets))

    def __contains__(self, text: object) -> bool:
        return any(bullet.text == text for bullet in self.bullets)

    def add(self, bullet: StagedBullet) -> bool:
        if bullet.text in self:
            logger.debug("Ignoring duplicate staged bullet %r", bullet.text)
            return False
        self.bullets.append(bullet)
        return True

    def remove(self, index: int) -> StagedBullet:
        self._check_index(index)
        return self.bullets.pop(index)

    def update(self, index: int, text: str) -> StagedBullet:
        self._check_index(index)
        current = self.bullets[index]
        if text != current.text and text in self:
            raise DuplicateBulletError(text)
        updated = current.model_copy(update={"text": text})
        self.bullets[index] = updated
        return updated

    def clear(self) -> int:
        count = len(self.bullets)
        self.bullets.clear()
        return count

    def group_by_section_hint(self) -> dict[str, list[StagedBullet]]:
        groups: dict[str, list[StagedBullet]] = {}
        for bullet in self.bullets:
            groups.setdefault(bullet.section_hint, []).append(bullet)
        return groups

    def render(self) -> str:
        blocks: list[str] = []
        for section, bullets in self.group_by_section_hint().items():
            heading = section.replace("_", " ").title()
            lines = [heading] + [f"- {bullet.text}" for bullet in bullets]
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self.bullets):
            raise IndexOutOfRangeError(index, len(self.bullets))
