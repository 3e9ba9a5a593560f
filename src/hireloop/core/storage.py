from __future__ import annotations

import copy
from typing import Any, Protocol


class SessionStorage(Protocol):
    def load(self, key: str) -> dict[str, Any] | None: ...

    def save(self, key: str, document: dict[str, Any]) -> None: ...

    def delete(self, key: str) -> bool: ...


class MemoryStorage:
    def __init__(self, documents: dict[str, dict[str, Any]] | None = None):
        self.documents: dict[str, dict[str, Any]] = documents if documents is not None else {}

    def load(self, key: str) -> dict[str, Any] | None:
        document = self.documents.get(key)
        return copy.deepcopy(document) if document is not None else None

    def save(self, key: str, document: dict[str, Any]) -> None:
        self.documents[key] = copy.deepcopy(document)

    def delete(self, key: str) -> bool:
        return self.documents.pop(key, None) is not None
