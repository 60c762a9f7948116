from __future__ import annotations

import os
from pathlib import Path

import aiofiles
from pydantic import ValidationError as ModelValidationError

from ..errors import PersistenceError
from ..models import Decision

STORAGE_KEY = "secondthought_active_decision"


class DecisionStore:
    """Single-slot store: one JSON file holding the active decision, if any."""

    def __init__(self, base_dir: Path, key: str = STORAGE_KEY):
        self.base_dir = base_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.base_dir / f"{key}.json"

    async def save(self, decision: Decision) -> None:
        try:
            await self._write_atomic(self.path, decision.to_json())
        except OSError as exc:
            raise PersistenceError(f"Cannot save decision to {self.path}: {exc}") from exc

    async def load(self) -> Decision | None:
        if not self.path.exists():
            return None
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as handle:
                raw = await handle.read()
        except OSError as exc:
            raise PersistenceError(f"Cannot read decision from {self.path}: {exc}") from exc
        try:
            return Decision.from_json(raw)
        except ModelValidationError as exc:
            raise PersistenceError(f"Stored decision in {self.path} is corrupt: {exc}") from exc

    async def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot clear decision at {self.path}: {exc}") from exc

    async def _write_atomic(self, target: Path, content: str) -> None:
        tmp_path = target.with_suffix(target.suffix + ".tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as tmp_file:
            await tmp_file.write(content)
        os.replace(tmp_path, target)


class MemoryDecisionStore:
    """Same contract as :class:`DecisionStore`, kept in process memory."""

    def __init__(self) -> None:
        self._raw: str | None = None

    async def save(self, decision: Decision) -> None:
        self._raw = decision.to_json()

    async def load(self) -> Decision | None:
        if self._raw is None:
            return None
        try:
            return Decision.from_json(self._raw)
        except ModelValidationError as exc:
            raise PersistenceError(f"Stored decision in memory is corrupt: {exc}") from exc

    async def clear(self) -> None:
        self._raw = None
