"""Staging directory for generated export files.

Every staged file is scheduled for deletion as soon as it is written, so a
dropped download never leaves it behind. A startup sweep deletes expired
leftovers from a previous process and puts the rest on a timer.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from datetime import datetime, timezone
from pathlib import Path

from securevault.config import Settings

logger = logging.getLogger(__name__)

_FILENAME_CHARS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-.")


class ExportStaging:
    def __init__(self, directory: Path | str, retention_seconds: float = 300) -> None:
        self.directory = Path(directory)
        self.retention_seconds = retention_seconds
        self._pending: dict[Path, asyncio.Task] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> ExportStaging:
        return cls(settings.export_dir, settings.export_retention_seconds)

    def new_filename(self, prefix: str, suffix: str = ".xlsx") -> str:
        """Collision-resistant name: UTC timestamp plus 64 random bits."""
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        return f"{prefix}_{stamp}_{secrets.token_hex(8)}{suffix}"

    def path_for(self, filename: str) -> Path | None:
        """Resolve a staged filename, rejecting anything that is not a bare name."""
        if not filename or not set(filename) <= _FILENAME_CHARS or filename.startswith("."):
            return None
        return self.directory / filename

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def purge(self, path: Path) -> bool:
        """Delete a staged file. Failures are logged, never raised.

        Called from the purge timer itself, so it only forgets the timer;
        ``release`` is the variant that also cancels it.
        """
        self._pending.pop(path, None)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to delete export file %s: %s", path.name, exc)
            return False
        return True

    async def release(self, path: Path) -> bool:
        """Delete a delivered file now and cancel its purge timer."""
        task = self._pending.pop(path, None)
        if task is not None:
            task.cancel()
        return self.purge(path)

    def schedule_purge(self, path: Path, delay: float | None = None) -> asyncio.Task:
        delay = self.retention_seconds if delay is None else delay

        async def _purge_later() -> None:
            await asyncio.sleep(delay)
            self.purge(path)

        existing = self._pending.pop(path, None)
        if existing is not None:
            existing.cancel()
        task = asyncio.get_running_loop().create_task(_purge_later())
        self._pending[path] = task
        return task

    async def sweep(self, max_age: float | None = None) -> int:
        """Adopt files left behind by an earlier process.

        Files older than ``max_age`` seconds are deleted now; younger ones get a
        purge timer for the rest of their retention. Returns the deleted count.
        """
        max_age = self.retention_seconds if max_age is None else max_age
        if not self.directory.is_dir():
            return 0
        now = time.time()
        removed = 0
        adopted = 0
        for path in self.directory.iterdir():
            if not path.is_file() or path in self._pending:
                continue
            try:
                age = now - path.stat().st_mtime
            except OSError:
                continue
            if age >= max_age:
                if self.purge(path):
                    removed += 1
            else:
                self.schedule_purge(path, delay=max_age - age)
                adopted += 1
        if removed or adopted:
            logger.info(
                "Swept %s: %d stale export file(s) removed, %d scheduled for purge",
                self.directory,
                removed,
                adopted,
            )
        return removed

    async def shutdown(self) -> None:
        """Cancel pending timers and delete their files now."""
        pending = list(self._pending.items())
        for path, task in pending:
            task.cancel()
            self.purge(path)
        await asyncio.gather(*(task for _, task in pending), return_exceptions=True)
