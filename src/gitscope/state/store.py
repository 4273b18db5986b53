"""Durable JSON state store with atomic saves."""

from __future__ import annotations

import contextlib
import os
import uuid
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from gitscope.logging import get_logger
from gitscope.state.schema import SCHEMA_VERSION, AppState

log = get_logger("gitscope.state.store")

StateMutator = Callable[[AppState], None]


class StateStore:
    """Holds the application state in memory and persists it to one file.

    The state is loaded once at startup, mutated in place by the single
    monitoring cycle, and written back with write-temp-then-rename so the
    file on disk is always a complete document.
    """

    def __init__(self, file_path: str | Path):
        """Initialize the store.

        Args:
            file_path: Path of the JSON state file.
        """
        self._path = Path(file_path)
        # Distinguishes temp files of concurrent writers on the same path
        self._instance_token = f"{os.getpid()}.{uuid.uuid4().hex[:8]}"
        self._state = AppState.empty()

    @property
    def path(self) -> Path:
        """Path of the state file."""
        return self._path

    def load(self) -> AppState:
        """Load state from disk, falling back to an empty state.

        A missing, unreadable or invalid file is never an error: a warning
        is logged and the store starts empty.

        Returns:
            The loaded (or empty) state.
        """
        try:
            content = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            log.warning("state_file_not_found", path=str(self._path))
            self._state = AppState.empty()
            return self._state
        except (OSError, UnicodeDecodeError) as e:
            log.warning("state_file_unreadable", path=str(self._path), error=str(e))
            self._state = AppState.empty()
            return self._state

        try:
            state = AppState.model_validate_json(content)
        except ValidationError as e:
            log.warning(
                "state_file_invalid",
                path=str(self._path),
                errors=e.error_count(),
                error=str(e),
            )
            self._state = AppState.empty()
            return self._state

        if state.meta.version != SCHEMA_VERSION:
            log.warning(
                "state_file_version_mismatch",
                path=str(self._path),
                found=state.meta.version,
                expected=SCHEMA_VERSION,
            )
            self._state = AppState.empty()
            return self._state

        self._state = state
        log.info(
            "state_loaded",
            path=str(self._path),
            repos=len(state.repos),
            notifications=len(state.notifications),
        )
        return self._state

    def save(self) -> None:
        """Persist the in-memory state atomically.

        Raises:
            OSError: The temp file could not be written or renamed.
        """
        content = self._state.model_dump_json(by_alias=True, indent=2)
        tmp_path = self._path.with_name(f"{self._path.name}.{self._instance_token}.tmp")

        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with tmp_path.open("w", encoding="utf-8") as f:
                f.write(content)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except OSError:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise

        log.debug("state_saved", path=str(self._path), repos=len(self._state.repos))

    def get_state(self) -> AppState:
        """Get the live in-memory state."""
        return self._state

    def update_state(self, mutator: StateMutator) -> None:
        """Apply a mutation to the in-memory state."""
        mutator(self._state)

    def apply(self, mutator: StateMutator) -> None:
        """Apply a mutation, then persist the result."""
        self.update_state(mutator)
        self.save()
