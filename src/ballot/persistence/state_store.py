"""JSON state store for a single election.

The document holds the serialised election and the service's event counter.
Writes go to a sibling temporary file that is then atomically renamed over
the target, so a crash mid-write never leaves a truncated state file.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from ballot.models.election import ElectionState

FORMAT_VERSION = 1


class StateStore:
    """File-backed election state."""

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path

    @property
    def path(self) -> Path:
        return self._storage_path

    def exists(self) -> bool:
        return self._storage_path.exists()

    def save(self, state: ElectionState, event_counter: int = 0) -> None:
        """Persist the election. Raises OSError on write failure."""
        document = {
            "format_version": FORMAT_VERSION,
            "event_counter": event_counter,
            "election": state.to_records(),
        }
        tmp_path = self._storage_path.with_name(self._storage_path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, sort_keys=True, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_path, self._storage_path)

    def load(self) -> tuple[Optional[ElectionState], int]:
        """Return (state, event_counter). State is None if nothing is stored.

        Raises:
            ValueError: On an unsupported format version.
        """
        if not self._storage_path.exists():
            return None, 0
        with self._storage_path.open("r", encoding="utf-8") as f:
            document: dict[str, Any] = json.load(f)
        version = document.get("format_version")
        if version != FORMAT_VERSION:
            raise ValueError(
                f"Unsupported state format version {version!r} in {self._storage_path}"
            )
        election = document.get("election")
        state = ElectionState.from_records(election) if election else None
        return state, int(document.get("event_counter", 0))
