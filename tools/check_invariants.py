#!/usr/bin/env python3
"""Ballot invariant checks against the config file and stored election state."""

import sys
from pathlib import Path

from ballot.config import CONFIG_FILENAME, ElectionConfig
from ballot.engine.invariants import check_state
from ballot.persistence.state_store import StateStore


ROOT = Path(__file__).resolve().parents[1]
PARAMS_PATH = ROOT / "config" / CONFIG_FILENAME
STATE_PATH = ROOT / "data" / "state.json"


def check(params_path: Path = PARAMS_PATH, state_path: Path = STATE_PATH) -> int:
    errors: list[str] = []

    # --- Configuration ---
    try:
        ElectionConfig.load(params_path)
    except (OSError, ValueError) as e:
        errors.append(f"{params_path.name}: {e}")

    # --- Stored election (optional) ---
    store = StateStore(state_path)
    if store.exists():
        try:
            state, _ = store.load()
        except (OSError, ValueError) as e:
            errors.append(f"{state_path.name}: {e}")
        else:
            if state is not None:
                errors.extend(check_state(state))

    if errors:
        for err in errors:
            print(f"FAIL: {err}", file=sys.stderr)
        return 1
    print("All invariants hold")
    return 0


if __name__ == "__main__":
    raise SystemExit(check())
