"""Election parameters loaded from config/election_params.json."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

CONFIG_FILENAME = "election_params.json"


@dataclass(frozen=True)
class ElectionConfig:
    """Bounds applied to election construction and enrollment batches.

    proposal_name_max_bytes mirrors a fixed-size 32-byte label.
    """
    proposal_name_max_bytes: int = 32
    max_proposals: int = 256
    max_enroll_batch: int = 256

    def validate(self) -> list[str]:
        """Return configuration errors. Empty list means valid."""
        errors: list[str] = []
        if self.proposal_name_max_bytes <= 0:
            errors.append(
                f"proposal_name_max_bytes must be > 0, got {self.proposal_name_max_bytes}"
            )
        if self.max_proposals <= 0:
            errors.append(f"max_proposals must be > 0, got {self.max_proposals}")
        if self.max_enroll_batch <= 0:
            errors.append(f"max_enroll_batch must be > 0, got {self.max_enroll_batch}")
        return errors

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ElectionConfig:
        """Build a config from a dict. Unknown keys are rejected.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown election parameters: {sorted(unknown)}")
        for key, value in data.items():
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{key} must be an integer, got {value!r}")
        config = cls(**data)
        errors = config.validate()
        if errors:
            raise ValueError("; ".join(errors))
        return config

    @classmethod
    def load(cls, path: Path) -> ElectionConfig:
        """Load configuration from a JSON file."""
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        config = cls.from_dict(data)
        logger.debug("config_loaded", path=str(path), **config.to_dict())
        return config

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> ElectionConfig:
        """Load from config_dir/election_params.json, or defaults if absent."""
        path = config_dir / CONFIG_FILENAME
        if not path.exists():
            logger.debug("config_defaults", config_dir=str(config_dir))
            return cls()
        return cls.load(path)

    def save(self, path: Path) -> None:
        with path.open("w", encoding="utf-8") as handle:
            json.dump(self.to_dict(), handle, indent=2, sort_keys=True)
            handle.write("\n")
