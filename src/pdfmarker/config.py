from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

from .errors import InvalidArgumentError


@dataclass
class Settings:
    output_dir: Path = Path("output")
    matte_threshold: int = 240
    default_region_width: float = 120.0
    default_region_height: float = 80.0
    fetch_timeout: float = 30.0
    deflate_output: bool = True

    def validate(self) -> "Settings":
        """Raise InvalidArgumentError on out-of-range values, else return self."""
        if not 0 <= self.matte_threshold <= 255:
            raise InvalidArgumentError(
                f"matte_threshold must be in [0, 255], got {self.matte_threshold}"
            )
        if self.default_region_width <= 0 or self.default_region_height <= 0:
            raise InvalidArgumentError("default region size must be positive")
        if self.fetch_timeout <= 0:
            raise InvalidArgumentError(f"fetch_timeout must be positive, got {self.fetch_timeout}")
        return self

    @classmethod
    def from_env(cls, prefix: str = "PDFMARKER_") -> "Settings":
        """Build settings from defaults overridden by PDFMARKER_* variables."""
        settings = cls()
        for field in fields(cls):
            raw = os.getenv(prefix + field.name.upper())
            if raw is None:
                continue
            current = getattr(settings, field.name)
            try:
                setattr(settings, field.name, _coerce(raw, current))
            except ValueError as exc:
                raise InvalidArgumentError(
                    f"Invalid value for {prefix}{field.name.upper()}: {raw!r}"
                ) from exc
        return settings.validate()


def _coerce(raw: str, current):
    if isinstance(current, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(raw)
    if isinstance(current, Path):
        return Path(raw)
    return type(current)(raw)
