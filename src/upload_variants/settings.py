from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol

from .errors import SettingsError

logger = logging.getLogger(__name__)

DEFAULT_BREAKPOINTS: Mapping[str, int] = {
    "large": 1000,
    "medium": 750,
    "small": 500,
}

_LABEL_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True, slots=True)
class UploadSettings:
    size_optimization: bool = False
    auto_orientation: bool = False
    responsive_dimensions: bool = False
    breakpoints: Mapping[str, int] = field(default_factory=lambda: dict(DEFAULT_BREAKPOINTS))


class SettingsProvider(Protocol):
    async def get_settings(self) -> UploadSettings: ...


class StaticSettingsProvider:
    """Always hands out the same settings."""

    def __init__(self, settings: UploadSettings | None = None) -> None:
        self.settings = settings or UploadSettings()

    async def get_settings(self) -> UploadSettings:
        return self.settings


class EnvSettingsProvider:
    """Reads ``UPLOAD_*`` variables from the environment, then from a ``.env`` file."""

    PREFIX = "UPLOAD_"

    def __init__(self, env_file: Optional[Path] = Path(".env")) -> None:
        self.env_file = env_file

    async def get_settings(self) -> UploadSettings:
        values = await asyncio.to_thread(self._read_env_file)
        values.update({key: value for key, value in os.environ.items() if key.startswith(self.PREFIX)})

        breakpoints_raw = values.get("UPLOAD_BREAKPOINTS")
        breakpoints = (
            parse_breakpoints(breakpoints_raw) if breakpoints_raw else dict(DEFAULT_BREAKPOINTS)
        )
        return UploadSettings(
            size_optimization=_parse_bool(values, "UPLOAD_SIZE_OPTIMIZATION"),
            auto_orientation=_parse_bool(values, "UPLOAD_AUTO_ORIENTATION"),
            responsive_dimensions=_parse_bool(values, "UPLOAD_RESPONSIVE_DIMENSIONS"),
            breakpoints=breakpoints,
        )

    def _read_env_file(self) -> Dict[str, str]:
        values: Dict[str, str] = {}
        if self.env_file is None or not self.env_file.exists():
            return values

        try:
            for line in self.env_file.read_text(encoding="utf-8").splitlines():
                stripped = line.strip()
                if not stripped or stripped.startswith("#"):
                    continue
                if "=" not in stripped:
                    continue
                key, raw_value = stripped.split("=", 1)
                key = key.strip()
                if key.startswith(self.PREFIX):
                    values[key] = raw_value.strip().strip('"').strip("'")
        except OSError:
            logger.debug("Unable to read %s for upload settings", self.env_file, exc_info=True)
        return values


def parse_breakpoints(text: str) -> Dict[str, int]:
    """Parse ``"large=1000,medium=750"`` into an ordered label -> pixel mapping."""

    breakpoints: Dict[str, int] = {}
    for chunk in text.split(","):
        item = chunk.strip()
        if not item:
            continue
        if "=" not in item:
            raise SettingsError(f"Breakpoint {item!r} must look like label=pixels")
        label, raw_size = (part.strip() for part in item.split("=", 1))
        if not _LABEL_PATTERN.match(label):
            raise SettingsError(f"Invalid breakpoint label {label!r}")
        try:
            size = int(raw_size)
        except ValueError as exc:
            raise SettingsError(f"Breakpoint {label!r} size must be an integer, got {raw_size!r}") from exc
        if size <= 0:
            raise SettingsError(f"Breakpoint {label!r} size must be positive")
        breakpoints[label] = size
    if not breakpoints:
        raise SettingsError("At least one breakpoint is required")
    return breakpoints


def _parse_bool(values: Mapping[str, str], key: str) -> bool:
    raw = values.get(key)
    if raw is None:
        return False
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise SettingsError(f"{key} must be a boolean, got {raw!r}")
