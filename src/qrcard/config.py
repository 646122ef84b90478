from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from .collect import DEFAULT_TIMEZONE
from .exporter import UID_DOMAIN
from .payload import DEFAULT_ECL, DEFAULT_SIZE, TIP_THRESHOLD, WARN_THRESHOLD

logger = logging.getLogger(__name__)


@dataclass
class Paths:
    root: Path
    local_dir: Path
    out_dir: Path
    conf_file: Path


@dataclass
class Settings:
    default_timezone: str = DEFAULT_TIMEZONE
    warn_threshold: int = WARN_THRESHOLD
    tip_threshold: int = TIP_THRESHOLD
    default_size: int = DEFAULT_SIZE
    default_ecl: str = DEFAULT_ECL
    uid_domain: str = UID_DOMAIN
    output_dir: str = "qr-out"


DEFAULT_CONF = f"""# qrcard local config (TOML)
default_timezone = "{DEFAULT_TIMEZONE}"
# payload size above which a warning is shown
warn_threshold = {WARN_THRESHOLD}
# size quoted in the compatibility tip
tip_threshold = {TIP_THRESHOLD}
default_size = {DEFAULT_SIZE}
default_ecl = "{DEFAULT_ECL}"
uid_domain = "{UID_DOMAIN}"
output_dir = "qr-out"
"""


def _apply(settings: Settings, data: dict[str, Any]) -> Settings:
    for f in fields(Settings):
        if f.name not in data:
            continue
        default = getattr(settings, f.name)
        try:
            setattr(settings, f.name, type(default)(data[f.name]))
        except (TypeError, ValueError):
            logger.warning("Ignoring bad config value %s=%r", f.name, data[f.name])
    return settings


def load_settings(conf: Path) -> Settings:
    """Read settings from a TOML file; anything missing or malformed keeps its default."""
    settings = Settings()
    if not conf.exists():
        return settings
    try:
        data = tomllib.loads(conf.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Config %s unreadable, using defaults: %s", conf, exc)
        return settings
    return _apply(settings, data)


def ensure_workspace(base: Path | None = None) -> tuple[Paths, Settings]:
    root = Path(base or os.getcwd())
    local = root / "local"
    conf = local / "qrcard.conf"

    local.mkdir(parents=True, exist_ok=True)
    if not conf.exists():
        conf.write_text(DEFAULT_CONF, encoding="utf-8")

    settings = load_settings(conf)
    out = root / settings.output_dir
    out.mkdir(parents=True, exist_ok=True)

    return Paths(root=root, local_dir=local, out_dir=out, conf_file=conf), settings
