from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Optional

from dotenv import load_dotenv

from layover_risk import DEFAULT_HUB_AIRPORTS

logger = logging.getLogger(__name__)

APP_NAME_NO_SPACES = 'FlightConnectionFinder'


def is_frozen() -> bool:
    return bool(getattr(sys, 'frozen', False))


def exe_dir() -> Path:
    return Path(sys.executable).resolve().parent if is_frozen() else Path(__file__).resolve().parent


def project_root_dir() -> Path:
    # For dev runs, keep config.env next to the source files.
    return Path(__file__).resolve().parent


def _user_config_dir() -> Optional[Path]:
    """Return the per-user config directory (if the platform provides one)."""
    local_appdata = os.getenv('LOCALAPPDATA') or os.getenv('XDG_CONFIG_HOME')
    if not local_appdata:
        return None
    return Path(local_appdata) / APP_NAME_NO_SPACES


def _candidate_dotenv_paths() -> list[Path]:
    """Return candidate locations for config.env.

    Precedence rule (first existing file wins):
    1) next to the executable (frozen) / or next to sources (dev)
    2) current working directory
    3) per-user config directory
    """
    candidates: list[Path] = [exe_dir() / 'config.env', project_root_dir() / 'config.env']
    try:
        candidates.append(Path.cwd() / 'config.env')
    except OSError:
        pass

    user_dir = _user_config_dir()
    if user_dir is not None:
        candidates.append(user_dir / 'config.env')

    # De-dup while preserving order
    out: list[Path] = []
    seen: set[str] = set()
    for p in candidates:
        key = str(p.resolve())
        if key in seen:
            continue
        seen.add(key)
        out.append(p)
    return out


def dotenv_path() -> Path:
    """First existing config.env candidate, otherwise the dev default."""
    for p in _candidate_dotenv_paths():
        if p.is_file():
            return p
    return project_root_dir() / 'config.env'


def load_dotenv_once() -> Optional[Path]:
    """Load config.env if present. Variables already set in the environment win."""
    env_path = dotenv_path()
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=str(env_path), override=False)
    return env_path


def _env_str(name: str, default: str) -> str:
    value = (os.getenv(name) or '').strip()
    return value or default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or '').strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using default {default}")
        return default
    if value <= 0:
        logger.warning(f"{name}={raw!r} must be positive, using default {default}")
        return default
    return value


def _env_codes(name: str, default: FrozenSet[str]) -> FrozenSet[str]:
    raw = (os.getenv(name) or '').strip()
    if not raw:
        return default
    codes = {c.strip().upper() for c in raw.split(',') if c.strip()}
    bad = sorted(c for c in codes if len(c) != 3)
    if bad:
        logger.warning(f"{name}: ignoring invalid airport codes {bad}")
    return frozenset(c for c in codes if len(c) == 3)


@dataclass(frozen=True)
class AppConfig:
    db_path: Path
    airports_file: str
    flights_file: str
    hub_airports: FrozenSet[str]
    min_layover_minutes: int = 120
    max_layover_minutes: int = 1440
    relaxed_min_layover_minutes: int = 60
    max_results: int = 10
    two_stop_limit: int = 5
    log_level: str = 'INFO'
    app_port: int = 8080
    loaded_from: Optional[Path] = None

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)


def load_config() -> AppConfig:
    """Load settings from environment variables and/or config.env.

    Supported keys:
      - FLIGHT_DB_PATH, AIRPORTS_FILE, FLIGHTS_FILE
      - HUB_AIRPORTS (comma-separated codes)
      - MIN_LAYOVER_MINUTES, MAX_LAYOVER_MINUTES, RELAXED_MIN_LAYOVER_MINUTES
      - MAX_RESULTS, TWO_STOP_LIMIT
      - LOG_LEVEL, APP_PORT

    We only read config.env; we never modify it.
    """
    loaded_from = load_dotenv_once()

    min_layover = _env_int('MIN_LAYOVER_MINUTES', 120)
    max_layover = _env_int('MAX_LAYOVER_MINUTES', 1440)
    if max_layover < min_layover:
        logger.warning(
            f"MAX_LAYOVER_MINUTES ({max_layover}) is below MIN_LAYOVER_MINUTES ({min_layover}), "
            "using defaults 120/1440"
        )
        min_layover, max_layover = 120, 1440

    return AppConfig(
        db_path=Path(_env_str('FLIGHT_DB_PATH', 'flights.db')),
        airports_file=_env_str('AIRPORTS_FILE', str(project_root_dir() / 'airports.json')),
        flights_file=_env_str('FLIGHTS_FILE', str(project_root_dir() / 'flights.json')),
        hub_airports=_env_codes('HUB_AIRPORTS', DEFAULT_HUB_AIRPORTS),
        min_layover_minutes=min_layover,
        max_layover_minutes=max_layover,
        relaxed_min_layover_minutes=_env_int('RELAXED_MIN_LAYOVER_MINUTES', 60),
        max_results=_env_int('MAX_RESULTS', 10),
        two_stop_limit=_env_int('TWO_STOP_LIMIT', 5),
        log_level=_env_str('LOG_LEVEL', 'INFO').upper(),
        app_port=_env_int('APP_PORT', 8080),
        loaded_from=loaded_from,
    )


def config_diagnostics() -> str:
    """Human-readable diagnostics for config/env loading."""
    cfg = load_config()

    lines = []
    lines.append(f"Frozen: {is_frozen()}")
    lines.append(f"CWD: {Path.cwd()}")
    lines.append(f"Resolved config.env: {dotenv_path()}")
    lines.append("Candidates searched:")
    for p in _candidate_dotenv_paths():
        lines.append(f"  - {p} (exists={p.is_file()})")

    lines.append(f"Loaded from: {cfg.loaded_from}")
    lines.append(f"Database: {cfg.db_path}")
    lines.append(f"Seed files: {cfg.airports_file}, {cfg.flights_file}")
    lines.append(f"Layover window: {cfg.min_layover_minutes}-{cfg.max_layover_minutes} min "
                 f"(relaxed floor {cfg.relaxed_min_layover_minutes})")
    lines.append(f"Hubs: {', '.join(sorted(cfg.hub_airports))}")
    return "\n".join(lines)
