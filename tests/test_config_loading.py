import logging
import os
from pathlib import Path

import config
from layover_risk import DEFAULT_HUB_AIRPORTS

_KEYS = [
    'FLIGHT_DB_PATH', 'AIRPORTS_FILE', 'FLIGHTS_FILE', 'HUB_AIRPORTS',
    'MIN_LAYOVER_MINUTES', 'MAX_LAYOVER_MINUTES', 'RELAXED_MIN_LAYOVER_MINUTES',
    'MAX_RESULTS', 'TWO_STOP_LIMIT', 'LOG_LEVEL', 'APP_PORT',
]


def _force_cwd_only(monkeypatch, tmp_path: Path) -> None:
    """Make tests deterministic by ensuring only the temp CWD has config.env."""
    monkeypatch.chdir(tmp_path)

    # load_dotenv writes into os.environ; keep that out of other tests
    monkeypatch.setattr(os, 'environ', dict(os.environ))
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)

    # Ensure we don't accidentally load a per-user config.
    monkeypatch.delenv('LOCALAPPDATA', raising=False)
    monkeypatch.delenv('XDG_CONFIG_HOME', raising=False)

    # Ensure we don't pick up the repo's real config.env (project_root_dir/exe_dir)
    monkeypatch.setattr(config, 'project_root_dir', lambda: tmp_path)
    monkeypatch.setattr(config, 'exe_dir', lambda: tmp_path)


def test_defaults_without_config_file(tmp_path, monkeypatch):
    _force_cwd_only(monkeypatch, tmp_path)

    cfg = config.load_config()

    assert cfg.loaded_from is None
    assert cfg.db_path == Path('flights.db')
    assert cfg.min_layover_minutes == 120
    assert cfg.max_layover_minutes == 1440
    assert cfg.relaxed_min_layover_minutes == 60
    assert cfg.max_results == 10
    assert cfg.two_stop_limit == 5
    assert cfg.hub_airports == DEFAULT_HUB_AIRPORTS
    assert cfg.log_level_value == logging.INFO
    assert cfg.airports_file == str(tmp_path / 'airports.json')


def test_dotenv_path_prefers_existing(tmp_path, monkeypatch):
    env_file = tmp_path / "config.env"
    env_file.write_text("FLIGHT_DB_PATH=/data/schedules.db\nMAX_RESULTS=3\nLOG_LEVEL=debug\n")

    _force_cwd_only(monkeypatch, tmp_path)

    cfg = config.load_config()
    assert cfg.loaded_from is not None
    assert Path(cfg.loaded_from) == env_file
    assert cfg.db_path == Path('/data/schedules.db')
    assert cfg.max_results == 3
    assert cfg.log_level == 'DEBUG'
    assert cfg.log_level_value == logging.DEBUG


def test_environment_wins_over_dotenv(tmp_path, monkeypatch):
    env_file = tmp_path / "config.env"
    env_file.write_text("MAX_RESULTS=3\nTWO_STOP_LIMIT=2\n")

    _force_cwd_only(monkeypatch, tmp_path)
    monkeypatch.setenv("MAX_RESULTS", "7")

    cfg = config.load_config()
    assert cfg.max_results == 7
    assert cfg.two_stop_limit == 2


def test_hub_airports_parsed_and_invalid_codes_dropped(tmp_path, monkeypatch, caplog):
    _force_cwd_only(monkeypatch, tmp_path)
    monkeypatch.setenv("HUB_AIRPORTS", " mnl, ceb ,TOOLONG,,")

    with caplog.at_level(logging.WARNING):
        cfg = config.load_config()

    assert cfg.hub_airports == frozenset({'MNL', 'CEB'})
    assert 'TOOLONG' in caplog.text


def test_invalid_integers_fall_back_to_defaults(tmp_path, monkeypatch):
    _force_cwd_only(monkeypatch, tmp_path)
    monkeypatch.setenv("MAX_RESULTS", "lots")
    monkeypatch.setenv("TWO_STOP_LIMIT", "0")
    monkeypatch.setenv("APP_PORT", "-1")

    cfg = config.load_config()
    assert cfg.max_results == 10
    assert cfg.two_stop_limit == 5
    assert cfg.app_port == 8080


def test_inverted_layover_window_resets_to_defaults(tmp_path, monkeypatch):
    _force_cwd_only(monkeypatch, tmp_path)
    monkeypatch.setenv("MIN_LAYOVER_MINUTES", "300")
    monkeypatch.setenv("MAX_LAYOVER_MINUTES", "200")

    cfg = config.load_config()
    assert (cfg.min_layover_minutes, cfg.max_layover_minutes) == (120, 1440)


def test_custom_layover_window(tmp_path, monkeypatch):
    _force_cwd_only(monkeypatch, tmp_path)
    monkeypatch.setenv("MIN_LAYOVER_MINUTES", "90")
    monkeypatch.setenv("MAX_LAYOVER_MINUTES", "720")

    cfg = config.load_config()
    assert (cfg.min_layover_minutes, cfg.max_layover_minutes) == (90, 720)


def test_diagnostics_lists_candidates(tmp_path, monkeypatch):
    _force_cwd_only(monkeypatch, tmp_path)

    text = config.config_diagnostics()

    assert 'Candidates searched:' in text
    assert str(tmp_path / 'config.env') in text
    assert 'Layover window: 120-1440 min' in text
