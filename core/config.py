"""
Configuration Loader
====================
Single source of truth for all settings.
Reads from config/settings.json (written with defaults on first run).
"""

import os
import json
import logging

logger = logging.getLogger('config')

# ── Path constants ────────────────────────────────────────────────────────
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_DIR   = os.path.join(PROJECT_ROOT, 'config')
SETTINGS_PATH = os.path.join(CONFIG_DIR, 'settings.json')

# ── Cache ─────────────────────────────────────────────────────────────────
_settings_cache: dict = None


# ══════════════════════════════════════════════════════════════════════════
#  PUBLIC API
# ══════════════════════════════════════════════════════════════════════════

def get_settings() -> dict:
    """Return the full settings dict (cached after first load)."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = _merge(_default_settings(), _load_json(SETTINGS_PATH, _default_settings()))
    return _settings_cache


def get_global_settings() -> dict:
    """Shortcut: return just the 'global' section of settings."""
    return get_settings().get('global', {})


def get_worker_settings(worker_name: str) -> dict:
    """Return the settings block for a specific worker."""
    return get_settings().get('workers', {}).get(worker_name, {})


def reload():
    """Force re-read from disk."""
    global _settings_cache
    _settings_cache = None


# ── Path helpers (resolve relative dirs against PROJECT_ROOT) ─────────────

def get_log_dir() -> str:
    rel = get_global_settings().get('log_dir', 'logs')
    path = os.path.join(PROJECT_ROOT, rel)
    os.makedirs(path, exist_ok=True)
    return path


def get_profile_dir() -> str:
    """Browser profile directory, or '' to run without a persistent profile."""
    rel = get_global_settings().get('user_data_dir', '')
    if not rel:
        return ''
    return os.path.join(PROJECT_ROOT, rel)


# ══════════════════════════════════════════════════════════════════════════
#  INTERNAL
# ══════════════════════════════════════════════════════════════════════════

def _load_json(path: str, defaults: dict) -> dict:
    if os.path.exists(path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
            logger.debug(f"Loaded config from {path}")
            return loaded
        except Exception as e:
            logger.warning(f"Failed to load {path}: {e}, using defaults")
    else:
        logger.info(f"Config file not found: {path}, using defaults")
        # Write defaults so the user has a template
        os.makedirs(os.path.dirname(path), exist_ok=True)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(defaults, f, indent=2)
            logger.info(f"Created default config at {path}")
        except OSError as e:
            logger.warning(f"Could not write default config: {e}")
    return defaults


def _merge(defaults: dict, loaded: dict) -> dict:
    """Overlay ``loaded`` on ``defaults`` so new keys get sane values."""
    merged = dict(defaults)
    for key, value in loaded.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _default_settings() -> dict:
    return {
        "global": {
            "headless": False,
            "use_system_chrome": True,
            "user_data_dir": "profile",
            "log_level": "INFO",
            "log_dir": "logs"
        },
        "workers": {
            "jira_backlog": {
                "enabled": True,
                "url": "",
                "step_multiplier": 2.0,
                "sync_interval_ms": 10,
                "inject_delay_ms": 10,
                "scroll_settle_ms": 50,
                "key_poll_ms": 50,
                "timeout_nav_ms": 60000,
                "timeout_harvest_ms": 120000,
                "injected_z_index": "-1",
                "bindings": [
                    {"key": "f", "modifier": True, "phrase": None},
                    {"key": "p", "modifier": False, "phrase": "**READY TO PLAN**"},
                    {"key": "r", "modifier": False, "phrase": "**TO REFINE**"},
                    {"key": "n", "modifier": False, "phrase": "**NEW TO BE CATEGORISED**"}
                ]
            }
        }
    }
