from __future__ import annotations

import os
from pathlib import Path

import yaml

from hashwatch.utils import parse_tag_list

DEFAULT_CONFIG_PATH = "config/hashwatch.yaml"

ENV_SECRETS = {
    "apify_token": "APIFY_TOKEN",
    "discord_webhook": "DISCORD_WEBHOOK",
    "jwt_secret": "JWT_SECRET",
    "dashboard_password": "DASHBOARD_PASSWORD",
}

NUMERIC_FIELDS = {
    "scan": ["window_hours", "scheduled_window_hours", "limit", "forced_limit", "max_workers", "actor_timeout_seconds"],
    "notify": ["pacing_seconds"],
    "auth": ["token_ttl_hours"],
    "http": ["timeout_seconds"],
}


def _ensure_mapping(config: dict, key: str) -> None:
    if key in config and not isinstance(config[key], dict):
        raise ValueError(f"Section '{key}' must be a mapping")


def _validate(config: dict) -> None:
    for section in ["store", "scan", "notify", "auth", "http", "secrets"]:
        _ensure_mapping(config, section)

    for section, keys in NUMERIC_FIELDS.items():
        values = config.get(section, {})
        for key in keys:
            if key not in values:
                continue
            value = values[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Field '{section}.{key}' must be a number")
            if value <= 0 and key != "pacing_seconds":
                raise ValueError(f"Field '{section}.{key}' must be positive")
            if value < 0:
                raise ValueError(f"Field '{section}.{key}' must not be negative")

    tags = config.get("tags")
    if tags is not None and (not isinstance(tags, list) or not all(isinstance(t, str) for t in tags)):
        raise ValueError("tags must be a list of strings")


def _apply_defaults(config: dict) -> dict:
    config.setdefault("store", {}).setdefault("path", "data/db.json")

    scan = config.setdefault("scan", {})
    scan.setdefault("window_hours", 48)
    scan.setdefault("scheduled_window_hours", 26)
    scan.setdefault("limit", 20)
    scan.setdefault("forced_limit", 50)
    scan.setdefault("max_workers", 1)
    scan.setdefault("actor_id", "apify/instagram-hashtag-scraper")
    scan.setdefault("actor_timeout_seconds", 50)

    notify = config.setdefault("notify", {})
    notify.setdefault("pacing_seconds", 0.5)
    notify.setdefault("username", "Hashwatch Daily Report")
    notify.setdefault("footer", "Hashwatch Lead Finder")

    auth = config.setdefault("auth", {})
    auth.setdefault("cookie_name", "session_token")
    auth.setdefault("login_path", "/login")
    auth.setdefault("api_prefix", "/api/")
    auth.setdefault("token_ttl_hours", 24 * 7)

    config.setdefault("http", {}).setdefault("timeout_seconds", 10)

    secrets = config.setdefault("secrets", {})
    for key in ENV_SECRETS:
        secrets.setdefault(key, "")

    config["tags"] = parse_tag_list(",".join(config.get("tags") or []))
    return config


def _apply_env(config: dict, environ: dict[str, str]) -> dict:
    for key, env_name in ENV_SECRETS.items():
        value = environ.get(env_name)
        if value:
            config["secrets"][key] = value.strip()

    override = environ.get("MONITOR_TAGS")
    if override is not None and override.strip():
        config["tags"] = parse_tag_list(override)

    store_path = environ.get("HASHWATCH_STORE_PATH")
    if store_path:
        config["store"]["path"] = store_path
    return config


def load_config(path: str | None = None, environ: dict[str, str] | None = None) -> dict:
    """Load the YAML config (optional) and overlay secrets from the environment.

    An explicit path that does not exist is an error; the default path is
    allowed to be missing.
    """
    env = dict(os.environ) if environ is None else environ
    loaded: dict = {}
    config_path = Path(path or env.get("HASHWATCH_CONFIG") or DEFAULT_CONFIG_PATH)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
    elif path:
        raise FileNotFoundError(f"Config file not found: {path}")

    if not isinstance(loaded, dict):
        raise ValueError("Top-level config must be a YAML mapping")

    _validate(loaded)
    config = _apply_defaults(loaded)
    return _apply_env(config, env)
