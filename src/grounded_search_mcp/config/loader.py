from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import DEFAULT_MAX_TOKENS, THINKING_LEVELS, ConfigError, Settings


# Environment variable -> (section, key). Section None means the settings root.
ENV_BINDINGS: dict[str, tuple[str | None, str]] = {
    "LOG_PATH": (None, "log"),
    "DEBUG": (None, "debug"),
    "GEMINI_API_KEY": ("gemini", "api_key"),
    "GEMINI_MODEL_NAME": ("gemini", "model_name"),
    "GEMINI_MAX_TOKENS": ("gemini", "max_tokens"),
    "GEMINI_QUERY_TEMPLATE": ("gemini", "query_template"),
    "GEMINI_THINKING_LEVEL": ("gemini", "thinking_level"),
    "GEMINI_THINKING_BUDGET": ("gemini", "thinking_budget"),
    "HTTP_HOST": ("http", "host"),
    "HTTP_PORT": ("http", "port"),
    "HTTP_ENDPOINT_PATH": ("http", "endpoint_path"),
    "HTTP_AUTH_TOKEN": ("http", "auth_token"),
    "HTTP_ALLOWED_ORIGINS": ("http", "allowed_origins"),
    "HTTP_HEARTBEAT_SECONDS": ("http", "heartbeat_seconds"),
    "HTTP_SESSION_IDLE_SECONDS": ("http", "session_idle_seconds"),
}

API_KEY_REQUIRED_MESSAGE = (
    "Gemini API key is required. Set it in config.yml or use --api-key flag "
    "or GEMINI_API_KEY environment variable"
)


def _load_yaml_mapping(p: Path) -> dict[str, Any]:
    try:
        with p.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml in {p}: {e}") from e
    except OSError as e:
        raise ConfigError(f"cannot read configuration file {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError("configuration root must be a mapping")
    return raw


def _overlay_env(raw: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    out = dict(raw)
    for var, (section, key) in ENV_BINDINGS.items():
        if var not in env:
            continue
        if section is None:
            out[key] = env[var]
            continue
        sub = out.get(section)
        sub = dict(sub) if isinstance(sub, Mapping) else {}
        sub[key] = env[var]
        out[section] = sub
    return out


def load_settings(path: str | Path, env: Mapping[str, str] | None = None) -> Settings:
    """
    Load settings from a YAML file, then overlay environment variables.

    A missing file is not an error: environment variables and built-in
    defaults still apply. The result is normalized and validated.
    """
    p = Path(path).expanduser()
    raw: dict[str, Any] = _load_yaml_mapping(p) if p.is_file() else {}
    raw = _overlay_env(raw, os.environ if env is None else env)
    return validate_settings(Settings.from_dict(raw))


def apply_overrides(settings: Settings, **overrides: Any) -> Settings:
    """
    Apply explicit (CLI) overrides on top of loaded settings.

    Keys: log, debug, api_key, model_name, thinking_level, thinking_budget.
    A value of None means "not set" and leaves the loaded value intact.
    """
    root: dict[str, Any] = {}
    gemini: dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key in {"log", "debug"}:
            root[key] = value
        elif key in {"api_key", "model_name", "thinking_level", "thinking_budget"}:
            gemini[key] = value
        else:
            raise TypeError(f"unknown override: {key}")
    out = replace(settings, **root)
    if gemini:
        out = replace(out, gemini=replace(settings.gemini, **gemini))
    return validate_settings(out)


def validate_settings(s: Settings) -> Settings:
    g = s.gemini
    if g.max_tokens <= 0:
        g.max_tokens = DEFAULT_MAX_TOKENS

    g.thinking_level = g.thinking_level.strip().upper()
    if g.thinking_level and g.thinking_level not in THINKING_LEVELS:
        raise ConfigError(f"gemini.thinking_level must be one of {', '.join(THINKING_LEVELS)}, got {g.thinking_level!r}")

    if g.query_template:
        check_query_template(g.query_template)

    h = s.http
    if not 0 <= h.port <= 65535:
        raise ConfigError(f"http.port out of range: {h.port}")
    if not h.endpoint_path.startswith("/"):
        raise ConfigError(f"http.endpoint_path must start with '/', got {h.endpoint_path!r}")
    if h.heartbeat_seconds < 0:
        h.heartbeat_seconds = 0
    if h.session_idle_seconds < 0:
        h.session_idle_seconds = 0
    return s


def check_query_template(template: str) -> None:
    """A query template must contain exactly one `%s` substitution point."""
    if template.replace("%%", "").count("%s") != 1:
        raise ConfigError("gemini.query_template must contain exactly one '%s' placeholder")
    try:
        template % ("",)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"gemini.query_template is not a valid template: {e}") from e


def require_api_key(s: Settings) -> None:
    if not s.gemini.api_key.strip():
        raise ConfigError(API_KEY_REQUIRED_MESSAGE)
