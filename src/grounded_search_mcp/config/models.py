from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


DEFAULT_MODEL_NAME = "gemini-3-pro-preview"
DEFAULT_MAX_TOKENS = 5000
DEFAULT_HTTP_PORT = 8080
DEFAULT_ENDPOINT_PATH = "/mcp"
DEFAULT_SESSION_IDLE_SECONDS = 1800

THINKING_LEVELS = ("MINIMAL", "LOW", "MEDIUM", "HIGH")


class ConfigError(ValueError):
    pass


def _as_str(key: str, v: Any, default: str) -> str:
    if v is None:
        return default
    if isinstance(v, str):
        return v
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    raise ConfigError(f"{key} must be str, got {type(v).__name__}")


def _as_int(key: str, v: Any, default: int) -> int:
    if v is None:
        return default
    if isinstance(v, bool):
        raise ConfigError(f"{key} must be int, got bool")
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        s = v.strip()
        if s.lstrip("-").isdigit():
            return int(s)
    raise ConfigError(f"{key} must be int-like, got {v!r}")


def _as_optional_int(key: str, v: Any) -> int | None:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    return _as_int(key, v, 0)


def _as_bool(key: str, v: Any, default: bool) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        lo = v.strip().lower()
        if lo in {"1", "true", "yes", "on"}:
            return True
        if lo in {"0", "false", "no", "off", ""}:
            return False
    if isinstance(v, int):
        return v != 0
    raise ConfigError(f"{key} must be bool, got {v!r}")


def _as_str_list(key: str, v: Any) -> list[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [s.strip() for s in v.split(",") if s.strip()]
    if isinstance(v, (list, tuple)):
        out: list[str] = []
        for item in v:
            if not isinstance(item, str):
                raise ConfigError(f"{key} items must be str, got {type(item).__name__}")
            if item.strip():
                out.append(item.strip())
        return out
    raise ConfigError(f"{key} must be a list of strings, got {type(v).__name__}")


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    v = raw.get(key)
    if v is not None and not isinstance(v, Mapping):
        raise ConfigError(f"{key} must be mapping, got {type(v).__name__}")
    return v


@dataclass
class GeminiSettings:
    api_key: str = ""
    model_name: str = DEFAULT_MODEL_NAME
    max_tokens: int = DEFAULT_MAX_TOKENS
    # Exactly one `%s` placeholder; empty means "send the question as is".
    query_template: str = ""
    thinking_level: str = ""
    thinking_budget: int | None = None

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "GeminiSettings":
        d = d or {}
        return cls(
            api_key=_as_str("gemini.api_key", d.get("api_key"), ""),
            model_name=_as_str("gemini.model_name", d.get("model_name"), cls.model_name),
            max_tokens=_as_int("gemini.max_tokens", d.get("max_tokens"), cls.max_tokens),
            query_template=_as_str("gemini.query_template", d.get("query_template"), ""),
            thinking_level=_as_str("gemini.thinking_level", d.get("thinking_level"), ""),
            thinking_budget=_as_optional_int("gemini.thinking_budget", d.get("thinking_budget")),
        )


@dataclass
class HttpSettings:
    host: str = "0.0.0.0"
    port: int = DEFAULT_HTTP_PORT
    endpoint_path: str = DEFAULT_ENDPOINT_PATH
    auth_token: str = ""
    allowed_origins: list[str] = field(default_factory=list)
    heartbeat_seconds: int = 0
    session_idle_seconds: int = DEFAULT_SESSION_IDLE_SECONDS

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "HttpSettings":
        d = d or {}
        return cls(
            host=_as_str("http.host", d.get("host"), cls.host),
            port=_as_int("http.port", d.get("port"), cls.port),
            endpoint_path=_as_str("http.endpoint_path", d.get("endpoint_path"), cls.endpoint_path),
            auth_token=_as_str("http.auth_token", d.get("auth_token"), ""),
            allowed_origins=_as_str_list("http.allowed_origins", d.get("allowed_origins")),
            heartbeat_seconds=_as_int("http.heartbeat_seconds", d.get("heartbeat_seconds"), 0),
            session_idle_seconds=_as_int(
                "http.session_idle_seconds", d.get("session_idle_seconds"), cls.session_idle_seconds
            ),
        )


@dataclass
class Settings:
    log: str = ""
    debug: bool = False
    gemini: GeminiSettings = field(default_factory=GeminiSettings)
    http: HttpSettings = field(default_factory=HttpSettings)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "Settings":
        raw = dict(raw or {})
        return cls(
            log=_as_str("log", raw.get("log"), ""),
            debug=_as_bool("debug", raw.get("debug"), False),
            gemini=GeminiSettings.from_dict(_section(raw, "gemini")),
            http=HttpSettings.from_dict(_section(raw, "http")),
        )
