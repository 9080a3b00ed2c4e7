from __future__ import annotations

from pathlib import Path

import pytest

from grounded_search_mcp.config import (
    ConfigError,
    Settings,
    apply_overrides,
    check_query_template,
    load_settings,
    require_api_key,
)


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "config.yml"
    p.write_text(text.strip() + "\n", encoding="utf-8")
    return p


def test_load_settings_from_yaml(tmp_path: Path) -> None:
    p = _write(
        tmp_path,
        """
log: /tmp/mcp.log
debug: true
gemini:
  api_key: file-key
  model_name: gemini-2.5-flash
  max_tokens: 2048
  query_template: "Answer with sources: %s"
  thinking_level: low
http:
  port: 9090
  endpoint_path: /rpc
  auth_token: secret
  allowed_origins: [https://app.example]
  heartbeat_seconds: 15
  session_idle_seconds: -1
""",
    )
    s = load_settings(p, env={})
    assert s.log == "/tmp/mcp.log"
    assert s.debug is True
    assert s.gemini.api_key == "file-key"
    assert s.gemini.model_name == "gemini-2.5-flash"
    assert s.gemini.max_tokens == 2048
    assert s.gemini.thinking_level == "LOW"
    assert s.http.port == 9090
    assert s.http.endpoint_path == "/rpc"
    assert s.http.allowed_origins == ["https://app.example"]
    assert s.http.heartbeat_seconds == 15
    assert s.http.session_idle_seconds == 0


def test_missing_file_uses_defaults(tmp_workdir: Path) -> None:
    s = load_settings(tmp_workdir / "absent.yml", env={})
    assert s == Settings()
    assert s.gemini.model_name == "gemini-3-pro-preview"
    assert s.gemini.max_tokens == 5000
    assert s.http.port == 8080
    assert s.http.endpoint_path == "/mcp"
    assert s.http.session_idle_seconds == 1800


def test_env_overrides_file(tmp_path: Path) -> None:
    p = _write(tmp_path, "gemini:\n  api_key: file-key\n  model_name: from-file\n")
    s = load_settings(
        p,
        env={
            "GEMINI_API_KEY": "env-key",
            "HTTP_PORT": "7000",
            "HTTP_ALLOWED_ORIGINS": "https://a.example, https://b.example",
            "DEBUG": "1",
        },
    )
    assert s.gemini.api_key == "env-key"
    assert s.gemini.model_name == "from-file"
    assert s.http.port == 7000
    assert s.http.allowed_origins == ["https://a.example", "https://b.example"]
    assert s.debug is True


def test_cli_overrides_win_and_none_keeps_value(tmp_path: Path) -> None:
    p = _write(tmp_path, "gemini:\n  api_key: file-key\n  model_name: from-file\n")
    s = load_settings(p, env={"GEMINI_API_KEY": "env-key"})
    s = apply_overrides(s, api_key="flag-key", model_name=None, thinking_level="high", debug=None)
    assert s.gemini.api_key == "flag-key"
    assert s.gemini.model_name == "from-file"
    assert s.gemini.thinking_level == "HIGH"
    assert s.debug is False

    with pytest.raises(TypeError):
        apply_overrides(s, port=1)


def test_non_positive_max_tokens_falls_back_to_default(tmp_path: Path) -> None:
    s = load_settings(_write(tmp_path, "gemini:\n  max_tokens: 0\n"), env={})
    assert s.gemini.max_tokens == 5000


@pytest.mark.parametrize(
    "text",
    [
        "gemini: [1, 2]",
        "gemini:\n  thinking_level: ULTRA\n",
        "gemini:\n  query_template: no placeholder\n",
        "http:\n  port: 70000\n",
        "http:\n  endpoint_path: mcp\n",
        "http:\n  port: eighty\n",
        "- just\n- a list\n",
        "key: [unclosed\n",
    ],
)
def test_invalid_config_is_rejected(tmp_path: Path, text: str) -> None:
    with pytest.raises(ConfigError):
        load_settings(_write(tmp_path, text), env={})


def test_query_template_rules() -> None:
    check_query_template("%s")
    check_query_template("100%% sure: %s")
    for bad in ["", "%s and %s", "%d", "plain"]:
        with pytest.raises(ConfigError):
            check_query_template(bad)


def test_require_api_key() -> None:
    s = Settings()
    with pytest.raises(ConfigError) as e:
        require_api_key(s)
    assert "GEMINI_API_KEY" in str(e.value)
    s.gemini.api_key = "k"
    require_api_key(s)
