from __future__ import annotations

import signal
import socket
import subprocess
import time
from pathlib import Path

import httpx
import pytest


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def _wait_healthy(base: str, p: subprocess.Popen, deadline: float = 20.0) -> None:
    end = time.monotonic() + deadline
    while time.monotonic() < end:
        if p.poll() is not None:
            raise AssertionError(f"server exited early: {p.returncode}")
        try:
            if httpx.get(f"{base}/health", timeout=1).text == "ok":
                return
        except httpx.HTTPError:
            pass
        time.sleep(0.1)
    raise AssertionError("server did not become healthy")


@pytest.mark.integration
def test_http_server_sigterm_exits_cleanly(tmp_path: Path, python: str, subprocess_env: dict[str, str]) -> None:
    port = _free_port()
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        f"http:\n  host: 127.0.0.1\n  port: {port}\n  auth_token: tok\n  allowed_origins: [https://app.example]\n",
        encoding="utf-8",
    )
    p = subprocess.Popen(
        [python, "-m", "grounded_search_mcp.mcp_server._test_entrypoint", "http", "-c", str(cfg)],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        env=subprocess_env,
    )
    base = f"http://127.0.0.1:{port}"
    try:
        _wait_healthy(base, p)

        init = {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "2025-03-26"}}
        assert httpx.post(f"{base}/mcp", json=init).status_code == 401
        assert httpx.post(f"{base}/mcp", json=init, headers={"Origin": "https://evil.example"}).status_code == 403

        r = httpx.post(f"{base}/mcp", json=init, headers={"Authorization": "Bearer tok"})
        assert r.status_code == 200
        sid = r.headers["Mcp-Session-Id"]

        call = {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "search", "arguments": {"query": "q"}}}
        r = httpx.post(f"{base}/mcp", json=call, headers={"Authorization": "Bearer tok", "Mcp-Session-Id": sid})
        assert r.json()["result"]["isError"] is False

        p.send_signal(signal.SIGTERM)
        _, stderr = p.communicate(timeout=30)
    finally:
        if p.poll() is None:
            p.kill()
            p.communicate()

    assert p.returncode == 0, stderr
    assert "http server stopped" in stderr


@pytest.mark.integration
def test_http_port_in_use_exits_1(tmp_path: Path, python: str, subprocess_env: dict[str, str]) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.listen(1)
        port = s.getsockname()[1]
        cfg = tmp_path / "config.yml"
        cfg.write_text(f"gemini:\n  api_key: k\nhttp:\n  host: 127.0.0.1\n  port: {port}\n", encoding="utf-8")

        p = subprocess.run(
            [python, "-m", "grounded_search_mcp", "httpserver", "-c", str(cfg)],
            capture_output=True,
            text=True,
            env=subprocess_env,
            timeout=30,
        )
    assert p.returncode == 1
    assert "Error: failed to listen" in p.stderr
