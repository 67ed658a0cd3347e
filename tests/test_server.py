"""Tests for server.py Flask endpoints — the LLM stream is mocked."""

import json
from unittest.mock import patch

import pytest

from config.prompts import FIX_PROMPT, GENERATE_PROMPT


@pytest.fixture
def client():
    import server
    server.app.config["TESTING"] = True
    with server.app.test_client() as c:
        yield c


def _records(resp):
    return [json.loads(line) for line in resp.get_data(as_text=True).splitlines() if line.strip()]


# ---------------------------------------------------------------------------
# POST /api/generateCode
# ---------------------------------------------------------------------------

def test_generate_missing_prompt(client):
    resp = client.post("/api/generateCode", json={})
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_generate_blank_prompt(client):
    resp = client.post("/api/generateCode", json={"prompt": "   "})
    assert resp.status_code == 400


def test_generate_streams_one_record_per_delta(client):
    deltas = iter(["import", " React...", "export default..."])
    with patch("server.stream_completion", return_value=deltas):
        resp = client.post("/api/generateCode", json={"prompt": "build a counter", "messages": []})

    assert resp.status_code == 200
    assert resp.mimetype == "text/event-stream"
    assert resp.headers["Cache-Control"] == "no-cache"
    records = _records(resp)
    assert [r["choices"][0]["text"] for r in records] == ["import", " React...", "export default..."]
    assert all("cleanedCode" not in r["choices"][0] for r in records)


def test_generate_fenced_output_ends_with_cleaned_record(client):
    deltas = iter(["```tsx\n", "import React...", "\n```"])
    with patch("server.stream_completion", return_value=deltas):
        resp = client.post("/api/generateCode", json={"prompt": "build a counter"})

    records = _records(resp)
    assert len(records) == 4
    last = records[-1]["choices"][0]
    assert last == {"text": "", "cleanedCode": "import React..."}


def test_generate_uses_initial_prompt(client):
    with patch("server.stream_completion", return_value=iter(["x"])) as mock_stream:
        client.post("/api/generateCode", json={"prompt": "build a counter", "messages": []})
    mock_stream.assert_called_once_with(GENERATE_PROMPT, "build a counter")


def test_generate_fix_mode_sends_code_composite(client):
    body = {
        "prompt": "make it blue",
        "messages": [{"role": "user", "content": "build a counter"},
                     {"role": "assistant", "content": "CODE"},
                     {"role": "user", "content": "make it blue"}],
        "currentCode": "CODE",
    }
    with patch("server.stream_completion", return_value=iter(["x"])) as mock_stream:
        client.post("/api/generateCode", json=body)
    mock_stream.assert_called_once_with(
        FIX_PROMPT, "Current code:\n\nCODE\n\nUser request: make it blue",
    )


def test_code_without_history_is_initial_mode(client):
    with patch("server.stream_completion", return_value=iter(["x"])) as mock_stream:
        client.post("/api/generateCode", json={"prompt": "p", "messages": [], "currentCode": "CODE"})
    assert mock_stream.call_args[0][0] == GENERATE_PROMPT


def test_backend_failure_before_stream_is_500(client):
    def failing(*args, **kwargs):
        raise RuntimeError("ANTHROPIC_API_KEY environment variable is not set")
        yield  # pragma: no cover

    with patch("server.stream_completion", side_effect=failing):
        resp = client.post("/api/generateCode", json={"prompt": "p"})
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to generate code"}


def test_empty_backend_output(client):
    with patch("server.stream_completion", return_value=iter([])):
        resp = client.post("/api/generateCode", json={"prompt": "p"})
    assert resp.status_code == 200
    assert _records(resp) == []


# ---------------------------------------------------------------------------
# POST /api/sandbox
# ---------------------------------------------------------------------------

def test_sandbox_files(client):
    resp = client.post("/api/sandbox", json={"code": "export default function App() {}"})
    files = resp.get_json()["files"]
    assert set(files) == {"/App.tsx", "/index.tsx", "/public/index.html"}
    assert files["/App.tsx"] == "export default function App() {}"


def test_sandbox_host_page(client):
    resp = client.post("/api/sandbox", json={"code": "export default 1", "format": "html"})
    assert resp.mimetype == "text/html"
    assert b"cdn.tailwindcss.com" in resp.data


def test_sandbox_missing_code(client):
    assert client.post("/api/sandbox", json={}).status_code == 400


def test_health(client):
    assert client.get("/api/health").get_json() == {"status": "ok"}


def test_mid_stream_failure_is_logged_without_cleanup_record(caplog):
    import server

    def broken():
        yield "import React..."
        raise RuntimeError("connection reset")

    emitted = []
    with caplog.at_level("ERROR", logger="server"):
        with pytest.raises(RuntimeError):
            for chunk in server._records("```tsx\n", broken()):
                emitted.append(json.loads(chunk))
    assert [r["choices"][0]["text"] for r in emitted] == ["```tsx\n", "import React..."]
    assert all("cleanedCode" not in r["choices"][0] for r in emitted)
    assert "Backend stream failed" in caplog.text
