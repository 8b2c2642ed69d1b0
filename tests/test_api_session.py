from __future__ import annotations

import time
from pathlib import Path

from fakes import FakeHandle, FakeLauncher, FakeReasoning
from fastapi.testclient import TestClient

from optirun.runtime.domain.models import HistoryRecord
from optirun.server.api import create_app


def _client(tmp_path: Path, launcher: FakeLauncher | None = None, reasoning: FakeReasoning | None = None) -> TestClient:
    app = create_app(
        project_dir=tmp_path,
        enable_cors=False,
        process=launcher or FakeLauncher(),
        reasoning=reasoning or FakeReasoning(),
    )
    return TestClient(app)


def _wait_for_status(client: TestClient, status_text: str) -> dict:
    for _ in range(200):
        session = client.get("/api/session").json()["session"]
        if session["status_text"] == status_text and not session["active"]:
            return session
        time.sleep(0.01)
    raise AssertionError(f"session never reached {status_text!r}")


def test_healthz_and_initial_session(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        health = client.get("/healthz")
        session = client.get("/api/session")

    assert health.status_code == 200
    assert health.json()["status"] == "ok"
    body = session.json()["session"]
    assert body["status"] == "idle"
    assert body["status_text"] == "Ready"
    assert body["samples"] == []
    assert "saved_analysis" not in body


def test_run_without_script_is_rejected(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        resp = client.post("/api/session/run", json={"script_path": "", "args_text": ""})

    assert resp.status_code == 200
    assert resp.json()["accepted"] is False
    assert resp.json()["session"]["status_text"] == "No File Selected"


def test_run_streams_analyzes_and_records_history(tmp_path: Path) -> None:
    lines = ["iter1 gap=40%", "iter2 gap=10%"]
    launcher = FakeLauncher(FakeHandle(lines, final="\n".join(lines)))
    with _client(tmp_path, launcher) as client:
        client.put("/api/settings", json={"api_key": "secret"})
        resp = client.post("/api/session/run", json={"script_path": "models/solve.py", "args_text": "--seed 1"})
        assert resp.json()["accepted"] is True

        session = _wait_for_status(client, "Done")
        history = client.get("/api/history").json()["history"]

    assert [s["value"] for s in session["samples"]] == [40.0, 10.0]
    assert session["analysis"] == "# Report\n\nGap closed."
    assert len(history) == 1
    assert history[0]["scriptLabel"] == "solve.py"
    assert history[0]["argsText"] == "--seed 1"


def test_settings_never_echo_api_key(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        initial = client.get("/api/settings").json()["settings"]
        updated = client.put("/api/settings", json={"api_key": "top-secret", "model_id": "gemini-x"})
        cleared = client.put("/api/settings", json={"api_key": ""}).json()["settings"]

    assert initial["api_key_configured"] is False
    assert initial["model_id"] == "gemini-2.5-flash"
    assert updated.status_code == 200
    assert "top-secret" not in updated.text
    assert updated.json()["settings"]["api_key_configured"] is True
    assert updated.json()["settings"]["model_id"] == "gemini-x"
    assert cleared["api_key_configured"] is False
    assert cleared["model_id"] == "gemini-x"


def test_history_clear_requires_confirmation(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        client.app.state.container.history.append(HistoryRecord(script_label="a.py", log="gap 1%\n"))

        refused = client.delete("/api/history")
        still_there = client.get("/api/history").json()["history"]
        cleared = client.delete("/api/history", params={"confirm": "true"})
        after = client.get("/api/history").json()["history"]

    assert refused.status_code == 400
    assert len(still_there) == 1
    assert cleared.status_code == 200
    assert after == []


def test_restore_history_rebuilds_session(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        client.app.state.container.history.append(
            HistoryRecord(script_label="b.py", args_text="-v", log="gap 30%\ngap 3%\n", analysis="# Stored")
        )

        missing = client.post("/api/history/5/restore")
        restored = client.post("/api/history/0/restore")

    assert missing.status_code == 404
    assert restored.status_code == 200
    session = restored.json()["session"]
    assert session["status_text"] == "Loaded from history"
    assert session["analysis"] == "# Stored"
    assert [s["value"] for s in session["samples"]] == [30.0, 3.0]


def test_preview_and_analyze_need_a_log(tmp_path: Path) -> None:
    reasoning = FakeReasoning()
    with _client(tmp_path, reasoning=reasoning) as client:
        preview = client.post("/api/session/preview", json={})
        analyze = client.post("/api/session/analyze", json={"focus_point": "bound"})

    assert preview.json()["changed"] is False
    assert analyze.json()["ok"] is False
    assert analyze.json()["session"]["focus_point"] == "bound"
    assert reasoning.preview_calls == []
    assert reasoning.analyze_calls == []


def test_preview_toggle_round_trip(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        client.app.state.container.history.append(HistoryRecord(script_label="c.py", log="gap 9%\n", analysis="# Old"))
        client.post("/api/history/0/restore")

        shown = client.post("/api/session/preview", json={"focus_point": "gap"}).json()["session"]
        hidden = client.post("/api/session/preview", json={}).json()["session"]

    assert shown["status"] == "previewing_prompt"
    assert "PROMPT[gap]" in shown["analysis"]
    assert hidden["status"] == "idle"
    assert hidden["status_text"] == "Loaded from history"
    assert hidden["analysis"] == "# Old"


def test_cancel_without_run_is_noop(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        resp = client.post("/api/session/cancel")

    assert resp.json()["cancelled"] is False


def test_websocket_subscribe(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        with client.websocket_connect("/ws") as ws:
            hello = ws.receive_json()
            ws.send_json({"action": "subscribe", "channels": ["session", "bogus"]})
            ack = ws.receive_json()

    assert hello["type"] == "connected"
    assert ack["type"] == "subscribed"
    assert ack["payload"]["channels"] == ["session"]


def test_websocket_receives_session_events(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"action": "subscribe", "channels": ["session"]})
            ws.receive_json()

            client.post("/api/session/run", json={"script_path": ""})
            event = ws.receive_json()

    assert event["channel"] == "session"
    assert event["type"] == "session.status"
    assert event["payload"]["status_text"] == "No File Selected"
    assert event["seq"] >= 1
