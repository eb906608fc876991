import json

import pytest

from services.limiting import limiter


# ---------- prompt-auth ----------
def test_prompt_auth_accepts_configured_code(client):
    r = client.post("/api/prompt-auth", json={"code": "  secret "})
    assert r.status_code == 200
    assert r.json()["success"] is True


def test_prompt_auth_rejects_with_200(client):
    r = client.post("/api/prompt-auth", json={"code": "nope"})
    assert r.status_code == 200
    assert r.json()["success"] is False


def test_prompt_auth_missing_code_is_rejected(client):
    r = client.post("/api/prompt-auth", json={})
    assert r.status_code == 200
    assert r.json()["success"] is False


def test_invalid_body_is_400(client):
    r = client.post(
        "/api/prompt-auth",
        content="not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


# ---------- leave-message ----------
def test_leave_message_saves_record(client, config):
    r = client.post(
        "/api/leave-message",
        json={"code": "secret", "nickname": " Ann ", "content": "hi"},
    )

    assert r.status_code == 200
    assert r.json()["success"] is True
    records = json.loads(config.message_file.read_text(encoding="utf-8"))
    assert len(records) == 1
    assert list(records[0]) == ["nickname", "content", "createdAt"]
    assert records[0]["nickname"] == "Ann"
    assert records[0]["content"] == "hi"
    assert records[0]["createdAt"].endswith("Z")


def test_leave_message_appends(client, config):
    for text in ("first", "second"):
        client.post(
            "/api/leave-message",
            json={"code": "other", "nickname": "Bob", "content": text},
        )

    records = json.loads(config.message_file.read_text(encoding="utf-8"))
    assert [r["content"] for r in records] == ["first", "second"]


def test_leave_message_wrong_code_is_401(client, config):
    r = client.post(
        "/api/leave-message",
        json={"code": "wrong", "nickname": "Ann", "content": "hi"},
    )

    assert r.status_code == 401
    assert r.json()["success"] is False
    assert not config.message_file.exists()


@pytest.mark.parametrize(
    "payload",
    [
        {"code": "secret", "nickname": "Ann", "content": "   "},
        {"code": "secret", "nickname": "", "content": "hi"},
        {"code": "secret"},
    ],
)
def test_leave_message_missing_fields_is_400(client, config, payload):
    r = client.post("/api/leave-message", json=payload)

    assert r.status_code == 400
    assert r.json()["success"] is False
    assert not config.message_file.exists()


def test_leave_message_storage_failure_is_500(client, config):
    config.message_file.mkdir(parents=True)

    r = client.post(
        "/api/leave-message",
        json={"code": "secret", "nickname": "Ann", "content": "hi"},
    )

    assert r.status_code == 500
    body = r.json()
    assert body["success"] is False
    assert str(config.data_dir) not in r.text


# ---------- user-input-log ----------
def _log_lines(config):
    return [json.loads(l) for l in config.input_log_file.read_text(encoding="utf-8").splitlines()]


def test_input_log_appends_entry(client, config):
    r = client.post(
        "/api/user-input-log",
        json={"rawInput": "  raw text ", "response": "ok"},
        headers={"X-Forwarded-For": "1.2.3.4, 10.0.0.1"},
    )

    assert r.status_code == 200
    assert r.json() == {"success": True}
    [entry] = _log_lines(config)
    assert entry["rawInput"] == "  raw text "
    assert entry["response"] == "ok"
    assert entry["clientIp"] == "1.2.3.4"
    assert "images" not in entry


def test_input_log_uses_real_ip_then_unknown(client, config):
    client.post("/api/user-input-log", json={"rawInput": "a"}, headers={"X-Real-IP": "9.9.9.9"})
    client.post("/api/user-input-log", json={"rawInput": "b"})

    first, second = _log_lines(config)
    assert first["clientIp"] == "9.9.9.9"
    assert second["clientIp"] == "unknown"
    assert "response" not in second


def test_input_log_with_image(client, config, png_data_url):
    r = client.post("/api/user-input-log", json={"rawInput": "look", "images": [png_data_url]})

    assert r.status_code == 200
    [entry] = _log_lines(config)
    assert len(entry["images"]) == 1
    assert entry["images"][0].endswith(".png")
    assert (config.attachments_dir / entry["images"][0]).exists()
    assert r.json()["images"] == entry["images"]


def test_input_log_drops_malformed_image(client, config, png_data_url):
    r = client.post(
        "/api/user-input-log",
        json={"rawInput": "look", "images": ["data:image/png;base64,%%%", png_data_url]},
    )

    assert r.status_code == 200
    [entry] = _log_lines(config)
    assert len(entry["images"]) == 1


def test_input_log_storage_failure_is_500(client, config):
    config.input_log_file.mkdir(parents=True)

    r = client.post("/api/user-input-log", json={"rawInput": "x"})

    assert r.status_code == 500
    assert r.json()["success"] is False


# ---------- misc ----------
def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_auth_is_rate_limited(client, monkeypatch):
    monkeypatch.setattr(limiter, "enabled", True)

    headers = {"X-Forwarded-For": "203.0.113.7"}
    codes = [client.post("/api/prompt-auth", json={"code": "x"}, headers=headers).status_code for _ in range(40)]

    assert codes[0] == 200
    assert codes[-1] == 429


def test_leave_message_unencodable_content_is_json_500(client, config):
    # lone surrogate: valid JSON escape, not encodable as UTF-8
    r = client.post(
        "/api/leave-message",
        content='{"code": "secret", "nickname": "Ann", "content": "hi \\ud800"}',
        headers={"Content-Type": "application/json"},
    )

    assert r.status_code == 500
    assert r.json()["success"] is False
    assert not config.message_file.exists()
    assert list(config.data_dir.iterdir()) == []


def test_input_log_unencodable_raw_input_is_json_500(client, config):
    r = client.post(
        "/api/user-input-log",
        content='{"rawInput": "\\udc80"}',
        headers={"Content-Type": "application/json"},
    )

    assert r.status_code == 500
    assert r.json()["success"] is False
    assert not config.input_log_file.exists()


def test_input_log_non_string_image_is_skipped(client, config, png_data_url):
    r = client.post(
        "/api/user-input-log",
        json={"rawInput": "look", "images": [png_data_url, None, 7]},
    )

    assert r.status_code == 200
    [entry] = _log_lines(config)
    assert entry["rawInput"] == "look"
    assert entry["images"] == r.json()["images"]
    assert len(entry["images"]) == 1
    assert entry["images"][0].endswith("-0.png")
