from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from PIL import Image

import yearsago.yearsago_server as yearsago_server
from yearsago.config.config import get_default_config
from yearsago.yearsago_server import EntryResponse, TimelineResponse, create_app

NOW = datetime(2025, 4, 5, 12, 0, tzinfo=timezone.utc)


def _client(root, **overrides) -> TestClient:
    config = get_default_config()
    config["storage_root"] = str(root)
    config.update(overrides)
    return TestClient(create_app(config))


def _populate(tmp_path):
    (tmp_path / "featured_0.txt").write_text("1700000000", encoding="utf-8")
    (tmp_path / "featured_1.txt").write_text("1700003600", encoding="utf-8")
    Image.new("RGB", (6, 3), "white").save(tmp_path / "featured.jpg", "JPEG")


def test_health(tmp_path):
    resp = _client(tmp_path).get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_timeline(tmp_path):
    _populate(tmp_path)

    resp = _client(tmp_path).get("/timeline", params={"now": NOW.isoformat()})

    assert resp.status_code == 200
    body = TimelineResponse.model_validate(resp.json())
    assert [e.scheduled_at for e in body.entries] == [NOW, NOW + timedelta(hours=1)]
    assert body.next_refresh_at == NOW + timedelta(hours=2)
    assert body.entries[0].years_ago_label == "2 Years Ago"
    assert body.entries[0].image.filename == "featured.jpg"
    assert (body.entries[0].image.width, body.entries[0].image.height) == (6, 3)


def test_timeline_uses_configured_stride(tmp_path):
    _populate(tmp_path)

    resp = _client(tmp_path, entry_stride_minutes=10).get("/timeline", params={"now": NOW.isoformat()})

    body = TimelineResponse.model_validate(resp.json())
    assert body.entries[1].scheduled_at - body.entries[0].scheduled_at == timedelta(minutes=10)


def test_timeline_naive_now_takes_configured_timezone(tmp_path):
    _populate(tmp_path)

    resp = _client(tmp_path, timezone="UTC").get("/timeline", params={"now": "2025-04-05T12:00:00"})

    body = TimelineResponse.model_validate(resp.json())
    assert body.entries[0].scheduled_at == NOW


def test_timeline_missing_storage_is_degraded_not_an_error(tmp_path):
    resp = _client(tmp_path / "missing").get("/timeline", params={"now": NOW.isoformat()})

    assert resp.status_code == 200
    body = TimelineResponse.model_validate(resp.json())
    assert len(body.entries) == 1
    assert body.entries[0].years_ago_label == "Some time ago"
    assert body.entries[0].image is None
    assert body.next_refresh_at == NOW + timedelta(hours=1)


def test_timeline_bad_now(tmp_path):
    resp = _client(tmp_path).get("/timeline", params={"now": "tomorrow-ish"})
    assert resp.status_code == 422


def test_snapshot_and_placeholder(tmp_path):
    _populate(tmp_path)
    (tmp_path / "featured_date.txt").write_text(str(datetime(2020, 1, 1, tzinfo=timezone.utc).timestamp()), encoding="utf-8")
    client = _client(tmp_path)

    snap = EntryResponse.model_validate(client.get("/snapshot", params={"now": NOW.isoformat()}).json())
    assert snap.years_ago_label == "5 Years Ago"
    assert snap.formatted_date == "January 1st, 2020"

    holder = EntryResponse.model_validate(client.get("/placeholder", params={"now": NOW.isoformat()}).json())
    assert holder.years_ago_label == "4 Years Ago"
    assert holder.image is None


def test_image(tmp_path):
    _populate(tmp_path)

    resp = _client(tmp_path).get("/image")

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/jpeg"
    assert resp.content == (tmp_path / "featured.jpg").read_bytes()


def test_image_missing(tmp_path):
    resp = _client(tmp_path).get("/image")
    assert resp.status_code == 404


def test_build_app_configures_logging(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(yearsago_server, "configure_logging", lambda **kwargs: calls.append(kwargs))
    config = get_default_config()
    config["storage_root"] = str(tmp_path)
    config["log_file"] = str(tmp_path / "logs" / "yearsago.log")
    config["log_level"] = "DEBUG"

    client = TestClient(yearsago_server.build_app(config))

    assert calls == [{"log_file": config["log_file"], "level": "DEBUG", "enable_console": False}]
    assert client.get("/health").status_code == 200
