"""
Integration tests for the HTTP sidecar, with scripted media handles behind it.
"""
import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from chromadetect.api import ChromaDetect
from chromadetect.video.frame_extractor import FrameExtractor
from chromadetect.video.source_loader import SourceLoader
from sidecar import server

pytestmark = pytest.mark.integration

MP4 = {"content-type": "video/mp4"}


@pytest.fixture
def install(engine, url_store, handle_factory, monkeypatch):
    """Put a ChromaDetect over fake handles into the sidecar state."""
    def _install(**handle_kw):
        factory = handle_factory(**handle_kw)
        loader = SourceLoader(url_store, handle_factory=factory)
        cd = ChromaDetect(engine, loader=loader, extractor=FrameExtractor(0.05))
        monkeypatch.setitem(server.STATE, "detector", cd)
        monkeypatch.setitem(server.STATE, "lock", None)
        return cd, factory
    return _install


@pytest.fixture
def client():
    return TestClient(server.app)


class TestHealth:

    def test_health(self, client):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json()["ok"] is True


class TestDetect:
    """Tests for POST /detect"""

    def test_detect_upload(self, client, install, url_store):
        cd, factory = install()
        res = client.post("/detect", params={"frames": 3, "name": "clip.mp4"}, content=b"\x00" * 64, headers=MP4)
        assert res.status_code == 200
        body = res.json()
        assert body["ok"] is True
        assert body["result"]["hue"] == pytest.approx(120.0)
        assert body["result"]["method"] == "hybrid"
        assert body["stats"]["submitted"] == 3
        assert cd.initialized
        assert factory.made[0].close_calls == 1
        assert url_store.revoke_object_url.call_count == 1

    def test_type_guessed_from_name(self, client, install):
        install()
        res = client.post("/detect", params={"frames": 1, "name": "clip.mp4"}, content=b"\x00")
        assert res.status_code == 200

    def test_not_a_video(self, client, install, url_store):
        install()
        res = client.post("/detect", content=b"hello", headers={"content-type": "text/plain"})
        assert res.status_code == 415
        url_store.create_object_url.assert_not_called()

    def test_undecodable_video(self, client, install, url_store):
        install(load_mode="error")
        res = client.post("/detect", content=b"\x00" * 8, headers=MP4)
        assert res.status_code == 422
        assert "Failed to load video" in res.json()["detail"]
        assert url_store.revoke_object_url.call_count == 1

    def test_empty_body(self, client, install):
        install()
        res = client.post("/detect", content=b"", headers=MP4)
        assert res.status_code == 400

    def test_all_frames_skipped(self, client, install):
        install(seek_mode="error")
        res = client.post("/detect", params={"frames": 2}, content=b"\x00", headers=MP4)
        assert res.status_code == 200
        body = res.json()
        assert body["result"] is None
        assert len(body["stats"]["skipped"]) == 2

    def test_no_engine_configured(self, client, monkeypatch):
        monkeypatch.setitem(server.STATE, "detector", None)
        monkeypatch.setattr(server.SETTINGS, "engine", None)
        res = client.post("/detect", content=b"\x00", headers=MP4)
        assert res.status_code == 503


class TestConfig:
    """Tests for PUT /config"""

    def test_update(self, client, install, engine):
        install()
        res = client.put("/config", json={"minSaturation": 0.3})
        assert res.status_code == 200
        cfg = res.json()["config"]
        assert cfg["minSaturation"] == pytest.approx(0.3)
        assert cfg["confidenceThreshold"] == pytest.approx(0.7)
        assert engine.set_config.call_args.args[0].min_saturation == pytest.approx(0.3)

    def test_out_of_range(self, client, install):
        install()
        res = client.put("/config", json={"confidenceThreshold": 2.0})
        assert res.status_code == 422


class TestSerialization:
    """Tests for requests sharing one engine"""

    @pytest.mark.asyncio
    async def test_each_upload_gets_its_own_stats(self, install):
        install()
        transport = httpx.ASGITransport(app=server.app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            responses = await asyncio.gather(*[
                ac.post("/detect", params={"frames": n}, content=b"\x00", headers=MP4) for n in (1, 2, 3, 4)
            ])
        for n, res in zip((1, 2, 3, 4), responses):
            assert res.status_code == 200
            assert len(res.json()["stats"]["plan"]) == n
            assert res.json()["stats"]["submitted"] == n

    @pytest.mark.asyncio
    async def test_config_waits_for_running_session(self, install, engine):
        install()
        transport = httpx.ASGITransport(app=server.app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            lock = server._lock()
            await lock.acquire()
            put = asyncio.create_task(ac.put("/config", json={"minSaturation": 0.3}))
            await asyncio.sleep(0.05)
            assert not put.done()
            assert all(c.args[0].min_saturation != 0.3 for c in engine.set_config.call_args_list)
            lock.release()
            res = await put
        assert res.status_code == 200
        assert engine.set_config.call_args.args[0].min_saturation == pytest.approx(0.3)
