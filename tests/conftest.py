"""
Shared pytest fixtures: scripted media handles and engines, no real video needed.
"""
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Make the repo root and src/ importable when running pytest without installing
_root = Path(__file__).resolve().parents[1]
for _p in (_root, _root / "src"):
    if str(_p) not in sys.path:
        sys.path.insert(0, str(_p))

from chromadetect.engine.session import SessionEngine  # noqa: E402
from chromadetect.video.media import ReadyState  # noqa: E402
from chromadetect.video.object_urls import ObjectUrlStore  # noqa: E402
from tests.fakes import FakeHandle, green  # noqa: E402


@pytest.fixture
def url_store(tmp_path):
    """ObjectUrlStore writing under tmp_path, with call counting."""
    return MagicMock(wraps=ObjectUrlStore(tmp_path))


@pytest.fixture
def handle_factory():
    """Build factories for loader-made handles; every handle made is kept on .made."""
    made = []

    def _factory(**kw):
        def make():
            h = FakeHandle(ready_state=ReadyState.HAVE_NOTHING, **kw)
            made.append(h)
            return h
        make.made = made
        return make

    return _factory


@pytest.fixture
def engine():
    """Real SessionEngine over a detector that reports green for every frame."""
    detector = MagicMock(side_effect=lambda pixels, w, h, cfg: green())
    return MagicMock(wraps=SessionEngine(detector))
