"""
Unit tests for the ChromaDetect facade.
"""
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from chromadetect.api import ChromaDetect
from chromadetect.errors import EngineNotInitialized
from chromadetect.types import DetectionConfig, VideoConfig
from tests.fakes import FakeHandle, green


class TestConfig:
    """Tests for set_config merging"""

    @pytest.mark.asyncio
    async def test_merges_partial_updates(self, engine):
        cd = ChromaDetect(engine)
        await cd.init()
        await cd.set_config({"minSaturation": 0.4})
        cfg = await cd.set_config(DetectionConfig(confidence_threshold=0.5))
        assert cfg.min_saturation == 0.4
        assert cfg.confidence_threshold == 0.5
        assert cfg.min_area_percentage == 0.25
        pushed = engine.set_config.call_args.args[0]
        assert pushed == cfg

    @pytest.mark.asyncio
    async def test_config_before_init_is_applied_on_init(self, engine):
        cd = ChromaDetect(engine)
        await cd.set_config({"edgeSamplePercentage": 0.2})
        engine.set_config.assert_not_called()
        await cd.init()
        assert engine.set_config.call_args.args[0].edge_sample_percentage == 0.2

    @pytest.mark.asyncio
    async def test_out_of_range_rejected(self, engine):
        cd = ChromaDetect(engine)
        with pytest.raises(ValueError):
            await cd.set_config({"minSaturation": 1.5})


class TestDetect:
    """Tests for detect_from_image / detect_from_video passthrough"""

    @pytest.mark.asyncio
    async def test_image_requires_init(self, engine):
        with pytest.raises(EngineNotInitialized):
            await ChromaDetect(engine).detect_from_image(np.zeros((2, 2, 4), dtype=np.uint8))

    @pytest.mark.asyncio
    async def test_image_uses_engine(self, engine):
        cd = ChromaDetect(engine)
        await cd.init()
        res = await cd.detect_from_image(np.zeros((3, 5, 4), dtype=np.uint8))
        assert res == green()
        _, w, h = engine.detect_from_image.call_args.args
        assert (w, h) == (5, 3)

    @pytest.mark.asyncio
    async def test_image_async_engine_dict_result(self):
        eng = AsyncMock()
        eng.detect_from_image.return_value = green().to_dict()
        cd = ChromaDetect(eng)
        await cd.init()
        assert await cd.detect_from_image(np.zeros((2, 2, 4), dtype=np.uint8)) == green()

    @pytest.mark.asyncio
    async def test_video(self, engine):
        cd = ChromaDetect(engine)
        await cd.init()
        on_frame = MagicMock()
        res = await cd.detect_from_video(FakeHandle(), VideoConfig(frame_sample_count=3), on_frame=on_frame)
        assert res.hue == pytest.approx(120.0)
        assert on_frame.call_count == 3
