import asyncio, logging
from typing import Optional
from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel

from chromadetect.api import ChromaDetect
from chromadetect.config import load_engine, load_settings
from chromadetect.errors import LoadError, SessionBusyError, UnsupportedSourceError
from chromadetect.types import MediaBlob, SampleStrategy, VideoConfig
from chromadetect.video.frame_extractor import FrameExtractor
from chromadetect.video.object_urls import ObjectUrlStore
from chromadetect.video.source_loader import SourceLoader

log = logging.getLogger("sidecar")

# ====== state ======
SETTINGS = load_settings()
STATE = {
    "detector": None,   # ChromaDetect, built on first use
    "lock": None,       # asyncio.Lock, one video at a time per engine
}

async def get_detector() -> ChromaDetect:
    if STATE["detector"] is None:
        if not SETTINGS.engine:
            raise HTTPException(status_code=503, detail="No engine configured (CHROMADETECT_ENGINE)")
        loader = SourceLoader(ObjectUrlStore(SETTINGS.tmp_dir), load_timeout=SETTINGS.load_timeout)
        STATE["detector"] = ChromaDetect(load_engine(SETTINGS.engine), loader=loader,
                                         extractor=FrameExtractor(SETTINGS.seek_timeout))
    cd = STATE["detector"]
    if not cd.initialized:
        await cd.init()
        await cd.set_config(SETTINGS.detection)
    return cd

def _lock() -> asyncio.Lock:
    if STATE["lock"] is None:
        STATE["lock"] = asyncio.Lock()
    return STATE["lock"]

# ====== FastAPI ======
app = FastAPI(title="chromadetect-sidecar", version="0.1.0")

class ConfigReq(BaseModel):
    minAreaPercentage: Optional[float] = None
    minSaturation: Optional[float] = None
    edgeSamplePercentage: Optional[float] = None
    confidenceThreshold: Optional[float] = None

@app.get("/health")
def health():
    return {"ok": True, "engine": SETTINGS.engine}

@app.put("/config")
async def put_config(req: ConfigReq):
    cd = await get_detector()
    # thresholds must not change under a running session
    async with _lock():
        try:
            cfg = await cd.set_config(req.model_dump(exclude_none=True))
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
    return {"ok": True, "config": cfg.model_dump(by_alias=True)}

@app.post("/detect")
async def detect(
    request: Request,
    frames: Optional[int] = Query(None, ge=1),
    strategy: Optional[SampleStrategy] = None,
    max_duration: Optional[float] = Query(None, gt=0),
    name: str = "",
):
    body = await request.body()
    if not body:
        raise HTTPException(status_code=400, detail="empty body")
    blob = MediaBlob(body, type=request.headers.get("content-type", ""), name=name)
    over = {"frame_sample_count": frames, "sample_strategy": strategy, "max_duration": max_duration}
    vcfg = VideoConfig.model_validate({**SETTINGS.video.model_dump(), **{k: v for k, v in over.items() if v is not None}})

    cd = await get_detector()
    async with _lock():
        try:
            result = await cd.detect_from_video(blob, vcfg)
        except UnsupportedSourceError as e:
            raise HTTPException(status_code=415, detail=str(e))
        except LoadError as e:
            log.warning("load failed for upload %r: %s", name, e)
            raise HTTPException(status_code=422, detail=str(e))
        except SessionBusyError as e:
            raise HTTPException(status_code=409, detail=str(e))
        stats = cd.video.last_stats
    return {
        "ok": True,
        "result": result.to_dict() if result is not None else None,
        "stats": stats.to_dict() if stats is not None else None,
    }

def main():
    import argparse
    import uvicorn
    from chromadetect.utils.logging import setup_logging

    ap = argparse.ArgumentParser("chromadetect-sidecar")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8765)
    args = ap.parse_args()
    setup_logging(SETTINGS.log_level)
    uvicorn.run(app, host=args.host, port=args.port)

if __name__ == "__main__":
    main()
