from __future__ import annotations
import argparse, asyncio, json, mimetypes
from pathlib import Path
from tqdm import tqdm

from ..api import ChromaDetect
from ..config import Settings, load_engine, load_settings
from ..errors import ChromaDetectError
from ..types import FrameOutcome, MediaBlob, SampleStrategy, VideoConfig
from ..utils.io import read_bytes, write_json
from ..utils.logging import setup_logging
from ..video.frame_extractor import FrameExtractor
from ..video.media import CaptureHandle
from ..video.object_urls import ObjectUrlStore
from ..video.source_loader import SourceLoader


def _build(settings: Settings) -> ChromaDetect:
    if not settings.engine:
        raise SystemExit("No engine configured: pass --engine package.module:attr or set CHROMADETECT_ENGINE")
    engine = load_engine(settings.engine)
    loader = SourceLoader(ObjectUrlStore(settings.tmp_dir), load_timeout=settings.load_timeout)
    return ChromaDetect(engine, loader=loader, extractor=FrameExtractor(settings.seek_timeout))


async def run(video: Path, settings: Settings, as_blob: bool = True) -> dict:
    cd = _build(settings)
    await cd.init()
    await cd.set_config(settings.detection)

    pbar = tqdm(total=settings.video.frame_sample_count, desc="Sampling frames", unit="frame")

    def _on_frame(o: FrameOutcome) -> None:
        pbar.update(1)
        pbar.set_postfix(t=f"{o.timestamp:.2f}s", status="skip" if o.accepted is None else ("ok" if o.accepted else "reject"))

    handle = None
    try:
        if as_blob:
            mtype = mimetypes.guess_type(video.name)[0] or "video/mp4"
            source = MediaBlob(read_bytes(video), type=mtype, name=video.name)
        else:
            # caller-owned handle: we open and close it ourselves
            handle = await CaptureHandle.open(str(video), timeout=settings.load_timeout)
            source = handle
        result = await cd.detect_from_video(source, settings.video, on_frame=_on_frame)
    finally:
        pbar.close()
        if handle is not None:
            handle.close()

    stats = cd.video.last_stats
    return {
        "result": result.to_dict() if result is not None else None,
        "stats": stats.to_dict() if stats is not None else None,
    }


def main():
    ap = argparse.ArgumentParser("chromadetect-video", description="Estimate the chromakey color of a video.")
    ap.add_argument("--video", required=True, help="input video file")
    ap.add_argument("--engine", help="detection engine as package.module:attr")
    ap.add_argument("--config", help="settings YAML (video/detection/timeouts)")
    ap.add_argument("--frames", type=int, help="number of frames to sample (default 8)")
    ap.add_argument("--strategy", choices=[s.value for s in SampleStrategy], help="uniform | keyframes")
    ap.add_argument("--max_duration", type=float, help="only sample the first N seconds (default 30)")
    ap.add_argument("--direct", action="store_true", help="open the file in place instead of spooling it as a blob")
    ap.add_argument("--out", help="write result JSON here instead of stdout")
    ap.add_argument("--log_level", default=None)
    args = ap.parse_args()

    settings = load_settings(args.config, engine=args.engine, log_level=args.log_level)
    video_over = {"frame_sample_count": args.frames, "sample_strategy": args.strategy, "max_duration": args.max_duration}
    video_over = {k: v for k, v in video_over.items() if v is not None}
    if video_over:
        settings.video = VideoConfig.model_validate({**settings.video.model_dump(), **video_over})
    log = setup_logging(settings.log_level)

    video = Path(args.video)
    if not video.exists():
        raise SystemExit(f"Cannot open video: {video}")

    try:
        report = asyncio.run(run(video, settings, as_blob=not args.direct))
    except ChromaDetectError as e:
        log.error("%s", e)
        raise SystemExit(1)

    if args.out:
        write_json(args.out, report)
        log.info(f"Wrote {args.out}")
    else:
        print(json.dumps(report, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
