import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from PIL import Image
from pydantic import BaseModel

from yearsago.config.config import load_config, resolve_timezone, storage_config, timeline_settings
from yearsago.timeline import DisplayEntry, ImageMissing, generate, placeholder, snapshot
from yearsago.timeline.storage import load_shared_image
from yearsago.utils.logging_setup import configure_logging

logger = logging.getLogger(__name__)


class ImageInfo(BaseModel):
    filename: str
    width: int
    height: int
    format: Optional[str] = None


class EntryResponse(BaseModel):
    scheduled_at: datetime
    years_ago_label: str
    formatted_date: str
    image: Optional[ImageInfo] = None


class TimelineResponse(BaseModel):
    entries: List[EntryResponse]
    next_refresh_at: datetime


class HealthResponse(BaseModel):
    status: str
    timestamp: str


def entry_response(entry: DisplayEntry) -> EntryResponse:
    image = None
    if entry.image is not None:
        image = ImageInfo(
            filename=entry.image.path.name,
            width=entry.image.width,
            height=entry.image.height,
            format=entry.image.format,
        )
    return EntryResponse(
        scheduled_at=entry.scheduled_at,
        years_ago_label=entry.years_ago_label,
        formatted_date=entry.formatted_date,
        image=image,
    )


def create_app(config: Optional[Dict[str, Any]] = None) -> FastAPI:
    config = load_config() if config is None else config
    storage = storage_config(config)
    stride, refresh_after = timeline_settings(config)
    tz = resolve_timezone(config)

    app = FastAPI(title="YearsAgo Timeline API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    def resolve_now(now: Optional[datetime]) -> datetime:
        if now is None:
            return datetime.now(tz) if tz is not None else datetime.now().astimezone()
        if now.tzinfo is None and tz is not None:
            return now.replace(tzinfo=tz)
        return now

    @app.get("/health")
    def health():
        return HealthResponse(status="healthy", timestamp=datetime.now().isoformat())

    @app.get("/timeline", response_model=TimelineResponse)
    def timeline(now: Optional[datetime] = None):
        entries, next_refresh_at = generate(
            storage,
            resolve_now(now),
            stride=stride,
            refresh_after=refresh_after,
            trigger="http-timeline",
        )
        return TimelineResponse(
            entries=[entry_response(e) for e in entries],
            next_refresh_at=next_refresh_at,
        )

    @app.get("/snapshot", response_model=EntryResponse)
    def snapshot_entry(now: Optional[datetime] = None):
        return entry_response(snapshot(storage, resolve_now(now), trigger="http-snapshot"))

    @app.get("/placeholder", response_model=EntryResponse)
    def placeholder_entry(now: Optional[datetime] = None):
        return entry_response(placeholder(resolve_now(now)))

    @app.get("/image")
    def image():
        try:
            shared = load_shared_image(storage)
        except ImageMissing as e:
            logger.info("GET /image - %s", e)
            raise HTTPException(status_code=404, detail="No shared image")
        media_type = Image.MIME.get(shared.format or "", "application/octet-stream")
        return Response(content=shared.data, media_type=media_type)

    @app.get("/")
    def root():
        return {"message": "YearsAgo Timeline API is running", "storage_root": str(storage.root)}

    return app


def build_app(config: Optional[Dict[str, Any]] = None) -> FastAPI:
    """App with logging configured from the same config, as served by uvicorn."""
    config = load_config() if config is None else config
    configure_logging(
        log_file=config["log_file"],
        level=config["log_level"],
        enable_console=config["log_console"],
    )
    return create_app(config)


app = build_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
