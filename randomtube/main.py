import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse

from randomtube.config import settings
from randomtube.context import ServiceContext
from randomtube.services.render import render_video, templates
from randomtube.services.selector import pick_random
from randomtube.services.share import NoVideosFound, ShareNotFound, create_share, resolve_share
from randomtube.services.store import StoreError, create_store
from randomtube.services.youtube import UpstreamError, get_all_tracked_videos

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # One store handle and one HTTP client for the whole process
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as client:
        app.state.context = ServiceContext(
            settings=settings,
            store=create_store(settings),
            client=client,
        )
        yield

app = FastAPI(lifespan=lifespan)

def get_context(request: Request) -> ServiceContext:
    return request.app.state.context

@app.exception_handler(ShareNotFound)
async def share_not_found_handler(request: Request, exc: ShareNotFound):
    return PlainTextResponse("Not found", status_code=404)

@app.exception_handler(NoVideosFound)
async def no_videos_handler(request: Request, exc: NoVideosFound):
    return PlainTextResponse("No videos found", status_code=404)

@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    logger.error(f"Upstream failure on {request.url.path}: {exc}")
    return JSONResponse({"detail": "Could not fetch videos from YouTube."}, status_code=502)

@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store failure on {request.url.path}: {exc}")
    return JSONResponse({"detail": "Storage is unavailable."}, status_code=500)

@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return HTMLResponse("")

@app.get("/")
def home(request: Request):
    return templates.TemplateResponse(request=request, name="index.html")

@app.get("/new")
async def new_share(ctx: ServiceContext = Depends(get_context)):
    share_id = await create_share(ctx)
    return RedirectResponse(f"/page/{share_id}", status_code=302)

@app.get("/page/{share_id}")
async def share_page(share_id: str, request: Request, ctx: ServiceContext = Depends(get_context)):
    video = await resolve_share(ctx, share_id)
    return templates.TemplateResponse(
        request=request,
        name="page.html",
        context={
            "title": video.title,
            "thumbnail_url": video.thumbnail_url,
            "share_url": str(request.url_for("share", share_id=share_id)),
        },
    )

@app.get("/share/{share_id}", name="share")
async def share(share_id: str, request: Request, ctx: ServiceContext = Depends(get_context)):
    video = await resolve_share(ctx, share_id)
    return render_video(request, video)

@app.get("/random")
async def random_video(request: Request, ctx: ServiceContext = Depends(get_context)):
    """One-off draw that is not persisted as a share."""
    video = pick_random(await get_all_tracked_videos(ctx), ctx.rng)
    if video is None:
        raise NoVideosFound("random")
    return render_video(request, video)
