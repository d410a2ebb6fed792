import os
import re

from fastapi import Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from ..config import PACKAGE_DIR
from ..models import Video

templates = Jinja2Templates(directory=os.path.join(PACKAGE_DIR, "templates"))

BOT_PATTERN = re.compile(r"bot|crawl|spider|slurp|facebookexternalhit", re.IGNORECASE)

def is_bot(user_agent: str) -> bool:
    return bool(user_agent) and BOT_PATTERN.search(user_agent) is not None

def video_url(video: Video) -> str:
    return f"https://www.youtube.com/watch?v={video.video_id}"

def render_video(request: Request, video: Video):
    """Link previews for crawlers, a plain redirect for everybody else."""
    url = video_url(video)
    if not is_bot(request.headers.get("user-agent", "")):
        return RedirectResponse(url, status_code=302)

    return templates.TemplateResponse(
        request=request,
        name="preview.html",
        context={
            "title": video.title,
            "description": video.description,
            "thumbnail_url": video.thumbnail_url,
            "video_url": url,
        },
    )
