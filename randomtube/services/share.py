"""Share links: an identifier that freezes one random video on first resolution.

A share record starts as an empty string and is written exactly once with the
chosen video. Two concurrent first resolutions of the same identifier may both
write; the last write wins and both answers are valid videos.
"""
import asyncio
import logging
import uuid
from typing import List, Optional

from pydantic import ValidationError

from ..models import Video
from .selector import pick_random
from .store import SHARE_PREFIX
from .youtube import UpstreamError, list_tracked_channels, read_cached_videos, refresh_channel

logger = logging.getLogger(__name__)


class ShareNotFound(LookupError):
    """No record exists for the share identifier."""


class NoVideosFound(LookupError):
    """No tracked channel produced any video to pick from."""


def share_key(share_id: str) -> str:
    return f"{SHARE_PREFIX}{share_id}"


async def create_share(ctx) -> str:
    share_id = str(uuid.uuid4())
    await ctx.store.put(share_key(share_id), "")
    logger.info(f"Created share {share_id}")
    return share_id


async def get_share(ctx, share_id: str) -> Optional[Video]:
    """Returns the frozen video, None if not resolved yet. Never draws."""
    value = await ctx.store.get(share_key(share_id))
    if value is None:
        raise ShareNotFound(share_id)
    if value == "":
        return None
    try:
        return Video.model_validate_json(value)
    except ValidationError as e:
        logger.error(f"Corrupted share record {share_id}: {e}")
        raise


async def _collect_candidates(ctx) -> List[Video]:
    channel_ids = await list_tracked_channels(ctx)

    videos: List[Video] = []
    stale: List[str] = []
    for channel_id in channel_ids:
        cached = await read_cached_videos(ctx, channel_id)
        if cached is None:
            stale.append(channel_id)
        else:
            videos.extend(cached)

    if not stale:
        return videos

    logger.info(f"Refreshing {len(stale)} stale channels: {stale}")
    results = await asyncio.gather(
        *(refresh_channel(ctx, channel_id) for channel_id in stale),
        return_exceptions=True,
    )
    failures = []
    for channel_id, result in zip(stale, results):
        if isinstance(result, UpstreamError):
            logger.warning(f"Skipping channel {channel_id}: {result}")
            failures.append(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            videos.extend(result)

    # An upstream outage should not look like an empty catalogue
    if not videos and failures:
        raise failures[0]
    return videos


async def resolve_share(ctx, share_id: str) -> Video:
    frozen = await get_share(ctx, share_id)
    if frozen is not None:
        return frozen

    videos = await _collect_candidates(ctx)
    video = pick_random(videos, ctx.rng)
    if video is None:
        raise NoVideosFound(share_id)

    await ctx.store.put(share_key(share_id), video.to_json())
    logger.info(f"Share {share_id} resolved to video {video.video_id}")
    return video
