import asyncio
import json
import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..models import ChannelMetadata, Video
from .store import CHANNEL_PREFIX

logger = logging.getLogger(__name__)


class UpstreamError(RuntimeError):
    """Raised when the video listing API fails or returns something unusable."""


def channel_key(channel_id: str) -> str:
    return f"{CHANNEL_PREFIX}{channel_id}"


async def fetch_channel_videos(ctx, channel_id: str) -> List[Video]:
    """Fetches the latest videos of a channel from the search API. Never retries."""
    params = {
        "key": ctx.settings.YOUTUBE_API_KEY,
        "channelId": channel_id,
        "part": "snippet,id",
        "order": "date",
        "type": "video",
        "maxResults": ctx.settings.MAX_RESULTS,
    }
    try:
        resp = await ctx.client.get(ctx.settings.YOUTUBE_SEARCH_URL, params=params)
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPError as e:
        logger.error(f"Error fetching videos for channel {channel_id}: {e}")
        raise UpstreamError(f"Video listing failed for channel {channel_id}") from e
    except ValueError as e:
        logger.error(f"Non-JSON response for channel {channel_id}: {e}")
        raise UpstreamError(f"Malformed response for channel {channel_id}") from e

    items = data.get("items") if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise UpstreamError(f"Response for channel {channel_id} has no items list")
    try:
        videos = [Video.model_validate(item) for item in items]
    except ValidationError as e:
        raise UpstreamError(f"Unexpected video payload for channel {channel_id}") from e

    # Channel and playlist results carry no videoId and cannot be watched
    playable = [v for v in videos if v.video_id]
    if len(playable) < len(videos):
        logger.warning(f"Dropped {len(videos) - len(playable)} non-video results for channel {channel_id}")
    return playable


def _is_stale(metadata: Optional[dict], now: int) -> bool:
    if not metadata:
        return True
    try:
        return now > ChannelMetadata.model_validate(metadata).expiresAt
    except ValidationError:
        return True


async def read_cached_videos(ctx, channel_id: str) -> Optional[List[Video]]:
    """Cache-only read. Returns None when the channel record is missing or stale."""
    record = await ctx.store.get_with_metadata(channel_key(channel_id))
    if not record.value or _is_stale(record.metadata, ctx.clock()):
        return None
    try:
        items = json.loads(record.value)
        if not isinstance(items, list):
            raise ValueError("channel record is not a list")
        return [Video.model_validate(item) for item in items]
    except (ValueError, ValidationError) as e:
        logger.warning(f"Corrupted cache record for channel {channel_id}, treating as stale: {e}")
        return None


async def refresh_channel(ctx, channel_id: str) -> List[Video]:
    """Fetches a channel from upstream and writes a fresh record."""
    videos = await fetch_channel_videos(ctx, channel_id)
    metadata = ChannelMetadata(
        channelId=channel_id,
        expiresAt=ctx.clock() + ctx.settings.CACHE_DURATION_MS,
    )
    value = json.dumps([v.to_dict() for v in videos])
    await ctx.store.put(channel_key(channel_id), value, metadata=metadata.model_dump())
    logger.info(f"Cached {len(videos)} videos for channel {channel_id}")
    return videos


async def get_videos_for_channel(ctx, channel_id: str) -> List[Video]:
    cached = await read_cached_videos(ctx, channel_id)
    if cached is not None:
        logger.info(f"Cache hit: {channel_id}")
        return cached
    logger.info(f"Cache miss or expired: {channel_id}")
    return await refresh_channel(ctx, channel_id)


async def list_tracked_channels(ctx) -> List[str]:
    keys = await ctx.store.list(prefix=CHANNEL_PREFIX)
    return [k[len(CHANNEL_PREFIX):] for k in keys]


async def get_all_tracked_videos(ctx) -> List[Video]:
    """Videos of every tracked channel, fetching the stale ones. Upstream errors propagate."""
    channel_ids = await list_tracked_channels(ctx)
    results = await asyncio.gather(*(get_videos_for_channel(ctx, cid) for cid in channel_ids))
    videos = []
    for channel_videos in results:
        videos.extend(channel_videos)
    return videos


async def track_channel(ctx, channel_id: str) -> bool:
    """Starts tracking a channel. The empty record is stale, so the next lookup fetches it.

    Returns False if the channel was already tracked.
    """
    key = channel_key(channel_id)
    if await ctx.store.get(key) is not None:
        return False
    await ctx.store.put(key, "")
    logger.info(f"Tracking channel {channel_id}")
    return True
