import asyncio

NOW = 1_700_000_000_000  # fixed clock, epoch ms
DAY_MS = 24 * 3600 * 1000


def make_video(video_id):
    return {
        "id": {"videoId": video_id},
        "snippet": {
            "title": video_id,
            "description": f"description of {video_id}",
            "thumbnails": {
                "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg", "width": 120, "height": 90},
                "medium": {"url": f"https://i.ytimg.com/vi/{video_id}/mqdefault.jpg", "width": 320, "height": 180},
                "high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg", "width": 480, "height": 360},
            },
        },
    }


def seed(store, key, value, metadata=None):
    """Writes a record from synchronous test code."""
    run(store.put(key, value, metadata=metadata))


def run(coro):
    """Runs a store coroutine from synchronous test code."""
    return asyncio.run(coro)
