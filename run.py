import argparse
import asyncio
import os
import sys

import httpx
import uvicorn

# Ensure the package is importable when started from elsewhere
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from randomtube.config import settings
from randomtube.context import ServiceContext
from randomtube.services.store import create_store
from randomtube.services.youtube import track_channel


async def track(channel_ids):
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as client:
        ctx = ServiceContext(settings=settings, store=create_store(settings), client=client)
        for channel_id in channel_ids:
            added = await track_channel(ctx, channel_id)
            print(f"{channel_id}: {'tracked' if added else 'already tracked'}")


def main():
    parser = argparse.ArgumentParser(description="Serve random videos from tracked YouTube channels.")
    sub = parser.add_subparsers(dest="command")
    serve = sub.add_parser("serve", help="run the web server (default)")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    track_cmd = sub.add_parser("track", help="add channels to the tracked set")
    track_cmd.add_argument("channel_ids", nargs="+")
    args = parser.parse_args()

    if args.command == "track":
        asyncio.run(track(args.channel_ids))
        return

    uvicorn.run(
        "randomtube.main:app",
        host=getattr(args, "host", "127.0.0.1"),
        port=getattr(args, "port", 8000),
        reload=getattr(args, "reload", False),
    )


if __name__ == "__main__":
    main()
