#!/usr/bin/env python3
"""
Dynamic live stream thumbnails.

Grabs the latest frame of a live stream every few seconds, draws the
configured overlays on it and uploads it as the stream's thumbnail.
"""

import argparse
import asyncio
import logging
import signal
import sys

import httpx

from . import __version__
from .auth import AuthState, CredentialStore, authenticate
from .collaborators import FilePublisher, HttpImageFetcher, SegmentFrameExtractor, encode_jpeg
from .config import DEFAULT_INTERVAL, HTTP_TIMEOUT, ThumbnailConfig, load_config, validate_interval
from .errors import ThumbnailError
from .pipeline import FailurePolicy, ThumbnailManager
from .youtube import YouTubeClient

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s | %(message)s"


def build_manager(client, http, config, publish=None, failure_policy=FailurePolicy.HALT):
    """Wire the default OpenCV / httpx collaborators into a ThumbnailManager."""
    return ThumbnailManager(
        client,
        frame_extractor=SegmentFrameExtractor(http),
        fetch_image=HttpImageFetcher(http, base_dir=config.base_dir),
        encode_frame=encode_jpeg,
        publish=publish,
        overlays=config.overlays,
        failure_policy=failure_policy,
    )


def _load_config(path, interval=None):
    config = load_config(path) if path else ThumbnailConfig()
    if interval is not None:
        config.interval = validate_interval(interval)
    return config


async def login(args):
    store = CredentialStore(args.credentials)
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as http:
        client = YouTubeClient(http=http)
        if not await client.validate_token(args.token):
            print("Token was rejected, not saved")
            return 1
    store.save(args.token)
    print("Authentication successful")
    return 0


async def logout(args):
    if not CredentialStore(args.credentials).clear():
        print("Not logged in")
        return 1
    print("Logout successful")
    return 0


async def start(args):
    config = _load_config(args.config, args.interval)
    policy = FailurePolicy.RETRY if args.retry else FailurePolicy.HALT

    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as http:
        client = YouTubeClient(http=http)

        print("Checking login status...")
        result = await authenticate(CredentialStore(args.credentials), client)
        if result.state != AuthState.AUTHENTICATED:
            print(result.message)
            return 1
        client.access_token = result.token

        print("Fetching video info...")
        manager = build_manager(client, http, config, failure_policy=policy)
        session = await manager.load(args.video_id)
        print(f'Stream "{session.title}" information loaded')

        handle = manager.loop(config.interval)
        print(f"Updating thumbnail every {config.interval}s, press Ctrl+C to stop")

        # Set up signal handlers for graceful shutdown
        event_loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                event_loop.add_signal_handler(signum, manager.stop, handle)
            except NotImplementedError:
                signal.signal(signum, lambda *_: event_loop.call_soon_threadsafe(manager.stop, handle))

        error = await handle.wait()
        print(f"Stopped after {handle.cycles} update(s)")
        if error is not None:
            print(f"Loop terminated: {error}")
            return 1
        return 0


async def preview(args):
    config = _load_config(args.config)

    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as http:
        client = YouTubeClient(http=http)
        manager = build_manager(client, http, config, publish=FilePublisher(args.output))
        await manager.load(args.video_id)
        await manager.update()

    result = manager.last_result
    if not result.success:
        print(f"Thumbnail not written: {result.message}")
        return 1
    print(f"Thumbnail written to {result.message}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(prog="live-thumbs", description="Dynamic YouTube live thumbnails")
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--credentials", default=None, help="Path of the stored credentials file")
    commands = parser.add_subparsers(dest="command", required=True)

    login_cmd = commands.add_parser("login", help="Store a YouTube OAuth access token")
    login_cmd.add_argument("--token", required=True, help="OAuth access token with the youtube scope")
    login_cmd.set_defaults(handler=login)

    logout_cmd = commands.add_parser("logout", help="Forget stored credentials")
    logout_cmd.set_defaults(handler=logout)

    start_cmd = commands.add_parser("start", help="Start generating thumbnails for a stream")
    start_cmd.add_argument("video_id", help="ID of the stream")
    start_cmd.add_argument("config", nargs="?", help="Path to a configuration file")
    start_cmd.add_argument("--interval", type=float, default=None,
                           help=f"Seconds between updates (default {DEFAULT_INTERVAL}, min 5)")
    start_cmd.add_argument("--retry", action="store_true",
                           help="Keep going with backoff when an update fails instead of stopping")
    start_cmd.set_defaults(handler=start)

    preview_cmd = commands.add_parser("preview", help="Render one thumbnail to a file without uploading")
    preview_cmd.add_argument("video_id", help="ID of the stream")
    preview_cmd.add_argument("config", nargs="?", help="Path to a configuration file")
    preview_cmd.add_argument("--output", default=".", help="Directory to write <video_id>.jpg into")
    preview_cmd.set_defaults(handler=preview)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)
    if args.credentials is None:
        args.credentials = CredentialStore().path

    try:
        return asyncio.run(args.handler(args))
    except ThumbnailError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
