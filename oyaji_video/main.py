#!/usr/bin/env python3
"""
Oyaji Video Studio - Main Entry Point

Usage:
    # Start the studio server (page + API + SSE)
    oyaji-video server

    # Run the whole workflow headless and render all four beats
    oyaji-video generate --api-key $GOOGLE_API_KEY

    # List the current trends
    oyaji-video trends

    # Follow a running server's progress
    oyaji-video monitor
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("oyaji_video")


def start_server(host: str, port: int):
    """Run the studio server with uvicorn."""
    import uvicorn

    logger.info(f"Oyaji Video Studio running at http://{host}:{port}")
    uvicorn.run("oyaji_video.services.workflow.server:app", host=host, port=port)


async def generate_story_videos(
    api_key: Optional[str] = None,
    output_dir: Optional[str] = None,
) -> dict[str, str]:
    """
    Run the full workflow without the page.

    Fetches trends, writes the story for the top trend, then renders all
    four beats concurrently.

    Args:
        api_key: Key to select (defaults to GOOGLE_API_KEY / API_KEY)
        output_dir: Directory for downloaded clips

    Returns:
        Mapping of beat name to /media URL for every beat that finished
    """
    from .core.config import get_config
    from .services.story import Beat
    from .services.streaming import EventType
    from .services.workflow import AppState, StudioController

    config = get_config()
    if output_dir:
        config.storage.output_dir = output_dir

    controller = StudioController(config=config)

    # Console output callback
    def print_progress(event):
        if event.event_type != EventType.STATE:
            print(event.to_cli_line())

    controller.tracker.on_event(print_progress)

    try:
        if api_key:
            controller.select_key(api_key)
        else:
            controller.check_api_key()

        if not controller.state.api_key_selected:
            logger.error("No API key available. Set GOOGLE_API_KEY or pass --api-key")
            return {}

        await controller.start_process()
        if controller.state.app_state != AppState.STORY_READY:
            logger.error(f"Story generation failed: {controller.state.error}")
            return {}

        trend = controller.state.trends[0]
        prompts = controller.state.story_prompts
        print(f"\nTop trend: {trend.name} ({trend.volume})")
        for beat in Beat:
            print(f"  {beat.title} {beat.description}: {prompts.for_beat(beat)}")
        print()

        await asyncio.gather(*(controller.generate_beat_video(beat) for beat in Beat))

        if controller.state.error:
            logger.error(controller.state.error)
        return controller.state.video_urls

    finally:
        await controller.close()


async def list_trends():
    from .services.trends import TrendFeed

    trends = await TrendFeed().fetch_trends()
    for rank, trend in enumerate(trends, 1):
        print(f"{rank}. {trend.name} ({trend.volume})")


async def monitor_studio(server_url: str = "http://localhost:8765"):
    """Follow a running studio server's progress."""
    from .cli.progress_monitor import ProgressMonitor

    monitor = ProgressMonitor(server_url=server_url)
    await monitor.start()


def main():
    from .core.config import get_config

    config = get_config()

    parser = argparse.ArgumentParser(
        description="Oyaji Video Studio - trending 起承転結 shorts with Gemini and Veo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Start the studio
    oyaji-video server --port 8765

    # Render a full story from the command line
    oyaji-video generate --output ./output

    # Monitor a running studio
    oyaji-video monitor --server http://localhost:8765
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Server command
    server_parser = subparsers.add_parser("server", help="Start the studio server")
    server_parser.add_argument("--host", default=config.server.host, help="Host to bind")
    server_parser.add_argument("--port", type=int, default=config.server.port, help="Port to bind")

    # Generate command
    gen_parser = subparsers.add_parser("generate", help="Run the workflow headless")
    gen_parser.add_argument("--api-key", help="Google API key (defaults to GOOGLE_API_KEY)")
    gen_parser.add_argument("--output", "-o", help="Output directory")

    # Trends command
    subparsers.add_parser("trends", help="List current trends")

    # Monitor command
    mon_parser = subparsers.add_parser("monitor", help="Follow studio progress")
    mon_parser.add_argument(
        "--server",
        default=f"http://localhost:{config.server.port}",
        help="Studio server URL",
    )

    # Status command
    status_parser = subparsers.add_parser("status", help="Check server status")
    status_parser.add_argument(
        "--server",
        default=f"http://localhost:{config.server.port}",
        help="Studio server URL",
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "server":
        start_server(host=args.host, port=args.port)

    elif args.command == "generate":
        video_urls = asyncio.run(generate_story_videos(api_key=args.api_key, output_dir=args.output))
        for beat, url in video_urls.items():
            print(f"{beat}: {url}")
        sys.exit(0 if len(video_urls) == 4 else 1)

    elif args.command == "trends":
        asyncio.run(list_trends())

    elif args.command == "monitor":
        asyncio.run(monitor_studio(args.server))

    elif args.command == "status":
        import aiohttp

        async def check_status():
            async with aiohttp.ClientSession() as session:
                try:
                    async with session.get(f"{args.server}/health") as resp:
                        if resp.status == 200:
                            data = await resp.json()
                            print(f"Server: {args.server}")
                            print("Status: Online")
                            print(f"State: {data['app_state']}")
                            print(f"Connected clients: {data['subscribers']}")
                        else:
                            print(f"Server returned status {resp.status}")
                except aiohttp.ClientError as e:
                    print(f"Cannot connect to server: {e}")
                    sys.exit(1)

        asyncio.run(check_status())


if __name__ == "__main__":
    main()
