#!/usr/bin/env python3
"""
CLI Progress Monitor for the Studio

Connects to a running studio server's SSE stream and prints each event.
Stops once all four beats have a video, or when the studio errors out
or loses its key.

Usage:
    python -m oyaji_video.cli.progress_monitor
    python -m oyaji_video.cli.progress_monitor --server http://localhost:8765
"""

import argparse
import asyncio
import json
from typing import Optional

import aiohttp


# ANSI color codes
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"


def colored(text: str, color: str) -> str:
    """Apply color to text."""
    return f"{color}{text}{Colors.RESET}"


def format_event(event: dict) -> str:
    """Format event for display."""
    event_type = event.get("type", "info")
    message = event.get("message", "")
    beat = event.get("beat")

    type_config = {
        "connected": ("🔌", Colors.DIM),
        "state": ("•", Colors.CYAN),
        "beat_started": ("▶️", Colors.CYAN),
        "beat_status": ("⏳", Colors.DIM),
        "beat_completed": ("🎬", Colors.GREEN),
        "beat_failed": ("❌", Colors.RED),
        "completed": ("✅", Colors.GREEN),
        "info": ("ℹ️", Colors.BLUE),
        "error": ("🔴", Colors.RED),
    }
    icon, color = type_config.get(event_type, ("•", Colors.WHITE))

    if event_type == "state":
        app_state = event.get("app_state", "?")
        line = f"{icon} {colored(app_state.upper(), Colors.BOLD)}"
        return f"{line} {message}" if message else line

    if event_type == "completed":
        lines = [f"{icon} {colored(message or 'All videos generated', color)}"]
        for name, url in event.get("data", {}).get("video_urls", {}).items():
            lines.append(colored(f"    {name}: {url}", Colors.DIM))
        return "\n".join(lines)

    label = colored(f"[{beat}]", Colors.MAGENTA) + " " if beat else ""
    text = event.get("status") or message

    if event_type == "beat_completed":
        return f"{icon} {label}{colored(message, color)} → {event.get('video_url')}"

    return f"{icon} {label}{colored(text, color)}"


# Studio states after which no more progress will arrive
TERMINAL_STATES = ("error", "awaiting_key")


class ProgressMonitor:
    """CLI progress monitor for the studio stream."""

    def __init__(self, server_url: str = "http://localhost:8765", max_retries: int = 5):
        self.server_url = server_url.rstrip("/")
        self.stream_url = f"{self.server_url}/api/stream"
        self.max_retries = max_retries

        self._running = False
        self._retry_count = 0
        self._last_event_id: Optional[str] = None
        # The first state event on each connection is the current snapshot
        self._awaiting_snapshot = True

    async def start(self):
        """Start monitoring progress."""
        self._running = True

        print(colored("\n╔═══════════════════════════════════════════╗", Colors.CYAN))
        print(colored("║  Oyaji Video Studio Monitor               ║", Colors.CYAN))
        print(colored("╚═══════════════════════════════════════════╝", Colors.CYAN))
        print(f"Server:   {colored(self.stream_url, Colors.DIM)}")
        print(colored("─" * 45, Colors.DIM))
        print()

        self._retry_count = 0

        while self._running and self._retry_count < self.max_retries:
            try:
                await self._stream_events()
                break
            except (aiohttp.ClientError, asyncio.TimeoutError):
                self._retry_count += 1
                if self._retry_count < self.max_retries:
                    wait = 2 ** self._retry_count
                    print(
                        colored(
                            f"\n⚠️ Connection lost. Retrying in {wait}s... ({self._retry_count}/{self.max_retries})",
                            Colors.YELLOW,
                        )
                    )
                    await asyncio.sleep(wait)
                else:
                    print(colored(f"\n❌ Failed to connect after {self.max_retries} attempts", Colors.RED))
            except asyncio.CancelledError:
                break

        print(colored("─" * 45, Colors.DIM))
        print(colored("Monitor stopped.", Colors.DIM))

    async def _stream_events(self):
        """Stream and display events."""
        headers = {"Last-Event-ID": self._last_event_id} if self._last_event_id else {}

        # Renders take minutes; only the connect is bounded
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=30, sock_read=None)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(self.stream_url, headers=headers) as response:
                if response.status != 200:
                    raise aiohttp.ClientError(f"Server returned {response.status}")

                self._retry_count = 0
                self._awaiting_snapshot = True

                async for line in response.content:
                    if not self._running:
                        break

                    line = line.decode("utf-8").strip()

                    # Parse SSE format
                    if line.startswith("id:"):
                        self._last_event_id = line[3:].strip()
                    elif line.startswith("data:"):
                        try:
                            data = json.loads(line[5:].strip())
                        except json.JSONDecodeError:
                            continue
                        self._handle_event(data)

    def _handle_event(self, event: dict):
        """Handle incoming event."""
        print(format_event(event))

        event_type = event.get("type")

        if event_type == "state":
            if self._awaiting_snapshot:
                self._awaiting_snapshot = False
            elif event.get("app_state") in TERMINAL_STATES:
                self._running = False

        # Check for terminal events
        if event_type in ("completed", "error"):
            self._running = False

    def stop(self):
        """Stop monitoring."""
        self._running = False


async def main():
    parser = argparse.ArgumentParser(description="Monitor studio progress")
    parser.add_argument(
        "--server",
        default="http://localhost:8765",
        help="Studio server URL (default: http://localhost:8765)",
    )
    args = parser.parse_args()

    monitor = ProgressMonitor(server_url=args.server)

    try:
        await monitor.start()
    except KeyboardInterrupt:
        print(colored("\n\nInterrupted by user.", Colors.YELLOW))
        monitor.stop()


if __name__ == "__main__":
    asyncio.run(main())
