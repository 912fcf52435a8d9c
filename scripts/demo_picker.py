#!/usr/bin/env python3
"""
Demo Picker Script
==================

Standalone picker that sends synthetic candidate images to a running
Collage Studio service and watches the throttled collage stream.

This script:
    1. Subscribes to /ws/collage and logs every delivered state
    2. Opens a picker session on /ws/candidates
    3. Sends a mix of landscape, portrait and duplicate images
    4. Stops when the server closes the session or all images are sent

Prerequisites:
    - Collage Studio must be running (python -m collage_studio.main)
    - Install dependencies: pip install -e .

Usage:
    python scripts/demo_picker.py --count 10
    python scripts/demo_picker.py --url ws://localhost:8002
"""

import argparse
import asyncio
import base64
import json
import logging
import os
import sys

import cv2
import numpy as np
import websockets
from websockets.exceptions import ConnectionClosed


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def make_image(index: int, portrait: bool = False) -> str:
    """Solid-colour PNG with a per-index size, base64 encoded."""
    width, height = 160 + index * 8, 120
    if portrait:
        width, height = height, width
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:] = ((index * 40) % 256, (index * 90) % 256, (index * 20) % 256)
    cv2.putText(image, str(index), (10, 60), cv2.FONT_HERSHEY_SIMPLEX, 1.5, (255, 255, 255), 2)
    ok, encoded = cv2.imencode(".png", image)
    if not ok:
        raise RuntimeError(f"Could not encode demo image {index}")
    return base64.b64encode(encoded.tobytes()).decode()


def build_candidates(count: int) -> list:
    """Every third image is portrait, every fourth repeats the previous one."""
    candidates = []
    previous = None
    for index in range(count):
        if index % 4 == 3 and previous is not None:
            payload = previous
        else:
            payload = make_image(index, portrait=index % 3 == 2)
        candidates.append({"image_id": f"IMG_{index:04d}", "image": payload})
        previous = payload
    return candidates


async def watch_collage(url: str) -> None:
    """Log throttled collage states until cancelled."""
    async with websockets.connect(f"{url}/ws/collage") as ws:
        async for message in ws:
            snapshot = json.loads(message)
            logger.info(
                f"Collage revision {snapshot['revision']}: "
                f"{snapshot['ui']['title']} {snapshot['image_ids']}"
            )


async def run_picker(url: str, count: int, delay: float) -> int:
    """
    Send candidates over one picker session.

    Returns:
        Number of candidates sent before the session ended
    """
    sent = 0
    async with websockets.connect(f"{url}/ws/candidates") as ws:
        for candidate in build_candidates(count):
            try:
                await ws.send(json.dumps(candidate))
            except ConnectionClosed:
                logger.info("Server closed the picker session")
                break
            sent += 1
            logger.info(f"Sent {candidate['image_id']}")
            await asyncio.sleep(delay)

            # The server announces a full collage before closing
            try:
                reply = await asyncio.wait_for(ws.recv(), timeout=0.01)
                logger.info(f"Server: {reply}")
                break
            except asyncio.TimeoutError:
                pass
            except ConnectionClosed:
                logger.info("Server closed the picker session")
                break
        else:
            await ws.send(json.dumps({"event": "done"}))
            try:
                logger.info(f"Server: {await ws.recv()}")
            except ConnectionClosed:
                logger.info("Server closed the picker session")
    return sent


async def run_demo(url: str, count: int, delay: float) -> int:
    watcher = asyncio.create_task(watch_collage(url))
    try:
        sent = await run_picker(url, count, delay)
        # Let the last throttled state arrive
        await asyncio.sleep(1.0)
    finally:
        watcher.cancel()
        try:
            await watcher
        except asyncio.CancelledError:
            pass
    return sent


def main():
    parser = argparse.ArgumentParser(description="Collage Studio demo picker")
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("COLLAGE_URL", "ws://localhost:8002"),
        help="WebSocket root URL of the collage service",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=12,
        help="Number of candidates to offer (default: 12)",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=0.1,
        help="Seconds between candidates (default: 0.1)",
    )

    args = parser.parse_args()

    sent = asyncio.run(run_demo(args.url, args.count, args.delay))
    logger.info(f"Picker finished after {sent} candidate(s)")

    sys.exit(0 if sent > 0 else 1)


if __name__ == "__main__":
    main()
