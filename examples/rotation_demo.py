#!/usr/bin/env python3
"""
Log rotation demo.

This example demonstrates:
1. Following files matched by a recursive glob pattern
2. New files picked up as they appear
3. Truncated and rotated files re-read from the start
4. Deleted and renamed files dropped from the watch set

Usage:
    python examples/rotation_demo.py

The demo will:
- Create a temporary directory structure
- Start a tailer on "<demo>/**/*.log"
- Append, rotate, truncate and delete log files
- Show the followed files after each step
- Clean up after the last step
"""

import logging
import shutil
import sys
import tempfile
import time
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.tailer import TailerConfig, TailerProcess


def append(path: Path, text: str) -> None:
    with open(path, "a") as f:
        f.write(text)


def show(process: TailerProcess) -> None:
    files = process.get_watched_files()
    print(f"\n[DEMO] Following {len(files)} file(s):", file=sys.stderr)
    for path, offset in sorted(files.items()):
        print(f"         {path} @ {offset}", file=sys.stderr)


def step(title: str) -> None:
    print(f"\n[DEMO] {title}", file=sys.stderr)


def main():
    """Run the rotation demo."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    print("=" * 60, file=sys.stderr)
    print("Glob Tailer Rotation Demo", file=sys.stderr)
    print("=" * 60, file=sys.stderr)

    demo_dir = Path(tempfile.mkdtemp(prefix="globtail_demo_")).resolve()
    app_dir = demo_dir / "app"
    web_dir = demo_dir / "web" / "nginx"
    app_dir.mkdir()
    web_dir.mkdir(parents=True)

    (app_dir / "app.log").write_text("old line, never printed\n")

    config = TailerConfig(poll_interval_ms=200, scan_interval_ms=1000, quiet_interval_ms=3000)

    try:
        with TailerProcess([str(demo_dir / "**" / "*.log")], config=config) as tailer:
            tailer.start_async()
            show(tailer)

            # === Step 1: Append to an existing file ===
            step("Appending to app.log...")
            append(app_dir / "app.log", "request handled\n")
            time.sleep(1)

            # === Step 2: New file in a new directory ===
            step("Creating nginx/access.log...")
            (web_dir / "access.log").write_text("")
            time.sleep(1.5)
            append(web_dir / "access.log", "GET / 200\n")
            time.sleep(1)
            show(tailer)

            # === Step 3: Rotate by rename ===
            step("Rotating app.log -> app.log.1 and starting a new app.log...")
            (app_dir / "app.log").rename(app_dir / "app.log.1")
            (app_dir / "app.log").write_text("")
            time.sleep(1.5)
            append(app_dir / "app.log", "first line after rotation\n")
            time.sleep(1)
            show(tailer)

            # === Step 4: Truncate in place ===
            step("Truncating access.log in place...")
            (web_dir / "access.log").write_text("ok\n")
            time.sleep(1)

            # === Step 5: Delete a file ===
            step("Deleting access.log...")
            (web_dir / "access.log").unlink()
            time.sleep(1.5)
            show(tailer)

            # === Step 6: Silence ===
            step("Waiting for the no-activity notice...")
            time.sleep(4)

        print("\n" + "=" * 60, file=sys.stderr)
        print("Demo completed successfully!", file=sys.stderr)
        print("=" * 60, file=sys.stderr)

    except KeyboardInterrupt:
        print("\n\nInterrupted!", file=sys.stderr)

    finally:
        print(f"\nCleaning up demo directory: {demo_dir}", file=sys.stderr)
        shutil.rmtree(demo_dir, ignore_errors=True)


if __name__ == "__main__":
    main()
