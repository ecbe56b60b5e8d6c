"""
Convenience launcher — starts the Pomodoro+ engine and (optionally) the simulator.

Usage:
    python start.py              # engine only
    python start.py --simulate   # engine with manual ticking + session simulator
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
import time


def start_engine(manual_ticks: bool = False) -> subprocess.Popen:
    env = dict(os.environ)
    if manual_ticks:
        env["PP_TICK_INTERVAL_MS"] = "0"
    return subprocess.Popen(
        [sys.executable, "-m", "pomoplus.main"],
        stdout=sys.stdout,
        stderr=sys.stderr,
        env=env,
    )


def start_simulator() -> subprocess.Popen:
    return subprocess.Popen(
        [sys.executable, os.path.join("scripts", "simulate.py")],
        stdout=sys.stdout,
        stderr=sys.stderr,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Start the Pomodoro+ engine")
    parser.add_argument("--simulate", action="store_true", help="Also run the session simulator")
    args = parser.parse_args()

    print("Starting Pomodoro+ engine…")
    engine_proc = start_engine(manual_ticks=args.simulate)

    if args.simulate:
        time.sleep(1.5)  # give engine a moment to bind
        print("Starting session simulator…")
        start_simulator()

    print("\nEngine → http://127.0.0.1:8765  (docs at /docs)")
    print("Press Ctrl+C to stop.\n")

    try:
        engine_proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down…")
        engine_proc.terminate()
        engine_proc.wait()


if __name__ == "__main__":
    main()
