"""
Session Simulator — drives a running Pomodoro+ engine through whole workdays
so you can watch scheduling, breaks, XP and badges move without waiting
25 real minutes per pomodoro.

Time is fast-forwarded with POST /timer/tick, so start the engine with the
background tick disabled to keep the two clocks from racing:

Usage:
    # Make sure the engine is running first:
    #   PP_TICK_INTERVAL_MS=0 python -m pomoplus.main
    # Then in a separate terminal:
    python scripts/simulate.py                      # default: cycle all scenarios
    python scripts/simulate.py --scenario marathon  # specific scenario
    python scripts/simulate.py --loop               # repeat forever
    python scripts/simulate.py --speed 2.0          # 2× faster output
"""

from __future__ import annotations

import argparse
import json
import random
import time
import urllib.error
import urllib.request
from typing import Callable, Dict, Iterator, List

API = "http://127.0.0.1:8765"

REASONS = ["phone", "email", "social", "urgent", "other"]


# ---------------------------------------------------------------------------
# Low-level HTTP helpers
# ---------------------------------------------------------------------------

def _request(method: str, path: str, body: dict | None = None) -> dict | list | None:
    data = json.dumps(body).encode() if body is not None else None
    req = urllib.request.Request(
        f"{API}{path}",
        data=data,
        headers={"Content-Type": "application/json"},
        method=method,
    )
    try:
        with urllib.request.urlopen(req, timeout=3) as r:
            return json.loads(r.read())
    except (urllib.error.URLError, OSError) as e:
        print(f"  [!] {method} {path} failed: {e}")
        return None


def _post(path: str, body: dict | None = None) -> dict | list | None:
    return _request("POST", path, body)


def _get(path: str) -> dict | list | None:
    return _request("GET", path)


def add_task(title: str, pomodoros: int, priority: str, tags: List[str]) -> dict | None:
    return _post("/tasks", {
        "title": title,
        "estimated_pomodoros": pomodoros,
        "priority": priority,
        "tags": tags,
    })


def run_phase() -> dict | None:
    """Fast-forward the current phase to its end."""
    timer = _get("/timer")
    if not timer or timer["phase"] in ("idle", "paused"):
        return timer
    return _post("/timer/tick", {"seconds": timer["time_left"]})


# ---------------------------------------------------------------------------
# Scenario generators: each yields (description, action) steps
# ---------------------------------------------------------------------------

Step = tuple[str, Callable[[], object]]


def scenario_workday() -> Iterator[Step]:
    """A balanced day: mixed tasks, the scheduler picks, breaks follow."""
    yield "Plan: write report", lambda: add_task("Write report", 3, "high", ["writing", "research"])
    yield "Plan: answer email", lambda: add_task("Answer email", 1, "low", ["communication"])
    yield "Plan: team meeting", lambda: add_task("Team meeting", 2, "medium", ["meeting"])
    for i in range(6):
        yield f"Advance [{i + 1}/6]", lambda: _post("/timer/advance")
        yield f"Run phase [{i + 1}/6]", run_phase


def scenario_interrupted() -> Iterator[Step]:
    """Focus keeps getting broken: interruptions on every pomodoro."""
    yield "Plan: study chapter", lambda: add_task("Study chapter 4", 4, "high", ["learning"])

    def interrupt() -> object:
        timer = _get("/timer")
        session = timer.get("current_session") if timer else None
        if not session:
            return None
        return _post(f"/sessions/{session['id']}/interruptions", {
            "reason": random.choice(REASONS),
            "description": "simulated",
        })

    for i in range(4):
        yield f"Start pomodoro [{i + 1}/4]", lambda: _post("/timer/advance")
        yield f"Half-way [{i + 1}/4]", lambda: _post("/timer/tick", {"seconds": 600})
        yield f"Interruption [{i + 1}/4]", interrupt
        yield f"Finish [{i + 1}/4]", run_phase
        yield f"Break [{i + 1}/4]", lambda: _post("/timer/break")
        yield f"Break over [{i + 1}/4]", run_phase


def scenario_marathon() -> Iterator[Step]:
    """Back-to-back pomodoros until the scheduler insists on a break."""
    yield "Plan: refactor module", lambda: add_task("Refactor module", 8, "high", ["design", "planning"])
    yield "Scheduler: auto-start breaks", lambda: _request(
        "PUT", "/scheduler/settings", {"auto_start_break": True}
    )
    for i in range(5):
        yield f"Advance [{i + 1}/5]", lambda: _post("/timer/advance")
        yield f"Run phase [{i + 1}/5]", run_phase


SCENARIOS: Dict[str, Callable[[], Iterator[Step]]] = {
    "workday": scenario_workday,
    "interrupted": scenario_interrupted,
    "marathon": scenario_marathon,
}

CYCLE = ["workday", "interrupted", "marathon"]


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

def run_scenario(name: str, speed: float) -> None:
    print(f"\n{'─' * 60}")
    print(f"  SCENARIO: {name.upper()}")
    print(f"{'─' * 60}")

    for description, action in SCENARIOS[name]():
        result = action()
        level = _get("/progression/level") or {}
        timer = _get("/timer") or {}
        pct = float(level.get("percentage", 0.0)) / 100
        bar = "█" * int(pct * 20) + "░" * (20 - int(pct * 20))

        status = "✓" if result is not None else "·"
        print(
            f"  {status} L{level.get('level', '?'):<3} [{bar}]  "
            f"{timer.get('phase', '?'):<7} {timer.get('formatted_time', '--:--')}  {description}"
        )
        time.sleep(0.5 / speed)


def main() -> None:
    parser = argparse.ArgumentParser(description="Pomodoro+ Session Simulator")
    parser.add_argument(
        "--scenario",
        choices=list(SCENARIOS.keys()) + ["cycle"],
        default="cycle",
        help="Which scenario to run (default: cycle through all)",
    )
    parser.add_argument("--loop", action="store_true", help="Repeat indefinitely")
    parser.add_argument("--speed", type=float, default=1.0, help="Speed multiplier (default 1.0)")
    args = parser.parse_args()

    health = _get("/health")
    if not health:
        print(f"[!] Cannot reach engine at {API}")
        print("    Start it first: PP_TICK_INTERVAL_MS=0 python -m pomoplus.main")
        return
    print(f"[✓] Engine connected — Pomodoro+ v{health.get('version', '?')}")
    print(f"    Speed: {args.speed}×  |  Scenario: {args.scenario}")

    sequence = CYCLE if args.scenario == "cycle" else [args.scenario]

    while True:
        for name in sequence:
            run_scenario(name, args.speed)
        if not args.loop:
            break
        print("\n[↺] Looping...\n")
        time.sleep(2.0)

    badges = _get("/progression/badges") or {}
    unlocked = [b["name"] for b in badges.get("unlocked", [])]
    print(f"\n[✓] Simulation complete. Badges: {', '.join(unlocked) or 'none yet'}")


if __name__ == "__main__":
    main()
