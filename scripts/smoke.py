# ruff: noqa: E402
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from flightdrill.config import DrillConfig
from flightdrill.scenarios import SCENARIOS, Scenario, run_scenario


def run_one(scenario: Scenario, config: DrillConfig) -> dict:
    result = run_scenario(scenario, config=config)
    state = result.state
    return {
        "scenario": scenario.name,
        "beats": result.beats,
        "errors": len(result.errors),
        "formation": state.formation_type.value,
        "heading": state.heading_deg,
        "motion": state.motion.value,
        "idle": result.simulation.queues_empty,
    }


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--strict", action="store_true", help="Require Forward, MARCH before flanks")
    parser.add_argument("--out", type=str, default=None, help="Write per-scenario results to this JSON file")
    args = parser.parse_args()

    config = DrillConfig(allow_flank_from_halt=not args.strict)

    results = []
    for name, scenario in SCENARIOS.items():
        result = run_one(scenario, config)
        results.append(result)
        print(f"{name}: {result}")

    if args.out:
        p = Path(args.out)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(results, indent=2), encoding="utf-8")

    # Tiny summary
    failed = [r["scenario"] for r in results if r["errors"] or not r["idle"]]
    print("summary:", {"scenarios": len(results), "failed": failed})


if __name__ == "__main__":
    main()
