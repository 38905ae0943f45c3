"""
autoplay.py

Command line entrypoint that generates a perfect autoplay replay for a mania chart
and prints it to stdout. Nothing is written to disk.

Usage
- python autoplay.py path/to/chart.osu
- python autoplay.py path/to/chart.json --format text
- python autoplay.py --demo 7 --check

Output
- JSON (default): {"ok": true, "chart": {...}, "column_actions": [...], "frames": [...]}
- Text: one line per frame, "<time>\t<held actions>"
- With --check the replay is scanned by replay_checks.py; any violation makes the exit code 1.
- On failure: {"ok": false, "error": "..."} and exit code 2.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import chart_store
import column_actions as column_actions_module
import replay_checks
import replay_generator
import sample_charts
from config import AutoplayConfig, get_config, load_config
from mania_models import ManiaChart, Replay


def _format_time(time_value: float) -> Any:
    if float(time_value).is_integer():
        return int(time_value)
    return float(time_value)


def frames_payload(replay: Replay) -> List[Dict[str, Any]]:
    return [
        {
            "time": _format_time(frame.time),
            "actions": [action.label() for action in frame.actions],
        }
        for frame in replay.frames
    ]


def build_payload(
    *,
    chart: ManiaChart,
    title: str,
    source: str,
    replay: Replay,
    violations: Optional[Sequence[replay_checks.Violation]] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "ok": True,
        "chart": {
            "title": title,
            "source": source,
            "stages": [int(stage.columns) for stage in chart.stages],
            "total_columns": chart.total_columns(),
            "hit_objects": len(chart.hit_objects),
        },
        "constants": {
            "release_delay": replay_generator.RELEASE_DELAY,
            "key_up_delay": replay_generator.KEY_UP_DELAY,
        },
        "column_actions": [action.label() for action in column_actions_module.column_actions_for_chart(chart)],
        "frames": frames_payload(replay),
    }
    if violations is not None:
        payload["violations"] = [
            {"time": _format_time(item.time), "check": item.check, "details": item.details}
            for item in violations
        ]
    return payload


def format_text(replay: Replay) -> str:
    lines: List[str] = []
    for frame in replay.frames:
        held_text = ",".join(action.label() for action in frame.actions) or "-"
        lines.append(f"{_format_time(frame.time)}\t{held_text}")
    return "\n".join(lines)


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    argument_parser = argparse.ArgumentParser(description="Generate a perfect autoplay replay for a mania chart")
    argument_parser.add_argument("chart", nargs="?", type=Path, help="Chart file (.osu or .json).")
    argument_parser.add_argument("--demo", type=int, metavar="KEYS", help="Use a built-in demo chart with KEYS columns.")
    argument_parser.add_argument("--difficulty", default="easy", help="Demo chart difficulty: easy, medium or hard.")
    argument_parser.add_argument("--config", type=Path, help="Config file path. Overrides the default search.")
    argument_parser.add_argument("--format", choices=["json", "text"], help="Output format. Overrides the config.")
    argument_parser.add_argument("--dual-stages", action="store_true", help="Split the chart into two equal stages.")
    argument_parser.add_argument("--check", action="store_true", help="Scan the replay for invariant violations.")
    return argument_parser.parse_args(argv)


def _can_split_in_two(chart: ManiaChart) -> bool:
    # The config option only applies where a split is possible. The flag still fails loudly.
    return len(chart.stages) == 1 and chart.total_columns() % 2 == 0


def _load_app_config(config_path: Optional[Path]) -> AutoplayConfig:
    if config_path is not None:
        app_config, _resolved_path = load_config(config_path)
    else:
        app_config, _resolved_path = get_config()
    return app_config


def main(argv: Optional[Sequence[str]] = None) -> int:
    parsed_args = _parse_args(argv)

    try:
        app_config = _load_app_config(parsed_args.config)

        if parsed_args.demo is not None:
            chart = sample_charts.build_sample_chart(key_count=parsed_args.demo, difficulty=parsed_args.difficulty)
            title = f"Demo {parsed_args.demo}K ({parsed_args.difficulty})"
            source = "demo"
        elif parsed_args.chart is not None:
            loaded = chart_store.load_chart(
                parsed_args.chart, special_style_default=app_config.charts.special_style_default
            )
            chart, title, source = loaded.chart, loaded.title, str(loaded.source_path)
        else:
            raise ValueError("Pass a chart file or --demo KEYS")

        if parsed_args.dual_stages:
            chart = chart_store.split_stages(chart, 2)
        elif app_config.charts.dual_stages and _can_split_in_two(chart):
            chart = chart_store.split_stages(chart, 2)

        replay = replay_generator.generate_replay(chart)
        violations = replay_checks.check_replay(chart, replay) if parsed_args.check else None
    except (chart_store.ChartLoadError, column_actions_module.ColumnLayoutError, ValueError, OSError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    output_format = parsed_args.format or app_config.output.format
    if output_format == "text":
        print(format_text(replay))
        for violation in violations or []:
            print(f"! {_format_time(violation.time)}\t{violation.check}\t{violation.details}")
    else:
        payload = build_payload(chart=chart, title=title, source=source, replay=replay, violations=violations)
        indent = app_config.output.indent or None
        print(json.dumps(payload, ensure_ascii=False, indent=indent))

    if violations:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
