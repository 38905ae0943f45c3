# -*- coding: utf-8 -*-
########################
# replay_checks.py
########################
# Purpose:
# - Invariant checker for generated replays.
# - Scans a Replay against the ManiaChart it was generated from and reports every
#   frame or hit object that an exact autoplay should never produce.
#
# Design notes:
# - Library module. Tests and autoplay.py --check import it and assert on results.
# - Checks never raise for a bad replay; they return Violation records.
# - Hold spans are checked on [start_time, end_time). The tail instant itself is
#   allowed to be the release frame when the next object in the column is one unit later.
# - Held lookups bisect the frame times, so they assume frames in time order. Unordered
#   replays are still reported through "frame_time_decreasing".
#
########################
# Interfaces:
# Public dataclasses:
# - Violation(time: float, check: str, details: str)
#
# Public functions:
# - check_replay(chart: ManiaChart, replay: Replay) -> list[Violation]
# - frame_at(replay: Replay, time: float, frame_times: Optional[list[float]] = None) -> Optional[ReplayFrame]
#
# Check names:
# - "missing_sentinel", "sentinel_not_earliest", "frame_time_decreasing",
#   "unexpected_press", "object_not_held", "hold_released_early"
#
########################

from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

import column_actions as column_actions_module
from mania_models import ManiaAction, ManiaChart, Replay, ReplayFrame
from replay_generator import SENTINEL_TIME


@dataclass(frozen=True)
class Violation:
    time: float
    check: str
    details: str


def _check_sentinel(replay: Replay) -> List[Violation]:
    frames = replay.frames
    if not frames or frames[0].time != SENTINEL_TIME or frames[0].actions:
        first_time = frames[0].time if frames else SENTINEL_TIME
        return [Violation(time=first_time, check="missing_sentinel", details="First frame must be an empty sentinel frame")]

    violations: List[Violation] = []
    for frame in frames[1:]:
        if frame.time <= frames[0].time:
            violations.append(Violation(
                time=frame.time,
                check="sentinel_not_earliest",
                details=f"Frame at {frame.time} is not later than the sentinel",
            ))
    return violations


def _check_frame_order(replay: Replay) -> List[Violation]:
    violations: List[Violation] = []
    for previous, current in zip(replay.frames, replay.frames[1:]):
        if current.time < previous.time:
            violations.append(Violation(
                time=current.time,
                check="frame_time_decreasing",
                details=f"Frame at {current.time} follows frame at {previous.time}",
            ))
    return violations


def _check_presses_are_scheduled(chart: ManiaChart, replay: Replay, actions: List[ManiaAction]) -> List[Violation]:
    pressable: Dict[float, Set[ManiaAction]] = {}
    for hit_object in chart.hit_objects:
        action = column_actions_module.action_for_column(actions, hit_object.column)
        pressable.setdefault(float(hit_object.start_time), set()).add(action)

    violations: List[Violation] = []
    for previous, current in zip(replay.frames, replay.frames[1:]):
        newly_held = current.held_set() - previous.held_set()
        unexpected = newly_held - pressable.get(float(current.time), set())
        for action in sorted(unexpected):
            violations.append(Violation(
                time=current.time,
                check="unexpected_press",
                details=f"{action.label()} pressed with no hit object starting at {current.time}",
            ))
    return violations


def frame_at(replay: Replay, time: float, frame_times: Optional[List[float]] = None) -> Optional[ReplayFrame]:
    """Return the frame in effect at the given time (the last frame not after it).

    Pass frame_times (the replay frame times, in order) when looking up many times
    against the same replay.
    """
    if frame_times is None:
        frame_times = [frame.time for frame in replay.frames]
    position = bisect_right(frame_times, float(time))
    if position == 0:
        return None
    return replay.frames[position - 1]


def _check_objects_held(
    chart: ManiaChart, replay: Replay, actions: List[ManiaAction], frame_times: List[float]
) -> List[Violation]:
    violations: List[Violation] = []
    for hit_object in chart.hit_objects:
        action = column_actions_module.action_for_column(actions, hit_object.column)
        start_time = float(hit_object.start_time)

        frame = frame_at(replay, start_time, frame_times)
        if frame is None or action not in frame.held_set():
            violations.append(Violation(
                time=start_time,
                check="object_not_held",
                details=f"{action.label()} is not held when the object in column {hit_object.column} starts",
            ))
            continue

        if not hit_object.is_hold():
            continue

        end_time = hit_object.effective_end_time()
        first = bisect_left(frame_times, start_time)
        last = bisect_left(frame_times, end_time)
        for frame in replay.frames[first:last]:
            if action not in frame.held_set():
                violations.append(Violation(
                    time=frame.time,
                    check="hold_released_early",
                    details=f"{action.label()} released at {frame.time} before hold end {end_time}",
                ))
                break
    return violations


def check_replay(chart: ManiaChart, replay: Replay) -> List[Violation]:
    actions = list(column_actions_module.column_actions_for_chart(chart))
    frame_times = [frame.time for frame in replay.frames]

    violations: List[Violation] = []
    violations.extend(_check_sentinel(replay))
    violations.extend(_check_frame_order(replay))
    violations.extend(_check_presses_are_scheduled(chart, replay, actions))
    violations.extend(_check_objects_held(chart, replay, actions, frame_times))
    return violations
