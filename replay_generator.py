# -*- coding: utf-8 -*-
########################
# replay_generator.py
########################
# Purpose:
# - Generate a perfect autoplay replay for a mania chart.
# - Emits one press and one release per hit object, groups them by time and folds
#   each group into the set of held actions, producing one ReplayFrame per group.
#
# Design notes:
# - Pure and deterministic. Each generate() call owns its own held set.
# - Press and release points are emitted in hit object order, press before release.
# - Grouping uses a stable sort: points sharing a timestamp keep their emission order.
#   A release and a press on the same column at the same instant therefore resolve
#   in the order the object loop produced them.
# - Release delay:
#   - next object in the same column is absent or starts after end + KEY_UP_DELAY:
#     release at end + RELEASE_DELAY
#   - otherwise release one time unit before the next press in that column
# - Next-object lookup uses a per-column "next index" table built in one backward pass.
#
########################
# Interfaces:
# Public constants:
# - RELEASE_DELAY: float
# - KEY_UP_DELAY: float
# - SENTINEL_TIME: float
#
# Public dataclasses:
# - HitPoint(time: float, column: int)
# - ReleasePoint(time: float, column: int)
#   ActionPoint = HitPoint | ReleasePoint
#
# Public classes:
# - class AutoGenerator
#   - __init__(chart: ManiaChart)
#   - chart() -> ManiaChart
#   - column_actions() -> tuple[ManiaAction, ...]
#   - next_object_in_same_column(index: int) -> Optional[HitObject]
#   - release_time(index: int) -> float
#   - action_points() -> list[ActionPoint]
#   - generate() -> Replay
#
# Public functions:
# - generate_replay(chart: ManiaChart) -> Replay
#
# Inputs:
# - ManiaChart (validated by the caller or chart_store.py).
#
# Outputs:
# - Replay whose first frame is the SENTINEL_TIME frame with no actions held.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from itertools import groupby
from typing import Dict, List, Optional, Tuple, Union

import column_actions as column_actions_module
from mania_models import HitObject, ManiaAction, ManiaChart, Replay, ReplayFrame, StageDefinition


RELEASE_DELAY = 20.0
KEY_UP_DELAY = 50.0

# The first frame of a replay is skipped by playback, so a blank frame leads.
SENTINEL_TIME = -100000.0


@dataclass(frozen=True)
class HitPoint:
    time: float
    column: int


@dataclass(frozen=True)
class ReleasePoint:
    time: float
    column: int


ActionPoint = Union[HitPoint, ReleasePoint]


def _build_next_index_table(hit_objects: Tuple[HitObject, ...]) -> List[Optional[int]]:
    next_indices: List[Optional[int]] = [None] * len(hit_objects)
    upcoming_by_column: Dict[int, int] = {}
    for index in range(len(hit_objects) - 1, -1, -1):
        column = int(hit_objects[index].column)
        next_indices[index] = upcoming_by_column.get(column)
        upcoming_by_column[column] = index
    return next_indices


class AutoGenerator:
    def __init__(self, chart: ManiaChart) -> None:
        self._chart = chart
        self._column_actions = column_actions_module.column_actions_for_chart(chart)
        self._next_indices = _build_next_index_table(tuple(chart.hit_objects))

    def chart(self) -> ManiaChart:
        return self._chart

    def column_actions(self) -> Tuple[ManiaAction, ...]:
        return self._column_actions

    def next_object_in_same_column(self, index: int) -> Optional[HitObject]:
        next_index = self._next_indices[int(index)]
        if next_index is None:
            return None
        return self._chart.hit_objects[next_index]

    def release_time(self, index: int) -> float:
        current_object = self._chart.hit_objects[int(index)]
        end_time = current_object.effective_end_time()
        next_object = self.next_object_in_same_column(index)

        can_delay_key_up = next_object is None or float(next_object.start_time) > end_time + KEY_UP_DELAY
        if can_delay_key_up:
            return end_time + RELEASE_DELAY
        return float(next_object.start_time) - 1.0

    def action_points(self) -> List[ActionPoint]:
        points: List[ActionPoint] = []
        for index, hit_object in enumerate(self._chart.hit_objects):
            column = int(hit_object.column)
            points.append(HitPoint(time=float(hit_object.start_time), column=column))
            points.append(ReleasePoint(time=self.release_time(index), column=column))
        return points

    def generate(self) -> Replay:
        frames: List[ReplayFrame] = [ReplayFrame(time=SENTINEL_TIME, actions=())]

        # sorted() is stable, so equal timestamps keep emission order inside a group.
        ordered_points = sorted(self.action_points(), key=lambda point: point.time)

        held_actions: List[ManiaAction] = []
        for group_time, group in groupby(ordered_points, key=lambda point: point.time):
            for point in group:
                action = column_actions_module.action_for_column(self._column_actions, point.column)
                if isinstance(point, HitPoint):
                    if action not in held_actions:
                        held_actions.append(action)
                elif action in held_actions:
                    held_actions.remove(action)
            frames.append(ReplayFrame(time=float(group_time), actions=tuple(held_actions)))

        return Replay(frames=tuple(frames))


def generate_replay(chart: ManiaChart) -> Replay:
    return AutoGenerator(chart).generate()


def _run_unit_tests() -> None:
    chart = ManiaChart(
        stages=(StageDefinition(columns=4),),
        hit_objects=(
            HitObject(start_time=1000.0, column=0),
            HitObject(start_time=1000.0, column=1),
        ),
    )
    replay = generate_replay(chart)
    assert [frame.time for frame in replay.frames] == [SENTINEL_TIME, 1000.0, 1000.0 + RELEASE_DELAY]
    assert [frame.held_set() for frame in replay.frames[1:]] == [
        frozenset(AutoGenerator(chart).column_actions()[:2]),
        frozenset(),
    ]

    dense = ManiaChart(
        stages=(StageDefinition(columns=4),),
        hit_objects=(
            HitObject(start_time=100.0, column=3),
            HitObject(start_time=130.0, column=3),
        ),
    )
    generator = AutoGenerator(dense)
    assert generator.release_time(0) == 129.0
    assert generator.release_time(1) == 130.0 + RELEASE_DELAY

    empty = ManiaChart(stages=(StageDefinition(columns=7),), hit_objects=())
    assert generate_replay(empty).frames == (ReplayFrame(time=SENTINEL_TIME, actions=()),)


if __name__ == "__main__":
    _run_unit_tests()
    print("replay_generator.py: ok")
