# -*- coding: utf-8 -*-
########################
# mania_models.py
########################
# Purpose:
# - Core data models for mania charts and generated replays.
# - Defines stages, hit objects, abstract input actions and replay frames.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - All models are frozen dataclasses. A chart and a replay never change after construction.
# - Times are plain floats in chart time units (milliseconds for .osu charts).
#
########################
# Interfaces:
# Public dataclasses:
# - StageDefinition(columns: int, special_columns: Optional[frozenset[int]] = None)
#   - is_special_column(column: int) -> bool
# - HitObject(start_time: float, column: int, end_time: Optional[float] = None)
#   - is_hold() -> bool
#   - effective_end_time() -> float
# - ManiaChart(stages: tuple[StageDefinition, ...], hit_objects: tuple[HitObject, ...], declared_total_columns: Optional[int])
#   - total_columns() -> int
#   - stage_columns() -> int
# - ManiaAction(namespace: str, number: int)
#   - label() -> str
# - ReplayFrame(time: float, actions: tuple[ManiaAction, ...])
#   - held_set() -> frozenset[ManiaAction]
# - Replay(frames: tuple[ReplayFrame, ...])
#
# Inputs/Outputs:
# - ManiaChart is produced by chart_store.py or by callers directly.
# - Replay is produced by replay_generator.py and consumed by replay_checks.py and autoplay.py.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple


NAMESPACE_KEY = "key"
NAMESPACE_SPECIAL = "special"


@dataclass(frozen=True)
class StageDefinition:
    columns: int
    special_columns: Optional[FrozenSet[int]] = None

    def is_special_column(self, column: int) -> bool:
        if self.special_columns is not None:
            return int(column) in self.special_columns
        # osu!mania convention: the middle column of an odd-width stage.
        return self.columns % 2 == 1 and int(column) == self.columns // 2


@dataclass(frozen=True)
class HitObject:
    start_time: float
    column: int
    end_time: Optional[float] = None

    def is_hold(self) -> bool:
        return self.end_time is not None

    def effective_end_time(self) -> float:
        if self.end_time is None:
            return float(self.start_time)
        return float(self.end_time)


@dataclass(frozen=True)
class ManiaChart:
    stages: Tuple[StageDefinition, ...]
    hit_objects: Tuple[HitObject, ...]
    declared_total_columns: Optional[int] = None

    def stage_columns(self) -> int:
        return sum(int(stage.columns) for stage in self.stages)

    def total_columns(self) -> int:
        if self.declared_total_columns is not None:
            return int(self.declared_total_columns)
        return self.stage_columns()


@dataclass(frozen=True, order=True)
class ManiaAction:
    namespace: str
    number: int

    def label(self) -> str:
        prefix = "Special" if self.namespace == NAMESPACE_SPECIAL else "Key"
        return f"{prefix}{self.number}"

    def next(self) -> ManiaAction:
        return ManiaAction(namespace=self.namespace, number=self.number + 1)


FIRST_NORMAL_ACTION = ManiaAction(namespace=NAMESPACE_KEY, number=1)
FIRST_SPECIAL_ACTION = ManiaAction(namespace=NAMESPACE_SPECIAL, number=1)


@dataclass(frozen=True)
class ReplayFrame:
    time: float
    actions: Tuple[ManiaAction, ...]

    def held_set(self) -> FrozenSet[ManiaAction]:
        return frozenset(self.actions)


@dataclass(frozen=True)
class Replay:
    frames: Tuple[ReplayFrame, ...]
