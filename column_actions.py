# -*- coding: utf-8 -*-
########################
# column_actions.py
########################
# Purpose:
# - Map global column indexes to abstract input actions (Key1.. and Special1..).
# - The map is derived once from the stage layout and is immutable afterward.
#
# Design notes:
# - Stages are concatenated: the output position is the running global column index,
#   not the per-stage column index.
# - Normal and special columns use separate counters, so the two namespaces never collide.
# - This must be the only column-to-action mapping. replay_generator.py consults it.
#
########################
# Interfaces:
# Public exceptions:
# - class ColumnLayoutError(IndexError)
#
# Public functions:
# - build_column_actions(stages: Sequence[StageDefinition], total_columns: int) -> tuple[ManiaAction, ...]
# - column_actions_for_chart(chart: ManiaChart) -> tuple[ManiaAction, ...]
# - action_for_column(column_actions: Sequence[ManiaAction], column: int) -> ManiaAction
#
# Inputs:
# - Stage layout from a ManiaChart.
#
# Outputs:
# - Tuple indexed by global column index.
#
########################

from __future__ import annotations

from typing import List, Sequence, Tuple

from mania_models import FIRST_NORMAL_ACTION, FIRST_SPECIAL_ACTION, ManiaAction, ManiaChart, StageDefinition


class ColumnLayoutError(IndexError):
    """Raised when a column index or stage layout does not fit the chart's declared columns."""


def build_column_actions(stages: Sequence[StageDefinition], total_columns: int) -> Tuple[ManiaAction, ...]:
    implied_columns = sum(int(stage.columns) for stage in stages)
    if implied_columns != int(total_columns):
        raise ColumnLayoutError(
            f"Stages describe {implied_columns} columns but the chart declares {int(total_columns)}"
        )

    normal_action = FIRST_NORMAL_ACTION
    special_action = FIRST_SPECIAL_ACTION
    column_actions: List[ManiaAction] = []

    for stage in stages:
        for column_in_stage in range(int(stage.columns)):
            if stage.is_special_column(column_in_stage):
                column_actions.append(special_action)
                special_action = special_action.next()
            else:
                column_actions.append(normal_action)
                normal_action = normal_action.next()

    return tuple(column_actions)


def column_actions_for_chart(chart: ManiaChart) -> Tuple[ManiaAction, ...]:
    return build_column_actions(chart.stages, chart.total_columns())


def action_for_column(column_actions: Sequence[ManiaAction], column: int) -> ManiaAction:
    column_index = int(column)
    if column_index < 0 or column_index >= len(column_actions):
        raise ColumnLayoutError(
            f"Column {column_index} is outside the action map (0..{len(column_actions) - 1})"
        )
    return column_actions[column_index]


def _run_unit_tests() -> None:
    stages = [StageDefinition(columns=4), StageDefinition(columns=3)]
    actions = build_column_actions(stages, total_columns=7)
    assert [action.label() for action in actions] == ["Key1", "Key2", "Key3", "Key4", "Key5", "Special1", "Key6"]

    try:
        build_column_actions(stages, total_columns=8)
    except ColumnLayoutError:
        pass
    else:
        raise AssertionError("Expected ColumnLayoutError for mismatched totals")

    try:
        action_for_column(actions, 7)
    except ColumnLayoutError:
        pass
    else:
        raise AssertionError("Expected ColumnLayoutError for out of range column")


if __name__ == "__main__":
    _run_unit_tests()
    print("column_actions.py: ok")
