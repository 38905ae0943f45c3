"""Tests for column_actions.py: column index to action mapping."""

from __future__ import annotations

import pytest

from column_actions import ColumnLayoutError, action_for_column, build_column_actions, column_actions_for_chart
from mania_models import FIRST_NORMAL_ACTION, FIRST_SPECIAL_ACTION, ManiaAction, ManiaChart, StageDefinition


def labels(actions):
    return [action.label() for action in actions]


# ---------------------------------------------------------------------------
# TestBuildColumnActions
# ---------------------------------------------------------------------------

class TestBuildColumnActions:
    def test_four_key_stage_is_all_normal(self):
        actions = build_column_actions([StageDefinition(columns=4)], total_columns=4)
        assert labels(actions) == ["Key1", "Key2", "Key3", "Key4"]

    def test_odd_stage_middle_column_is_special(self):
        actions = build_column_actions([StageDefinition(columns=7)], total_columns=7)
        assert labels(actions) == ["Key1", "Key2", "Key3", "Special1", "Key4", "Key5", "Key6"]

    def test_stages_concatenate_without_restarting_counters(self):
        stages = [StageDefinition(columns=5), StageDefinition(columns=5)]
        actions = build_column_actions(stages, total_columns=10)
        assert labels(actions) == [
            "Key1", "Key2", "Special1", "Key3", "Key4",
            "Key5", "Key6", "Special2", "Key7", "Key8",
        ]

    def test_explicit_special_columns_override_default_rule(self):
        stage = StageDefinition(columns=8, special_columns=frozenset({0}))
        actions = build_column_actions([stage], total_columns=8)
        assert labels(actions) == ["Special1", "Key1", "Key2", "Key3", "Key4", "Key5", "Key6", "Key7"]

    def test_first_identifiers(self):
        actions = build_column_actions([StageDefinition(columns=3)], total_columns=3)
        assert actions[0] == FIRST_NORMAL_ACTION
        assert actions[1] == FIRST_SPECIAL_ACTION

    def test_namespaces_never_share_identifiers(self):
        stages = [StageDefinition(columns=9), StageDefinition(columns=9)]
        actions = build_column_actions(stages, total_columns=18)
        assert len(set(actions)) == 18
        normal = [a for a in actions if a.namespace == FIRST_NORMAL_ACTION.namespace]
        special = [a for a in actions if a.namespace == FIRST_SPECIAL_ACTION.namespace]
        assert [a.number for a in normal] == list(range(1, len(normal) + 1))
        assert [a.number for a in special] == list(range(1, len(special) + 1))

    def test_mismatched_total_raises(self):
        with pytest.raises(ColumnLayoutError):
            build_column_actions([StageDefinition(columns=4)], total_columns=5)

    def test_column_layout_error_is_out_of_range(self):
        assert issubclass(ColumnLayoutError, IndexError)

    def test_mapping_is_idempotent(self):
        chart = ManiaChart(stages=(StageDefinition(columns=7), StageDefinition(columns=4)), hit_objects=())
        assert column_actions_for_chart(chart) == column_actions_for_chart(chart)

    def test_map_is_immutable_tuple(self):
        actions = build_column_actions([StageDefinition(columns=4)], total_columns=4)
        assert isinstance(actions, tuple)


# ---------------------------------------------------------------------------
# TestActionForColumn
# ---------------------------------------------------------------------------

class TestActionForColumn:
    def test_lookup(self):
        actions = build_column_actions([StageDefinition(columns=4)], total_columns=4)
        assert action_for_column(actions, 2) == ManiaAction(namespace="key", number=3)

    @pytest.mark.parametrize("column", [-1, 4, 100])
    def test_out_of_range_fails_fast(self, column):
        actions = build_column_actions([StageDefinition(columns=4)], total_columns=4)
        with pytest.raises(ColumnLayoutError):
            action_for_column(actions, column)
