"""Property tests for replay_generator.py over generated charts (hypothesis)."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from hypothesis import given, settings
from hypothesis import strategies as st

from column_actions import build_column_actions, column_actions_for_chart
from mania_models import HitObject, ManiaAction, ManiaChart, StageDefinition
from replay_checks import check_replay
from replay_generator import KEY_UP_DELAY, RELEASE_DELAY, SENTINEL_TIME, AutoGenerator, HitPoint, generate_replay


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

@st.composite
def arbitrary_charts(draw) -> ManiaChart:
    """Any valid chart shape, in any object order, including exact coincidences."""
    stage_widths = draw(st.lists(st.integers(min_value=1, max_value=9), min_size=1, max_size=2))
    total_columns = sum(stage_widths)
    objects = draw(st.lists(
        st.tuples(
            st.integers(min_value=0, max_value=400),
            st.integers(min_value=0, max_value=total_columns - 1),
            st.one_of(st.none(), st.integers(min_value=0, max_value=200)),
        ),
        max_size=40,
    ))
    hit_objects = tuple(
        HitObject(
            start_time=float(start),
            column=column,
            end_time=None if hold_length is None else float(start + hold_length),
        )
        for start, column, hold_length in objects
    )
    return ManiaChart(stages=tuple(StageDefinition(columns=width) for width in stage_widths), hit_objects=hit_objects)


@st.composite
def playable_charts(draw) -> ManiaChart:
    """Charts sorted by start time whose same-column objects never overlap and are 2+ units apart."""
    key_count = draw(st.integers(min_value=1, max_value=8))
    hit_objects: List[HitObject] = []
    for column in range(key_count):
        current = draw(st.integers(min_value=0, max_value=200))
        steps = draw(st.lists(
            st.tuples(
                st.integers(min_value=2, max_value=300),
                st.one_of(st.none(), st.integers(min_value=1, max_value=600)),
            ),
            max_size=10,
        ))
        for gap, hold_length in steps:
            end_time: Optional[float] = None if hold_length is None else float(current + hold_length)
            hit_objects.append(HitObject(start_time=float(current), column=column, end_time=end_time))
            current = int(end_time if end_time is not None else current) + gap
    hit_objects.sort(key=lambda item: (item.start_time, item.column))
    return ManiaChart(stages=(StageDefinition(columns=key_count),), hit_objects=tuple(hit_objects))


# ---------------------------------------------------------------------------
# Reference: forward scan and first-seen grouping, no lookup table
# ---------------------------------------------------------------------------

def reference_frames(chart: ManiaChart) -> List[Tuple[float, Tuple[ManiaAction, ...]]]:
    actions = build_column_actions(chart.stages, chart.total_columns())
    hit_objects = chart.hit_objects

    points: List[Tuple[str, float, int]] = []
    for index, current in enumerate(hit_objects):
        end_time = current.effective_end_time()
        next_object = None
        for candidate in hit_objects[index + 1:]:
            if candidate.column == current.column:
                next_object = candidate
                break
        if next_object is None or next_object.start_time > end_time + KEY_UP_DELAY:
            release = end_time + RELEASE_DELAY
        else:
            release = next_object.start_time - 1
        points.append(("hit", current.start_time, current.column))
        points.append(("release", release, current.column))

    groups: Dict[float, List[Tuple[str, float, int]]] = {}
    for point in points:
        groups.setdefault(point[1], []).append(point)

    held: List[ManiaAction] = []
    frames = [(SENTINEL_TIME, ())]
    for time in sorted(groups):
        for kind, _time, column in groups[time]:
            action = actions[column]
            if kind == "hit" and action not in held:
                held.append(action)
            elif kind == "release" and action in held:
                held.remove(action)
        frames.append((time, tuple(held)))
    return frames


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

@settings(max_examples=200)
@given(arbitrary_charts())
def test_matches_forward_scan_reference(chart):
    replay = generate_replay(chart)
    assert [(frame.time, frame.actions) for frame in replay.frames] == reference_frames(chart)


@given(arbitrary_charts())
def test_times_non_decreasing_after_earliest_sentinel(chart):
    times = [frame.time for frame in generate_replay(chart).frames]
    assert times[0] == SENTINEL_TIME
    assert all(time > SENTINEL_TIME for time in times[1:])
    assert times == sorted(times)


@given(arbitrary_charts())
def test_sentinel_holds_nothing(chart):
    assert generate_replay(chart).frames[0].actions == ()


@given(arbitrary_charts())
def test_held_actions_were_pressed_earlier(chart):
    actions = column_actions_for_chart(chart)
    replay = generate_replay(chart)
    for frame in replay.frames[1:]:
        pressed_so_far = {
            actions[item.column] for item in chart.hit_objects if item.start_time <= frame.time
        }
        assert frame.held_set() <= pressed_so_far
        assert len(frame.actions) == len(frame.held_set())


@given(arbitrary_charts())
def test_shrunk_release_precedes_next_press(chart):
    generator = AutoGenerator(chart)
    for index, current in enumerate(chart.hit_objects):
        next_object = generator.next_object_in_same_column(index)
        if next_object is None:
            assert generator.release_time(index) == current.effective_end_time() + RELEASE_DELAY
        elif next_object.start_time <= current.effective_end_time() + KEY_UP_DELAY:
            assert generator.release_time(index) == next_object.start_time - 1
            assert generator.release_time(index) < next_object.start_time


@given(arbitrary_charts())
def test_generation_is_deterministic(chart):
    assert generate_replay(chart) == generate_replay(chart)
    assert column_actions_for_chart(chart) == column_actions_for_chart(chart)


@given(playable_charts())
def test_no_same_column_press_release_coincidence(chart):
    points = AutoGenerator(chart).action_points()
    presses = {(point.time, point.column) for point in points if isinstance(point, HitPoint)}
    releases = {(point.time, point.column) for point in points if not isinstance(point, HitPoint)}
    assert presses.isdisjoint(releases)


@settings(max_examples=200)
@given(playable_charts())
def test_playable_charts_pass_every_check(chart):
    assert check_replay(chart, generate_replay(chart)) == []
