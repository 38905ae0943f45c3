# sample_charts.py
from __future__ import annotations

from typing import List

from mania_models import HitObject, ManiaChart, StageDefinition


def build_sample_chart(*, key_count: int = 4, difficulty: str = "easy") -> ManiaChart:
    """Deterministic demo chart with taps, holds and dense same-column pairs."""
    normalized_difficulty = (difficulty or "easy").strip().lower() or "easy"

    if normalized_difficulty == "hard":
        step_interval = 150.0
        total_steps = 48
    elif normalized_difficulty == "medium":
        step_interval = 250.0
        total_steps = 32
    else:
        step_interval = 400.0
        total_steps = 16

    columns = max(1, int(key_count))
    lead_in = 1000.0

    hit_objects: List[HitObject] = []
    current_time = lead_in

    for step_index in range(total_steps):
        column = (step_index * 3 + step_index // columns) % columns

        if step_index % 8 == 7:
            # Half-step hold, released well before the next step.
            hit_objects.append(HitObject(start_time=current_time, column=column, end_time=current_time + step_interval * 0.5))
        else:
            hit_objects.append(HitObject(start_time=current_time, column=column))

        # Jacks closer than the key-up delay on harder charts.
        if normalized_difficulty in ("medium", "hard") and step_index % 6 == 2:
            hit_objects.append(HitObject(start_time=current_time + 30.0, column=column))

        current_time += step_interval

    hit_objects.sort(key=lambda item: (item.start_time, item.column))

    return ManiaChart(
        stages=(StageDefinition(columns=columns),),
        hit_objects=tuple(hit_objects),
        declared_total_columns=columns,
    )
