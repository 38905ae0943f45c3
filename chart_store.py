# -*- coding: utf-8 -*-
########################
# chart_store.py
########################
# Purpose:
# - Load mania charts from disk and convert them into mania_models.ManiaChart.
# - Supports osu!mania beatmaps (.osu) and a plain JSON chart document (.json).
#
# Design notes:
# - Pure parsing and validation. Nothing is ever written to disk.
# - Parsing must be tolerant of minor format variance but never silently accept invalid charts.
#   A hit object outside the declared columns is an error, never clamped or dropped.
# - Hit objects keep file order. The replay generator treats input order as its tie-break order.
#
########################
# Interfaces:
# Public exceptions:
# - class ChartLoadError(Exception)
# - class ChartParseError(ChartLoadError)
# - class ChartValidationError(ChartLoadError)
#
# Public dataclasses:
# - LoadedChart(chart: ManiaChart, title: str, source_kind: str, source_path: pathlib.Path)
#
# Public functions:
# - load_chart(chart_path: pathlib.Path, *, special_style_default: bool = False) -> LoadedChart
# - parse_osu_text(osu_text: str, *, special_style_default: bool = False) -> tuple[ManiaChart, str]
# - parse_chart_document(document: dict) -> tuple[ManiaChart, str]
# - validate_chart(chart: ManiaChart) -> ManiaChart
# - split_stages(chart: ManiaChart, stage_count: int) -> ManiaChart
#
# Inputs:
# - Chart file path (.osu or .json), or already-read text / JSON objects.
#
# Outputs:
# - LoadedChart for replay generation.
#
########################

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, model_validator

from mania_models import HitObject, ManiaChart, StageDefinition


class ChartLoadError(Exception):
    """Base error for chart loading."""


class ChartParseError(ChartLoadError):
    """Raised when the file cannot be read or parsed into the expected structure."""


class ChartValidationError(ChartLoadError):
    """Raised when the file parses but describes a structurally invalid chart."""


@dataclass(frozen=True)
class LoadedChart:
    chart: ManiaChart
    title: str
    source_kind: str
    source_path: Path


OSU_MANIA_MODE = 3
OSU_PLAYFIELD_WIDTH = 512.0
OSU_HOLD_TYPE_BIT = 128
MAX_KEY_COUNT = 18


########################
# Shared validation
########################


def validate_chart(chart: ManiaChart) -> ManiaChart:
    if not chart.stages:
        raise ChartValidationError("Chart has no stages")
    for stage in chart.stages:
        if int(stage.columns) < 1:
            raise ChartValidationError(f"Stage column count must be >= 1, got {stage.columns}")

    total_columns = chart.total_columns()
    if chart.stage_columns() != total_columns:
        raise ChartValidationError(
            f"Stages describe {chart.stage_columns()} columns but the chart declares {total_columns}"
        )

    for index, hit_object in enumerate(chart.hit_objects):
        if int(hit_object.column) < 0 or int(hit_object.column) >= total_columns:
            raise ChartValidationError(
                f"Hit object {index} uses column {hit_object.column}, chart has {total_columns} columns"
            )
        if float(hit_object.start_time) < 0.0:
            raise ChartValidationError(f"Hit object {index} starts at negative time {hit_object.start_time}")
        if hit_object.end_time is not None and float(hit_object.end_time) < float(hit_object.start_time):
            raise ChartValidationError(
                f"Hit object {index} ends at {hit_object.end_time} before its start {hit_object.start_time}"
            )
    return chart


def split_stages(chart: ManiaChart, stage_count: int) -> ManiaChart:
    """Split a single-stage chart into equal-width stages (dual stage layouts use 2)."""
    count = int(stage_count)
    if count < 1:
        raise ValueError("stage_count must be >= 1")
    if len(chart.stages) != 1:
        raise ChartValidationError(f"Only single-stage charts can be split, chart has {len(chart.stages)} stages")

    total_columns = chart.total_columns()
    if total_columns % count != 0:
        raise ChartValidationError(f"{total_columns} columns cannot be split into {count} equal stages")

    stage_width = total_columns // count
    special_columns = chart.stages[0].special_columns
    stages = []
    for stage_index in range(count):
        first_column = stage_index * stage_width
        if special_columns is None:
            stage_specials = None
        else:
            # Explicit specials move to the stage that now contains them.
            stage_specials = frozenset(
                column - first_column
                for column in special_columns
                if first_column <= column < first_column + stage_width
            )
        stages.append(StageDefinition(columns=stage_width, special_columns=stage_specials))
    return ManiaChart(stages=tuple(stages), hit_objects=chart.hit_objects, declared_total_columns=total_columns)


########################
# .osu beatmaps
########################


def _read_text_utf8(file_path: Path) -> str:
    try:
        # .osu files written by the editor may start with a BOM.
        return file_path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ChartParseError(f"Chart file is not valid UTF-8: {file_path}") from exc
    except OSError as exc:
        raise ChartParseError(f"Failed to read chart file: {file_path}") from exc


def _split_osu_sections(osu_text: str) -> Dict[str, List[str]]:
    sections: Dict[str, List[str]] = {}
    current_section: Optional[str] = None
    section_pattern = re.compile(r"^\[([A-Za-z]+)\]$")

    for raw_line in osu_text.splitlines():
        line_text = raw_line.strip()
        if not line_text or line_text.startswith("//"):
            continue
        match = section_pattern.match(line_text)
        if match:
            current_section = match.group(1)
            sections.setdefault(current_section, [])
            continue
        if current_section is not None:
            sections[current_section].append(line_text)

    return sections


def _parse_key_values(lines: List[str]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for line_text in lines:
        if ":" not in line_text:
            continue
        key_text, value_text = line_text.split(":", 1)
        values[key_text.strip()] = value_text.strip()
    return values


def _parse_int_value(values: Dict[str, str], key: str, *, default: int) -> int:
    raw_text = values.get(key, "").strip()
    if not raw_text:
        return default
    try:
        return int(round(float(raw_text)))
    except ValueError as exc:
        raise ChartParseError(f"Invalid {key} value: {raw_text!r}") from exc


def _column_for_x(x_value: float, key_count: int) -> int:
    column = int(math.floor(x_value * key_count / OSU_PLAYFIELD_WIDTH))
    return max(0, min(key_count - 1, column))


def _parse_osu_hit_object(line_text: str, *, key_count: int) -> HitObject:
    # x,y,time,type,hitSound,objectParams,hitSample
    parts = line_text.split(",")
    if len(parts) < 4:
        raise ChartParseError(f"Invalid hit object line: {line_text!r}")

    try:
        x_value = float(parts[0])
        start_time = float(parts[2])
        type_flags = int(parts[3])
    except ValueError as exc:
        raise ChartParseError(f"Invalid hit object numeric values: {line_text!r}") from exc

    end_time: Optional[float] = None
    if type_flags & OSU_HOLD_TYPE_BIT:
        if len(parts) < 6 or not parts[5].strip():
            raise ChartParseError(f"Hold note is missing its end time: {line_text!r}")
        end_text = parts[5].split(":", 1)[0].strip()
        try:
            end_time = float(end_text)
        except ValueError as exc:
            raise ChartParseError(f"Invalid hold note end time {end_text!r} in: {line_text!r}") from exc

    return HitObject(start_time=start_time, column=_column_for_x(x_value, key_count), end_time=end_time)


def parse_osu_text(osu_text: str, *, special_style_default: bool = False) -> Tuple[ManiaChart, str]:
    sections = _split_osu_sections(osu_text)
    if "HitObjects" not in sections:
        raise ChartParseError("No [HitObjects] section found")

    general = _parse_key_values(sections.get("General", []))
    difficulty = _parse_key_values(sections.get("Difficulty", []))
    metadata = _parse_key_values(sections.get("Metadata", []))

    mode = _parse_int_value(general, "Mode", default=0)
    if mode != OSU_MANIA_MODE:
        raise ChartValidationError(f"Not an osu!mania beatmap (Mode: {mode})")

    key_count = _parse_int_value(difficulty, "CircleSize", default=0)
    if key_count < 1 or key_count > MAX_KEY_COUNT:
        raise ChartValidationError(f"Unsupported key count: {key_count}")

    if "SpecialStyle" in general:
        special_style = _parse_int_value(general, "SpecialStyle", default=0) == 1
    else:
        special_style = bool(special_style_default)
    special_columns = None
    if special_style and key_count % 2 == 0:
        special_columns = frozenset({0})

    hit_objects = [_parse_osu_hit_object(line_text, key_count=key_count) for line_text in sections["HitObjects"]]

    chart = ManiaChart(
        stages=(StageDefinition(columns=key_count, special_columns=special_columns),),
        hit_objects=tuple(hit_objects),
        declared_total_columns=key_count,
    )
    title_text = metadata.get("Title", "").strip() or "Untitled"
    version_text = metadata.get("Version", "").strip()
    if version_text:
        title_text = f"{title_text} [{version_text}]"

    return validate_chart(chart), title_text


########################
# JSON chart documents
########################


class StageDocument(BaseModel):
    columns: int = Field(ge=1, le=MAX_KEY_COUNT, description="Number of columns in this stage.")
    special_columns: Optional[List[int]] = Field(
        default=None,
        description="Stage-local special column indexes. Omit to use the odd-width middle column rule.",
    )

    @model_validator(mode="after")
    def validate_special_columns(self) -> "StageDocument":
        for column in self.special_columns or []:
            if column < 0 or column >= self.columns:
                raise ValueError(f"special column {column} is outside 0..{self.columns - 1}")
        return self


class HitObjectDocument(BaseModel):
    start_time: float = Field(ge=0.0)
    column: int = Field(ge=0)
    end_time: Optional[float] = None

    @model_validator(mode="after")
    def validate_end_time(self) -> "HitObjectDocument":
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class ChartDocument(BaseModel):
    title: str = Field(default="Untitled")
    stages: List[StageDocument] = Field(min_length=1)
    total_columns: Optional[int] = Field(default=None, ge=1)
    hit_objects: List[HitObjectDocument] = Field(default_factory=list)


def parse_chart_document(document: Dict[str, Any]) -> Tuple[ManiaChart, str]:
    try:
        parsed = ChartDocument.model_validate(document)
    except ValidationError as exc:
        raise ChartValidationError(f"Chart document validation failed:\n{exc}") from exc

    stages = tuple(
        StageDefinition(
            columns=stage.columns,
            special_columns=frozenset(stage.special_columns) if stage.special_columns is not None else None,
        )
        for stage in parsed.stages
    )
    hit_objects = tuple(
        HitObject(start_time=item.start_time, column=item.column, end_time=item.end_time)
        for item in parsed.hit_objects
    )
    chart = ManiaChart(stages=stages, hit_objects=hit_objects, declared_total_columns=parsed.total_columns)
    return validate_chart(chart), parsed.title.strip() or "Untitled"


def _read_json_document(chart_path: Path) -> Dict[str, Any]:
    raw_text = _read_text_utf8(chart_path)
    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ChartParseError(f"Chart file is not valid JSON: {chart_path}. Error: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ChartParseError(f"Chart file root must be a JSON object: {chart_path}")
    return parsed


def load_chart(chart_path: Path, *, special_style_default: bool = False) -> LoadedChart:
    resolved_path = Path(chart_path)
    suffix = resolved_path.suffix.lower()

    if suffix == ".osu":
        chart, title = parse_osu_text(_read_text_utf8(resolved_path), special_style_default=special_style_default)
        source_kind = "osu"
    elif suffix == ".json":
        chart, title = parse_chart_document(_read_json_document(resolved_path))
        source_kind = "json"
    else:
        raise ChartLoadError(f"Unsupported chart file type {suffix!r}: {resolved_path}. Expected .osu or .json")

    return LoadedChart(chart=chart, title=title, source_kind=source_kind, source_path=resolved_path)
