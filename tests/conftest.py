"""Shared fixtures: keep the developer's environment out of config-dependent tests."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _clear_autoplay_environment(monkeypatch):
    for name in (
        "AUTOPLAY_CONFIG_PATH",
        "AUTOPLAY_OUTPUT_FORMAT",
        "AUTOPLAY_OUTPUT_INDENT",
        "AUTOPLAY_SPECIAL_STYLE",
        "AUTOPLAY_DUAL_STAGES",
    ):
        monkeypatch.delenv(name, raising=False)
