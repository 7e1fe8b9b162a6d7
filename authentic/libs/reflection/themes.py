"""Static catalog of guided reflection themes."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

import yaml

from authentic.libs.schemas.journal import ReflectionTheme

_THEMES_PATH = os.path.join(os.path.dirname(__file__), "themes.yaml")


@lru_cache(maxsize=1)
def reflection_themes() -> tuple[ReflectionTheme, ...]:
    with open(_THEMES_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    themes = [ReflectionTheme.model_validate(raw) for raw in data.get("themes", [])]
    return tuple(sorted(themes, key=lambda theme: theme.order))


def get_theme(theme_id: str) -> Optional[ReflectionTheme]:
    for theme in reflection_themes():
        if theme.id == theme_id:
            return theme
    return None


__all__ = ["get_theme", "reflection_themes"]
