"""Default prompt categories and derived counts.

Updates: v0.1.0 - 2026-10-08 - Introduce default category list and count refresh.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from models.category_model import Category, count_prompts
from models.prompt_model import Prompt

logger = logging.getLogger("prompt_vault.categories")

DEFAULT_CATEGORY_DEFINITIONS: Sequence[Mapping[str, Any]] = (
    {
        "id": "all",
        "name": "All Prompts",
        "description": "View all available prompts",
        "icon": "LayoutGrid",
        "color": "blue",
    },
    {
        "id": "marketing",
        "name": "Marketing",
        "description": "Marketing and promotional content",
        "icon": "TrendingUp",
        "color": "pink",
    },
    {
        "id": "development",
        "name": "Development",
        "description": "Code generation and development tools",
        "icon": "Code2",
        "color": "green",
    },
    {
        "id": "creative-writing",
        "name": "Creative Writing",
        "description": "Creative writing and storytelling",
        "icon": "PenTool",
        "color": "purple",
    },
    {
        "id": "business",
        "name": "Business",
        "description": "Business strategy and analysis",
        "icon": "Briefcase",
        "color": "blue",
    },
    {
        "id": "education",
        "name": "Education",
        "description": "Educational content and learning",
        "icon": "GraduationCap",
        "color": "green",
    },
    {
        "id": "technology",
        "name": "Technology",
        "description": "Technology and technical documentation",
        "icon": "Cpu",
        "color": "orange",
    },
    {
        "id": "fun",
        "name": "Fun",
        "description": "Entertainment and creative content",
        "icon": "Sparkles",
        "color": "yellow",
    },
    {
        "id": "productivity",
        "name": "Productivity",
        "description": "Productivity and efficiency tools",
        "icon": "Zap",
        "color": "purple",
    },
    {
        "id": "data-analysis",
        "name": "Data Analysis",
        "description": "Data visualization and analytics",
        "icon": "BarChart3",
        "color": "blue",
    },
    {
        "id": "testing",
        "name": "Testing",
        "description": "Test prompts and examples",
        "icon": "CheckCircle",
        "color": "gray",
    },
    {
        "id": "general",
        "name": "General",
        "description": "General purpose prompts",
        "icon": "FileText",
        "color": "gray",
    },
)


def default_categories() -> list[Category]:
    """Return fresh Category instances for the built-in list, in display order."""

    return [
        Category(sort_order=index, **definition)
        for index, definition in enumerate(DEFAULT_CATEGORY_DEFINITIONS)
    ]


def refresh_prompt_counts(categories: Iterable[Category], prompts: Sequence[Prompt]) -> None:
    """Recompute each category's derived prompt count in place."""

    for category in categories:
        category.prompt_count = count_prompts(category, prompts)


__all__ = ["DEFAULT_CATEGORY_DEFINITIONS", "default_categories", "refresh_prompt_counts"]
