"""Viewport configuration for pagination.

Passed explicitly into the components that need it; there is no ambient
window-size cache.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from bibleapp.config.settings import settings


class ViewConfig(BaseModel):
    """Page budgets per viewport class.

    Attributes:
        narrow_width: Viewports narrower than this are narrow
        narrow_page_budget: Characters per page on narrow viewports
        wide_page_budget: Characters per page otherwise
    """

    narrow_width: int = Field(default=768, ge=1)
    narrow_page_budget: int = Field(default=300, ge=1)
    wide_page_budget: int = Field(default=600, ge=1)

    @classmethod
    def from_settings(cls) -> ViewConfig:
        return cls(
            narrow_width=settings.narrow_viewport_width,
            narrow_page_budget=settings.narrow_page_budget,
            wide_page_budget=settings.wide_page_budget,
        )

    def page_budget_for_width(self, width: int) -> int:
        return page_budget_for_width(width, self)


def page_budget_for_width(width: int, config: ViewConfig) -> int:
    """Return the page budget (in characters) for a viewport width."""
    if width < config.narrow_width:
        return config.narrow_page_budget
    return config.wide_page_budget
