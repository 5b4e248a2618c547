"""Sentence-boundary pagination of passage text.

A page boundary is only ever placed right after a period that is followed by
a space, so no page but the last ends mid-sentence. When no such boundary
exists since the previous one, the page grows past the budget instead.
Concatenating the pages always reproduces the input exactly.
"""

from __future__ import annotations


def paginate(text: str, page_budget: int) -> list[str]:
    """Split text into pages of roughly page_budget characters.

    Args:
        text: Passage text
        page_budget: Target characters per page (>= 1)

    Returns:
        Pages in order; a single page equal to text when it fits the budget

    Raises:
        ValueError: If page_budget is below 1
    """
    if page_budget < 1:
        raise ValueError(f"page_budget must be >= 1, got {page_budget}")
    if len(text) <= page_budget:
        return [text]

    pages: list[str] = []
    start = 0
    last_break = 0
    for i, char in enumerate(text):
        # Break position is the space after the period; it opens the next page.
        if char == "." and i + 1 < len(text) and text[i + 1] == " ":
            last_break = i + 1
        if i - start + 1 >= page_budget and last_break > start:
            pages.append(text[start:last_break])
            start = last_break

    if start < len(text):
        pages.append(text[start:])
    return pages


class Paginator:
    """Holds the pages of one text for one budget, and the current page.

    Pages are recomputed whenever the text or the budget changes, and the
    current page goes back to 0 each time.
    """

    def __init__(self, page_budget: int, text: str | None = None) -> None:
        if page_budget < 1:
            raise ValueError(f"page_budget must be >= 1, got {page_budget}")
        self._budget = page_budget
        self._text = text
        self._pages: tuple[str, ...] = ()
        self._index = 0
        self._recompute()

    def _recompute(self) -> None:
        self._pages = tuple(paginate(self._text, self._budget)) if self._text is not None else ()
        self._index = 0

    @property
    def page_budget(self) -> int:
        return self._budget

    @property
    def text(self) -> str | None:
        return self._text

    @property
    def pages(self) -> tuple[str, ...]:
        return self._pages

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_page(self) -> str | None:
        return self._pages[self._index] if self._pages else None

    @property
    def has_next(self) -> bool:
        return self._index < len(self._pages) - 1

    @property
    def has_previous(self) -> bool:
        return self._index > 0

    def next_page(self) -> bool:
        if not self.has_next:
            return False
        self._index += 1
        return True

    def previous_page(self) -> bool:
        if not self.has_previous:
            return False
        self._index -= 1
        return True

    def go_to(self, index: int) -> bool:
        """Jump to a page; out-of-range indexes leave the position unchanged."""
        if not 0 <= index < len(self._pages):
            return False
        self._index = index
        return True

    def set_text(self, text: str | None) -> None:
        self._text = text
        self._recompute()

    def set_budget(self, page_budget: int) -> None:
        if page_budget < 1:
            raise ValueError(f"page_budget must be >= 1, got {page_budget}")
        if page_budget == self._budget:
            return
        self._budget = page_budget
        self._recompute()

    def clear(self) -> None:
        self.set_text(None)
