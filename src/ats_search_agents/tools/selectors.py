"""Ordered selector chain for search-engine results pages.

Each selector is a pure function ``(soup) -> list[RawSearchResult]`` that
returns structurally valid candidates (title text and a link present). The
chain is tried in order; the first selector with any candidate wins.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from bs4 import BeautifulSoup, Tag

from ats_search_core.models.job import RawSearchResult

ResultSelector = Callable[[BeautifulSoup], list[RawSearchResult]]


def _candidate(title_el: Tag | None, link_el: Tag | None) -> RawSearchResult | None:
    """Pair title text with a link href, or None if either is missing."""
    if title_el is None or link_el is None:
        return None
    title = title_el.get_text(" ", strip=True)
    href = link_el.get("href")
    if not title or not isinstance(href, str) or not href:
        return None
    return RawSearchResult(title=title, url=href)


def _from_blocks(soup: BeautifulSoup, css: str) -> list[RawSearchResult]:
    """Result blocks holding an ``<h3>`` title and an ``<a href>`` link."""
    results: list[RawSearchResult] = []
    for block in soup.select(css):
        candidate = _candidate(block.find("h3"), block.find("a", href=True))
        if candidate is not None:
            results.append(candidate)
    return results


def select_classic_blocks(soup: BeautifulSoup) -> list[RawSearchResult]:
    """Classic organic result container."""
    return _from_blocks(soup, "div.g")


def select_compact_blocks(soup: BeautifulSoup) -> list[RawSearchResult]:
    """Newer compact organic result container."""
    return _from_blocks(soup, "div.tF2Cxc")


def select_link_wrappers(soup: BeautifulSoup) -> list[RawSearchResult]:
    """Link wrapper divs around the title anchor."""
    return _from_blocks(soup, "div.yuRUbf")


def select_titled_anchors(soup: BeautifulSoup) -> list[RawSearchResult]:
    """Any anchor wrapping an ``<h3>``; last resort for unknown layouts."""
    results: list[RawSearchResult] = []
    for anchor in soup.select("a:has(h3)"):
        candidate = _candidate(anchor.find("h3"), anchor)
        if candidate is not None:
            results.append(candidate)
    return results


SELECTOR_CHAIN: tuple[ResultSelector, ...] = (
    select_classic_blocks,
    select_compact_blocks,
    select_link_wrappers,
    select_titled_anchors,
)


def run_selector_chain(
    html: str,
    chain: Sequence[ResultSelector] = SELECTOR_CHAIN,
) -> tuple[str | None, list[RawSearchResult]]:
    """Return the name of the first matching selector and its candidates.

    Returns ``(None, [])`` when no selector matches anything.
    """
    soup = BeautifulSoup(html, "html.parser")
    for selector in chain:
        candidates = selector(soup)
        if candidates:
            return selector.__name__, candidates
    return None, []
