"""Company inference from ATS posting URLs, one rule per platform."""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import urlsplit

import structlog

from ats_search_core.constants import UNKNOWN_COMPANY

logger = structlog.get_logger()

CompanyRule = Callable[[str], str | None]

# Hostname labels that never name a company (boards.greenhouse.io, jobs.lever.co)
_GENERIC_HOST_LABELS = frozenset({"www", "jobs", "boards", "job-boards", "apply", "careers"})


def _hostname(url: str) -> str:
    return (urlsplit(url).hostname or "").lower()


def _first_path_segment(url: str) -> str | None:
    """Company slug is the first path segment (boards.greenhouse.io/<slug>/jobs/1)."""
    segments = [s for s in urlsplit(url).path.split("/") if s]
    return segments[0] if segments else None


def _leftmost_host_label(url: str) -> str | None:
    """Company slug is the subdomain (<slug>.bamboohr.com), unless it is a generic label."""
    labels = _hostname(url).split(".")
    if len(labels) > 2 and labels[0] not in _GENERIC_HOST_LABELS:
        return labels[0]
    return None


def _generic_rule(url: str) -> str | None:
    """Host label when it is not a generic one, else the first path segment."""
    return _leftmost_host_label(url) or _first_path_segment(url)


COMPANY_RULES: dict[str, CompanyRule] = {
    "greenhouse.io": _first_path_segment,
    "lever.co": _first_path_segment,
    "ashbyhq.com": _first_path_segment,
    "workable.com": _first_path_segment,
    "smartrecruiters.com": _first_path_segment,
    "jobvite.com": _first_path_segment,
    "myworkdayjobs.com": _leftmost_host_label,
    "bamboohr.com": _leftmost_host_label,
    "breezy.hr": _leftmost_host_label,
    "recruitee.com": _leftmost_host_label,
    "teamtailor.com": _leftmost_host_label,
}


def capitalize_first(value: str) -> str:
    """Upper-case only the first character, leaving the rest untouched."""
    return value[:1].upper() + value[1:]


def infer_company(url: str, platform: str) -> str:
    """Best-effort company name from URL structure.

    >>> infer_company("https://boards.greenhouse.io/vimeo/jobs/123", "greenhouse.io")
    'Vimeo'
    """
    rule = COMPANY_RULES.get(platform, _generic_rule)
    try:
        slug = rule(url)
    except ValueError as e:
        logger.debug("company_inference_failed", url=url, platform=platform, error=str(e))
        return UNKNOWN_COMPANY
    if not slug:
        return UNKNOWN_COMPANY
    return capitalize_first(slug)
