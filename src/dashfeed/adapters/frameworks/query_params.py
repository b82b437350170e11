"""Shared query parameter parsing utilities for framework adapters.

This module provides utilities for parsing the log filter parameters
that are common across the HTTP adapters.
"""

from dashfeed.core.models import ALL, FilterCriteria


def _first(params: dict[str, list[str]], name: str) -> str:
    values = params.get(name) or [""]
    return values[0].strip()


def _parse_filter_params(params: dict[str, list[str]]) -> FilterCriteria:
    """Build log filter criteria from query parameters.

    Args:
        params: Parsed query string parameters (as returned by urllib.parse.parse_qs).

    Returns:
        FilterCriteria using ``filter`` (source or severity, default "all")
        and ``search`` (substring, default empty).
    """
    return FilterCriteria(
        source_or_level=_first(params, "filter") or ALL,
        search_text=_first(params, "search"),
    )


def _parse_limit_param(params: dict[str, list[str]]) -> int | None:
    """Parse and validate the 'limit' query parameter.

    Returns:
        A positive integer, or None if missing or invalid.
    """
    try:
        value = int(_first(params, "limit"))
    except ValueError:
        return None
    return value if value > 0 else None
