"""Persistence helpers for prosdepot runs."""

from .depot_cache import (
    DepotCache,
    apply_previous_result,
    build_depot_map,
    get_previous_result,
    has_been_updated_after,
)

__all__ = [
    "DepotCache",
    "apply_previous_result",
    "build_depot_map",
    "get_previous_result",
    "has_been_updated_after",
]
