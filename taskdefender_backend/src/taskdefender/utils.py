from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence, TypeVar, Union

from .urgency import UrgencyTier

V = TypeVar("V")


# PUBLIC_INTERFACE
def pagination_envelope(
    items: Union[Sequence[Any], Iterable[Any]],
    total: int,
    limit: int,
    offset: int,
) -> Dict[str, Any]:
    """
    Build a standard pagination envelope for list endpoints.

    Returns:
        Dict with keys: items, total, limit, offset.
    """
    materialized: List[Any] = list(items) if not isinstance(items, list) else items
    return {
        "items": materialized,
        "total": int(total),
        "limit": int(max(limit, 0)),
        "offset": int(max(offset, 0)),
    }


def tier_keyed(mapping: Mapping[UrgencyTier, V]) -> Dict[str, V]:
    """Re-key a tier mapping by the tiers' wire names ("at-risk", "overdue", ...)."""
    return {tier.value: value for tier, value in mapping.items()}
