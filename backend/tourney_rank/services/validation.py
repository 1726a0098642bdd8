import math
from typing import Any, Dict, Mapping, Optional

from ..config import MAX_PAGE_SIZE
from ..exceptions import (
    InvalidRankingWeights,
    InvalidStatSchema,
    InvalidStatValue,
)

WEIGHT_SUM_TOLERANCE = 0.001
STAT_TYPES = {"integer", "float", "string"}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_weights(weights: Mapping[str, Any]) -> Dict[str, float]:
    """Validate a ranking weight map and return it with float values.

    Rules:
    - At least one weight is required
    - Every key is a non-empty string and every value a finite number
    - The values sum to 1.0 within ``WEIGHT_SUM_TOLERANCE``

    Weights are never rescaled to fix the sum; a bad map is rejected.
    """

    if not isinstance(weights, Mapping) or len(weights) == 0:
        raise InvalidRankingWeights("ranking weights cannot be empty")

    normalized: Dict[str, float] = {}
    for key, value in weights.items():
        if not isinstance(key, str) or not key.strip():
            raise InvalidRankingWeights("ranking weight keys must be non-empty strings")
        if not _is_number(value) or not math.isfinite(value):
            raise InvalidRankingWeights(f"weight '{key}' must be a number")
        normalized[key] = float(value)

    total = math.fsum(normalized.values())
    if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
        raise InvalidRankingWeights(
            f"ranking weights must sum to 1.0 (got {total:.4f})"
        )
    return normalized


def validate_stat_schema(schema: Optional[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Validate a stat schema: ``{name: {type, min, max, label}}``.

    ``min`` and ``max`` are optional; when both are given ``min <= max``.
    """

    if schema is None:
        return {}
    if not isinstance(schema, Mapping):
        raise InvalidStatSchema("stat schema must be an object")

    normalized: Dict[str, Dict[str, Any]] = {}
    for name, field in schema.items():
        if not isinstance(name, str) or not name.strip():
            raise InvalidStatSchema("stat names must be non-empty strings")
        if not isinstance(field, Mapping):
            raise InvalidStatSchema(f"stat '{name}' must be an object")
        stat_type = field.get("type")
        if stat_type not in STAT_TYPES:
            allowed = ", ".join(sorted(STAT_TYPES))
            raise InvalidStatSchema(f"stat '{name}' type must be one of: {allowed}")
        low, high = field.get("min"), field.get("max")
        for bound_name, bound in (("min", low), ("max", high)):
            if bound is not None and not _is_number(bound):
                raise InvalidStatSchema(f"stat '{name}' {bound_name} must be a number")
        if low is not None and high is not None and low > high:
            raise InvalidStatSchema(f"stat '{name}' min cannot exceed max")
        label = field.get("label") or name
        if not isinstance(label, str):
            raise InvalidStatSchema(f"stat '{name}' label must be a string")
        normalized[name] = {"type": stat_type, "min": low, "max": high, "label": label}
    return normalized


def validate_stat_value(schema: Mapping[str, Any], name: str, value: Any) -> None:
    """Check ``value`` against the schema entry for ``name``.

    Stats the schema does not declare are accepted as-is.
    """

    field = (schema or {}).get(name)
    if not field:
        return

    stat_type = field.get("type")
    if stat_type == "string":
        if not isinstance(value, str):
            raise InvalidStatValue(name, "must be a string")
        return
    if stat_type == "integer":
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidStatValue(name, "must be an integer")
    elif not _is_number(value) or not math.isfinite(value):
        raise InvalidStatValue(name, "must be a number")

    low, high = field.get("min"), field.get("max")
    if low is not None and value < low:
        raise InvalidStatValue(name, f"must be >= {low}")
    if high is not None and value > high:
        raise InvalidStatValue(name, f"must be <= {high}")


def clamp_page(limit: Optional[int], offset: Optional[int], default: int) -> tuple[int, int]:
    """Normalize pagination: missing limit -> ``default``, capped at ``MAX_PAGE_SIZE``."""
    if not limit or limit < 0:
        limit = default
    return min(limit, MAX_PAGE_SIZE), max(offset or 0, 0)
