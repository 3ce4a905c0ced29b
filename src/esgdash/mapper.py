"""Turn catalog-driven form input into flat detail-table payloads.

Form values arrive keyed by parameter ID. Each parameter's normalized
name is used as the column key of its ESG type's detail table. Two
parameters of the same type that normalize to the same name collide and
the one visited last wins; names that match no column are still emitted
and fail when the row is inserted. Use ``catalog.validate_structure`` to
catch both ahead of time.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any

from .db.tables import ESG_TYPES

_WHITESPACE = re.compile(r"\s+")


@dataclass
class RecordPayload:
    """One flat column payload per detail table."""

    environmental: dict[str, float] = field(default_factory=dict)
    social: dict[str, float] = field(default_factory=dict)
    governance: dict[str, float] = field(default_factory=dict)

    def for_type(self, esg_type: str) -> dict[str, float]:
        return getattr(self, esg_type)


def normalize_parameter_name(name: str) -> str:
    """Lowercase a parameter name and replace whitespace with underscores.

    >>> normalize_parameter_name("Total Electricity")
    'total_electricity'
    """
    return _WHITESPACE.sub("_", name.strip().lower())


def coerce_number(value: Any) -> float:
    """Coerce a raw form value to a float; anything unusable becomes 0."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    else:
        return 0.0

    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def map_form_to_records(values: dict[Any, Any], structure: dict) -> RecordPayload:
    """Map parameter-ID-keyed form values to per-type column payloads.

    Args:
        values: Raw form values keyed by parameter ID (int or str).
        structure: Output of ``ParameterCatalog.build_structure``.

    Returns:
        RecordPayload with values coerced to numbers.
    """
    present = {str(key): value for key, value in values.items()}
    payload = RecordPayload()

    for esg_type in ESG_TYPES:
        target = payload.for_type(esg_type)
        for group in structure.get(esg_type, {}).values():
            for parameter in group.parameters:
                key = str(parameter.id)
                if key not in present:
                    continue
                target[normalize_parameter_name(parameter.name)] = coerce_number(present[key])

    return payload


def find_parameter_by_name(parameters: list, name: str):
    """Find a parameter by case-insensitive name, or None."""
    wanted = name.lower()
    for parameter in parameters:
        if parameter.name.lower() == wanted:
            return parameter
    return None


def map_form_data_to_parameters(form_data: dict[str, Any], structure: dict) -> dict[str, Any]:
    """Re-key name-keyed form data by parameter ID.

    Within each ESG type the first category holding a case-insensitive
    name match is used, so a name shared across types maps to one
    parameter per type. Unmatched names are dropped.
    """
    mapped: dict[str, Any] = {}

    for key, value in form_data.items():
        for esg_type in ESG_TYPES:
            for group in structure.get(esg_type, {}).values():
                match = find_parameter_by_name(group.parameters, key)
                if match:
                    mapped[str(match.id)] = value
                    break

    return mapped
