"""Category resolution, cost tables and place field masks."""

from typing import Dict, Iterable, List, Mapping, Optional, Union

from ...constants import DEFAULT_COST_PER_UNIT, OPTIMIZED_FIELD_MASKS
from ...domain.exceptions import UnknownCategoryError
from ...enums import FieldMaskUseCase, UsageCategory


def resolve_category(category: Union[UsageCategory, str]) -> UsageCategory:
    """Return the ``UsageCategory`` for ``category`` or raise ``UnknownCategoryError``."""
    if isinstance(category, UsageCategory):
        return category
    try:
        return UsageCategory(category)
    except ValueError:
        raise UnknownCategoryError(
            f"Unknown usage category: {category!r}",
            category=str(category),
            details={"known": [c.value for c in UsageCategory]},
        ) from None


def build_cost_table(
    overrides: Optional[Mapping[Union[UsageCategory, str], float]] = None,
) -> Dict[UsageCategory, float]:
    """Merge cost overrides into the default table, validating every entry."""
    table = dict(DEFAULT_COST_PER_UNIT)
    for category, cost in (overrides or {}).items():
        if cost < 0:
            raise ValueError(f"Cost for {category} must not be negative")
        table[resolve_category(category)] = float(cost)
    return table


def optimized_fields(
    use_case: Union[FieldMaskUseCase, str],
    custom_fields: Optional[Iterable[str]] = None,
) -> List[str]:
    """
    Field mask for a place-details use case.

    Args:
        use_case: Preset to start from
        custom_fields: Extra fields appended when not already present

    Returns:
        Ordered list of field names
    """
    fields = list(OPTIMIZED_FIELD_MASKS[FieldMaskUseCase(use_case)])
    for field in custom_fields or ():
        if field not in fields:
            fields.append(field)
    return fields
