"""Structured warnings produced while transforming and migrating records.

A warning never stops an item from being migrated. Each one carries a kind
and the fields needed to describe it; text is produced by ``render()`` only
when warnings reach a report or a log line.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class WarningKind(str, Enum):
    """Every kind of warning the engine can raise."""

    WEIGHT_DEFAULTED = "weight_defaulted"
    CATEGORIES_UNMAPPED = "categories_unmapped"
    RELATED_PRODUCTS_SKIPPED = "related_products_skipped"
    NO_VARIATION_ATTRIBUTES = "no_variation_attributes"
    NO_VARIATIONS = "no_variations"
    ATTRIBUTE_NOT_FOUND = "attribute_not_found"
    OPTION_VALUE_NOT_FOUND = "option_value_not_found"
    VARIANT_LIMIT_EXCEEDED = "variant_limit_exceeded"
    PRODUCT_UNMAPPED = "product_unmapped"
    CUSTOMER_UNMAPPED = "customer_unmapped"
    TRANSFORM_FAILED = "transform_failed"
    WRITE_FAILED = "write_failed"


_TEMPLATES: dict[WarningKind, str] = {
    WarningKind.WEIGHT_DEFAULTED: (
        'Physical product "{name}" has no weight set. Using default of {default}.'
    ),
    WarningKind.CATEGORIES_UNMAPPED: (
        'Product "{name}" has {count} categories but none mapped to the destination store'
    ),
    WarningKind.RELATED_PRODUCTS_SKIPPED: (
        'Product "{name}" has {count} up-sell/cross-sell links that must be recreated manually'
    ),
    WarningKind.NO_VARIATION_ATTRIBUTES: "No variation attributes found",
    WarningKind.NO_VARIATIONS: "Variable product has no variations",
    WarningKind.ATTRIBUTE_NOT_FOUND: (
        'Variation {source_id}: Attribute "{attribute}" not found in parent product options'
    ),
    WarningKind.OPTION_VALUE_NOT_FOUND: (
        'Variation {source_id}: Option value "{value}" not found for attribute "{attribute}"'
    ),
    WarningKind.VARIANT_LIMIT_EXCEEDED: (
        "Product has {count} variations but the destination limit is {limit}. "
        "Only the first {limit} will be migrated."
    ),
    WarningKind.PRODUCT_UNMAPPED: (
        "Order #{source_id}: Product ID {product_id} ({name}) not found in destination, "
        "adding as custom item"
    ),
    WarningKind.CUSTOMER_UNMAPPED: (
        "Order #{source_id}: Customer ID {customer_id} not found in mapping, "
        "using guest checkout"
    ),
    WarningKind.TRANSFORM_FAILED: "{entity} {source_id}: {message}",
    WarningKind.WRITE_FAILED: "{entity} {source_id}: {message}",
}


@dataclass
class TransformWarning:
    """One warning raised for one source record."""

    kind: WarningKind
    source_id: int | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def render(self) -> str:
        return _TEMPLATES[self.kind].format(source_id=self.source_id, **self.details)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "source_id": self.source_id,
            "details": dict(self.details),
            "message": self.render(),
        }

    def __str__(self) -> str:
        return self.render()


def render_warnings(warnings: list[TransformWarning]) -> list[str]:
    """Render a flat warning list for display."""
    return [warning.render() for warning in warnings]
