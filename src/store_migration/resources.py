"""Entity type registry.

The one place that lists the entity types a migration moves, the order
they must run in, and what each depends on. Orders reference products and
customers, so both have to finish first.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class EntityTypeInfo:
    """Metadata for one migrated entity type."""

    name: str
    description: str
    migration_order: int  # Lower runs earlier
    depends_on: tuple[str, ...] = ()


ENTITY_REGISTRY: dict[str, EntityTypeInfo] = {
    "products": EntityTypeInfo(
        name="products",
        description="Products and their variants",
        migration_order=10,
    ),
    "customers": EntityTypeInfo(
        name="customers",
        description="Customer accounts",
        migration_order=20,
    ),
    "orders": EntityTypeInfo(
        name="orders",
        description="Orders with line items and refund history",
        migration_order=30,
        depends_on=("products", "customers"),
    ),
}

# Checked by the post-run count comparison; categories come from the
# category sync that precedes a migration
COUNTED_ENTITY_TYPES = ("products", "categories", "customers")


def get_migration_order(entity_types: list[str] | None = None) -> list[str]:
    """Entity types in dependency order, optionally limited to a subset."""
    selected = ENTITY_REGISTRY.keys() if entity_types is None else entity_types
    for name in selected:
        if name not in ENTITY_REGISTRY:
            raise ValueError(f"Unknown entity type: {name}")
    return sorted(selected, key=lambda name: ENTITY_REGISTRY[name].migration_order)


def get_info(entity_type: str) -> EntityTypeInfo:
    try:
        return ENTITY_REGISTRY[entity_type]
    except KeyError:
        raise ValueError(f"Unknown entity type: {entity_type}") from None
