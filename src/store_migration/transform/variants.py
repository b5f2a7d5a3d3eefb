"""Variable-product options and variants.

Option definitions and variants are built from the same value map, so a
variant's option value always points at an index that exists in the
product's options. The order of ``option_values`` is significant: the
position of a value is the index variants reference.
"""

from dataclasses import dataclass, field

from store_migration.schema.destination import (
    VARIANT_LIMIT,
    DestinationOption,
    DestinationOptionValue,
    DestinationVariant,
    DestinationVariantOptionValue,
    OptionDisplayType,
)
from store_migration.schema.source import (
    SourceAttribute,
    SourceVariation,
    parse_number,
)
from store_migration.schema.warnings import TransformWarning, WarningKind

# Checked in order; first substring found in the attribute name wins
OPTION_DISPLAY_TYPES: tuple[tuple[tuple[str, ...], OptionDisplayType], ...] = (
    (("color", "colour"), "swatch"),
    (("size",), "rectangles"),
)
DEFAULT_OPTION_DISPLAY_TYPE: OptionDisplayType = "dropdown"

OUT_OF_STOCK_MESSAGE = "This variant is currently out of stock"


def option_display_type(attribute_name: str) -> OptionDisplayType:
    """Pick how the storefront renders an option, from the attribute name."""
    name = attribute_name.lower()
    for substrings, display_type in OPTION_DISPLAY_TYPES:
        if any(substring in name for substring in substrings):
            return display_type
    return DEFAULT_OPTION_DISPLAY_TYPE


def normalize(value: str) -> str:
    return value.strip().lower()


@dataclass
class OptionValueIndex:
    """Where one attribute lives in the product's options."""

    option_index: int
    display_name: str
    values: dict[str, int] = field(default_factory=dict)


ValueMap = dict[str, OptionValueIndex]


@dataclass
class OptionBuildResult:
    options: list[DestinationOption]
    value_map: ValueMap


@dataclass
class VariationResult:
    variant: DestinationVariant
    warnings: list[TransformWarning] = field(default_factory=list)


@dataclass
class VariantTransformResult:
    options: list[DestinationOption] = field(default_factory=list)
    variants: list[DestinationVariant] = field(default_factory=list)
    warnings: list[TransformWarning] = field(default_factory=list)


def variation_attributes(attributes: list[SourceAttribute]) -> list[SourceAttribute]:
    return [attribute for attribute in attributes if attribute.variation]


def transform_attributes_to_options(attributes: list[SourceAttribute]) -> OptionBuildResult:
    """Build option definitions and the value map from product attributes.

    Only attributes flagged for variations take part; ``option_index`` is an
    attribute's position among those.
    """
    options: list[DestinationOption] = []
    value_map: ValueMap = {}

    for option_index, attribute in enumerate(variation_attributes(attributes)):
        option_values = [
            DestinationOptionValue(label=label, sort_order=value_index, is_default=value_index == 0)
            for value_index, label in enumerate(attribute.options)
        ]
        options.append(
            DestinationOption(
                display_name=attribute.name,
                type=option_display_type(attribute.name),
                sort_order=attribute.position,
                option_values=option_values,
            )
        )
        value_map[normalize(attribute.name)] = OptionValueIndex(
            option_index=option_index,
            display_name=attribute.name,
            values={normalize(label): idx for idx, label in enumerate(attribute.options)},
        )

    return OptionBuildResult(options=options, value_map=value_map)


def variant_sku(variation: SourceVariation, parent_sku: str) -> str:
    return variation.sku.strip() or f"{parent_sku}-var-{variation.id}"


def transform_variation(
    variation: SourceVariation, value_map: ValueMap, parent_sku: str
) -> VariationResult:
    """Map one source variation to a destination variant.

    Attributes that do not resolve in ``value_map`` are left off the variant
    and reported as warnings.
    """
    warnings: list[TransformWarning] = []
    option_values: list[DestinationVariantOptionValue] = []

    for attribute in variation.attributes:
        entry = value_map.get(normalize(attribute.name))
        if entry is None:
            warnings.append(
                TransformWarning(
                    WarningKind.ATTRIBUTE_NOT_FOUND,
                    source_id=variation.id,
                    details={"attribute": attribute.name},
                )
            )
            continue

        value_index = entry.values.get(normalize(attribute.option))
        if value_index is None:
            warnings.append(
                TransformWarning(
                    WarningKind.OPTION_VALUE_NOT_FOUND,
                    source_id=variation.id,
                    details={"attribute": attribute.name, "value": attribute.option},
                )
            )
            continue

        option_values.append(
            DestinationVariantOptionValue(
                option_display_name=entry.display_name,
                label=attribute.option,
                option_index=entry.option_index,
                value_index=value_index,
            )
        )

    out_of_stock = variation.stock_status == "outofstock"
    price = parse_number(variation.price)
    sale_price = parse_number(variation.sale_price)

    variant = DestinationVariant(
        sku=variant_sku(variation, parent_sku),
        price=price or None,
        sale_price=sale_price or None,
        weight=parse_number(variation.weight) or 0,
        width=parse_number(variation.dimensions.width),
        height=parse_number(variation.dimensions.height),
        depth=parse_number(variation.dimensions.length),
        inventory_level=variation.stock_quantity or 0,
        purchasing_disabled=not variation.purchasable or out_of_stock,
        purchasing_disabled_message=OUT_OF_STOCK_MESSAGE if out_of_stock else None,
        image_url=variation.image.src if variation.image and variation.image.src else None,
        option_values=option_values,
    )
    return VariationResult(variant=variant, warnings=warnings)


def transform_variations(
    variations: list[SourceVariation],
    attributes: list[SourceAttribute],
    parent_sku: str,
) -> VariantTransformResult:
    """Build options and variants for a variable product.

    Empty ``options`` and ``variants`` tell the caller to treat the product
    as simple.
    """
    built = transform_attributes_to_options(attributes)

    if not built.options:
        return VariantTransformResult(
            warnings=[TransformWarning(WarningKind.NO_VARIATION_ATTRIBUTES)]
        )

    if not variations:
        return VariantTransformResult(
            options=built.options,
            warnings=[TransformWarning(WarningKind.NO_VARIATIONS)],
        )

    variants: list[DestinationVariant] = []
    warnings: list[TransformWarning] = []
    if len(variations) > VARIANT_LIMIT:
        warnings.append(
            TransformWarning(
                WarningKind.VARIANT_LIMIT_EXCEEDED,
                details={"count": len(variations), "limit": VARIANT_LIMIT},
            )
        )
        variations = variations[:VARIANT_LIMIT]

    for variation in variations:
        result = transform_variation(variation, built.value_map, parent_sku)
        variants.append(result.variant)
        warnings.extend(result.warnings)

    return VariantTransformResult(options=built.options, variants=variants, warnings=warnings)
