"""Catalog transformation: source products to destination products.

Simple products map field by field. Variable products take the same base
mapping and then get their options and variants from
``store_migration.transform.variants``.
"""

from dataclasses import dataclass, field

from store_migration.schema.destination import DestinationImage, DestinationProduct
from store_migration.schema.source import SourceProduct, SourceVariation, parse_number
from store_migration.schema.warnings import TransformWarning, WarningKind
from store_migration.transform.variants import transform_variations
from store_migration.utils.logging import get_logger

logger = get_logger(__name__)

CategoryMap = dict[str, int]

DEFAULT_PHYSICAL_WEIGHT = 1.0
META_DESCRIPTION_LIMIT = 255


@dataclass
class ProductTransformResult:
    product: DestinationProduct | None
    warnings: list[TransformWarning] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class FailedTransform:
    source: SourceProduct
    errors: list[str]


@dataclass
class BatchTransformResult:
    successful: list[ProductTransformResult] = field(default_factory=list)
    failed: list[FailedTransform] = field(default_factory=list)
    total_warnings: list[TransformWarning] = field(default_factory=list)


def product_sku(product: SourceProduct) -> str:
    """The destination SKU, synthesized from the id when the source has none."""
    return product.sku.strip() or f"wc-{product.id}"


def is_digital(product: SourceProduct) -> bool:
    return product.virtual or (product.downloadable and not product.shipping_required)


def is_variable(product: SourceProduct) -> bool:
    return product.type == "variable"


def _price_fields(product: SourceProduct) -> dict[str, float | None]:
    price = parse_number(product.price) or 0.0
    regular = parse_number(product.regular_price)
    sale = parse_number(product.sale_price)

    if sale is not None and regular is not None and sale < regular:
        return {"price": price, "sale_price": sale, "retail_price": regular}
    return {"price": price, "sale_price": None, "retail_price": None}


def _images(product: SourceProduct) -> list[DestinationImage]:
    sources = [image for image in product.images if image.src]
    return [
        DestinationImage(
            image_url=image.src,
            is_thumbnail=index == 0,
            sort_order=index,
            description=image.alt or product.name,
        )
        for index, image in enumerate(sources)
    ]


def transform_simple_product(
    product: SourceProduct, category_map: CategoryMap
) -> ProductTransformResult:
    """Map a product without variants.

    A blank name is the only refusal; everything else degrades to a
    documented default plus a warning.
    """
    if not product.name.strip():
        return ProductTransformResult(product=None, errors=["Product name is required"])

    warnings: list[TransformWarning] = []
    digital = is_digital(product)

    weight = parse_number(product.weight) or 0.0
    if digital:
        weight = 0.0
    elif weight <= 0:
        weight = DEFAULT_PHYSICAL_WEIGHT
        warnings.append(
            TransformWarning(
                WarningKind.WEIGHT_DEFAULTED,
                source_id=product.id,
                details={"name": product.name, "default": int(DEFAULT_PHYSICAL_WEIGHT)},
            )
        )

    categories = [
        category_map[category.name]
        for category in product.categories
        if category.name in category_map
    ]
    if product.categories and not categories:
        warnings.append(
            TransformWarning(
                WarningKind.CATEGORIES_UNMAPPED,
                source_id=product.id,
                details={"name": product.name, "count": len(product.categories)},
            )
        )

    related = len(product.upsell_ids) + len(product.cross_sell_ids)
    if related:
        warnings.append(
            TransformWarning(
                WarningKind.RELATED_PRODUCTS_SKIPPED,
                source_id=product.id,
                details={"name": product.name, "count": related},
            )
        )

    tags = [tag.name for tag in product.tags if tag.name]
    short_description = product.short_description.strip()

    destination = DestinationProduct(
        name=product.name,
        type="digital" if digital else "physical",
        sku=product_sku(product),
        description=product.description or product.short_description,
        weight=weight,
        width=parse_number(product.dimensions.width),
        height=parse_number(product.dimensions.height),
        depth=parse_number(product.dimensions.length),
        categories=categories,
        is_visible=product.status == "publish" and product.catalog_visibility != "hidden",
        is_featured=product.featured,
        availability="disabled" if product.stock_status == "outofstock" else "available",
        inventory_tracking="product" if product.manage_stock else "none",
        inventory_level=product.stock_quantity or 0,
        search_keywords=",".join(tags) if tags else None,
        meta_description=short_description[:META_DESCRIPTION_LIMIT] or None,
        images=_images(product),
        **_price_fields(product),
    )
    return ProductTransformResult(product=destination, warnings=warnings)


def transform_variable_product(
    product: SourceProduct,
    variations: list[SourceVariation],
    category_map: CategoryMap,
) -> ProductTransformResult:
    """Map a variable product with its variations.

    The product price becomes the lowest variant price. When no variants
    come out of the variant step, the simple mapping is kept as is.
    """
    result = transform_simple_product(product, category_map)
    if not result.ok or result.product is None:
        return result

    variant_result = transform_variations(variations, product.attributes, result.product.sku)
    result.warnings.extend(variant_result.warnings)

    if not variant_result.variants:
        logger.debug(
            "variable_product_without_variants",
            source_id=product.id,
            options=len(variant_result.options),
        )
        return result

    result.product.options = variant_result.options
    result.product.variants = variant_result.variants
    result.product.inventory_tracking = "variant"

    prices = [variant.price for variant in variant_result.variants if variant.price is not None]
    if prices:
        result.product.price = min(prices)

    return result


def transform_product(
    product: SourceProduct,
    variations: list[SourceVariation] | None,
    category_map: CategoryMap,
) -> ProductTransformResult:
    """Route a product to the variable or simple mapping.

    Only a variable product that comes with at least one variation takes
    the variable path.
    """
    if is_variable(product) and variations:
        return transform_variable_product(product, variations, category_map)
    return transform_simple_product(product, category_map)


def transform_product_batch(
    products: list[SourceProduct],
    variations_by_source_id: dict[int, list[SourceVariation]],
    category_map: CategoryMap,
) -> BatchTransformResult:
    """Transform many products, splitting them into successes and failures."""
    batch = BatchTransformResult()

    for product in products:
        try:
            result = transform_product(
                product, variations_by_source_id.get(product.id), category_map
            )
        except Exception as e:
            logger.error("product_transform_crashed", source_id=product.id, error=str(e))
            result = ProductTransformResult(
                product=None, errors=[f"Unexpected error during transformation: {e}"]
            )

        batch.total_warnings.extend(result.warnings)
        if result.ok:
            batch.successful.append(result)
        else:
            batch.failed.append(FailedTransform(source=product, errors=result.errors))

    return batch
