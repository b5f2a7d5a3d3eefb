"""
Unit tests for the catalog transformer.

Tests cover:
- SKU synthesis and digital product detection
- Price, weight, dimension, category and image mapping
- Variable products routed through the variant step
- Batch transformation splitting successes from failures
"""

import pytest

from store_migration.schema.source import SourceProduct, SourceVariation
from store_migration.schema.warnings import WarningKind
from store_migration.transform.catalog import (
    DEFAULT_PHYSICAL_WEIGHT,
    is_digital,
    product_sku,
    transform_product,
    transform_product_batch,
    transform_simple_product,
)

pytestmark = pytest.mark.unit


def kinds(warnings):
    return [warning.kind for warning in warnings]


# ---------------------------------------------------------------------------
# SKU and product type
# ---------------------------------------------------------------------------


class TestProductSku:
    def test_blank_sku_is_synthesized_from_id(self):
        product = SourceProduct.model_validate(
            {"id": 1, "name": "No SKU Product", "sku": "", "price": "19.99"}
        )

        result = transform_simple_product(product, {})

        assert result.ok
        assert result.errors == []
        assert result.product.sku == "wc-1"

    def test_null_sku_is_synthesized_from_id(self):
        product = SourceProduct.model_validate({"id": 5, "name": "Null SKU", "sku": None})
        assert product_sku(product) == "wc-5"

    def test_existing_sku_is_stripped(self):
        product = SourceProduct.model_validate({"id": 5, "name": "Hat", "sku": "  HAT-1 "})
        assert product_sku(product) == "HAT-1"


class TestDigitalProducts:
    def test_virtual_product_is_digital_with_zero_weight(self):
        product = SourceProduct.model_validate(
            {"id": 2, "name": "E-book", "virtual": True, "weight": "3"}
        )

        result = transform_simple_product(product, {})

        assert result.product.type == "digital"
        assert result.product.weight == 0
        assert WarningKind.WEIGHT_DEFAULTED not in kinds(result.warnings)

    def test_downloadable_without_shipping_is_digital(self):
        product = SourceProduct.model_validate(
            {"id": 3, "name": "Song", "downloadable": True, "shipping_required": False}
        )
        assert is_digital(product)

    def test_downloadable_with_shipping_is_physical(self):
        product = SourceProduct.model_validate(
            {"id": 3, "name": "Boxed CD", "downloadable": True, "shipping_required": True}
        )
        assert not is_digital(product)


# ---------------------------------------------------------------------------
# Simple product mapping
# ---------------------------------------------------------------------------


class TestSimpleProduct:
    def test_maps_prices_and_measures(self, simple_product_data):
        product = SourceProduct.model_validate(simple_product_data)

        result = transform_simple_product(product, {"Bags": 31})
        destination = result.product

        assert destination.name == "Canvas Tote"
        assert destination.type == "physical"
        assert destination.price == 19.99
        assert destination.sale_price == 19.99
        assert destination.retail_price == 24.99
        assert destination.weight == 0.4
        assert destination.width == 35
        assert destination.height == 2
        assert destination.depth == 40
        assert destination.inventory_tracking == "product"
        assert destination.inventory_level == 12
        assert destination.search_keywords == "cotton"
        assert result.warnings == []

    def test_sale_price_not_below_regular_is_dropped(self):
        product = SourceProduct.model_validate(
            {
                "id": 4,
                "name": "Mug",
                "price": "10",
                "regular_price": "10",
                "sale_price": "12",
                "weight": "1",
            }
        )

        destination = transform_simple_product(product, {}).product

        assert destination.price == 10
        assert destination.sale_price is None
        assert destination.retail_price is None

    def test_missing_weight_defaults_with_warning(self):
        product = SourceProduct.model_validate({"id": 6, "name": "Lamp"})

        result = transform_simple_product(product, {})

        assert result.product.weight == DEFAULT_PHYSICAL_WEIGHT
        assert kinds(result.warnings) == [WarningKind.WEIGHT_DEFAULTED]
        assert result.warnings[0].render() == (
            'Physical product "Lamp" has no weight set. Using default of 1.'
        )

    def test_categories_mapped_by_name(self, simple_product_data):
        product = SourceProduct.model_validate(simple_product_data)
        assert transform_simple_product(product, {"Bags": 31}).product.categories == [31]

    def test_unmapped_categories_warn(self, simple_product_data):
        product = SourceProduct.model_validate(simple_product_data)

        result = transform_simple_product(product, {"Shoes": 9})

        assert result.product.categories == []
        assert kinds(result.warnings) == [WarningKind.CATEGORIES_UNMAPPED]

    def test_related_products_warn(self):
        product = SourceProduct.model_validate(
            {"id": 8, "name": "Pen", "weight": "0.1", "upsell_ids": [1, 2], "cross_sell_ids": [3]}
        )

        result = transform_simple_product(product, {})

        assert kinds(result.warnings) == [WarningKind.RELATED_PRODUCTS_SKIPPED]
        assert result.warnings[0].details["count"] == 3

    def test_images_first_is_thumbnail(self, simple_product_data):
        product = SourceProduct.model_validate(simple_product_data)

        images = transform_simple_product(product, {}).product.images

        assert [image.image_url for image in images] == [
            "https://shop.test/tote.jpg",
            "https://shop.test/tote-back.jpg",
        ]
        assert [image.is_thumbnail for image in images] == [True, False]
        assert images[0].description == "Tote"
        assert images[1].description == "Canvas Tote"

    def test_out_of_stock_is_disabled(self):
        product = SourceProduct.model_validate(
            {"id": 9, "name": "Vase", "weight": "2", "stock_status": "outofstock"}
        )
        assert transform_simple_product(product, {}).product.availability == "disabled"

    def test_hidden_product_is_not_visible(self):
        product = SourceProduct.model_validate(
            {"id": 9, "name": "Vase", "weight": "2", "catalog_visibility": "hidden"}
        )
        assert transform_simple_product(product, {}).product.is_visible is False

    @pytest.mark.parametrize("status", ["draft", "pending", "private"])
    def test_unpublished_product_is_not_visible(self, status):
        product = SourceProduct.model_validate(
            {"id": 9, "name": "Vase", "weight": "2", "status": status}
        )
        assert transform_simple_product(product, {}).product.is_visible is False

    def test_description_falls_back_to_short_description(self):
        product = SourceProduct.model_validate(
            {"id": 11, "name": "Mug", "weight": "1", "short_description": "<p>Holds tea</p>"}
        )
        assert transform_simple_product(product, {}).product.description == "<p>Holds tea</p>"

    def test_full_description_is_preferred(self):
        product = SourceProduct.model_validate(
            {
                "id": 11,
                "name": "Mug",
                "weight": "1",
                "description": "<p>Stoneware mug</p>",
                "short_description": "<p>Holds tea</p>",
            }
        )
        assert transform_simple_product(product, {}).product.description == (
            "<p>Stoneware mug</p>"
        )

    def test_blank_name_is_refused(self):
        product = SourceProduct.model_validate({"id": 10, "name": "   "})

        result = transform_simple_product(product, {})

        assert not result.ok
        assert result.product is None
        assert result.errors == ["Product name is required"]

    def test_payload_leaves_out_unset_fields(self):
        product = SourceProduct.model_validate({"id": 12, "name": "Plain", "weight": "1"})

        payload = transform_simple_product(product, {}).product.to_payload()

        assert "sale_price" not in payload
        assert "width" not in payload
        assert payload["sku"] == "wc-12"


# ---------------------------------------------------------------------------
# Variable products
# ---------------------------------------------------------------------------


class TestVariableProduct:
    def test_variable_product_gets_options_and_variants(
        self, variable_product_data, variation_data
    ):
        product = SourceProduct.model_validate(variable_product_data)
        variations = [SourceVariation.model_validate(raw) for raw in variation_data]

        result = transform_product(product, variations, {})
        destination = result.product

        assert result.ok
        assert [option.display_name for option in destination.options] == ["Color", "Size"]
        assert len(destination.variants) == 2
        assert destination.inventory_tracking == "variant"
        assert destination.price == 15.0

    def test_variable_product_without_variations_takes_simple_path(self, variable_product_data):
        product = SourceProduct.model_validate(variable_product_data)

        result = transform_product(product, [], {})

        assert result.ok
        assert result.product.options == []
        assert result.product.variants == []
        assert result.product.inventory_tracking == "none"

    def test_variable_product_without_variation_attributes_stays_simple(self, variation_data):
        product = SourceProduct.model_validate(
            {"id": 21, "name": "Odd Tee", "type": "variable", "weight": "1", "attributes": []}
        )
        variations = [SourceVariation.model_validate(raw) for raw in variation_data]

        result = transform_product(product, variations, {})

        assert result.product.variants == []
        assert kinds(result.warnings) == [WarningKind.NO_VARIATION_ATTRIBUTES]


# ---------------------------------------------------------------------------
# Batch transformation
# ---------------------------------------------------------------------------


class TestProductBatch:
    def test_empty_name_is_failed_entry(self, simple_product_data):
        products = [
            SourceProduct.model_validate(simple_product_data),
            SourceProduct.model_validate({"id": 99, "name": ""}),
        ]

        batch = transform_product_batch(products, {}, {"Bags": 31})

        assert len(batch.successful) == 1
        assert len(batch.failed) == 1
        assert batch.failed[0].source.id == 99
        assert batch.failed[0].errors == ["Product name is required"]

    def test_collects_warnings_from_every_product(self):
        products = [
            SourceProduct.model_validate({"id": 1, "name": "A"}),
            SourceProduct.model_validate({"id": 2, "name": "B"}),
        ]

        batch = transform_product_batch(products, {}, {})

        assert kinds(batch.total_warnings) == [WarningKind.WEIGHT_DEFAULTED] * 2

    def test_variations_looked_up_by_source_id(self, variable_product_data, variation_data):
        product = SourceProduct.model_validate(variable_product_data)
        variations = [SourceVariation.model_validate(raw) for raw in variation_data]

        batch = transform_product_batch([product], {20: variations}, {})

        assert len(batch.successful[0].product.variants) == 2
