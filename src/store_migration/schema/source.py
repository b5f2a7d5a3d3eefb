"""Pydantic models for records read from the source store.

The source API is loose about types: money arrives as strings (sometimes
empty), and optional fields arrive as ``null``. Models here accept what the
API sends and leave interpretation to the transformers.
"""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


# Prices, weights and dimensions stay textual; "" means "not set"
Text = Annotated[str, BeforeValidator(_coerce_text)]


def parse_number(value: str | float | int | None) -> float | None:
    """Parse a source money/measure field. Blank or unparseable gives None."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    value = value.strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class SourceRecord(BaseModel):
    """Base for source models: ignores unknown keys and treats null as absent."""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class SourceImage(SourceRecord):
    id: int = 0
    src: Text = ""
    name: Text = ""
    alt: Text = ""
    position: int = 0


class SourceCategoryRef(SourceRecord):
    id: int = 0
    name: Text = ""
    slug: Text = ""


class SourceTag(SourceRecord):
    id: int = 0
    name: Text = ""
    slug: Text = ""


class SourceDimensions(SourceRecord):
    length: Text = ""
    width: Text = ""
    height: Text = ""


class SourceAttribute(SourceRecord):
    """A product attribute; ``variation`` marks it as generating variants."""

    id: int = 0
    name: Text = ""
    position: int = 0
    visible: bool = True
    variation: bool = False
    options: list[str] = Field(default_factory=list)


class SourceVariationAttribute(SourceRecord):
    """The value one variation picks for one attribute."""

    id: int = 0
    name: Text = ""
    option: Text = ""


class SourceProduct(SourceRecord):
    id: int
    name: Text = ""
    slug: Text = ""
    type: Text = "simple"
    status: Text = "publish"
    featured: bool = False
    catalog_visibility: Text = "visible"
    description: Text = ""
    short_description: Text = ""
    sku: Text = ""
    price: Text = ""
    regular_price: Text = ""
    sale_price: Text = ""
    virtual: bool = False
    downloadable: bool = False
    shipping_required: bool = True
    manage_stock: bool = False
    stock_quantity: int | None = None
    stock_status: Text = "instock"
    weight: Text = ""
    dimensions: SourceDimensions = Field(default_factory=SourceDimensions)
    categories: list[SourceCategoryRef] = Field(default_factory=list)
    tags: list[SourceTag] = Field(default_factory=list)
    images: list[SourceImage] = Field(default_factory=list)
    attributes: list[SourceAttribute] = Field(default_factory=list)
    variations: list[int] = Field(default_factory=list)
    upsell_ids: list[int] = Field(default_factory=list)
    cross_sell_ids: list[int] = Field(default_factory=list)


class SourceVariation(SourceRecord):
    id: int
    sku: Text = ""
    status: Text = "publish"
    price: Text = ""
    regular_price: Text = ""
    sale_price: Text = ""
    purchasable: bool = True
    virtual: bool = False
    downloadable: bool = False
    # "parent" when stock is managed on the parent product
    manage_stock: bool | str = False
    stock_quantity: int | None = None
    stock_status: Text = "instock"
    weight: Text = ""
    dimensions: SourceDimensions = Field(default_factory=SourceDimensions)
    image: SourceImage | None = None
    attributes: list[SourceVariationAttribute] = Field(default_factory=list)


class SourceAddress(SourceRecord):
    first_name: Text = ""
    last_name: Text = ""
    company: Text = ""
    address_1: Text = ""
    address_2: Text = ""
    city: Text = ""
    state: Text = ""
    postcode: Text = ""
    country: Text = ""
    email: Text = ""
    phone: Text = ""


class SourceLineItem(SourceRecord):
    id: int = 0
    name: Text = ""
    product_id: int = 0
    variation_id: int = 0
    quantity: int = 1
    sku: Text = ""
    subtotal: Text = "0"
    subtotal_tax: Text = "0"
    total: Text = "0"
    total_tax: Text = "0"


class SourceRefund(SourceRecord):
    id: int = 0
    reason: Text = ""
    # Reported negative by the source API
    total: Text = "0"


class SourceOrder(SourceRecord):
    id: int
    number: Text = ""
    status: Text = "pending"
    currency: Text = ""
    date_created: Text = ""
    discount_total: Text = "0"
    discount_tax: Text = "0"
    shipping_total: Text = "0"
    shipping_tax: Text = "0"
    total: Text = "0"
    total_tax: Text = "0"
    customer_id: int = 0
    customer_note: Text = ""
    payment_method: Text = ""
    payment_method_title: Text = ""
    billing: SourceAddress = Field(default_factory=SourceAddress)
    shipping: SourceAddress = Field(default_factory=SourceAddress)
    line_items: list[SourceLineItem] = Field(default_factory=list)
    refunds: list[SourceRefund] = Field(default_factory=list)


class SourceCustomer(SourceRecord):
    id: int
    email: Text = ""
    first_name: Text = ""
    last_name: Text = ""
    username: Text = ""
    billing: SourceAddress = Field(default_factory=SourceAddress)
    shipping: SourceAddress = Field(default_factory=SourceAddress)
