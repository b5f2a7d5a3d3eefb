"""Pydantic models for records written to the destination store.

``to_payload()`` gives the request body: unset optional fields are left out
so the destination applies its own defaults.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

ProductType = Literal["physical", "digital"]
InventoryTracking = Literal["none", "product", "variant"]
Availability = Literal["available", "disabled", "preorder"]
OptionDisplayType = Literal["swatch", "rectangles", "dropdown", "radio_buttons"]

# Hard platform limit on variants per product
VARIANT_LIMIT = 600


class DestinationModel(BaseModel):
    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class DestinationImage(DestinationModel):
    image_url: str
    is_thumbnail: bool = False
    sort_order: int = 0
    description: str = ""


class DestinationOptionValue(DestinationModel):
    label: str
    sort_order: int = 0
    is_default: bool = False


class DestinationOption(DestinationModel):
    display_name: str
    type: OptionDisplayType = "dropdown"
    sort_order: int = 0
    option_values: list[DestinationOptionValue] = Field(default_factory=list)


class DestinationVariantOptionValue(DestinationModel):
    """Points a variant at one option value.

    The destination resolves values by display name and label; the index
    pair is kept for alignment checks and is not sent.
    """

    option_display_name: str
    label: str
    option_index: int = Field(exclude=True)
    value_index: int = Field(exclude=True)


class DestinationVariant(DestinationModel):
    sku: str
    price: float | None = None
    sale_price: float | None = None
    weight: float = 0
    width: float | None = None
    height: float | None = None
    depth: float | None = None
    inventory_level: int = 0
    purchasing_disabled: bool = False
    purchasing_disabled_message: str | None = None
    image_url: str | None = None
    option_values: list[DestinationVariantOptionValue] = Field(default_factory=list)


class DestinationProduct(DestinationModel):
    name: str
    type: ProductType = "physical"
    sku: str
    description: str = ""
    weight: float = 0
    width: float | None = None
    height: float | None = None
    depth: float | None = None
    price: float = 0
    sale_price: float | None = None
    retail_price: float | None = None
    categories: list[int] = Field(default_factory=list)
    is_visible: bool = True
    is_featured: bool = False
    availability: Availability = "available"
    inventory_tracking: InventoryTracking = "none"
    inventory_level: int = 0
    search_keywords: str | None = None
    meta_description: str | None = None
    images: list[DestinationImage] = Field(default_factory=list)
    options: list[DestinationOption] = Field(default_factory=list)
    variants: list[DestinationVariant] = Field(default_factory=list)


class DestinationAddress(DestinationModel):
    first_name: str
    last_name: str
    company: str = ""
    street_1: str
    street_2: str = ""
    city: str
    state: str
    zip: str
    country: str
    country_iso2: str
    phone: str = ""
    email: str | None = None


class DestinationOrderProduct(DestinationModel):
    """An order line; without ``product_id`` it is a custom line item."""

    name: str
    quantity: int
    price_inc_tax: float
    price_ex_tax: float
    sku: str | None = None
    product_id: int | None = None


class DestinationOrder(DestinationModel):
    status_id: int
    customer_id: int = 0
    billing_address: DestinationAddress
    shipping_addresses: list[DestinationAddress] = Field(default_factory=list)
    products: list[DestinationOrderProduct] = Field(default_factory=list)
    subtotal_ex_tax: float = 0
    subtotal_inc_tax: float = 0
    total_ex_tax: float = 0
    total_inc_tax: float = 0
    shipping_cost_ex_tax: float = 0
    shipping_cost_inc_tax: float = 0
    discount_amount: float = 0
    customer_message: str = ""
    payment_method: str = "Other"
    external_source: str = ""
    external_id: str
    staff_notes: str = ""


class DestinationCustomerAddress(DestinationModel):
    first_name: str
    last_name: str
    company: str = ""
    address1: str
    address2: str = ""
    city: str
    state_or_province: str = ""
    postal_code: str = ""
    country_code: str
    phone: str = ""
    address_type: Literal["residential", "commercial"] = "residential"


class DestinationCustomer(DestinationModel):
    email: str
    first_name: str
    last_name: str
    company: str = ""
    phone: str = ""
    addresses: list[DestinationCustomerAddress] = Field(default_factory=list)
    authentication: dict[str, Any] = Field(
        default_factory=lambda: {"force_password_reset": True}
    )
