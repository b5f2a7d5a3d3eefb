"""Order transformation: source orders to destination order-create payloads.

Totals are taken from the order's own aggregate fields rather than summed
from line items, so the migrated order shows exactly what the customer was
charged.
"""

from dataclasses import dataclass, field
from typing import NamedTuple

from store_migration.schema.destination import (
    DestinationAddress,
    DestinationOrder,
    DestinationOrderProduct,
)
from store_migration.schema.source import (
    SourceAddress,
    SourceLineItem,
    SourceOrder,
    SourceRefund,
    parse_number,
)
from store_migration.schema.warnings import TransformWarning, WarningKind

EXTERNAL_SOURCE = "WooCommerce Migration"
DEFAULT_PAYMENT_METHOD = "Other"


class OrderStatus(NamedTuple):
    id: int
    name: str


PENDING_STATUS = OrderStatus(1, "Pending")

ORDER_STATUS_MAP: dict[str, OrderStatus] = {
    "pending": PENDING_STATUS,
    "processing": OrderStatus(11, "Awaiting Fulfillment"),
    "on-hold": OrderStatus(13, "Manual Verification Required"),
    "completed": OrderStatus(10, "Completed"),
    "cancelled": OrderStatus(5, "Cancelled"),
    "refunded": OrderStatus(4, "Refunded"),
    "failed": OrderStatus(6, "Declined"),
}

# Used when the source leaves a required address field blank
ADDRESS_DEFAULTS = {
    "first_name": "Guest",
    "last_name": "Customer",
    "street_1": "123 Default Street",
    "city": "Austin",
    "state": "TX",
    "zip": "78701",
    "country_iso2": "US",
}

COUNTRY_NAMES = {
    "US": "United States",
    "CA": "Canada",
    "GB": "United Kingdom",
    "AU": "Australia",
    "DE": "Germany",
    "FR": "France",
    "ES": "Spain",
    "IT": "Italy",
    "NL": "Netherlands",
    "BE": "Belgium",
    "AT": "Austria",
    "CH": "Switzerland",
    "SE": "Sweden",
    "NO": "Norway",
    "DK": "Denmark",
    "FI": "Finland",
    "IE": "Ireland",
    "NZ": "New Zealand",
    "JP": "Japan",
    "CN": "China",
    "IN": "India",
    "BR": "Brazil",
    "MX": "Mexico",
}


@dataclass
class OrderTransformResult:
    order: DestinationOrder
    warnings: list[TransformWarning] = field(default_factory=list)


def resolve_status(source_status: str) -> OrderStatus:
    """Map a source status; anything unknown is treated as pending."""
    return ORDER_STATUS_MAP.get(source_status.strip().lower(), PENDING_STATUS)


def country_name(iso2: str) -> str:
    return COUNTRY_NAMES.get(iso2.upper(), iso2)


def external_id_for(order_id: int) -> str:
    """The marker stored on the destination order to recognise it on re-runs."""
    return f"WC-{order_id}"


def _amount(value: str) -> float:
    return parse_number(value) or 0.0


def transform_address(address: SourceAddress, include_email: bool = False) -> DestinationAddress:
    iso2 = address.country.strip() or ADDRESS_DEFAULTS["country_iso2"]
    return DestinationAddress(
        first_name=address.first_name or ADDRESS_DEFAULTS["first_name"],
        last_name=address.last_name or ADDRESS_DEFAULTS["last_name"],
        company=address.company,
        street_1=address.address_1 or ADDRESS_DEFAULTS["street_1"],
        street_2=address.address_2,
        city=address.city or ADDRESS_DEFAULTS["city"],
        state=address.state or ADDRESS_DEFAULTS["state"],
        zip=address.postcode or ADDRESS_DEFAULTS["zip"],
        country=country_name(iso2),
        country_iso2=iso2,
        phone=address.phone,
        email=address.email if include_email else None,
    )


def transform_line_items(
    order: SourceOrder, product_id_map: dict[int, int]
) -> tuple[list[DestinationOrderProduct], list[TransformWarning]]:
    """Map order lines, keeping unmapped products as custom line items."""
    products: list[DestinationOrderProduct] = []
    warnings: list[TransformWarning] = []

    for item in order.line_items:
        products.append(_line_item(item, product_id_map.get(item.product_id)))
        if item.product_id not in product_id_map:
            warnings.append(
                TransformWarning(
                    WarningKind.PRODUCT_UNMAPPED,
                    source_id=order.id,
                    details={"product_id": item.product_id, "name": item.name},
                )
            )

    return products, warnings


def _line_item(item: SourceLineItem, destination_product_id: int | None) -> DestinationOrderProduct:
    quantity = item.quantity if item.quantity > 0 else 1
    total = _amount(item.total)
    tax = _amount(item.total_tax)
    return DestinationOrderProduct(
        name=item.name,
        quantity=item.quantity,
        price_inc_tax=total / quantity,
        price_ex_tax=(total - tax) / quantity,
        sku=item.sku or None,
        product_id=destination_product_id,
    )


def compute_totals(order: SourceOrder) -> dict[str, float]:
    total = _amount(order.total)
    total_tax = _amount(order.total_tax)
    shipping = _amount(order.shipping_total)
    shipping_tax = _amount(order.shipping_tax)

    return {
        "subtotal_ex_tax": total - total_tax - shipping,
        "subtotal_inc_tax": total - shipping - shipping_tax,
        "total_ex_tax": total - total_tax,
        "total_inc_tax": total,
        "shipping_cost_ex_tax": shipping,
        "shipping_cost_inc_tax": shipping + shipping_tax,
        "discount_amount": _amount(order.discount_total),
    }


def summarize_refunds(refunds: list[SourceRefund]) -> str | None:
    """Describe refunds for the staff notes. Totals are never adjusted."""
    if not refunds:
        return None
    refunded = sum(abs(_amount(refund.total)) for refund in refunds)
    reasons = "; ".join(refund.reason.strip() or "No reason provided" for refund in refunds)
    return f"Refund History: {len(refunds)} refund(s) totaling ${refunded:.2f}. {reasons}"


def transform_order(
    order: SourceOrder,
    product_id_map: dict[int, int],
    customer_id_map: dict[int, int],
) -> OrderTransformResult:
    """Build the destination order payload for one source order.

    Args:
        order: Source order
        product_id_map: Source product id to destination product id
        customer_id_map: Source customer id to destination customer id
    """
    warnings: list[TransformWarning] = []

    billing = transform_address(order.billing, include_email=True)
    if order.shipping.address_1.strip():
        shipping = transform_address(order.shipping)
    else:
        shipping = billing.model_copy()

    products, line_warnings = transform_line_items(order, product_id_map)
    warnings.extend(line_warnings)

    customer_id = 0
    if order.customer_id > 0:
        if order.customer_id in customer_id_map:
            customer_id = customer_id_map[order.customer_id]
        else:
            warnings.append(
                TransformWarning(
                    WarningKind.CUSTOMER_UNMAPPED,
                    source_id=order.id,
                    details={"customer_id": order.customer_id},
                )
            )

    notes = [
        f"Migrated from WooCommerce. Original Order ID: {order.id}. Date: {order.date_created}"
    ]
    refund_note = summarize_refunds(order.refunds)
    if refund_note:
        notes.append(refund_note)

    destination = DestinationOrder(
        status_id=resolve_status(order.status).id,
        customer_id=customer_id,
        billing_address=billing,
        shipping_addresses=[shipping],
        products=products,
        customer_message=order.customer_note,
        payment_method=order.payment_method_title or DEFAULT_PAYMENT_METHOD,
        external_source=EXTERNAL_SOURCE,
        external_id=external_id_for(order.id),
        staff_notes="\n".join(notes),
        **compute_totals(order),
    )
    return OrderTransformResult(order=destination, warnings=warnings)
