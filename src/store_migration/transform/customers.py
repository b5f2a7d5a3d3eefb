"""Customer transformation.

Passwords cannot be carried over, so every migrated customer is flagged
for a password reset on first login.
"""

from dataclasses import dataclass, field

from store_migration.schema.destination import DestinationCustomer, DestinationCustomerAddress
from store_migration.schema.source import SourceAddress, SourceCustomer


@dataclass
class CustomerTransformResult:
    customer: DestinationCustomer | None
    errors: list[str] = field(default_factory=list)


def customer_email(customer: SourceCustomer) -> str:
    return customer.email.strip().lower()


def _address(address: SourceAddress, customer: SourceCustomer) -> DestinationCustomerAddress:
    return DestinationCustomerAddress(
        first_name=address.first_name or customer.first_name,
        last_name=address.last_name or customer.last_name,
        company=address.company,
        address1=address.address_1,
        address2=address.address_2,
        city=address.city,
        state_or_province=address.state,
        postal_code=address.postcode,
        country_code=address.country or "US",
        phone=address.phone,
    )


def _same_street(a: SourceAddress, b: SourceAddress) -> bool:
    return (a.address_1, a.address_2, a.city, a.postcode, a.country) == (
        b.address_1,
        b.address_2,
        b.city,
        b.postcode,
        b.country,
    )


def transform_customer(customer: SourceCustomer) -> CustomerTransformResult:
    """Map a source customer; one without an email cannot be migrated."""
    email = customer_email(customer)
    if not email:
        return CustomerTransformResult(customer=None, errors=["Customer email is required"])

    addresses = []
    if customer.billing.address_1:
        addresses.append(_address(customer.billing, customer))
    if customer.shipping.address_1 and not _same_street(customer.billing, customer.shipping):
        addresses.append(_address(customer.shipping, customer))

    destination = DestinationCustomer(
        email=email,
        first_name=customer.first_name or customer.billing.first_name or "Customer",
        last_name=customer.last_name or customer.billing.last_name or "",
        company=customer.billing.company,
        phone=customer.billing.phone,
        addresses=addresses,
    )
    return CustomerTransformResult(customer=destination)
