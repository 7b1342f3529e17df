"""Validation of incoming order requests.

These checks run before anything is reserved or written, so a rejected
request never leaves a trace in the stores.
"""

from typing import NamedTuple

from commerce.errors import EmptyOrder, InvalidArgument, InvalidQuantity

_FORBIDDEN_EMAIL_CHARS = (";", ",", "(", ")", '"', ":", "<", ">", "[", "]", "\\")


class LineRequest(NamedTuple):
    product_id: str
    quantity: int


class OrderRequest(NamedTuple):
    customer_name: str
    customer_email: str
    lines: tuple[LineRequest, ...]

    @property
    def product_ids(self) -> list[str]:
        return [line.product_id for line in self.lines]


def validate_customer_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidArgument("Customer name is required", field="customer_name")
    name = name.strip()
    if len(name) > 100:
        raise InvalidArgument("Customer name cannot exceed 100 characters", field="customer_name")
    return name


def validate_email(email) -> str:
    """Structural email check: one @, sane local and domain parts."""
    if not isinstance(email, str) or not email.strip():
        raise InvalidArgument("Customer email is required", field="customer_email")

    email = email.strip()
    invalid = InvalidArgument(f"Invalid email address: {email!r}", field="customer_email")

    if len(email) > 254 or any(ch.isspace() for ch in email) or email.count("@") != 1:
        raise invalid

    local_part, domain_part = email.split("@", 1)
    if not local_part or local_part.startswith(".") or local_part.endswith("."):
        raise invalid
    if not domain_part or domain_part.startswith(".") or domain_part.endswith("."):
        raise invalid
    if "." not in domain_part or ".." in local_part or ".." in domain_part:
        raise invalid
    if any(label.startswith("-") or label.endswith("-") for label in domain_part.split(".")):
        raise invalid
    if any(forbidden in email for forbidden in _FORBIDDEN_EMAIL_CHARS):
        raise invalid

    return email


def validate_line(line) -> LineRequest:
    """Accept a mapping with ``product_id``/``quantity`` or a 2-tuple."""
    if isinstance(line, LineRequest):
        product_id, quantity = line
    elif isinstance(line, dict):
        product_id, quantity = line.get("product_id"), line.get("quantity")
    elif isinstance(line, (tuple, list)) and len(line) == 2:
        product_id, quantity = line
    else:
        raise InvalidArgument(f"Malformed order line: {line!r}", field="lines")

    if product_id is None or not str(product_id).strip():
        raise InvalidArgument("Order line is missing a product id", field="product_id")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantity(quantity)

    return LineRequest(product_id=str(product_id).strip(), quantity=quantity)


def validate_order_request(customer_name, customer_email, lines) -> OrderRequest:
    name = validate_customer_name(customer_name)
    email = validate_email(customer_email)
    if not lines:
        raise EmptyOrder()

    return OrderRequest(
        customer_name=name,
        customer_email=email,
        lines=tuple(validate_line(line) for line in lines),
    )
