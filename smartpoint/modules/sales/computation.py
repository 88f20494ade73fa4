"""
Sale Computation Engine

Pure functions deriving a sale's money fields from its lines, tax, discount
and paid amount. No database access here; the Sale model applies
``compute_totals`` before every insert and update.

Payment status derivation::

    paid == 0            -> pending
    0 < paid < total     -> partial
    paid >= total        -> completed

``refunded`` and ``failed`` are only reached through explicit actions and are
never overwritten by the derivation.
"""

import enum
import secrets
import string
import time
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE = "mobile"
    OTHER = "other"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


TERMINAL_STATUSES = frozenset({PaymentStatus.REFUNDED, PaymentStatus.FAILED})

RECEIPT_ALPHABET = string.ascii_uppercase + string.digits
RECEIPT_RANDOM_LENGTH = 4

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def line_subtotal(price, quantity: int, subtotal=None) -> Decimal:
    """An explicitly provided subtotal wins over price x quantity."""
    if subtotal is not None:
        return to_money(subtotal)
    return to_money(to_money(price) * quantity)


def compute_change(paid_amount, total) -> Decimal:
    return max(ZERO, to_money(paid_amount) - to_money(total))


def derive_payment_status(paid_amount, total,
                          current: Optional[PaymentStatus] = None) -> PaymentStatus:
    if current is not None and PaymentStatus(current) in TERMINAL_STATUSES:
        return PaymentStatus(current)

    paid = to_money(paid_amount)
    if paid == ZERO:
        return PaymentStatus.PENDING
    if paid >= to_money(total):
        return PaymentStatus.COMPLETED
    return PaymentStatus.PARTIAL


@dataclass(frozen=True)
class SaleTotals:
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    paid_amount: Decimal
    change: Decimal
    payment_status: PaymentStatus

    @property
    def outstanding(self) -> Decimal:
        return max(ZERO, self.total - self.paid_amount)


def compute_totals(line_subtotals: Iterable, tax=None, discount=None, paid_amount=None,
                   current_status: Optional[PaymentStatus] = None) -> SaleTotals:
    subtotal = to_money(sum((to_money(s) for s in line_subtotals), ZERO))
    tax = to_money(tax)
    discount = to_money(discount)
    total = subtotal + tax - discount
    paid = to_money(paid_amount)

    return SaleTotals(
        subtotal=subtotal,
        tax=tax,
        discount=discount,
        total=total,
        paid_amount=paid,
        change=compute_change(paid, total),
        payment_status=derive_payment_status(paid, total, current_status)
    )


def generate_receipt_number(now_ms: Optional[int] = None) -> str:
    """Last 8 digits of the epoch milliseconds plus 4 random characters."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = ''.join(secrets.choice(RECEIPT_ALPHABET) for _ in range(RECEIPT_RANDOM_LENGTH))
    return f"{str(now_ms)[-8:]}{suffix}"
