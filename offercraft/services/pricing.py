"""
Offer pricing.

WHAT: Line-item calculator and document aggregator.

WHY: Every amount a client sees (article totals, subtotal, discount, VAT,
grand total) must come from one deterministic computation. Storing totals
that were computed anywhere else is how invoices and signed offers drift
apart.

HOW: calculate_line and aggregate are pure functions over Decimal inputs.
recompute_offer applies them to an Offer tree in place; callers persist.

Example:
    >>> calculate_line(quantity=3, unit_price="20.00",
    ...                discount_percent=10, discount_fixed=0, vat_rate=21)
    LineTotals(line_total=Decimal('60.00'), discount_amount=Decimal('6.00'),
               taxable_amount=Decimal('54.00'), vat_amount=Decimal('11.34'),
               total=Decimal('65.34'))
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, List

from offercraft.core.money import (
    ZERO,
    apply_percent,
    ensure_non_negative,
    ensure_percent,
    money_sum,
    multiply_by_quantity,
    quantize,
)
from offercraft.models.offer import Offer


@dataclass(frozen=True)
class LineTotals:
    """Per-article price breakdown."""

    line_total: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    vat_amount: Decimal
    total: Decimal


@dataclass(frozen=True)
class DocumentTotals:
    """Offer-level totals, each the sum of the per-line values."""

    subtotal: Decimal
    discount_total: Decimal
    vat_total: Decimal
    total: Decimal


def calculate_line(
    quantity: Any,
    unit_price: Any,
    discount_percent: Any = ZERO,
    discount_fixed: Any = ZERO,
    vat_rate: Any = ZERO,
) -> LineTotals:
    """
    Compute the price breakdown of one article.

    Steps:
        1. line_total = unit_price * quantity
        2. discount = line_total * discount_percent / 100 + discount_fixed,
           clamped to line_total
        3. taxable = line_total - discount
        4. vat = taxable * vat_rate / 100
        5. total = taxable + vat

    Args:
        quantity: Non-negative quantity
        unit_price: Non-negative unit price
        discount_percent: Percentage discount in [0, 100]
        discount_fixed: Non-negative fixed discount
        vat_rate: VAT percentage in [0, 100]

    Returns:
        LineTotals with every amount rounded to cents

    Raises:
        ValidationError: If any input is negative, out of range or not numeric
    """
    line_total = multiply_by_quantity(unit_price, quantity)
    percent_discount = apply_percent(line_total, discount_percent, "discount_percent")
    fixed_discount = quantize(ensure_non_negative(discount_fixed, "discount_fixed"))
    ensure_percent(vat_rate, "vat_rate")

    discount_amount = min(percent_discount + fixed_discount, line_total)
    taxable_amount = line_total - discount_amount
    vat_amount = apply_percent(taxable_amount, vat_rate, "vat_rate")

    return LineTotals(
        line_total=line_total,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        vat_amount=vat_amount,
        total=taxable_amount + vat_amount,
    )


def aggregate(lines: Iterable[LineTotals]) -> DocumentTotals:
    """
    Sum per-line breakdowns into document totals.

    An empty iterable yields all-zero totals.
    """
    lines = list(lines)
    return DocumentTotals(
        subtotal=money_sum(line.line_total for line in lines),
        discount_total=money_sum(line.discount_amount for line in lines),
        vat_total=money_sum(line.vat_amount for line in lines),
        total=money_sum(line.total for line in lines),
    )


def calculate_article(article: Any) -> LineTotals:
    """Compute the breakdown of any object carrying article pricing fields."""
    return calculate_line(
        quantity=article.quantity,
        unit_price=article.unit_price,
        discount_percent=article.discount_percent,
        discount_fixed=article.discount_fixed,
        vat_rate=article.vat_rate,
    )


def recompute_offer(offer: Offer) -> DocumentTotals:
    """
    Recompute every article total and the offer totals in place.

    WHY: Called after any change to the section/article tree so stored
    totals are never stale. Running it twice changes nothing.

    Returns:
        The new document totals (also written to the offer)
    """
    lines: List[LineTotals] = []
    for section in offer.sections:
        for article in section.articles:
            breakdown = calculate_article(article)
            article.total = breakdown.total
            lines.append(breakdown)

    totals = aggregate(lines)
    offer.subtotal = totals.subtotal
    offer.discount_total = totals.discount_total
    offer.vat_total = totals.vat_total
    offer.total = totals.total
    return totals
