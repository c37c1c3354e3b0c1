#!/usr/bin/env python

"""
    Rental money and standing policy for Rently.

    Pure functions: rental cost by billing unit, late fees, deposit
    refunds, the severity of a late-return strike and the customer
    standing derived from a strike set. Money is always ``Decimal``.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import datetime
from decimal import Decimal
from typing import Optional, Tuple

from rently import configs
from rently.core.enums import Condition, CustomerStatus, PriceUnit, Severity
from rently.core.exceptions import (
    InvalidConditionError,
    InvalidDurationError,
    InvalidInputError,
)

ONE_DAY = datetime.timedelta(days=1)
DAYS_PER_PERIOD = {
    PriceUnit.DAILY: 1,
    PriceUnit.WEEKLY: 7,
    PriceUnit.MONTHLY: 30,
}


def to_money(value) -> Decimal:
    """Coerces ints, strings and Decimals to Decimal; floats go through str
    so 0.1 stays 0.1."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(value)
    except (ArithmeticError, TypeError, ValueError):
        raise InvalidInputError(f"Invalid money amount: {value!r}")


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def _ceil_days(delta: datetime.timedelta) -> int:
    return -(-delta // ONE_DAY)


def compute_total_amount(price_amount, price_unit, duration_days: int) -> Decimal:
    if not isinstance(duration_days, int) or duration_days < 1:
        raise InvalidDurationError("Rental duration must be a positive number of days.")
    if duration_days > configs.MAX_RENTAL_DAYS:
        raise InvalidDurationError(
            f"Rental duration cannot exceed {configs.MAX_RENTAL_DAYS} days.")
    periods = _ceil_div(duration_days, DAYS_PER_PERIOD[PriceUnit(price_unit)])
    return periods * to_money(price_amount)


def compute_late_fee(due_time: datetime.datetime,
                     return_time: datetime.datetime,
                     daily_rate,
                     rate: Optional[Decimal] = None) -> Tuple[Decimal, int]:
    """Returns ``(fee, days_late)``.

    Any started day counts as a full day late. The fee is a flat share of
    the item's nominal rate per day late, whatever unit the item bills in.
    """
    rate = configs.LATE_FEE_RATE if rate is None else rate
    overdue = return_time - due_time
    days_late = max(0, _ceil_days(overdue))
    return days_late * to_money(daily_rate) * rate, days_late


def compute_deposit_refund(deposit, condition) -> Decimal:
    try:
        condition = Condition(condition)
    except ValueError:
        raise InvalidConditionError(f"Unknown return condition: {condition!r}")
    deposit = to_money(deposit)
    if condition is Condition.DAMAGED:
        return Decimal("0")
    if condition is Condition.GOOD:
        return deposit * configs.GOOD_REFUND_RATE
    return deposit * configs.EXCELLENT_REFUND_RATE


def late_strike_severity(days_late: int) -> Severity:
    if days_late > 7:
        return Severity.SEVERE
    if days_late > 3:
        return Severity.MODERATE
    return Severity.MINOR


def derive_status(total_strikes: int, unresolved_severe: int) -> CustomerStatus:
    """Highest matching tier wins."""
    if total_strikes >= 10 or unresolved_severe >= 3:
        return CustomerStatus.BANNED
    if total_strikes >= 7 or unresolved_severe >= 2:
        return CustomerStatus.SUSPENDED
    if total_strikes >= 4 or unresolved_severe >= 1:
        return CustomerStatus.WARNING
    return CustomerStatus.GOOD


def demoted_status(current, total_strikes: int, unresolved_severe: int) -> CustomerStatus:
    """Status after a strike is resolved.

    Only the lowest tier is rechecked: a customer drops back to good once
    fewer than four strikes and no unresolved severe strike remain,
    otherwise the standing set by the last added strike is kept.
    """
    if total_strikes < 4 and unresolved_severe == 0:
        return CustomerStatus.GOOD
    return CustomerStatus(current)
