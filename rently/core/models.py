#!/usr/bin/env python

"""
    Rental Models for Rently,
    the item ledger (RentalItem, Rental) and the customer behavior
    ledger (CustomerBehavior, Strike).

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import datetime
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
    inspect,
    Enum as SQLAlchemyEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rently.core.db import Base
from rently.core.enums import (
    Availability,
    Category,
    Condition,
    CustomerStatus,
    Outcome,
    PriceUnit,
    Severity,
    StrikeReason,
)
from rently.core.exceptions import (
    InvalidDurationError,
    InvalidInputError,
    InvalidStateError,
    ItemUnavailableError,
    NoActiveRentalError,
    StrikeAlreadyResolvedError,
    StrikeNotFoundError,
)
from rently.core.policy import (
    compute_deposit_refund,
    compute_late_fee,
    compute_total_amount,
    demoted_status,
    derive_status,
    late_strike_severity,
    to_money,
)
from rently.core.utils import as_utc, utcnow

logger = logging.getLogger(__name__)

Money = Numeric(14, 4, asdecimal=True)


def _enum(enum_cls):
    return SQLAlchemyEnum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        validate_strings=True,
        length=20,
    )


@dataclass(frozen=True)
class ReturnOutcome:
    rental: "Rental"
    deposit_refund: Decimal
    late_fee: Decimal
    total_charges: Decimal
    final_amount: Decimal
    days_late: int


class RentalItem(Base):
    __tablename__ = 'rental_items'

    id = Column(Integer, primary_key=True)
    owner_id = Column(String(50), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    category = Column(_enum(Category), nullable=False, default=Category.OTHERS)
    description = Column(Text, nullable=False, default='')
    price_amount = Column(Money, nullable=False)
    price_unit = Column(_enum(PriceUnit), nullable=False)
    availability = Column(_enum(Availability), nullable=False, default=Availability.AVAILABLE)
    pincode = Column(String(10))
    zone = Column(String(50))
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())

    rentals = relationship(
        'Rental', back_populates='item', order_by='Rental.id',
        cascade='all, delete-orphan')

    __mapper_args__ = {'version_id_col': version}

    def __init__(self, **kwargs):
        kwargs.setdefault('availability', Availability.AVAILABLE)
        super().__init__(**kwargs)

    @property
    def current_rental(self) -> Optional["Rental"]:
        return next((r for r in self.rentals if r.outcome is None), None)

    @property
    def history(self) -> List["Rental"]:
        """Archived rentals in the order they were closed."""
        return sorted(
            (r for r in self.rentals if r.outcome is not None),
            key=lambda r: r.archived_seq)

    @property
    def is_available(self):
        return self.availability is Availability.AVAILABLE

    @property
    def is_consistent(self):
        """available with no current rental, or unavailable with one"""
        return self.is_available == (self.current_rental is None)

    def rent(self, customer_id, duration_days: int, deposit,
             start_time: Optional[datetime.datetime] = None) -> "Rental":
        """
        Rent this item to a customer.

        Raises:
            ItemUnavailableError: If the item is already rented.
            InvalidDurationError: If duration_days is below one.
            InvalidInputError: If the deposit is negative.
        """
        if not self.is_available or self.current_rental is not None:
            raise ItemUnavailableError("Item is not available for rent.")

        total_amount = compute_total_amount(self.price_amount, self.price_unit, duration_days)
        deposit = to_money(deposit)
        if deposit < 0:
            raise InvalidInputError("Deposit cannot be negative.")

        start_time = as_utc(start_time) or utcnow()
        try:
            due_time = start_time + datetime.timedelta(days=duration_days)
        except OverflowError:
            raise InvalidDurationError("Rental would end past the supported date range.")
        rental = Rental(
            customer_id=str(customer_id),
            start_time=start_time,
            due_time=due_time,
            duration_days=duration_days,
            deposit=deposit,
            total_amount=total_amount,
        )
        self.rentals.append(rental)
        self.availability = Availability.UNAVAILABLE
        return rental

    def return_rental(self, condition, return_time: Optional[datetime.datetime] = None,
                      comments: Optional[str] = None, extra_charge=0,
                      extra_charge_reason: Optional[str] = None) -> ReturnOutcome:
        """
        Close the current rental and archive it as completed.

        Fees and refunds are computed before anything is written, so a bad
        condition or charge leaves the item untouched.

        Raises:
            NoActiveRentalError: If the item is not rented.
            InvalidConditionError: If condition is not excellent/good/damaged.
        """
        rental = self._require_active()
        return_time = as_utc(return_time) or utcnow()

        deposit_refund = compute_deposit_refund(rental.deposit, condition)
        late_fee, days_late = compute_late_fee(
            as_utc(rental.due_time), return_time, self.price_amount)
        extra_charge = to_money(extra_charge)
        if extra_charge < 0:
            raise InvalidInputError("Additional charge cannot be negative.")
        if not extra_charge_reason and late_fee > 0:
            extra_charge_reason = f"Late return fee for {days_late} days"

        rental.returned_at = return_time
        rental.condition = Condition(condition)
        rental.comments = comments
        rental.extra_charge = extra_charge
        rental.extra_charge_reason = extra_charge_reason
        rental.late_fee = late_fee
        rental.days_late = days_late
        rental.deposit_refund = deposit_refund
        self._archive(rental, Outcome.COMPLETED, return_time)

        return ReturnOutcome(
            rental=rental,
            deposit_refund=deposit_refund,
            late_fee=late_fee,
            total_charges=rental.total_charges,
            final_amount=rental.final_amount,
            days_late=days_late,
        )

    def cancel_rental(self, notes: Optional[str] = None,
                      cancelled_at: Optional[datetime.datetime] = None) -> "Rental":
        """Administrative close: archived as cancelled, no fees computed."""
        rental = self._require_active()
        cancelled_at = as_utc(cancelled_at) or utcnow()
        rental.returned_at = cancelled_at
        rental.comments = notes
        self._archive(rental, Outcome.CANCELLED, cancelled_at)
        return rental

    def _require_active(self) -> "Rental":
        rental = self.current_rental
        if self.is_available or rental is None:
            raise NoActiveRentalError("No active rental found for this item.")
        return rental

    def _archive(self, rental, outcome, closed_at):
        rental.archived_seq = len(self.history) + 1
        rental.archived_at = closed_at
        rental.outcome = outcome
        self.availability = Availability.AVAILABLE


class Rental(Base):
    __tablename__ = 'rentals'

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey('rental_items.id', ondelete='CASCADE'), nullable=False, index=True)
    customer_id = Column(String(50), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    due_time = Column(DateTime(timezone=True), nullable=False)
    duration_days = Column(Integer, nullable=False)
    deposit = Column(Money, nullable=False)
    total_amount = Column(Money, nullable=False)

    returned_at = Column(DateTime(timezone=True))
    condition = Column(_enum(Condition))
    comments = Column(Text)
    extra_charge = Column(Money)
    extra_charge_reason = Column(String(255))
    late_fee = Column(Money)
    days_late = Column(Integer)
    deposit_refund = Column(Money)

    outcome = Column(_enum(Outcome))
    archived_seq = Column(Integer)
    archived_at = Column(DateTime(timezone=True))

    item = relationship('RentalItem', back_populates='rentals')

    @property
    def is_active(self):
        return self.outcome is None

    @property
    def total_charges(self) -> Decimal:
        return to_money(self.extra_charge) + to_money(self.late_fee)

    @property
    def final_amount(self) -> Decimal:
        return to_money(self.deposit_refund) - self.total_charges

    def owed_strikes(self) -> List[dict]:
        """Strikes this rental's return earns, rebuilt from the stored facts."""
        if self.outcome is not Outcome.COMPLETED:
            return []
        owed = []
        if self.days_late:
            owed.append(dict(
                reason=StrikeReason.LATE_RETURN,
                severity=late_strike_severity(self.days_late),
                description=f"Returned {self.days_late} days late",
                additional_charge=to_money(self.late_fee),
            ))
        if self.condition is Condition.DAMAGED:
            owed.append(dict(
                reason=StrikeReason.DAMAGED_ITEM,
                severity=Severity.SEVERE,
                description=self.comments or "Item returned in damaged condition",
                additional_charge=to_money(self.extra_charge),
            ))
        for facts in owed:
            facts.update(item_id=self.item_id, rental_id=self.id, timestamp=self.returned_at)
        return owed


class CustomerBehavior(Base):
    __tablename__ = 'customer_behaviors'

    id = Column(Integer, primary_key=True)
    customer_id = Column(String(50), nullable=False)
    total_strikes = Column(Integer, nullable=False, default=0)
    status = Column(_enum(CustomerStatus), nullable=False, default=CustomerStatus.GOOD)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())

    strikes = relationship(
        'Strike', back_populates='behavior', order_by='Strike.id',
        cascade='all, delete-orphan')

    __table_args__ = (UniqueConstraint('customer_id', name='unique_customer_behavior'),)
    __mapper_args__ = {'version_id_col': version}

    def __init__(self, **kwargs):
        kwargs.setdefault('total_strikes', 0)
        kwargs.setdefault('status', CustomerStatus.GOOD)
        super().__init__(**kwargs)

    @property
    def active_strikes(self):
        return [s for s in self.strikes if not s.resolved]

    @property
    def unresolved_severe_count(self):
        return sum(1 for s in self.active_strikes if s.severity is Severity.SEVERE)

    def has_strike_for(self, rental_id, reason):
        return any(s.rental_id == rental_id and s.reason is StrikeReason(reason)
                   for s in self.strikes)

    def add_strike(self, reason, item_id, severity, description=None,
                   additional_charge=0, rental_id=None,
                   timestamp: Optional[datetime.datetime] = None) -> CustomerStatus:
        try:
            reason, severity = StrikeReason(reason), Severity(severity)
        except ValueError as e:
            raise InvalidInputError(str(e))

        self.strikes.append(Strike(
            created_at=as_utc(timestamp) or utcnow(),
            reason=reason,
            item_id=item_id,
            severity=severity,
            description=description,
            additional_charge=to_money(additional_charge),
            rental_id=rental_id,
            resolved=False,
        ))
        self.total_strikes += 1
        # a status kept by an earlier resolve is never lowered here
        derived = derive_status(self.total_strikes, self.unresolved_severe_count)
        self.status = max(CustomerStatus(self.status), derived, key=lambda s: s.rank)
        return self.status

    def resolve_strike(self, strike_id, notes: Optional[str] = None,
                       resolved_at: Optional[datetime.datetime] = None) -> CustomerStatus:
        strike = next((s for s in self.strikes if s.id == strike_id), None)
        if strike is None:
            raise StrikeNotFoundError(f"Strike {strike_id} not found.")
        if strike.resolved:
            raise StrikeAlreadyResolvedError(f"Strike {strike_id} is already resolved.")

        strike.resolved = True
        strike.resolved_at = as_utc(resolved_at) or utcnow()
        strike.resolution_notes = notes
        self.total_strikes = max(0, self.total_strikes - 1)
        self.status = demoted_status(
            self.status, self.total_strikes, self.unresolved_severe_count)
        return self.status


class Strike(Base):
    __tablename__ = 'strikes'

    MUTABLE_FIELDS = frozenset({'resolved', 'resolved_at', 'resolution_notes'})

    id = Column(Integer, primary_key=True)
    behavior_id = Column(Integer, ForeignKey('customer_behaviors.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    reason = Column(_enum(StrikeReason), nullable=False)
    item_id = Column(Integer, nullable=False)
    rental_id = Column(Integer)
    severity = Column(_enum(Severity), nullable=False)
    description = Column(Text)
    additional_charge = Column(Money, nullable=False, default=Decimal('0'))
    resolved = Column(Boolean, nullable=False, default=False)
    resolved_at = Column(DateTime(timezone=True))
    resolution_notes = Column(Text)

    behavior = relationship('CustomerBehavior', back_populates='strikes')

    __table_args__ = (UniqueConstraint('rental_id', 'reason', name='unique_rental_strike'),)


@event.listens_for(Rental, 'before_update')
def _freeze_archived_rental(mapper, connection, target):
    outcome = inspect(target).attrs.outcome.history
    was_archived = (
        any(v is not None for v in outcome.deleted)
        or (not outcome.has_changes() and target.outcome is not None)
    )
    if was_archived:
        raise InvalidStateError(f"Rental {target.id} is archived and cannot change.")


@event.listens_for(Strike, 'before_update')
def _freeze_strike(mapper, connection, target):
    state = inspect(target)
    changed = {
        attr.key for attr in state.mapper.column_attrs
        if state.attrs[attr.key].history.has_changes()
    }
    if changed - Strike.MUTABLE_FIELDS:
        raise InvalidStateError(f"Strike {target.id} can only change its resolution.")
