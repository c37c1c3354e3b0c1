#!/usr/bin/env python

"""
    Rental transaction API for Rently.

    Coordinates the item ledger and the customer behavior ledger. Each
    aggregate is changed in its own read-modify-write cycle: serialized
    in-process by a per-id lock and guarded across processes by the
    version column on the row. A return commits the item first, then
    records the strikes it earned from the facts stored on the archived
    rental, so a failed strike write can be replayed without recomputing
    or duplicating anything.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from rently import configs
from rently.core import db
from rently.core.enums import CustomerStatus
from rently.core.locks import KeyedLock
from rently.core.models import CustomerBehavior, Rental, RentalItem, Strike
from rently.core.exceptions import (
    CustomerBehaviorNotFoundError,
    DatabaseInsertError,
    ItemNotFoundError,
    NoActiveRentalError,
    OwnershipMismatchError,
    PersistenceConflictError,
    RentalNotFoundError,
    StrikeRecordingError,
)
from rently.schemas.behavior import Strike as StrikeSchema
from rently.schemas.rental import ReturnReceipt

logger = logging.getLogger(__name__)

FLAGGED_STATUSES = (
    CustomerStatus.WARNING,
    CustomerStatus.SUSPENDED,
    CustomerStatus.BANNED,
)

# Unique keys a concurrent writer can race us to; Postgres reports the
# constraint name, SQLite the constrained columns
CONFLICT_CONSTRAINTS = (
    "unique_customer_behavior",
    "unique_rental_strike",
    "customer_behaviors.customer_id",
    "strikes.rental_id, strikes.reason",
)


class RentlyAPI:

    DEFAULT_LIMIT = 50
    item_locks = KeyedLock()
    customer_locks = KeyedLock()

    @classmethod
    def _session(cls, db_session: Optional[Session]) -> Session:
        return db_session if db_session is not None else db.session

    @classmethod
    def _commit(cls, db_session: Session):
        try:
            db_session.commit()
        except StaleDataError as e:
            db_session.rollback()
            raise PersistenceConflictError(f"Concurrent update detected: {e}") from e
        except IntegrityError as e:
            db_session.rollback()
            if any(name in str(e.orig) for name in CONFLICT_CONSTRAINTS):
                raise PersistenceConflictError(f"Conflicting insert: {e.orig}") from e
            raise DatabaseInsertError(f"Failed to save changes: {e.orig}.") from e
        except SQLAlchemyError as e:
            db_session.rollback()
            raise DatabaseInsertError(f"Failed to save changes: {str(e)}.") from e

    @classmethod
    def _run(cls, db_session: Session, step, label: str):
        """Runs ``step`` from a fresh read, repeating it after a version
        conflict. Any other error rolls the session back and propagates."""
        attempts = max(1, configs.CONFLICT_RETRIES)
        for attempt in range(1, attempts + 1):
            db_session.expire_all()
            try:
                return step()
            except PersistenceConflictError:
                if attempt == attempts:
                    logger.warning(f"{label}: giving up after {attempts} conflicts")
                    raise
                logger.warning(f"{label}: conflict on attempt {attempt}, retrying")
            except Exception:
                db_session.rollback()
                raise

    @classmethod
    def _load_item(cls, db_session: Session, item_id) -> RentalItem:
        if item := db_session.get(RentalItem, item_id):
            return item
        raise ItemNotFoundError(f"Rental item {item_id} not found.")

    @classmethod
    def _find_behavior(cls, db_session: Session, customer_id) -> Optional[CustomerBehavior]:
        return db_session.query(CustomerBehavior).filter(
            CustomerBehavior.customer_id == str(customer_id)
        ).first()

    @classmethod
    def _load_behavior(cls, db_session: Session, customer_id, create=False) -> CustomerBehavior:
        behavior = cls._find_behavior(db_session, customer_id)
        if behavior is None:
            if not create:
                raise CustomerBehaviorNotFoundError(
                    f"Customer behavior record for {customer_id} not found.")
            behavior = CustomerBehavior(customer_id=str(customer_id))
            db_session.add(behavior)
        return behavior

    # Items

    @classmethod
    def create_item(cls, owner_id, name, price_amount, price_unit, category=None,
                    description='', pincode=None, zone=None, db_session=None) -> RentalItem:
        db_session = cls._session(db_session)
        item = RentalItem(
            owner_id=str(owner_id),
            name=name,
            price_amount=price_amount,
            price_unit=price_unit,
            description=description or '',
            pincode=pincode,
            zone=zone,
        )
        if category is not None:
            item.category = category
        db_session.add(item)
        try:
            db_session.commit()
        except SQLAlchemyError as e:
            db_session.rollback()
            raise DatabaseInsertError(f"Failed to create rental item: {str(e)}.") from e
        logger.info(f"item {item.id} listed by {owner_id}")
        return item

    @classmethod
    def get_item(cls, item_id, db_session=None) -> RentalItem:
        return cls._load_item(cls._session(db_session), item_id)

    @classmethod
    def get_items(cls, offset=None, limit=None, db_session=None) -> List[RentalItem]:
        return RentalItem.get_many(
            db_session=cls._session(db_session),
            offset=offset, limit=limit or cls.DEFAULT_LIMIT)

    @classmethod
    def item_history(cls, item_id, customer_id=None, db_session=None) -> List[Rental]:
        """Archived rentals of an item in order. Filtered to one customer, the
        customer's open rental on the item, if any, comes last."""
        item = cls.get_item(item_id, db_session=db_session)
        if customer_id is None:
            return item.history
        rentals = item.history + [r for r in [item.current_rental] if r is not None]
        return [r for r in rentals if r.customer_id == str(customer_id)]

    @classmethod
    def customer_rentals(cls, customer_id, db_session=None) -> List[Rental]:
        """Current and past rentals of a customer across all items, newest first."""
        return cls._session(db_session).query(Rental).filter(
            Rental.customer_id == str(customer_id)
        ).order_by(Rental.start_time.desc(), Rental.id.desc()).all()

    # Rental lifecycle

    @classmethod
    def rent_item(cls, item_id, customer_id, duration_days: int, deposit,
                  now=None, db_session=None) -> Rental:
        """
        Rent an item to a customer.

        Raises:
            ItemNotFoundError: If the item does not exist.
            ItemUnavailableError: If it is already rented.
            InvalidDurationError: If duration_days is below one.
        """
        db_session = cls._session(db_session)

        def step():
            item = cls._load_item(db_session, item_id)
            rental = item.rent(customer_id, duration_days, deposit, start_time=now)
            cls._commit(db_session)
            return rental

        with cls.item_locks.hold(item_id):
            rental = cls._run(db_session, step, f"rent item {item_id}")
        logger.info(
            f"item {item_id} rented to {customer_id} for {duration_days} days, "
            f"due {rental.due_time.isoformat()}")
        return rental

    @classmethod
    def return_item(cls, item_id, customer_id, condition, return_time=None,
                    comments=None, extra_charge=0, extra_charge_reason=None,
                    db_session=None) -> ReturnReceipt:
        """
        Return a rented item and record the strikes the return earns.

        The item transition commits before any strike is evaluated, since
        strike severity depends on the late fee it produces.

        Raises:
            ItemNotFoundError: If the item does not exist.
            NoActiveRentalError: If the item is not rented (including a
                second return of the same rental).
            OwnershipMismatchError: If another customer holds the rental.
            StrikeRecordingError: If the return committed but its strikes
                could not be written.
        """
        db_session = cls._session(db_session)

        def step():
            item = cls._load_item(db_session, item_id)
            rental = item.current_rental
            if rental is None:
                raise NoActiveRentalError("No active rental found for this item.")
            if rental.customer_id != str(customer_id):
                raise OwnershipMismatchError(
                    "This rental does not belong to the specified customer.")
            outcome = item.return_rental(
                condition, return_time=return_time, comments=comments,
                extra_charge=extra_charge, extra_charge_reason=extra_charge_reason)
            cls._commit(db_session)
            return outcome

        with cls.item_locks.hold(item_id):
            outcome = cls._run(db_session, step, f"return item {item_id}")
        logger.info(
            f"item {item_id} returned by {customer_id}: {outcome.days_late} days late, "
            f"refund {outcome.deposit_refund}, charges {outcome.total_charges}")

        behavior, recorded = cls.record_return_strikes(outcome.rental.id, db_session=db_session)
        return ReturnReceipt(
            item_id=item_id,
            rental_id=outcome.rental.id,
            customer_id=str(customer_id),
            deposit_refund=outcome.deposit_refund,
            late_fee=outcome.late_fee,
            total_charges=outcome.total_charges,
            final_amount=outcome.final_amount,
            days_late=outcome.days_late,
            customer_status=behavior.status if behavior else CustomerStatus.GOOD,
            total_strikes=behavior.total_strikes if behavior else 0,
            strikes=[StrikeSchema.model_validate(s) for s in recorded],
        )

    @classmethod
    def cancel_rental(cls, item_id, notes=None, db_session=None) -> Rental:
        """Administrative cancel; archives the rental without fees or strikes."""
        db_session = cls._session(db_session)

        def step():
            rental = cls._load_item(db_session, item_id).cancel_rental(notes)
            cls._commit(db_session)
            return rental

        with cls.item_locks.hold(item_id):
            rental = cls._run(db_session, step, f"cancel rental on item {item_id}")
        logger.info(f"rental {rental.id} on item {item_id} cancelled")
        return rental

    # Customer behavior

    @classmethod
    def record_return_strikes(cls, rental_id, db_session=None) -> Tuple[Optional[CustomerBehavior], List[Strike]]:
        """
        Write the strikes an archived rental earned, skipping any already on
        record. Safe to call again after a failure.

        Returns the customer's behavior record (None if the customer has
        none and owes nothing) and the strikes written by this call.
        """
        db_session = cls._session(db_session)
        rental = db_session.get(Rental, rental_id)
        if rental is None:
            raise RentalNotFoundError(f"Rental {rental_id} not found.")
        owed = rental.owed_strikes()
        customer_id = rental.customer_id

        def step():
            if not owed:
                return cls._find_behavior(db_session, customer_id), []
            behavior = cls._load_behavior(db_session, customer_id, create=True)
            recorded = []
            for facts in owed:
                if behavior.has_strike_for(rental_id, facts['reason']):
                    continue
                behavior.add_strike(**facts)
                recorded.append(behavior.strikes[-1])
            if recorded:
                cls._commit(db_session)
            return behavior, recorded

        with cls.customer_locks.hold(customer_id):
            try:
                behavior, recorded = cls._run(
                    db_session, step, f"record strikes for rental {rental_id}")
            except (PersistenceConflictError, DatabaseInsertError) as e:
                logger.error(f"strikes for rental {rental_id} not recorded: {e}")
                raise StrikeRecordingError(rental_id) from e
        for strike in recorded:
            logger.info(
                f"{strike.severity.value} {strike.reason.value} strike for {customer_id}; "
                f"status now {behavior.status.value}")
        return behavior, recorded

    @classmethod
    def add_strike(cls, customer_id, reason, item_id, severity, description=None,
                   additional_charge=0, db_session=None) -> Tuple[CustomerBehavior, Strike]:
        db_session = cls._session(db_session)

        def step():
            behavior = cls._load_behavior(db_session, customer_id, create=True)
            behavior.add_strike(
                reason=reason, item_id=item_id, severity=severity,
                description=description, additional_charge=additional_charge)
            strike = behavior.strikes[-1]
            cls._commit(db_session)
            return behavior, strike

        with cls.customer_locks.hold(str(customer_id)):
            behavior, strike = cls._run(db_session, step, f"add strike for {customer_id}")
        logger.info(
            f"{strike.severity.value} {strike.reason.value} strike for {customer_id}; "
            f"status now {behavior.status.value}")
        return behavior, strike

    @classmethod
    def resolve_strike(cls, customer_id, strike_id, notes=None, db_session=None) -> CustomerBehavior:
        """
        Resolve one strike and return the updated behavior record.

        Raises:
            CustomerBehaviorNotFoundError: If the customer has no record.
            StrikeNotFoundError: If the strike is not one of theirs.
            StrikeAlreadyResolvedError: If it was resolved before.
        """
        db_session = cls._session(db_session)

        def step():
            behavior = cls._load_behavior(db_session, customer_id)
            behavior.resolve_strike(strike_id, notes)
            cls._commit(db_session)
            return behavior

        with cls.customer_locks.hold(str(customer_id)):
            behavior = cls._run(db_session, step, f"resolve strike {strike_id}")
        logger.info(
            f"strike {strike_id} of {customer_id} resolved; status now {behavior.status.value}")
        return behavior

    @classmethod
    def get_behavior(cls, customer_id, db_session=None) -> Optional[CustomerBehavior]:
        return cls._find_behavior(cls._session(db_session), customer_id)

    @classmethod
    def flagged_customers(cls, db_session=None) -> List[CustomerBehavior]:
        return cls._session(db_session).query(CustomerBehavior).filter(
            CustomerBehavior.status.in_(FLAGGED_STATUSES)
        ).order_by(CustomerBehavior.total_strikes.desc()).all()
