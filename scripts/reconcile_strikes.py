#!/usr/bin/env python3
"""
Script to write strikes still owed by completed returns.

Run it after a return answered with a strike-recording error; rentals whose
strikes are already on record are left alone.
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from rently.core import db
from rently.core.api import RentlyAPI
from rently.core.enums import Outcome
from rently.core.exceptions import RentlyAPIError
from rently.core.models import Rental


def completed_rental_ids(db_session):
    return [r.id for r in db_session.query(Rental.id).filter(
        Rental.outcome == Outcome.COMPLETED).order_by(Rental.id)]


def main():
    parser = argparse.ArgumentParser(
        description="Record strikes owed by completed rentals"
    )
    parser.add_argument(
        "--rental-id",
        type=int,
        action="append",
        dest="rental_ids",
        help="Rental to reconcile (repeatable); defaults to every completed rental"
    )
    args = parser.parse_args()

    db_session = db.SessionLocal()
    failed = 0
    try:
        rental_ids = args.rental_ids or completed_rental_ids(db_session)
        print(f"Reconciling {len(rental_ids)} rentals")
        for rental_id in rental_ids:
            try:
                _, recorded = RentlyAPI.record_return_strikes(rental_id, db_session=db_session)
            except RentlyAPIError as e:
                failed += 1
                print(f"  rental {rental_id}: {e}")
                continue
            if recorded:
                print(f"  rental {rental_id}: recorded {len(recorded)} strike(s)")
    finally:
        db_session.close()

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
