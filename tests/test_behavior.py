#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_behavior
    ~~~~~~~~~~~~~~~~~~~

    Customer behavior ledger: strikes, resolutions and standing.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import os
os.environ["TESTING"] = "true"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rently.core.db import Base
from rently.core.enums import CustomerStatus, Severity, StrikeReason
from rently.core.exceptions import (
    InvalidInputError,
    InvalidStateError,
    StrikeAlreadyResolvedError,
    StrikeNotFoundError,
)
from rently.core.models import CustomerBehavior


@pytest.fixture
def db_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)

@pytest.fixture
def behavior(db_session):
    behavior = CustomerBehavior(customer_id="cust-1")
    db_session.add(behavior)
    db_session.commit()
    return behavior

def strike(behavior, severity="minor", reason="late_return", item_id=1):
    return behavior.add_strike(reason=reason, item_id=item_id, severity=severity)


def test_new_record_is_good(behavior):
    assert behavior.status is CustomerStatus.GOOD
    assert behavior.total_strikes == 0
    assert behavior.strikes == []

def test_four_minor_strikes_give_warning(behavior):
    statuses = [strike(behavior) for _ in range(4)]
    assert statuses == [CustomerStatus.GOOD] * 3 + [CustomerStatus.WARNING]
    assert behavior.total_strikes == 4

def test_three_unresolved_severe_strikes_ban(behavior):
    for _ in range(3):
        strike(behavior, severity="severe", reason="damaged_item")
    assert behavior.total_strikes == 3
    assert behavior.status is CustomerStatus.BANNED

def test_one_severe_strike_warns_two_suspend(behavior):
    assert strike(behavior, severity="severe") is CustomerStatus.WARNING
    assert strike(behavior, severity="severe") is CustomerStatus.SUSPENDED

def test_strike_count_tiers(behavior):
    seen = [strike(behavior) for _ in range(10)]
    assert seen[6] is CustomerStatus.SUSPENDED
    assert seen[9] is CustomerStatus.BANNED

def test_status_never_improves_while_adding(behavior):
    ranks = []
    for severity in ["minor", "severe", "moderate", "minor", "severe", "minor", "minor"]:
        ranks.append(strike(behavior, severity=severity).rank)
    assert ranks == sorted(ranks)

def test_resolving_back_under_four_restores_good(behavior, db_session):
    for _ in range(4):
        strike(behavior)
    db_session.commit()
    assert behavior.status is CustomerStatus.WARNING

    status = behavior.resolve_strike(behavior.strikes[0].id, "paid in full")
    db_session.commit()

    assert status is CustomerStatus.GOOD
    assert behavior.total_strikes == 3
    resolved = behavior.strikes[0]
    assert resolved.resolved
    assert resolved.resolution_notes == "paid in full"
    assert resolved.resolved_at is not None

def test_resolving_keeps_status_above_lowest_tier(behavior, db_session):
    for _ in range(7):
        strike(behavior)
    db_session.commit()
    assert behavior.status is CustomerStatus.SUSPENDED

    behavior.resolve_strike(behavior.strikes[0].id)
    assert behavior.total_strikes == 6
    # only the lowest tier is rechecked on resolve
    assert behavior.status is CustomerStatus.SUSPENDED

def test_unresolved_severe_strike_blocks_demotion(behavior, db_session):
    strike(behavior, severity="severe")
    strike(behavior)
    db_session.commit()

    behavior.resolve_strike(behavior.strikes[1].id)
    assert behavior.unresolved_severe_count == 1
    assert behavior.status is CustomerStatus.WARNING

    behavior.resolve_strike(behavior.strikes[0].id)
    assert behavior.status is CustomerStatus.GOOD

def test_resolve_unknown_strike(behavior, db_session):
    strike(behavior)
    db_session.commit()
    with pytest.raises(StrikeNotFoundError):
        behavior.resolve_strike(9999)
    assert behavior.total_strikes == 1

def test_resolve_twice_is_rejected(behavior, db_session):
    strike(behavior)
    db_session.commit()
    strike_id = behavior.strikes[0].id
    behavior.resolve_strike(strike_id)
    with pytest.raises(StrikeAlreadyResolvedError):
        behavior.resolve_strike(strike_id)
    assert behavior.total_strikes == 0

def test_invalid_reason_or_severity(behavior):
    with pytest.raises(InvalidInputError):
        behavior.add_strike(reason="rude", item_id=1, severity="minor")
    with pytest.raises(InvalidInputError):
        behavior.add_strike(reason="other", item_id=1, severity="extreme")
    assert behavior.total_strikes == 0

def test_strike_fields_are_frozen(behavior, db_session):
    behavior.add_strike(reason=StrikeReason.NO_SHOW, item_id=3,
                        severity=Severity.MODERATE, description="missed pickup",
                        additional_charge=15)
    db_session.commit()

    recorded = behavior.strikes[0]
    recorded.severity = Severity.MINOR
    with pytest.raises(InvalidStateError):
        db_session.commit()
    db_session.rollback()

def test_has_strike_for(behavior):
    behavior.add_strike(reason="late_return", item_id=1, severity="minor", rental_id=7)
    assert behavior.has_strike_for(7, "late_return")
    assert not behavior.has_strike_for(7, StrikeReason.DAMAGED_ITEM)
    assert not behavior.has_strike_for(8, "late_return")

def test_adding_after_resolve_keeps_kept_status(behavior, db_session):
    for _ in range(7):
        strike(behavior)
    db_session.commit()
    for s in behavior.strikes[:2]:
        behavior.resolve_strike(s.id)
    db_session.commit()
    assert behavior.total_strikes == 5
    assert behavior.status is CustomerStatus.SUSPENDED

    assert strike(behavior) is CustomerStatus.SUSPENDED
    assert behavior.total_strikes == 6

def test_unresolved_severe_count_ignores_resolved(behavior, db_session):
    strike(behavior, severity="severe")
    strike(behavior, severity="severe")
    db_session.commit()
    behavior.resolve_strike(behavior.strikes[0].id)
    assert behavior.active_strikes == [behavior.strikes[1]]
    assert behavior.unresolved_severe_count == 1
