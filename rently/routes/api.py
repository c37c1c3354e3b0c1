#!/usr/bin/env python

"""
    API routes for Rently,
    item listing, the rent/return lifecycle and customer behavior.

    The caller's identity (customer id) arrives already authenticated
    from the upstream identity provider.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from rently.core.api import RentlyAPI
from rently.core.db import get_db
from rently.core.exceptions import (
    DatabaseInsertError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    OwnershipMismatchError,
    PersistenceConflictError,
    StrikeRecordingError,
)
from rently.routes.schemas import (
    CancelRequest,
    ItemRequest,
    RentRequest,
    ResolveRequest,
    ReturnRequest,
    StrikeRequest,
)
from rently.schemas.behavior import CustomerBehavior, StatusChange, Strike
from rently.schemas.item import Item
from rently.schemas.rental import Rental, ReturnReceipt

router = APIRouter()


@router.get('/', status_code=status.HTTP_200_OK)
def home():
    return {"message": "Rently API running"}

@router.get("/items", response_model=List[Item])
def get_items(offset: Optional[int] = None, limit: Optional[int] = None,
              db_session: Session = Depends(get_db)):
    return RentlyAPI.get_items(offset=offset, limit=limit, db_session=db_session)

@router.post("/items", response_model=Item, status_code=status.HTTP_201_CREATED)
def create_item(body: ItemRequest, db_session: Session = Depends(get_db)):
    try:
        return RentlyAPI.create_item(db_session=db_session, **body.model_dump())
    except DatabaseInsertError as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/items/{item_id}", response_model=Item)
def get_item(item_id: int, db_session: Session = Depends(get_db)):
    try:
        return RentlyAPI.get_item(item_id, db_session=db_session)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/items/{item_id}/rent", response_model=Rental)
def rent_item(item_id: int, body: RentRequest, db_session: Session = Depends(get_db)):
    try:
        return RentlyAPI.rent_item(
            item_id, body.customer_id, body.duration_days, body.deposit,
            db_session=db_session)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DatabaseInsertError as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/items/{item_id}/return", response_model=ReturnReceipt)
def return_item(item_id: int, body: ReturnRequest, db_session: Session = Depends(get_db)):
    charges = body.additional_charges
    try:
        return RentlyAPI.return_item(
            item_id, body.customer_id, body.condition,
            comments=body.comments,
            extra_charge=charges.amount if charges else 0,
            extra_charge_reason=charges.reason if charges else None,
            db_session=db_session)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OwnershipMismatchError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StrikeRecordingError as e:
        raise HTTPException(status_code=500, detail={
            "message": str(e), "rental_id": e.rental_id})
    except DatabaseInsertError as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/items/{item_id}/cancel", response_model=Rental)
def cancel_rental(item_id: int, body: CancelRequest, db_session: Session = Depends(get_db)):
    try:
        return RentlyAPI.cancel_rental(item_id, notes=body.notes, db_session=db_session)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))

@router.get("/items/{item_id}/history", response_model=List[Rental])
def item_history(item_id: int, customer_id: Optional[str] = None,
                 db_session: Session = Depends(get_db)):
    try:
        return RentlyAPI.item_history(item_id, customer_id=customer_id, db_session=db_session)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/rentals/{rental_id}/strikes", response_model=List[Strike])
def record_rental_strikes(rental_id: int, db_session: Session = Depends(get_db)):
    """Writes any strikes a completed return still owes; a no-op when all are on record."""
    try:
        _, recorded = RentlyAPI.record_return_strikes(rental_id, db_session=db_session)
        return recorded
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StrikeRecordingError as e:
        raise HTTPException(status_code=503, detail=str(e))

@router.get("/customers/flagged", response_model=List[CustomerBehavior])
def flagged_customers(db_session: Session = Depends(get_db)):
    return RentlyAPI.flagged_customers(db_session=db_session)

@router.get("/customers/{customer_id}/rentals", response_model=List[Rental])
def customer_rentals(customer_id: str, db_session: Session = Depends(get_db)):
    return RentlyAPI.customer_rentals(customer_id, db_session=db_session)

@router.get("/customers/{customer_id}/behavior", response_model=CustomerBehavior)
def get_behavior(customer_id: str, db_session: Session = Depends(get_db)):
    if behavior := RentlyAPI.get_behavior(customer_id, db_session=db_session):
        return behavior
    return CustomerBehavior(customer_id=customer_id)

@router.post("/customers/{customer_id}/strikes", response_model=StatusChange)
def add_strike(customer_id: str, body: StrikeRequest, db_session: Session = Depends(get_db)):
    try:
        behavior, _ = RentlyAPI.add_strike(
            customer_id, body.reason, body.item_id, body.severity,
            description=body.description,
            additional_charge=body.additional_charges,
            db_session=db_session)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return StatusChange(
        customer_id=customer_id,
        new_status=behavior.status,
        total_strikes=behavior.total_strikes)

@router.post("/customers/{customer_id}/strikes/{strike_id}/resolve", response_model=StatusChange)
def resolve_strike(customer_id: str, strike_id: int, body: ResolveRequest,
                   db_session: Session = Depends(get_db)):
    try:
        behavior = RentlyAPI.resolve_strike(
            customer_id, strike_id, notes=body.resolution_notes, db_session=db_session)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return StatusChange(
        customer_id=customer_id,
        new_status=behavior.status,
        total_strikes=behavior.total_strikes)
