#!/usr/bin/env python
"""
    Item Schema for Rently,
    the public shape of a rental listing and its current rental.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from decimal import Decimal
from rently.core.enums import Availability, Category, PriceUnit
from rently.schemas.rental import Rental

class Item(BaseModel):
    id: int
    owner_id: str
    name: str
    category: Category
    description: str
    price_amount: Decimal
    price_unit: PriceUnit
    availability: Availability
    pincode: Optional[str] = None
    zone: Optional[str] = None
    current_rental: Optional[Rental] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "owner_id": "lister-42",
                "name": "Cordless drill",
                "category": "Tools",
                "description": "18V drill with two batteries",
                "price_amount": "100.00",
                "price_unit": "daily",
                "availability": "available",
                "pincode": "560001",
                "zone": "south",
                "current_rental": None,
                "created_at": "2025-10-01T12:00:00Z",
                "updated_at": "2025-10-01T12:00:00Z"
            }
        }
