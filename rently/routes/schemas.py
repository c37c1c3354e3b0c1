from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal
from rently import configs
from rently.core.enums import Category, Condition, PriceUnit, Severity, StrikeReason

class ItemRequest(BaseModel):
    owner_id: str
    name: str = Field(..., min_length=1, max_length=255)
    category: Category = Category.OTHERS
    description: str = ''
    price_amount: Decimal = Field(..., ge=0)
    price_unit: PriceUnit
    pincode: Optional[str] = None
    zone: Optional[str] = None

class RentRequest(BaseModel):
    customer_id: str
    duration_days: int = Field(..., le=configs.MAX_RENTAL_DAYS)
    deposit: Decimal = Field(..., ge=0)

class AdditionalCharge(BaseModel):
    amount: Decimal = Field(Decimal('0'), ge=0)
    reason: Optional[str] = None

class ReturnRequest(BaseModel):
    customer_id: str
    condition: Condition
    comments: Optional[str] = None
    additional_charges: Optional[AdditionalCharge] = None

class CancelRequest(BaseModel):
    notes: Optional[str] = None

class StrikeRequest(BaseModel):
    reason: StrikeReason
    item_id: int
    severity: Severity
    description: Optional[str] = None
    additional_charges: Decimal = Field(Decimal('0'), ge=0)

class ResolveRequest(BaseModel):
    resolution_notes: Optional[str] = None
