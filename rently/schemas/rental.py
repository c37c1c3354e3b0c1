from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from rently.core.enums import Condition, CustomerStatus, Outcome
from rently.schemas.behavior import Strike

class Rental(BaseModel):
    id: int
    item_id: int
    customer_id: str
    start_time: datetime
    due_time: datetime
    duration_days: int
    deposit: Decimal
    total_amount: Decimal
    returned_at: Optional[datetime] = None
    condition: Optional[Condition] = None
    comments: Optional[str] = None
    extra_charge: Optional[Decimal] = None
    extra_charge_reason: Optional[str] = None
    late_fee: Optional[Decimal] = None
    days_late: Optional[int] = None
    deposit_refund: Optional[Decimal] = None
    outcome: Optional[Outcome] = None

    class Config:
        from_attributes = True

class ReturnReceipt(BaseModel):
    item_id: int
    rental_id: int
    customer_id: str
    deposit_refund: Decimal
    late_fee: Decimal
    total_charges: Decimal
    final_amount: Decimal
    days_late: int
    customer_status: CustomerStatus
    total_strikes: int
    strikes: List[Strike] = []
