from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from rently.core.enums import CustomerStatus, Severity, StrikeReason

class Strike(BaseModel):
    id: int
    created_at: datetime
    reason: StrikeReason
    item_id: int
    rental_id: Optional[int] = None
    severity: Severity
    description: Optional[str] = None
    additional_charge: Decimal
    resolved: bool
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None

    class Config:
        from_attributes = True

class CustomerBehavior(BaseModel):
    customer_id: str
    status: CustomerStatus = CustomerStatus.GOOD
    total_strikes: int = 0
    strikes: List[Strike] = []

    class Config:
        from_attributes = True

class StatusChange(BaseModel):
    customer_id: str
    new_status: CustomerStatus
    total_strikes: int
