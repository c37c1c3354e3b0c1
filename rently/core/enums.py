import enum


class PriceUnit(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

class Availability(str, enum.Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"

class Category(str, enum.Enum):
    FURNITURE = "Furniture"
    ELECTRONICS = "Electronics"
    TOOLS = "Tools"
    SPORTS = "Sports"
    BOOKS = "Books"
    VEHICLES = "Vehicles"
    OTHERS = "Others"

class Condition(str, enum.Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    DAMAGED = "damaged"

class Outcome(str, enum.Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class StrikeReason(str, enum.Enum):
    LATE_RETURN = "late_return"
    DAMAGED_ITEM = "damaged_item"
    PAYMENT_ISSUE = "payment_issue"
    VIOLATION_OF_TERMS = "violation_of_terms"
    NO_SHOW = "no_show"
    OTHER = "other"

class Severity(str, enum.Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"

class CustomerStatus(str, enum.Enum):
    GOOD = "good"
    WARNING = "warning"
    SUSPENDED = "suspended"
    BANNED = "banned"

    @property
    def rank(self):
        return _STATUS_RANK[self]

_STATUS_RANK = {
    CustomerStatus.GOOD: 0,
    CustomerStatus.WARNING: 1,
    CustomerStatus.SUSPENDED: 2,
    CustomerStatus.BANNED: 3,
}
