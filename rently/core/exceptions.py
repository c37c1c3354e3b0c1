class RentlyAPIError(Exception): pass

# Lookups
class NotFoundError(RentlyAPIError): pass

class ItemNotFoundError(NotFoundError): pass

class RentalNotFoundError(NotFoundError): pass

class CustomerBehaviorNotFoundError(NotFoundError): pass

class StrikeNotFoundError(NotFoundError): pass

# Operation attempted from the wrong state; never retried automatically
class InvalidStateError(RentlyAPIError): pass

class ItemUnavailableError(InvalidStateError): pass

class NoActiveRentalError(InvalidStateError): pass

class StrikeAlreadyResolvedError(InvalidStateError): pass

class InvalidInputError(RentlyAPIError): pass

class InvalidDurationError(InvalidInputError): pass

class InvalidConditionError(InvalidInputError): pass

class OwnershipMismatchError(RentlyAPIError): pass

# Concurrent write detected by the version check; retry from a fresh read
class PersistenceConflictError(RentlyAPIError): pass

class DatabaseInsertError(RentlyAPIError): pass


class StrikeRecordingError(RentlyAPIError):
    """The return committed but its strikes could not be written.

    Recover with ``RentlyAPI.record_return_strikes(rental_id)``.
    """

    def __init__(self, rental_id, message=None):
        self.rental_id = rental_id
        super().__init__(message or f"Failed to record strikes for rental {rental_id}.")
