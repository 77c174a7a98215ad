"""Error taxonomy for the reservation engine.

Every error carries a stable ``code``, a human-readable ``message`` and a
``details`` dict naming the invariant or guard that failed, so callers can
render a precise message without parsing strings.
"""

from typing import Any


class ReservationError(Exception):
    """Base class for all engine errors."""

    code: str = "reservation_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(ReservationError):
    """Malformed or out-of-range input. Recoverable by caller correction."""

    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, **details: Any) -> None:
        if field is not None:
            details["field"] = field
        super().__init__(message, details)
        self.field = field


class AmountMismatchError(ValidationError):
    """A payment event reported an amount different from what is owed."""

    code = "amount_mismatch"

    def __init__(self, event: str, expected: Any, received: Any) -> None:
        super().__init__(
            f"Payment amount {received} does not match the {expected} owed for {event}",
            field="amount",
            event=event,
            expected=str(expected),
            received=str(received),
        )


class DateConflictError(ReservationError):
    """Requested dates overlap an active reservation on the same listing."""

    code = "date_conflict"

    def __init__(
        self,
        listing_id: Any,
        check_in: Any,
        check_out: Any,
        conflicting_ids: list[Any] | None = None,
    ) -> None:
        details: dict[str, Any] = {
            "listing_id": str(listing_id),
            "check_in": str(check_in),
            "check_out": str(check_out),
        }
        if conflicting_ids:
            details["conflicting_reservation_ids"] = [str(i) for i in conflicting_ids]
        super().__init__("The requested dates are not available", details)


class InvalidTransitionError(ReservationError):
    """The event is not allowed from the reservation's current state."""

    code = "invalid_transition"

    def __init__(self, status: Any, event: Any, reason: str | None = None) -> None:
        status_value = getattr(status, "value", status)
        event_value = getattr(event, "value", event)
        message = f"Cannot apply '{event_value}' to a reservation in state '{status_value}'"
        if reason:
            message = f"{message}: {reason}"
        details: dict[str, Any] = {"status": status_value, "event": event_value}
        if reason:
            details["reason"] = reason
        super().__init__(message, details)
        self.status = status_value
        self.event = event_value


class NotCheckInDayError(ReservationError):
    """Arrival marked outside the check-in day or the day after."""

    code = "not_check_in_day"

    def __init__(self, check_in: Any, today: Any) -> None:
        super().__init__(
            f"Arrival can only be marked on {check_in} or the following day (today is {today})",
            {"check_in": str(check_in), "today": str(today)},
        )


class VersionConflictError(ReservationError):
    """A concurrent write changed the reservation since it was loaded."""

    code = "version_conflict"

    def __init__(self, reservation_id: Any) -> None:
        super().__init__(
            "Reservation was modified concurrently",
            {"reservation_id": str(reservation_id)},
        )


class NotFoundError(ReservationError):
    """Requested entity does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity} not found", {"entity": entity, "id": str(entity_id)})
