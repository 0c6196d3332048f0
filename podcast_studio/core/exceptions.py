# podcast_studio/core/exceptions.py
"""
Domain-specific exceptions for the podcast studio scheduling core.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input fails business validation (bad duration, missing theme, bad date)."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "VALIDATION_ERROR", details=details)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class ServiceException(DomainException):
    """Raised when a service operation fails for an unexpected reason."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class ReferenceNotFoundException(NotFoundException):
    """Raised when a decor, pack offer, theme or supplement is missing or inactive."""

    def __init__(self, reference_type: str, reference_id: str):
        super().__init__(
            message=f"{reference_type.replace('_', ' ').capitalize()} not found or inactive",
            code="REFERENCE_NOT_FOUND",
            details={"reference_type": reference_type, "reference_id": reference_id},
        )


class ReservationNotFoundException(NotFoundException):
    """Raised when a reservation does not exist."""

    def __init__(self, reservation_id: str):
        super().__init__(
            message="Reservation not found",
            code="RESERVATION_NOT_FOUND",
            details={"reservation_id": reservation_id},
        )


class InvalidStateTransitionException(ConflictException):
    """Raised when a reservation cannot move from its current status to the requested one."""

    def __init__(self, reservation_id: str, current_status: str, target_status: str):
        super().__init__(
            message=f"Cannot move reservation from {current_status} to {target_status}",
            code="INVALID_STATE_TRANSITION",
            details={
                "reservation_id": reservation_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )


class SlotNoLongerAvailableException(ConflictException):
    """
    Raised when the requested window overlaps a confirmed reservation.

    This is the expected outcome of two admins confirming overlapping requests;
    callers should offer another slot rather than treat it as a fault.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "The selected time slot is no longer available",
            code="SLOT_NO_LONGER_AVAILABLE",
            details=details or {},
        )


class ConfigurationException(DomainException):
    """Raised when the stored availability configuration is unusable (bad admin data)."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="CONFIGURATION_ERROR", details=details)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """

