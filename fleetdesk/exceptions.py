# fleetdesk/exceptions.py
"""
Typed failures raised by services and the snag workflow.
main.py maps each one to an HTTP status; the message is what the
dashboard shows in its toast.
"""

from typing import Optional


class FleetDeskError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FleetDeskError):
    """Rejected before any write (missing field, empty submission, policy)."""
    status_code = 422


class AuthenticationError(FleetDeskError):
    status_code = 401


class PermissionDeniedError(FleetDeskError):
    status_code = 403


class NotFoundError(FleetDeskError):
    status_code = 404


class ConflictError(FleetDeskError):
    """State or referential-integrity conflict (already resolved, in use, overlapping)."""
    status_code = 409


class BackendError(FleetDeskError):
    """The hosted backend (auth / storage) failed or timed out."""
    status_code = 502

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
