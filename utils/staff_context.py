"""Propagate the acting staff member's identity through the call stack."""

from contextvars import ContextVar
from uuid import UUID
from contextlib import contextmanager

_current_staff_id: ContextVar[UUID | None] = ContextVar("current_staff_id", default=None)


def get_current_staff_id() -> UUID:
    """
    Get the acting staff member's ID.

    Raises RuntimeError if no staff context is set. Staff-only code paths
    reached without an authenticated staff request are a bug.
    """
    staff_id = _current_staff_id.get()
    if staff_id is None:
        raise RuntimeError(
            "No staff context set. This usually means you're calling "
            "staff-only code outside of an authenticated request."
        )
    return staff_id


def get_optional_staff_id() -> UUID | None:
    """Acting staff member's ID, or None for customer and provider calls."""
    return _current_staff_id.get()


def set_current_staff_id(staff_id: UUID) -> None:
    """Set the acting staff member. Called by the staff auth middleware."""
    _current_staff_id.set(staff_id)


def clear_current_staff_id() -> None:
    """
    Clear staff context.

    Must be called in a finally block so context never leaks between requests.
    """
    _current_staff_id.set(None)


@contextmanager
def staff_context(staff_id: UUID):
    """
    Temporarily act as a staff member.

    Example:
        with staff_context(door_staff_id):
            check_in_service.check_in(code)
    """
    previous = _current_staff_id.get()
    set_current_staff_id(staff_id)
    try:
        yield
    finally:
        if previous is None:
            clear_current_staff_id()
        else:
            set_current_staff_id(previous)
