"""Tests for utils/staff_context.py - staff identity propagation via contextvars."""

from uuid import uuid4

import pytest

from utils.staff_context import (
    get_current_staff_id,
    get_optional_staff_id,
    set_current_staff_id,
    clear_current_staff_id,
    staff_context,
)


class TestGetCurrentStaffId:
    """Tests for get_current_staff_id()."""

    def test_raises_without_set(self):
        """Must raise RuntimeError when no context is set."""
        with pytest.raises(RuntimeError, match="No staff context"):
            get_current_staff_id()

    def test_optional_returns_none_without_set(self):
        """Customer and provider calls have no actor."""
        assert get_optional_staff_id() is None


class TestSetAndClear:
    def test_set_then_get_returns_uuid(self):
        staff_id = uuid4()
        set_current_staff_id(staff_id)
        assert get_current_staff_id() == staff_id
        assert get_optional_staff_id() == staff_id

    def test_clear_then_get_raises(self):
        set_current_staff_id(uuid4())
        clear_current_staff_id()
        with pytest.raises(RuntimeError):
            get_current_staff_id()


class TestStaffContextManager:
    """Tests for staff_context() context manager."""

    def test_sets_and_clears(self):
        staff_id = uuid4()

        with staff_context(staff_id):
            assert get_current_staff_id() == staff_id

        assert get_optional_staff_id() is None

    def test_restores_previous(self):
        """Nested context managers should restore outer context."""
        outer_id = uuid4()
        inner_id = uuid4()

        with staff_context(outer_id):
            with staff_context(inner_id):
                assert get_current_staff_id() == inner_id
            assert get_current_staff_id() == outer_id

    def test_clears_on_exception(self):
        with pytest.raises(ValueError):
            with staff_context(uuid4()):
                raise ValueError("boom")

        assert get_optional_staff_id() is None
