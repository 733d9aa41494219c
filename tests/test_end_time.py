"""Tests for the end-time derivation state machine."""

import pytest

from booking_engine.session.end_time import (
    RECOMPUTE_RULES,
    DerivationInput,
    DerivationState,
    DerivationTrigger,
    EndTimeDeriver,
    InvalidTransitionError,
)


class TestInitialState:
    def test_starts_tracking_by_services(self, deriver):
        assert deriver.current_state == DerivationState.TRACKING_BY_SERVICES
        assert deriver.original_duration is None
        assert not deriver.user_modified_end_time

    def test_frozen_never_recomputes(self):
        assert not any(state == DerivationState.FROZEN for state, _ in RECOMPUTE_RULES)


class TestTrackingByServices:
    def test_start_plus_service_duration(self, deriver):
        assert deriver.services_changed("10:00", 45) == "10:45"

    def test_start_change_uses_services_total(self, deriver):
        assert deriver.start_time_changed("11:00", 45) == "11:45"

    def test_unchanged_start_does_not_recompute(self, deriver):
        deriver.start_time_changed("11:00", 45)
        assert deriver.start_time_changed("11:00", 90) is None

    def test_no_start_time_leaves_end_alone(self, deriver):
        assert deriver.services_changed("", 45) is None

    def test_zero_duration_leaves_end_alone(self, deriver):
        assert deriver.services_changed("10:00", 0) is None

    def test_end_past_midnight_is_not_wrapped(self, deriver):
        assert deriver.services_changed("23:30", 60) == "24:30"


class TestFrozen:
    def test_user_end_time_survives_service_changes(self, deriver):
        deriver.services_changed("10:00", 45)
        deriver.end_time_edited()
        assert deriver.services_changed("10:00", 120) is None
        assert deriver.start_time_changed("12:00", 120) is None
        assert deriver.current_state == DerivationState.FROZEN
        assert deriver.user_modified_end_time

    def test_repeated_edits_stay_frozen(self, deriver):
        deriver.end_time_edited()
        deriver.end_time_edited()
        assert deriver.current_state == DerivationState.FROZEN

    def test_cannot_load_booking_after_freeze(self, deriver):
        deriver.end_time_edited()
        with pytest.raises(InvalidTransitionError, match="booking_loaded"):
            deriver.load_booking("09:00", "10:30")


class TestEditMode:
    def test_captures_original_duration(self, deriver):
        deriver.load_booking("09:00", "10:30")
        assert deriver.current_state == DerivationState.TRACKING_BY_ORIGINAL_DURATION
        assert deriver.original_duration == 90

    def test_moved_start_keeps_original_duration(self, deriver):
        deriver.load_booking("09:00", "10:30")
        assert deriver.start_time_changed("11:00", 45) == "12:30"

    def test_services_change_uses_services_total(self, deriver):
        deriver.load_booking("09:00", "10:30")
        assert deriver.services_changed("09:00", 120) == "11:00"

    def test_loading_same_start_is_not_a_change(self, deriver):
        deriver.load_booking("09:00", "10:30")
        assert deriver.start_time_changed("09:00", 45) is None

    def test_unreadable_booking_keeps_services_tracking(self, deriver):
        deriver.load_booking("10:00", "09:00")
        assert deriver.current_state == DerivationState.TRACKING_BY_SERVICES
        assert deriver.original_duration is None

    def test_duration_captured_once(self, deriver):
        deriver.load_booking("09:00", "10:30")
        with pytest.raises(InvalidTransitionError):
            deriver.load_booking("09:00", "12:00")
        assert deriver.original_duration == 90

    def test_edit_then_freeze(self, deriver):
        deriver.load_booking("09:00", "10:30")
        deriver.end_time_edited()
        assert deriver.start_time_changed("11:00", 45) is None


class TestStateTrace:
    def test_trace_records_each_state(self, deriver):
        deriver.load_booking("09:00", "10:30")
        deriver.end_time_edited()
        assert deriver.get_state_trace() == [
            "tracking_by_services",
            "tracking_by_original_duration",
            "frozen",
        ]

    def test_transition_returns_new_state(self):
        deriver = EndTimeDeriver()
        assert deriver.transition(DerivationTrigger.END_TIME_EDITED) == DerivationState.FROZEN

    def test_every_input_has_a_rule_while_tracking(self):
        for state in (DerivationState.TRACKING_BY_SERVICES,
                      DerivationState.TRACKING_BY_ORIGINAL_DURATION):
            for event in DerivationInput:
                assert (state, event) in RECOMPUTE_RULES
