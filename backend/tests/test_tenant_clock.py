"""Tests for the tenant clock and the status transition rules."""

import uuid
from datetime import UTC, date, datetime, time, timedelta

import pytest

from installment_automation.core.exceptions import InvalidTimezoneError
from installment_automation.models.agency import Agency
from installment_automation.models.installment import InstallmentStatus
from installment_automation.services.installment_status import evaluate_transition
from installment_automation.services.tenant_clock import (
    AgencySettings,
    cutoff_instant,
    load_zone,
    resolve_tenant_time,
)


def _settings(tz: str = "UTC", cutoff: time = time(17, 0), days: int = 4) -> AgencySettings:
    return AgencySettings(agency_id=uuid.uuid4(), timezone=tz, cutoff_time=cutoff, due_soon_days=days)


class TestAgencySettings:
    def test_defaults_applied_for_null_columns(self):
        agency = Agency(id=uuid.uuid4(), name="A", timezone=None)
        resolved = AgencySettings.from_agency(agency)
        assert resolved.timezone == "UTC"
        assert resolved.cutoff_time == time(17, 0)
        assert resolved.due_soon_days == 4

    def test_blank_timezone_means_utc(self):
        agency = Agency(id=uuid.uuid4(), name="A", timezone="  ")
        assert AgencySettings.from_agency(agency).timezone == "UTC"

    def test_explicit_values_kept(self):
        agency = Agency(
            id=uuid.uuid4(),
            name="A",
            timezone="Australia/Brisbane",
            overdue_cutoff_time=time(15, 30),
            due_soon_threshold_days=0,
        )
        resolved = AgencySettings.from_agency(agency)
        assert resolved.timezone == "Australia/Brisbane"
        assert resolved.cutoff_time == time(15, 30)
        assert resolved.due_soon_days == 0

    def test_unknown_zone_raises_typed_error(self):
        with pytest.raises(InvalidTimezoneError) as exc_info:
            _settings("Mars/Olympus_Mons").zone
        assert exc_info.value.timezone_name == "Mars/Olympus_Mons"
        assert exc_info.value.field_errors[0].field == "timezone"

    def test_load_zone_rejects_garbage(self):
        with pytest.raises(InvalidTimezoneError):
            load_zone("../etc/passwd")


class TestResolveTenantTime:
    def test_local_date_ahead_of_utc(self):
        now = datetime(2025, 1, 14, 15, 0, tzinfo=UTC)
        tt = resolve_tenant_time(_settings("Australia/Brisbane"), now)
        assert tt.local_date == date(2025, 1, 15)
        assert tt.local_now.hour == 1
        assert tt.due_soon_date == date(2025, 1, 16)

    def test_local_date_behind_utc(self):
        now = datetime(2025, 1, 15, 3, 0, tzinfo=UTC)
        tt = resolve_tenant_time(_settings("America/New_York"), now)
        assert tt.local_date == date(2025, 1, 14)

    def test_naive_now_is_treated_as_utc(self):
        naive = datetime(2025, 1, 15, 6, 59)
        tt = resolve_tenant_time(_settings("Australia/Brisbane"), naive)
        assert tt.now == datetime(2025, 1, 15, 6, 59, tzinfo=UTC)
        assert tt.cutoff_passed is False

    def test_cutoff_instants(self):
        now = datetime(2025, 1, 15, 0, 0, tzinfo=UTC)
        tt = resolve_tenant_time(_settings("Australia/Brisbane"), now)
        assert tt.today_cutoff_at == datetime(2025, 1, 15, 7, 0, tzinfo=UTC)
        assert tt.tomorrow_cutoff_at == datetime(2025, 1, 16, 7, 0, tzinfo=UTC)

    def test_cutoff_is_strictly_after(self):
        at_cutoff = datetime(2025, 1, 15, 7, 0, tzinfo=UTC)
        tt = resolve_tenant_time(_settings("Australia/Brisbane"), at_cutoff)
        assert tt.cutoff_passed is False
        tt = resolve_tenant_time(_settings("Australia/Brisbane"), at_cutoff + timedelta(seconds=1))
        assert tt.cutoff_passed is True

    def test_sydney_spring_forward(self):
        zone = load_zone("Australia/Sydney")
        # AEST (+10) the day before, AEDT (+11) from 5 October 2025
        assert cutoff_instant(date(2025, 10, 4), time(17, 0), zone) == datetime(
            2025, 10, 4, 7, 0, tzinfo=UTC
        )
        assert cutoff_instant(date(2025, 10, 5), time(17, 0), zone) == datetime(
            2025, 10, 5, 6, 0, tzinfo=UTC
        )

    def test_new_york_fall_back(self):
        zone = load_zone("America/New_York")
        assert cutoff_instant(date(2025, 11, 1), time(17, 0), zone) == datetime(
            2025, 11, 1, 21, 0, tzinfo=UTC
        )
        assert cutoff_instant(date(2025, 11, 2), time(17, 0), zone) == datetime(
            2025, 11, 2, 22, 0, tzinfo=UTC
        )

    def test_day_before_dst_change_has_23_hour_gap(self):
        now = datetime(2025, 10, 4, 8, 0, tzinfo=UTC)
        tt = resolve_tenant_time(_settings("Australia/Sydney"), now)
        assert tt.tomorrow_cutoff_at - tt.today_cutoff_at == timedelta(hours=23)


class TestEvaluateTransition:
    BRISBANE = _settings("Australia/Brisbane")

    def _tt(self, iso: str):
        return resolve_tenant_time(self.BRISBANE, datetime.fromisoformat(iso))

    def test_due_today_before_cutoff_unchanged(self):
        tt = self._tt("2025-01-15T06:59:00+00:00")  # 16:59 Brisbane
        assert evaluate_transition(date(2025, 1, 15), InstallmentStatus.PENDING, tt) is None

    def test_due_today_after_cutoff_becomes_overdue(self):
        tt = self._tt("2025-01-15T07:01:00+00:00")  # 17:01 Brisbane
        assert (
            evaluate_transition(date(2025, 1, 15), InstallmentStatus.PENDING, tt)
            == InstallmentStatus.OVERDUE
        )

    def test_due_yesterday_is_overdue_before_cutoff(self):
        tt = self._tt("2025-01-15T00:00:00+00:00")
        assert (
            evaluate_transition(date(2025, 1, 14), "pending", tt) == InstallmentStatus.OVERDUE
        )

    def test_future_due_date_unchanged(self):
        tt = self._tt("2025-01-15T12:00:00+00:00")
        assert evaluate_transition(date(2025, 1, 16), InstallmentStatus.PENDING, tt) is None

    @pytest.mark.parametrize(
        "status",
        [
            InstallmentStatus.DRAFT,
            InstallmentStatus.PARTIAL,
            InstallmentStatus.PAID,
            InstallmentStatus.OVERDUE,
            InstallmentStatus.CANCELLED,
        ],
    )
    def test_non_pending_states_never_move(self, status):
        tt = self._tt("2025-03-01T12:00:00+00:00")
        assert evaluate_transition(date(2025, 1, 1), status, tt) is None

    def test_idempotent(self):
        tt = self._tt("2025-01-20T12:00:00+00:00")
        first = evaluate_transition(date(2025, 1, 1), InstallmentStatus.PENDING, tt)
        assert first == InstallmentStatus.OVERDUE
        assert evaluate_transition(date(2025, 1, 1), first, tt) is None
