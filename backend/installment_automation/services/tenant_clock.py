"""Tenant clock: resolve an absolute instant into a tenant's local calendar.

Everything here is pure. Callers pass the reference instant so that tests can
pin it anywhere, including across DST transitions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from installment_automation.core.config import settings
from installment_automation.core.exceptions import InvalidTimezoneError
from installment_automation.models.agency import Agency

MAX_DUE_SOON_DAYS = 30


@dataclass(frozen=True)
class AgencySettings:
    """Automation parameters of one tenant, with defaults applied."""

    agency_id: UUID
    timezone: str
    cutoff_time: time
    due_soon_days: int

    @classmethod
    def from_agency(cls, agency: Agency) -> AgencySettings:
        tz_name = (agency.timezone or "").strip() or settings.DEFAULT_TIMEZONE
        cutoff = agency.overdue_cutoff_time or settings.DEFAULT_CUTOFF_TIME
        days = agency.due_soon_threshold_days
        if days is None:
            days = settings.DEFAULT_DUE_SOON_DAYS
        return cls(
            agency_id=agency.id,  # type: ignore[arg-type]
            timezone=tz_name,
            cutoff_time=cutoff,  # type: ignore[arg-type]
            due_soon_days=int(days),
        )

    @property
    def zone(self) -> ZoneInfo:
        return load_zone(self.timezone)


@dataclass(frozen=True)
class TenantTime:
    """A reference instant seen from one tenant's calendar."""

    now: datetime
    local_now: datetime
    local_date: date
    today_cutoff_at: datetime
    tomorrow_cutoff_at: datetime

    @property
    def cutoff_passed(self) -> bool:
        return self.now > self.today_cutoff_at

    @property
    def due_soon_date(self) -> date:
        """Due date targeted by reminder emails: the tenant's local tomorrow."""
        return self.local_date + timedelta(days=1)


def load_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidTimezoneError(name) from None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def cutoff_instant(local_date: date, cutoff: time, zone: ZoneInfo) -> datetime:
    """Absolute (UTC) instant of ``cutoff`` on ``local_date`` in ``zone``.

    Round-tripping through UTC normalizes wall times that fall inside a
    spring-forward gap.
    """
    local = datetime.combine(local_date, cutoff, tzinfo=zone)
    return local.astimezone(UTC)


def resolve_tenant_time(agency_settings: AgencySettings, now: datetime | None = None) -> TenantTime:
    """Resolve ``now`` into the tenant's local date and cutoff instants."""
    now_utc = _as_utc(now) if now is not None else datetime.now(UTC)
    zone = agency_settings.zone
    local_now = now_utc.astimezone(zone)
    local_date = local_now.date()
    return TenantTime(
        now=now_utc,
        local_now=local_now,
        local_date=local_date,
        today_cutoff_at=cutoff_instant(local_date, agency_settings.cutoff_time, zone),
        tomorrow_cutoff_at=cutoff_instant(
            local_date + timedelta(days=1), agency_settings.cutoff_time, zone
        ),
    )
