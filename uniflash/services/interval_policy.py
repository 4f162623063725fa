"""Spaced-repetition interval computation.

Fixed-duration units (minutes, hours, days) give short re-exposure while
``multiplier`` grows the previous interval exponentially. ``interval_days`` is
a day-granular bookkeeping value: for sub-day units it does not match the
time until ``next_review``, it only serves as the base of later multiplier
ratings. ``max_days`` caps that bookkeeping value but not ``next_review``
unless the policy sets ``strict_cap``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping

from pydantic import ValidationError

from uniflash.models.preferences import IntervalPolicy, IntervalSetting, IntervalUnit, Rating
from uniflash.services.errors import IntervalPolicyError

MINUTES_PER_DAY = 1440
HOURS_PER_DAY = 24


@dataclass(frozen=True)
class ScheduleResult:
    interval_days: int
    next_review: datetime


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def policy_from_mapping(data: Mapping[str, Any]) -> IntervalPolicy:
    try:
        return IntervalPolicy.model_validate(data)
    except ValidationError as exc:
        raise IntervalPolicyError(f"Invalid interval policy: {exc.errors()}") from exc


def _setting_for(policy: IntervalPolicy, rating: Rating | str) -> IntervalSetting:
    try:
        key = Rating(rating).value
    except ValueError as exc:
        raise IntervalPolicyError(f"Unknown rating: {rating!r}") from exc
    setting = getattr(policy, key, None)
    if setting is None:
        raise IntervalPolicyError(f"Interval policy has no setting for {key!r}")
    if setting.value is None or setting.value <= 0:
        raise IntervalPolicyError(f"Interval for {key!r} must be positive, got {setting.value!r}")
    try:
        IntervalUnit(setting.unit)
    except ValueError as exc:
        raise IntervalPolicyError(f"Unknown interval unit for {key!r}: {setting.unit!r}") from exc
    if policy.max_days is None or policy.max_days < 1:
        raise IntervalPolicyError(f"maxDays must be at least 1, got {policy.max_days!r}")
    return setting


def compute_next_schedule(
    rating: Rating | str,
    current_interval_days: int,
    policy: IntervalPolicy,
    now: datetime,
) -> ScheduleResult:
    setting = _setting_for(policy, rating)
    unit = IntervalUnit(setting.unit)
    value = setting.value

    if unit is IntervalUnit.MULTIPLIER:
        raw_interval = max(1, round_half_up(current_interval_days * value))
        offset = timedelta(days=raw_interval)
    elif unit is IntervalUnit.MINUTES:
        raw_interval = max(1, round_half_up(value / MINUTES_PER_DAY))
        offset = timedelta(minutes=value)
    elif unit is IntervalUnit.HOURS:
        raw_interval = max(1, round_half_up(value / HOURS_PER_DAY))
        offset = timedelta(hours=value)
    else:
        raw_interval = max(1, int(value))
        offset = timedelta(days=value)

    interval_days = min(raw_interval, policy.max_days)
    if policy.strict_cap and offset > timedelta(days=policy.max_days):
        offset = timedelta(days=policy.max_days)
    return ScheduleResult(interval_days=interval_days, next_review=now + offset)
