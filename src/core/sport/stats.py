# src/core/sport/stats.py
"""
Обзор, профиль и статистика раздела "Спорт".

- overview: тренировки месяца, имя, цель и последний вес
- profile / update_profile: цель, вес с историей, размеры и состав тела
- workout_stats / current_workout: итоги одной тренировки
- body_stats: ряды замеров для графиков
- overview_stats: карточки недели или месяца против прошлого периода
"""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime, timedelta
from typing import Any, Optional
from zoneinfo import ZoneInfo

from asyncpg import Record

from src.common.constants import (
    BODY_COMP_LIMITS,
    BODY_SIZE_LIMITS,
    COMP_KIND_PREFIX,
    OVERVIEW_MIN_YEAR,
    OVERVIEW_WORKOUTS_LIMIT,
    SIZE_KIND_PREFIX,
    WEIGHT_HISTORY_LIMIT,
    WEIGHT_KIND,
    WEIGHT_MAX_KG,
    WEIGHT_UNIT,
    StatsPeriod,
    TypeMsg,
    WorkoutType,
)
from src.common.errors import MalformedInput, NotFound
from src.common.logger import log_info
from src.common.parsing import clean_str, is_ymd, to_float, to_id_or_none, to_int_or_none
from src.core.sport.models import MeasurementDraft, ProfilePatchIn
from src.core.sport.repository import ProfileRepository, WorkoutRepository
from src.core.sport.service import group_sets, workout_to_dict
from src.core.users.repository import UserRepository

Range = tuple[date, date]


def round_tenth(value: float) -> float:
    """Округление до 0.1, половина вверх."""
    return math.floor(value * 10 + 0.5) / 10


def _to_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"not a number: {value!r}")
    n = float(str(value).strip().replace(",", "."))
    if not math.isfinite(n):
        raise ValueError(f"not finite: {value!r}")
    return n


def parse_weight(value: Any) -> float:
    """Вес в кг: (0, 500], округлён до 0.1. Иначе ValueError."""
    n = _to_number(value)
    if n <= 0 or n > WEIGHT_MAX_KG:
        raise ValueError(f"weight out of range: {n}")
    return round_tenth(n)


def parse_measure(value: Any, lo: float, hi: float) -> Optional[float]:
    """
    Значение замера.
    None и пустая строка -> None (замер за дату удаляется), вне [lo, hi] -> ValueError.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    n = _to_number(value)
    if n < lo or n > hi:
        raise ValueError(f"value out of range: {n}")
    return round_tenth(n)


def parse_measured_date(value: Any, today: date) -> date:
    """YYYY-MM-DD или ISO дата-время -> дата; иначе today."""
    s = clean_str(value)
    if is_ymd(s):
        return date.fromisoformat(s)
    if not s:
        return today
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        return today


def measurement_drafts(
    values: dict[str, Any],
    prefix: str,
    limits: dict[str, tuple[float, float, str]],
    today: date,
) -> list[MeasurementDraft]:
    """
    Замеры группы (размеры или состав тела) на одну дату.

    Raises:
        MalformedInput: BAD_VALUE (с полем field)
    """
    measured_at = parse_measured_date(values.get("measured_at"), today)
    drafts = []
    for field, (lo, hi, unit) in limits.items():
        try:
            value = parse_measure(values.get(field), lo, hi)
        except ValueError as e:
            raise MalformedInput("BAD_VALUE", field=field) from e
        drafts.append(MeasurementDraft(kind=prefix + field, value=value, unit=unit, measured_at=measured_at))
    return drafts


def best_set(sets: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Лучший подход: максимальный вес, при равенстве больше повторов."""
    best = None
    for s in sets:
        reps = s["reps"] or 0
        weight = s["weight"] or 0.0
        if reps <= 0 or weight < 0:
            continue
        if best is None or (weight, reps) > (best["weight"], best["reps"]):
            best = {"weight": weight, "reps": reps}
    return best


def set_volume(sets: list[dict[str, Any]]) -> float:
    """Объём: сумма weight * reps по подходам с повторами."""
    return sum((s["weight"] or 0.0) * (s["reps"] or 0) for s in sets if (s["reps"] or 0) > 0)


def stats_ranges(period: StatsPeriod, anchor: date) -> tuple[Range, Range]:
    """
    Текущий и прошлый периоды, обе границы включительно.

    week: с понедельника по anchor и такой же отрезок неделей раньше.
    month: с 1-го числа по anchor и с 1-го по тот же день прошлого месяца
    (день обрезается по длине месяца).
    """
    if period == StatsPeriod.WEEK:
        start = anchor - timedelta(days=anchor.weekday())
        prev_start = start - timedelta(days=7)
        return (start, anchor), (prev_start, prev_start + (anchor - start))

    if anchor.month == 1:
        year, month = anchor.year - 1, 12
    else:
        year, month = anchor.year, anchor.month - 1
    prev_anchor = date(year, month, min(anchor.day, calendar.monthrange(year, month)[1]))
    return (anchor.replace(day=1), anchor), (prev_anchor.replace(day=1), prev_anchor)


def make_card(current: float, prev: float) -> dict[str, Any]:
    delta = current - prev
    if delta > 0:
        trend = "up"
    elif delta < 0:
        trend = "down"
    else:
        trend = "same"
    return {"current": current, "prev": prev, "delta": delta, "trend": trend}


def _latest_group(
    latest: dict[str, Record],
    prefix: str,
    fields: dict[str, tuple[float, float, str]],
) -> dict[str, Any]:
    # measured_at группы - дата первого заполненного поля
    group: dict[str, Any] = {
        "measured_at": next((latest[prefix + f]["measured_at"] for f in fields if prefix + f in latest), None),
    }
    for field in fields:
        row = latest.get(prefix + field)
        group[field] = to_float(row["value"]) if row else None
    return group


def _range_dict(r: Range) -> dict[str, date]:
    return {"from": r[0], "to": r[1]}


SIZE_KINDS = [SIZE_KIND_PREFIX + f for f in BODY_SIZE_LIMITS]
COMP_KINDS = [COMP_KIND_PREFIX + f for f in BODY_COMP_LIMITS]


class SportStatsService:
    """Обзор, профиль и статистика тренировок пользователя."""

    def __init__(
        self,
        workouts: WorkoutRepository,
        profile: ProfileRepository,
        users: UserRepository,
        timezone: str = "Europe/Moscow",
    ) -> None:
        self._workouts = workouts
        self._profile = profile
        self._users = users
        self._tz = ZoneInfo(timezone)

    def today(self) -> date:
        """Текущая дата в часовом поясе приложения."""
        return datetime.now(self._tz).date()

    # ---------- обзор ----------

    async def overview(self, user_id: int, year: Any = None, month: Any = None) -> dict[str, Any]:
        """
        Обзор месяца. Некорректные year/month заменяются текущими.
        """
        now = self.today()
        y = to_int_or_none(year)
        if y is None or not OVERVIEW_MIN_YEAR < y < 9999:
            y = now.year
        m = to_int_or_none(month)
        if m is None or not 1 <= m <= 12:
            m = now.month

        start = date(y, m, 1)
        next_start = date(y + 1, 1, 1) if m == 12 else date(y, m + 1, 1)

        user = await self._users.get_by_id(user_id)
        goal = await self._profile.get_goal(user_id)
        weights = await self._profile.latest_by_kind(user_id, [WEIGHT_KIND])
        rows = await self._workouts.list_in_range(user_id, start, next_start, OVERVIEW_WORKOUTS_LIMIT)

        return {
            "firstName": user.first_name if user else None,
            "goal": goal,
            "weight": to_float(weights[0]["value"]) if weights else None,
            "month": {
                "year": y,
                "month": m,
                "startISO": start.isoformat(),
                "nextISO": next_start.isoformat(),
            },
            "workouts": [{**workout_to_dict(row), "completed_at": row["completed_at"]} for row in rows],
        }

    # ---------- профиль ----------

    async def profile(self, user_id: int) -> dict[str, Any]:
        goal = await self._profile.get_goal(user_id)

        # из БД новые сверху, в ответе по возрастанию даты
        history = [
            {"value": to_float(row["value"]), "measured_at": row["measured_at"]}
            for row in reversed(await self._profile.weight_history(user_id, WEIGHT_HISTORY_LIMIT))
        ]
        last = history[-1] if history else None

        latest = {row["kind"]: row for row in await self._profile.latest_by_kind(user_id, SIZE_KINDS + COMP_KINDS)}

        return {
            "goal": goal or "",
            "weight": last["value"] if last else None,
            "weight_at": last["measured_at"] if last else None,
            "weight_history": history,
            "body_sizes": _latest_group(latest, SIZE_KIND_PREFIX, BODY_SIZE_LIMITS),
            "body_comp": _latest_group(latest, COMP_KIND_PREFIX, BODY_COMP_LIMITS),
        }

    async def update_profile(self, user_id: int, payload: ProfilePatchIn) -> dict[str, Any]:
        """
        Частичное обновление профиля.

        Всё проверяется до записи; запись одной транзакцией.

        Raises:
            MalformedInput: NO_FIELDS, BAD_WEIGHT, BAD_VALUE (с полем field)
        """
        sent = payload.model_fields_set
        if not sent & {"goal", "weight", "body_sizes", "body_comp"}:
            raise MalformedInput("NO_FIELDS")

        today = self.today()
        goal = clean_str(payload.goal) if "goal" in sent else None
        measurements: list[MeasurementDraft] = []

        if "weight" in sent and payload.weight is not None:
            try:
                weight = parse_weight(payload.weight)
            except ValueError as e:
                raise MalformedInput("BAD_WEIGHT") from e
            measurements.append(
                MeasurementDraft(
                    kind=WEIGHT_KIND,
                    value=weight,
                    unit=WEIGHT_UNIT,
                    measured_at=parse_measured_date(payload.measured_at, today),
                )
            )

        if "body_sizes" in sent:
            measurements += measurement_drafts(payload.body_sizes or {}, SIZE_KIND_PREFIX, BODY_SIZE_LIMITS, today)
        if "body_comp" in sent:
            measurements += measurement_drafts(payload.body_comp or {}, COMP_KIND_PREFIX, BODY_COMP_LIMITS, today)

        if await self._profile.apply(user_id, goal, measurements):
            await log_info(f"Профиль обновлён (user={user_id})", type_msg=TypeMsg.DEBUG)
        return await self.profile(user_id)

    # ---------- статистика ----------

    async def workout_stats(self, user_id: int, raw_id: Any) -> dict[str, Any]:
        """
        Число упражнений и общий тоннаж тренировки (у кардио 0).

        Raises:
            MalformedInput: BAD_WORKOUT_ID
            NotFound: NOT_FOUND
        """
        workout_id = to_id_or_none(raw_id)
        if workout_id is None:
            raise MalformedInput("BAD_WORKOUT_ID")

        workout = await self._workouts.get(user_id, workout_id)
        if workout is None:
            raise NotFound()

        exercise_rows = await self._workouts.get_exercises(workout_id)
        total = 0.0
        if workout["type"] == WorkoutType.STRENGTH.value and exercise_rows:
            set_rows = await self._workouts.get_sets([row["id"] for row in exercise_rows])
            total = sum((to_float(s["weight"]) or 0.0) * (s["reps"] or 0) for s in set_rows)

        return {
            "workoutId": workout_id,
            "type": workout["type"],
            "exerciseCount": len(exercise_rows),
            "totalWeight": total,
        }

    async def current_workout(self, user_id: int, raw_id: Any) -> dict[str, Any]:
        """
        Тренировка с подходами, лучшим подходом и объёмом по каждому упражнению.

        Raises:
            MalformedInput: BAD_ID
            NotFound: WORKOUT_NOT_FOUND
        """
        workout_id = to_id_or_none(raw_id)
        if workout_id is None:
            raise MalformedInput("BAD_ID")

        workout = await self._workouts.get(user_id, workout_id)
        if workout is None:
            raise NotFound("WORKOUT_NOT_FOUND")

        exercise_rows = await self._workouts.get_exercises(workout_id)
        set_rows = await self._workouts.get_sets([row["id"] for row in exercise_rows])
        sets_by_exercise = group_sets(set_rows)

        exercises = []
        for row in exercise_rows:
            sets = sets_by_exercise.get(row["id"], [])
            exercises.append(
                {
                    "workout_exercise_id": row["id"],
                    "exercise_id": row["exercise_id"],
                    "name": clean_str(row["name"]),
                    "order_index": row["order_index"],
                    "note": row["note"],
                    "sets": sets,
                    "best_set": best_set(sets),
                    "volume": set_volume(sets),
                    "sets_count": len(sets),
                }
            )

        workout_type = WorkoutType.CARDIO.value if workout["type"] == WorkoutType.CARDIO.value else WorkoutType.STRENGTH.value
        return {
            "workout": {**workout_to_dict(workout), "type": workout_type, "completed_at": workout["completed_at"]},
            "exercises": exercises,
            "totals": {
                "exCount": len(exercises),
                "setCount": sum(e["sets_count"] for e in exercises),
                "totalVolume": sum(e["volume"] for e in exercises),
            },
        }

    async def body_stats(self, user_id: int) -> dict[str, Any]:
        """Ряды веса, размеров и состава тела (по точке на дату)."""
        points: dict[str, list[dict[str, Any]]] = {kind: [] for kind in [WEIGHT_KIND, *SIZE_KINDS, *COMP_KINDS]}
        for row in await self._profile.series(user_id, list(points)):
            points.setdefault(row["kind"], []).append({"date": row["measured_at"], "value": to_float(row["value"])})

        dates = [p["date"] for series in points.values() for p in series]
        return {
            "range": {"from": min(dates) if dates else None, "to": max(dates) if dates else None},
            "data": {
                "weight": points[WEIGHT_KIND],
                "sizes": {f: points[SIZE_KIND_PREFIX + f] for f in BODY_SIZE_LIMITS},
                "comp": {f: points[COMP_KIND_PREFIX + f] for f in BODY_COMP_LIMITS},
            },
        }

    async def overview_stats(self, user_id: int, period: Any = None, anchor: Any = None) -> dict[str, Any]:
        """
        Карточки workouts, tonnage, sets, duration (минуты) за период и прошлый период.

        Raises:
            MalformedInput: UNSUPPORTED_PERIOD
        """
        raw_period = clean_str(period) or StatsPeriod.WEEK.value
        if raw_period not in (StatsPeriod.WEEK.value, StatsPeriod.MONTH.value):
            raise MalformedInput("UNSUPPORTED_PERIOD")

        raw_anchor = clean_str(anchor)
        anchor_day = date.fromisoformat(raw_anchor) if is_ymd(raw_anchor) else self.today()

        current, prev = stats_ranges(StatsPeriod(raw_period), anchor_day)
        cur_totals = await self._totals(user_id, current)
        prev_totals = await self._totals(user_id, prev)

        return {
            "range": {"current": _range_dict(current), "prev": _range_dict(prev)},
            "cards": {key: make_card(cur_totals[key], prev_totals[key]) for key in cur_totals},
        }

    async def _totals(self, user_id: int, r: Range) -> dict[str, float]:
        row = await self._workouts.range_totals(user_id, r[0], r[1] + timedelta(days=1))
        return {
            "workouts": int(row["workouts"]),
            "tonnage": to_float(row["tonnage"]) or 0.0,
            "sets": int(row["sets"]),
            "duration": to_float(row["duration"]) or 0.0,
        }
