# src/common/parsing.py
"""
Нормализация пользовательского ввода.

Клиент присылает числа строками ("12,5"), пустые строки вместо null
и т.п., эти функции приводят такие значения к типам БД.
"""

from __future__ import annotations

import math
import re
from datetime import date
from decimal import Decimal
from typing import Any

_YMD_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ID_RE = re.compile(r"[0-9]+")

# Границы целочисленных колонок PostgreSQL
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
BIGINT_MAX = 2**63 - 1


def clean_str(value: Any) -> str:
    """None -> "", остальное -> str без пробелов по краям."""
    if value is None:
        return ""
    return str(value).strip()


def is_ymd(value: str) -> bool:
    """Проверяет формат YYYY-MM-DD и существование даты."""
    if not _YMD_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def to_num_or_none(value: Any) -> float | None:
    """Число с запятой или точкой; пустое/нечисловое -> None."""
    if value is None or isinstance(value, bool):
        return None
    s = str(value).strip().replace(",", ".")
    if not s:
        return None
    try:
        n = float(s)
    except ValueError:
        return None
    return n if math.isfinite(n) else None


def to_int_or_none(value: Any) -> int | None:
    """Целое с отбрасыванием дробной части; пустое/нечисловое -> None."""
    n = to_num_or_none(value)
    if n is None:
        return None
    return math.trunc(n)


def fits_int32(value: int | None) -> bool:
    """Помещается ли значение в колонку INTEGER (None считается допустимым)."""
    return value is None or INT32_MIN <= value <= INT32_MAX


def to_id_or_none(value: Any) -> int | None:
    """
    Положительный идентификатор BIGINT или None.
    Принимаются только десятичные цифры: "1.0", "1e3" и т.п. отклоняются.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        n = value
    else:
        s = str(value).strip()
        if not _ID_RE.fullmatch(s):
            return None
        n = int(s)
    if n <= 0 or n > BIGINT_MAX:
        return None
    return n


def clamp_non_negative(value: int | None) -> int | None:
    if value is None:
        return None
    return max(value, 0)


def time_parts_to_minutes(parts: dict[str, Any] | None) -> int | None:
    """{"d": .., "h": .., "m": ..} -> минуты; None если частей нет."""
    if not parts:
        return None
    days = to_int_or_none(parts.get("d")) or 0
    hours = to_int_or_none(parts.get("h")) or 0
    minutes = to_int_or_none(parts.get("m")) or 0
    return days * 1440 + hours * 60 + minutes


def slugify_id(title: str) -> str:
    """Строка для id категории: нижний регистр, пробелы -> '-', только буквы/цифры."""
    slug = re.sub(r"\s+", "-", title.strip().lower())
    slug = re.sub(r"[^\w-]", "", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug[:48] or "category"


def escape_like(value: str) -> str:
    """Экранирует спецсимволы шаблона LIKE/ILIKE."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def to_float(value: Any) -> float | None:
    """Decimal/число из БД -> float для JSON."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    return float(value)
