# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class Reason(str, Enum):
    """Стабильные коды причин в ответах API."""
    NO_SESSION = "NO_SESSION"
    DB_ERROR = "DB_ERROR"
    BAD_INPUT = "BAD_INPUT"
    BAD_ID = "BAD_ID"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    DUPLICATE = "DUPLICATE"
    DEV_AUTH_DISABLED = "DEV_AUTH_DISABLED"
    NO_BOT_TOKEN = "NO_BOT_TOKEN_IN_ENV"
    NO_JWT_SECRET = "NO_APP_JWT_SECRET"
    SERVER_ERROR = "SERVER_ERROR"


class WorkoutType(str, Enum):
    """Типы тренировок."""
    STRENGTH = "strength"
    CARDIO = "cardio"


class WorkoutStatus(str, Enum):
    """Статусы тренировки."""
    DRAFT = "draft"
    DONE = "done"


class LoadType(str, Enum):
    """Тип нагрузки упражнения."""
    EXTERNAL = "external"
    BODYWEIGHT = "bodyweight"


class PrepUnit(str, Enum):
    """Единицы учёта заготовок."""
    PORTIONS = "portions"
    PIECES = "pieces"


# Сессия
SESSION_COOKIE_NAME = "session"
SESSION_TTL_DAYS = 7

# Псевдо-категория "без категории" на клиенте, в БД не существует
NONE_CATEGORY_ID = "__none__"

# Шаг order_index при ручной сортировке категорий
CATEGORY_ORDER_STEP = 10

# Подсказки упражнений
EXERCISE_SUGGEST_MIN_CHARS = 2
EXERCISE_SUGGEST_LIMIT = 8

# Заготовки
PREPS_DEFAULT_LIMIT = 500
PREPS_MAX_LIMIT = 2000

WORKOUT_UNTITLED = "Без названия"

# Обзор раздела "Спорт"
OVERVIEW_WORKOUTS_LIMIT = 50
OVERVIEW_MIN_YEAR = 2000

# Замеры тела (sport_measurements.kind)
WEIGHT_KIND = "weight"
WEIGHT_UNIT = "kg"
WEIGHT_MAX_KG = 500
WEIGHT_HISTORY_LIMIT = 15
SIZE_KIND_PREFIX = "size_"
COMP_KIND_PREFIX = "comp_"

# поле -> (минимум, максимум, единица); порядок важен для measured_at группы
BODY_SIZE_LIMITS: dict[str, tuple[float, float, str]] = {
    "chest": (0, 300, "cm"),
    "waist": (0, 300, "cm"),
    "belly": (0, 300, "cm"),
    "pelvis": (0, 300, "cm"),
    "thigh": (0, 300, "cm"),
    "arm": (0, 300, "cm"),
}
BODY_COMP_LIMITS: dict[str, tuple[float, float, str]] = {
    "water": (0, 100, "%"),
    "protein": (0, 100, "%"),
    "minerals": (0, 100, "%"),
    "body_fat": (0, 200, "kg"),
    "bmi": (0, 100, "idx"),
    "fat_percent": (0, 100, "%"),
    "visceral_fat": (0, 100, "idx"),
}


class StatsPeriod(str, Enum):
    """Период карточек статистики."""
    WEEK = "week"
    MONTH = "month"
