"""
Bonus scales: achievement (integer %, 90..120) -> base bonus percentage.

Tables are built once at import time and validated; they are immutable tuples
of frozen brackets so they can be shared freely between callers.
"""
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Callable, Dict, Literal, Tuple, get_args

MIN_ATTAINING = 90
MAX_ATTAINING = 120
TEAM_DIVISOR = 2.0

TeamStrategy = Literal["derived", "table"]
TEAM_STRATEGIES = get_args(TeamStrategy)

def check_team_strategy(strategy: str) -> str:
    if strategy not in TEAM_STRATEGIES:
        raise ValueError(f"Unknown team strategy {strategy!r}, expected one of {TEAM_STRATEGIES}")
    return strategy

class KPIType(str, Enum):
    MONTHLY_BSC = "MONTHLY_BSC"
    MONTHLY_MAT = "MONTHLY_MAT"
    QUARTERLY_GERENCIAL = "QUARTERLY_GERENCIAL"
    ANNUAL_EBITDA = "ANNUAL_EBITDA"

    @classmethod
    def coerce(cls, value):
        """KPIType for a member or its value, None when unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

class EmployeeRole(str, Enum):
    MANAGER = "GERENTE"
    TEAM = "EQUIPE"

    @classmethod
    def from_label(cls, value) -> "EmployeeRole":
        if isinstance(value, cls):
            return value
        label = str(value or "").strip().upper()
        if "GERENTE" in label or "MANAGER" in label:
            return cls.MANAGER
        return cls.TEAM

@dataclass(frozen=True)
class PrizeBracket:
    attaining: int
    base_percentage: float

Scale = Tuple[PrizeBracket, ...]

KPI_LABELS: Dict[KPIType, str] = {
    KPIType.MONTHLY_BSC: "Prêmio Mensal - Vendas BSC",
    KPIType.MONTHLY_MAT: "Prêmio Mensal - Gerencial MAT",
    KPIType.QUARTERLY_GERENCIAL: "Prêmio Trimestral - Orçamento Gerencial",
    KPIType.ANNUAL_EBITDA: "Prêmio Anual - EBITDA",
}

# Salary base of each KPI, in months
KPI_PERIOD_MULTIPLIER: Dict[KPIType, int] = {
    KPIType.MONTHLY_BSC: 1,
    KPIType.MONTHLY_MAT: 1,
    KPIType.QUARTERLY_GERENCIAL: 3,
    KPIType.ANNUAL_EBITDA: 12,
}

def _build_scale(fn: Callable[[int], float]) -> Scale:
    return tuple(
        PrizeBracket(attaining=a, base_percentage=fn(a))
        for a in range(MIN_ATTAINING, MAX_ATTAINING + 1)
    )

def annual_ebitda_multiplier(attaining: int) -> float:
    """Annual bonus as a multiple of the monthly salary."""
    if attaining < 95:
        return 0.25 + 0.05 * (attaining - 90)
    if attaining <= 100:
        return 0.50 + 0.10 * (attaining - 95)
    return 1.00 + 0.05 * (attaining - 100)

# Monthly BSC / MAT: 5% at 90 up to 20% at 120
MONTHLY_SCALE_MANAGER: Scale = _build_scale(lambda a: 5 + 0.5 * (a - 90))
MONTHLY_SCALE_TEAM: Scale = _build_scale(lambda a: 2.5 + 0.25 * (a - 90))

# Quarterly management budget: 10% at 90 up to 40% at 120
QUARTERLY_SCALE_MANAGER: Scale = _build_scale(lambda a: 10 + (a - 90))

_QUARTERLY_TEAM_VALUES = [
    2.1, 2.5, 2.9, 3.3, 3.7, 4.2, 5.0, 5.8, 6.7, 7.5,
    8.3, 8.7, 9.2, 9.6, 10.0, 10.4, 10.8, 11.2, 11.7, 12.1,
    12.5, 12.9, 13.3, 13.7, 14.2, 14.6, 15.0, 15.4, 15.8, 16.2,
    16.7,
]
QUARTERLY_SCALE_TEAM: Scale = tuple(
    PrizeBracket(attaining=MIN_ATTAINING + i, base_percentage=pct)
    for i, pct in enumerate(_QUARTERLY_TEAM_VALUES)
)

# Percent of the annual (12x) salary, identical for both roles
ANNUAL_EBITDA_SCALE: Scale = _build_scale(lambda a: annual_ebitda_multiplier(a) / 12 * 100)

ALL_SCALES: Dict[str, Scale] = {
    "monthly_manager": MONTHLY_SCALE_MANAGER,
    "monthly_team": MONTHLY_SCALE_TEAM,
    "quarterly_manager": QUARTERLY_SCALE_MANAGER,
    "quarterly_team": QUARTERLY_SCALE_TEAM,
    "annual_ebitda": ANNUAL_EBITDA_SCALE,
}

def validate_scale(scale: Scale, name: str = "scale") -> None:
    expected = list(range(MIN_ATTAINING, MAX_ATTAINING + 1))
    points = [b.attaining for b in scale]
    if points != expected:
        raise ValueError(f"{name}: brackets must cover {MIN_ATTAINING}..{MAX_ATTAINING} once, in order")
    previous = None
    for bracket in scale:
        if bracket.base_percentage < 0:
            raise ValueError(f"{name}: negative percentage at {bracket.attaining}%")
        if previous is not None and bracket.base_percentage < previous:
            raise ValueError(f"{name}: percentage decreases at {bracket.attaining}%")
        previous = bracket.base_percentage

for _name, _scale in ALL_SCALES.items():
    validate_scale(_scale, _name)

@lru_cache(maxsize=None)
def bracket_map(scale: Scale) -> Dict[int, float]:
    return {b.attaining: b.base_percentage for b in scale}

def resolve_scale(kpi_type: KPIType, role: EmployeeRole, strategy: str = "derived") -> Tuple[Scale, float]:
    """
    Scale and divisor for a (KPI, role) pair.

    With the "derived" strategy the team reads the manager scale and divides by
    two; with "table" it reads its own table (divisor 1). The annual scale
    ignores the role. Any other strategy raises ValueError.
    """
    check_team_strategy(strategy)
    is_manager = role == EmployeeRole.MANAGER
    if kpi_type in (KPIType.MONTHLY_BSC, KPIType.MONTHLY_MAT):
        if is_manager:
            return MONTHLY_SCALE_MANAGER, 1.0
        if strategy == "table":
            return MONTHLY_SCALE_TEAM, 1.0
        return MONTHLY_SCALE_MANAGER, TEAM_DIVISOR
    if kpi_type == KPIType.QUARTERLY_GERENCIAL:
        if is_manager:
            return QUARTERLY_SCALE_MANAGER, 1.0
        if strategy == "table":
            return QUARTERLY_SCALE_TEAM, 1.0
        return QUARTERLY_SCALE_MANAGER, TEAM_DIVISOR
    if kpi_type == KPIType.ANNUAL_EBITDA:
        return ANNUAL_EBITDA_SCALE, 1.0
    raise KeyError(kpi_type)
