import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping, Optional

from premiacao.core.config import settings
from premiacao.bonus.scales import (
    KPIType, EmployeeRole, KPI_PERIOD_MULTIPLIER,
    MIN_ATTAINING, MAX_ATTAINING, bracket_map, check_team_strategy, resolve_scale,
)

@dataclass(frozen=True)
class CalculationResult:
    kpi_type: KPIType
    achievement: float
    bonus_percentage: float
    bonus_value: float

    def to_dict(self):
        d = asdict(self)
        d["kpi_type"] = getattr(self.kpi_type, "value", self.kpi_type)
        return d

def get_bonus_percentage(kpi_type, achievement: float, role, *, team_strategy: Optional[str] = None) -> float:
    # a bad strategy is a configuration error, bad data only zeroes the result
    strategy = check_team_strategy(settings.TEAM_SCALE_STRATEGY if team_strategy is None else team_strategy)
    kpi = KPIType.coerce(kpi_type)
    if kpi is None:
        return 0.0
    try:
        achievement = float(achievement)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(achievement):
        return 0.0
    attaining = math.floor(achievement)
    if attaining < MIN_ATTAINING:
        return 0.0
    attaining = min(attaining, MAX_ATTAINING)
    scale, divisor = resolve_scale(kpi, EmployeeRole.from_label(role), strategy)
    return bracket_map(scale)[attaining] / divisor

def calculate_bonus_value(kpi_type, base_salary: float, percentage: float) -> float:
    kpi = KPIType.coerce(kpi_type)
    multiplier = KPI_PERIOD_MULTIPLIER.get(kpi, 1)
    return (base_salary * multiplier * percentage) / 100

def evaluate(kpi_type, achievement: float, role, base_salary: float, *, team_strategy: Optional[str] = None) -> CalculationResult:
    pct = get_bonus_percentage(kpi_type, achievement, role, team_strategy=team_strategy)
    return CalculationResult(
        kpi_type=KPIType.coerce(kpi_type) or kpi_type,
        achievement=achievement,
        bonus_percentage=pct,
        bonus_value=calculate_bonus_value(kpi_type, base_salary, pct),
    )

class BonusEngine:
    def __init__(self, tenant_id: str, team_strategy: Optional[str] = None):
        self.tenant_id = tenant_id
        self.team_strategy = check_team_strategy(team_strategy) if team_strategy is not None else None

    def evaluate_employee(self, employee: Mapping[str, Any], performance: Optional[Mapping] = None) -> List[CalculationResult]:
        performance = performance or {}
        role = employee.get("role", EmployeeRole.TEAM)
        salary = float(employee.get("base_salary", 0.0) or 0.0)
        results = []
        for kpi in KPIType:
            achievement = performance.get(kpi.value, 0.0) or 0.0
            results.append(evaluate(kpi, achievement, role, salary, team_strategy=self.team_strategy))
        return results

    @staticmethod
    def total_bonus(results: List[CalculationResult]) -> float:
        return sum(r.bonus_value for r in results)

    def run_month(self, employees: List[Dict], month_performance: Mapping[str, Mapping]) -> List[Dict]:
        rows = []
        for e in employees:
            results = self.evaluate_employee(e, month_performance.get(e.get("id"), {}))
            salary = float(e.get("base_salary", 0.0) or 0.0)
            total = self.total_bonus(results)
            row = {
                "employee_id": e.get("id"),
                "name": e.get("name", ""),
                "role": EmployeeRole.from_label(e.get("role")).value,
                "base_salary": salary,
            }
            for r in results:
                row[f"{r.kpi_type.value}_achievement"] = r.achievement
                row[f"{r.kpi_type.value}_percentage"] = r.bonus_percentage
                row[f"{r.kpi_type.value}_value"] = round(r.bonus_value, 2)
            row["total_bonus"] = round(total, 2)
            row["total_gross"] = round(salary + total, 2)
            rows.append(row)
        return rows
