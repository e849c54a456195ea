import math
from pathlib import Path
from typing import Dict, List, Any, Mapping, Optional, Union

from premiacao.core.repositories import PerformanceRepository
from premiacao.core.audit import AuditLogger
from premiacao.core.utils import setup_logging
from premiacao.bonus.scales import KPIType
from premiacao.bonus.engine import BonusEngine, CalculationResult

class PerformanceManager:
    """Monthly KPI achievements per employee, evaluated through the bonus engine."""

    def __init__(self, tenant_id: str, data_dir: Optional[Union[str, Path]] = None, team_strategy: Optional[str] = None):
        self.tenant_id = tenant_id
        self.repository = PerformanceRepository(tenant_id, data_dir)
        self.audit_logger = AuditLogger(tenant_id, data_dir)
        self.engine = BonusEngine(tenant_id, team_strategy=team_strategy)
        self.logger = setup_logging(tenant_id)

    @staticmethod
    def _clean(value) -> float:
        # missing or non-finite achievements count as zero
        try:
            value = float(value)
        except (TypeError, ValueError):
            return 0.0
        return value if math.isfinite(value) else 0.0

    def record_achievement(self, month: str, employee_id: str, kpi, value: float):
        kpi = KPIType(kpi)
        value = self._clean(value)
        self.repository.set_achievement(month, employee_id, kpi, value)
        self.audit_logger.log_data_change('performance', 'update', employee_id, {'month': month, kpi.value: value})
        self.logger.info("Achievement %s=%s recorded for %s in %s", kpi.value, value, employee_id, month)

    def get_employee_performance(self, month: str, employee_id: str) -> Dict[str, float]:
        stored = self.repository.get_month(month).get(employee_id, {})
        return {kpi.value: self._clean(stored.get(kpi.value, 0.0)) for kpi in KPIType}

    def get_month_performance(self, month: str) -> Dict[str, Dict[str, float]]:
        return {
            employee_id: {kpi.value: self._clean(values.get(kpi.value, 0.0)) for kpi in KPIType}
            for employee_id, values in self.repository.get_month(month).items()
        }

    def evaluate(self, month: str, employee: Mapping[str, Any]) -> List[CalculationResult]:
        performance = self.get_employee_performance(month, employee.get('id'))
        return self.engine.evaluate_employee(employee, performance)

    def employee_total(self, month: str, employee: Mapping[str, Any]) -> float:
        return self.engine.total_bonus(self.evaluate(month, employee))
