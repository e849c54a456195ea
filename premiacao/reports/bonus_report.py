from pathlib import Path
from typing import Dict, Any, Optional, Union
import pandas as pd

from premiacao.core.config import settings
from premiacao.core.repositories import EmployeesRepository
from premiacao.core.utils import setup_logging, format_decimal_comma
from premiacao.bonus.scales import KPIType
from premiacao.performance.manager import PerformanceManager

# Column suffix per KPI, in export order
REPORT_KPIS = [
    (KPIType.MONTHLY_BSC, "BSC"),
    (KPIType.MONTHLY_MAT, "MAT"),
    (KPIType.QUARTERLY_GERENCIAL, "Trim."),
    (KPIType.ANNUAL_EBITDA, "EBITDA"),
]

def export_filename(month: str) -> str:
    return f"Relatorio_RH_Completo_{month}.csv"

class BonusReports:
    def __init__(self, tenant_id: str, data_dir: Optional[Union[str, Path]] = None, team_strategy: Optional[str] = None):
        self.tenant_id = tenant_id
        self.employees = EmployeesRepository(tenant_id, data_dir)
        self.performance = PerformanceManager(tenant_id, data_dir, team_strategy=team_strategy)
        self.logger = setup_logging(tenant_id)

    def columns(self):
        cols = ["Nome", "Perfil", "Salário"]
        for _, suffix in REPORT_KPIS:
            cols += [f"Ating. {suffix}", f"Prêmio {suffix}"]
        return cols + ["Total Premiação", "Total Bruto"]

    def month_table(self, month: str) -> pd.DataFrame:
        employees = self.employees.load_data()
        if not employees:
            return pd.DataFrame(columns=self.columns())
        run = self.performance.engine.run_month(employees, self.performance.get_month_performance(month))
        rows = []
        for r in run:
            row = {"Nome": r["name"], "Perfil": r["role"], "Salário": r["base_salary"]}
            for kpi, suffix in REPORT_KPIS:
                row[f"Ating. {suffix}"] = r[f"{kpi.value}_achievement"]
                row[f"Prêmio {suffix}"] = r[f"{kpi.value}_value"]
            row["Total Premiação"] = r["total_bonus"]
            row["Total Bruto"] = r["total_gross"]
            rows.append(row)
        return pd.DataFrame(rows, columns=self.columns())

    def summary(self, month: str) -> Dict[str, Any]:
        df = self.month_table(month)
        by_kpi = {kpi.value: round(float(df[f"Prêmio {suffix}"].sum()), 2) if not df.empty else 0.0
                  for kpi, suffix in REPORT_KPIS}
        return {
            "month": month,
            "employees": len(df),
            "by_kpi": by_kpi,
            "total_bonus": round(float(df["Total Premiação"].sum()), 2) if not df.empty else 0.0,
            "total_salary": round(float(df["Salário"].sum()), 2) if not df.empty else 0.0,
            "total_gross": round(float(df["Total Bruto"].sum()), 2) if not df.empty else 0.0,
        }

    def _formatted_rows(self, month: str):
        df = self.month_table(month)
        for _, row in df.iterrows():
            cells = [str(row["Nome"]), str(row["Perfil"]), format_decimal_comma(row["Salário"])]
            for _, suffix in REPORT_KPIS:
                cells.append(format_decimal_comma(row[f"Ating. {suffix}"]) + "%")
                cells.append(format_decimal_comma(row[f"Prêmio {suffix}"]))
            cells.append(format_decimal_comma(row["Total Premiação"]))
            cells.append(format_decimal_comma(row["Total Bruto"]))
            yield cells

    def export_csv(self, month: str, delimiter: Optional[str] = None) -> str:
        """Spreadsheet-friendly CSV: BOM, ';' separated, decimal comma."""
        delimiter = delimiter or settings.EXPORT_DELIMITER
        lines = [delimiter.join(self.columns())]
        lines += [delimiter.join(cells) for cells in self._formatted_rows(month)]
        self.logger.info("Bonus report exported for %s (%d employees)", month, len(lines) - 1)
        return "\ufeff" + "\n".join(lines) + "\n"

    def clipboard_text(self, month: str) -> str:
        lines = ["\t".join(self.columns())]
        lines += ["\t".join(cells) for cells in self._formatted_rows(month)]
        return "\n".join(lines)
