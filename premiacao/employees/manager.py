"""
Employee roster management: manual entry, spreadsheet import and bonus preview.
"""
import json
import uuid
import pandas as pd
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

from premiacao.core.upload_manager import UploadManager
from premiacao.core.repositories import EmployeesRepository, PerformanceRepository, PreferencesRepository
from premiacao.core.utils import setup_logging, parse_brl_number
from premiacao.bonus.scales import KPIType, EmployeeRole

class EmployeeManager:
    """Roster operations. Achievements imported alongside go to the monthly history."""

    def __init__(self, tenant_id: str, data_dir: Optional[Union[str, Path]] = None):
        self.tenant_id = tenant_id
        self.repository = EmployeesRepository(tenant_id, data_dir)
        self.performance = PerformanceRepository(tenant_id, data_dir)
        self.preferences = PreferencesRepository(tenant_id, data_dir)
        self.upload_manager = UploadManager(tenant_id, 'bonus_import', data_dir)
        self.audit_logger = self.upload_manager.audit_logger
        self.logger = setup_logging(tenant_id)

    def list_employees(self) -> List[Dict[str, Any]]:
        return self.repository.load_data()

    def get_employee(self, employee_id: str) -> Optional[Dict[str, Any]]:
        return self.repository.find_by_key('id', employee_id)

    def add_employee(self, name: str, base_salary: float, role=EmployeeRole.TEAM) -> Dict[str, Any]:
        name = (name or "").strip().upper()
        if not name:
            raise ValueError("Employee name is required")
        base_salary = float(base_salary or 0)
        if base_salary <= 0:
            raise ValueError("Base salary must be greater than zero")

        employee = {
            'id': uuid.uuid4().hex[:12],
            'name': name,
            'base_salary': base_salary,
            'role': EmployeeRole.from_label(role).value,
        }
        self.repository.bulk_upsert([dict(employee)])
        self.audit_logger.log_data_change('employees', 'create', employee['id'], employee)
        self.logger.info("Employee %s added (%s)", employee['id'], employee['role'])
        return employee

    def update_employee(self, employee_id: str, **changes) -> Dict[str, Any]:
        current = self.get_employee(employee_id)
        if current is None:
            raise ValueError(f"Employee not found: {employee_id}")

        update = {'id': employee_id}
        if 'name' in changes:
            name = (changes['name'] or "").strip().upper()
            if not name:
                raise ValueError("Employee name is required")
            update['name'] = name
        if 'base_salary' in changes:
            salary = float(changes['base_salary'] or 0)
            if salary < 0:
                raise ValueError("Base salary cannot be negative")
            update['base_salary'] = salary
        if 'role' in changes:
            update['role'] = EmployeeRole.from_label(changes['role']).value

        self.repository.bulk_upsert([update])
        self.audit_logger.log_data_change('employees', 'update', employee_id, update)
        self.logger.info("Employee %s updated: %s", employee_id, sorted(k for k in update if k != 'id'))
        return self.get_employee(employee_id)

    def remove_employee(self, employee_id: str) -> bool:
        removed = self.repository.delete(employee_id)
        if removed:
            months = self.performance.remove_employee(employee_id)
            self.audit_logger.log_data_change('employees', 'delete', employee_id, {'months_cleared': months})
            self.logger.info("Employee %s removed (%d months of history cleared)", employee_id, months)
        return removed

    def get_template(self) -> pd.DataFrame:
        return self.upload_manager.generate_template()

    def salaries_visible(self) -> bool:
        return bool(self.preferences.get('show_salaries', True))

    def set_salaries_visible(self, visible: bool):
        self.preferences.set('show_salaries', bool(visible))
        self.logger.info("Salary visibility set to %s", bool(visible))

    @staticmethod
    def _transform_import(df: pd.DataFrame) -> pd.DataFrame:
        """Normalise imported cells: role labels, Brazilian numbers, missing KPI columns."""
        df = df.copy()
        if 'name' not in df.columns:
            df['name'] = ""
        if 'role' in df.columns:
            df['role'] = [EmployeeRole.from_label(v).value for v in df['role']]
        else:
            df['role'] = EmployeeRole.TEAM.value
        numeric_fields = ['base_salary'] + [kpi.value for kpi in KPIType]
        for field_name in numeric_fields:
            if field_name in df.columns:
                df[field_name] = [parse_brl_number(v) for v in df[field_name]]
            else:
                df[field_name] = 0.0
        return df

    def import_spreadsheet(self, file_path: Union[str, Path], month: str, filename: Optional[str] = None) -> Dict[str, Any]:
        """
        Import roster and achievements for one month.

        Employees are matched by (upper-cased) name: existing ones get their
        salary and role refreshed, new ones are created. Each imported row
        replaces that employee's achievements for the month.
        """
        upload_result = self.upload_manager.process_upload(
            file_path=file_path,
            month=month,
            transform_fn=self._transform_import,
            filename=filename
        )

        if not upload_result.success:
            return {
                'success': False,
                'upload_result': upload_result.to_dict(),
                'employee_stats': None,
                'performance_stats': None
            }

        with open(upload_result.staging_file, 'r', encoding='utf-8') as f:
            staged_rows = json.load(f)['data']

        existing_by_name = {e.get('name'): e for e in self.repository.load_data()}
        employee_records = []
        performance_records = []

        for row in staged_rows:
            name = row['name']
            employee = existing_by_name.get(name)
            employee_id = employee['id'] if employee else uuid.uuid4().hex[:12]
            record = {
                'id': employee_id,
                'name': name,
                'base_salary': float(row.get('base_salary', 0.0)),
                'role': row.get('role', EmployeeRole.TEAM.value),
            }
            existing_by_name[name] = record
            employee_records.append(record)

            achievements = {kpi.value: float(row.get(kpi.value, 0.0)) for kpi in KPIType}
            performance_records.append(dict(achievements, month=month, employee_id=employee_id))

        employee_stats = self.repository.bulk_upsert(employee_records)
        performance_stats = self.performance.bulk_upsert(performance_records)

        self.logger.info(
            "Imported %d rows for %s (%d employees created, %d updated, %d rows rejected)",
            upload_result.processed_rows, month,
            employee_stats['created'], employee_stats['updated'], upload_result.error_rows
        )

        return {
            'success': True,
            'upload_result': upload_result.to_dict(),
            'employee_stats': employee_stats,
            'performance_stats': performance_stats,
            'total_employees': self.repository.get_count()
        }

    def get_upload_history(self) -> List[Dict[str, Any]]:
        return self.audit_logger.get_upload_history(entity_type='bonus_import')
