"""
Repository layer: JSON-file persistence for the roster and the monthly
achievement history. The bonus engine never reads these directly.
"""
import json
import logging
import pandas as pd
from pathlib import Path
from typing import Dict, List, Any, Optional, Union
from datetime import datetime
from abc import ABC, abstractmethod

from premiacao.core.config import settings
from premiacao.core.utils import atomic_write_json
from premiacao.bonus.scales import KPIType

logger = logging.getLogger(__name__)

class BaseRepository(ABC):
    """Base repository with common data persistence patterns."""

    def __init__(self, tenant_id: str, entity_type: str, data_dir: Optional[Union[str, Path]] = None):
        self.tenant_id = tenant_id
        self.entity_type = entity_type

        self.data_dir = Path(data_dir or settings.DATA_DIR)
        self.entity_dir = self.data_dir / entity_type
        self.archive_dir = self.entity_dir / "archive"

        for dir_path in [self.entity_dir, self.archive_dir]:
            dir_path.mkdir(parents=True, exist_ok=True)

    def _get_data_file(self) -> Path:
        return self.entity_dir / f"{self.tenant_id}_{self.entity_type}.json"

    def _get_archive_file(self) -> Path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        return self.archive_dir / f"{self.tenant_id}_{self.entity_type}_{timestamp}.json"

    def load_data(self) -> List[Dict[str, Any]]:
        """Load current data from JSON file."""
        data_file = self._get_data_file()
        if not data_file.exists():
            return []

        try:
            with open(data_file, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, FileNotFoundError):
            logger.warning("Unreadable data file %s, treating as empty", data_file)
            return []

    def save_data(self, data: List[Dict[str, Any]], create_backup: bool = True) -> bool:
        """Save data to JSON file with optional backup."""
        if create_backup and self._get_data_file().exists():
            self._create_backup()

        atomic_write_json(self._get_data_file(), data)
        return True

    def _create_backup(self) -> bool:
        current_data = self.load_data()
        if current_data:
            with open(self._get_archive_file(), 'w', encoding='utf-8') as f:
                json.dump(current_data, f, indent=2, default=str, ensure_ascii=False)
        return True

    def export_to_excel(self, file_path: Union[str, Path]) -> bool:
        data = self.load_data()
        if not data:
            return False
        pd.DataFrame(data).to_excel(file_path, index=False)
        return True

    def get_count(self) -> int:
        return len(self.load_data())

    @abstractmethod
    def bulk_upsert(self, records: List[Dict[str, Any]], key_field: str) -> Dict[str, int]:
        """Bulk upsert records. Must be implemented by subclasses."""
        pass

    @abstractmethod
    def find_by_key(self, key_field: str, key_value: Any) -> Optional[Dict[str, Any]]:
        """Find single record by key field. Must be implemented by subclasses."""
        pass

class EmployeesRepository(BaseRepository):
    """Roster: records of {id, name, base_salary, role}."""

    def __init__(self, tenant_id: str, data_dir: Optional[Union[str, Path]] = None):
        super().__init__(tenant_id, "employees", data_dir)

    def bulk_upsert(self, records: List[Dict[str, Any]], key_field: str = "id") -> Dict[str, int]:
        """Bulk upsert employees by id."""
        current_data = self.load_data()
        existing_map = {record.get(key_field): record for record in current_data}

        created = updated = 0

        for record in records:
            key_value = record.get(key_field)
            if not key_value:
                continue

            record['last_updated'] = datetime.now().isoformat()

            if key_value in existing_map:
                existing_map[key_value].update(record)
                updated += 1
            else:
                record['created_at'] = datetime.now().isoformat()
                existing_map[key_value] = record
                created += 1

        updated_data = list(existing_map.values())
        self.save_data(updated_data)

        return {"created": created, "updated": updated, "total": len(updated_data)}

    def find_by_key(self, key_field: str, key_value: Any) -> Optional[Dict[str, Any]]:
        for record in self.load_data():
            if record.get(key_field) == key_value:
                return record
        return None

    def find_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        return self.find_by_key("name", name.strip().upper())

    def delete(self, employee_id: str) -> bool:
        data = self.load_data()
        remaining = [record for record in data if record.get("id") != employee_id]
        if len(remaining) == len(data):
            return False
        self.save_data(remaining)
        return True

class PerformanceRepository(BaseRepository):
    """
    Monthly achievement history, one document per month:
    {"month": "YYYY-MM", "employees": {employee_id: {KPIType: achievement}}}
    """

    def __init__(self, tenant_id: str, data_dir: Optional[Union[str, Path]] = None):
        super().__init__(tenant_id, "performance", data_dir)

    def _months_map(self) -> Dict[str, Dict[str, Any]]:
        return {doc['month']: doc for doc in self.load_data() if doc.get('month')}

    def _save_months(self, months: Dict[str, Dict[str, Any]]):
        self.save_data([months[m] for m in sorted(months)])

    def bulk_upsert(self, records: List[Dict[str, Any]], key_field: str = "month") -> Dict[str, int]:
        """
        Upsert flat rows {month, employee_id, <KPIType>: achievement}.
        Each row replaces that employee's achievements for the month.
        """
        months = self._months_map()
        created = updated = 0

        for record in records:
            month = record.get(key_field)
            employee_id = record.get('employee_id')
            if not month or not employee_id:
                continue

            if month not in months:
                months[month] = {'month': month, 'employees': {}}
            doc = months[month]
            if employee_id in doc['employees']:
                updated += 1
            else:
                created += 1
            doc['employees'][employee_id] = {
                kpi.value: float(record.get(kpi.value, 0.0) or 0.0) for kpi in KPIType
            }
            doc['last_updated'] = datetime.now().isoformat()

        self._save_months(months)
        return {"created": created, "updated": updated, "total": len(months)}

    def find_by_key(self, key_field: str, key_value: Any) -> Optional[Dict[str, Any]]:
        for record in self.load_data():
            if record.get(key_field) == key_value:
                return record
        return None

    def months(self) -> List[str]:
        return sorted(self._months_map())

    def get_month(self, month: str) -> Dict[str, Dict[str, float]]:
        doc = self.find_by_key('month', month)
        return doc.get('employees', {}) if doc else {}

    def set_employee_month(self, month: str, employee_id: str, achievements: Dict[str, float]):
        months = self._months_map()
        doc = months.setdefault(month, {'month': month, 'employees': {}})
        current = doc['employees'].setdefault(employee_id, {})
        for kpi, value in achievements.items():
            current[KPIType(kpi).value] = float(value)
        doc['last_updated'] = datetime.now().isoformat()
        self._save_months(months)

    def set_achievement(self, month: str, employee_id: str, kpi: KPIType, value: float):
        self.set_employee_month(month, employee_id, {kpi: value})

    def remove_employee(self, employee_id: str) -> int:
        """Drop an employee from every month. Returns the number of months touched."""
        months = self._months_map()
        touched = 0
        for doc in months.values():
            if doc.get('employees', {}).pop(employee_id, None) is not None:
                touched += 1
        if touched:
            self._save_months(months)
        return touched

class PreferencesRepository:
    """Per-tenant UI preferences, one JSON object stored beside the roster."""

    def __init__(self, tenant_id: str, data_dir: Optional[Union[str, Path]] = None):
        self.tenant_id = tenant_id
        self.data_dir = Path(data_dir or settings.DATA_DIR)
        self.data_file = self.data_dir / "preferences" / f"{tenant_id}_preferences.json"

    def load(self) -> Dict[str, Any]:
        if not self.data_file.exists():
            return {}
        try:
            with open(self.data_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError:
            logger.warning("Unreadable preferences file %s, using defaults", self.data_file)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def set(self, key: str, value: Any):
        data = self.load()
        data[key] = value
        atomic_write_json(self.data_file, data)
