"""
Audit logging for spreadsheet imports and roster/performance changes.
"""
import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

from premiacao.core.config import settings

class AuditLogger:
    """Append-only JSONL audit trail per tenant."""

    def __init__(self, tenant_id: str, data_dir: Optional[Union[str, Path]] = None):
        self.tenant_id = tenant_id

        self.data_dir = Path(data_dir or settings.DATA_DIR)
        self.audit_dir = self.data_dir / "audit"
        self.audit_dir.mkdir(parents=True, exist_ok=True)

        self.uploads_log = self.audit_dir / f"{tenant_id}_uploads.jsonl"
        self.changes_log = self.audit_dir / f"{tenant_id}_changes.jsonl"
        self.hashes_file = self.audit_dir / f"{tenant_id}_file_hashes.json"

    def log_upload(
        self,
        entity_type: str,
        batch_id: str,
        file_hash: str,
        month: str,
        total_rows: int,
        processed_rows: int,
        error_rows: int,
        success: bool,
        filename: Optional[str] = None,
        error_message: Optional[str] = None
    ):
        """Log an import attempt. Successful imports are registered for duplicate detection."""
        log_entry = {
            'timestamp': datetime.now().isoformat(),
            'tenant_id': self.tenant_id,
            'entity_type': entity_type,
            'batch_id': batch_id,
            'file_hash': file_hash,
            'month': month,
            'total_rows': total_rows,
            'processed_rows': processed_rows,
            'error_rows': error_rows,
            'success': success,
            'filename': filename,
            'error_message': error_message
        }

        with open(self.uploads_log, 'a', encoding='utf-8') as f:
            f.write(json.dumps(log_entry, default=str, ensure_ascii=False) + '\n')

        if success:
            self._update_file_hash(file_hash, batch_id, entity_type)

    def log_data_change(
        self,
        entity_type: str,
        operation: str,  # 'create', 'update', 'delete'
        entity_id: str,
        changes: Dict[str, Any]
    ):
        log_entry = {
            'timestamp': datetime.now().isoformat(),
            'tenant_id': self.tenant_id,
            'entity_type': entity_type,
            'operation': operation,
            'entity_id': entity_id,
            'changes': changes
        }

        with open(self.changes_log, 'a', encoding='utf-8') as f:
            f.write(json.dumps(log_entry, default=str, ensure_ascii=False) + '\n')

    def is_duplicate_upload(self, file_hash: str) -> bool:
        return file_hash in self._load_hashes()

    def _load_hashes(self) -> Dict[str, Any]:
        if not self.hashes_file.exists():
            return {}
        try:
            with open(self.hashes_file, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, FileNotFoundError):
            return {}

    def _update_file_hash(self, file_hash: str, batch_id: str, entity_type: str):
        hashes = self._load_hashes()
        hashes[file_hash] = {
            'batch_id': batch_id,
            'entity_type': entity_type,
            'timestamp': datetime.now().isoformat()
        }
        with open(self.hashes_file, 'w', encoding='utf-8') as f:
            json.dump(hashes, f, indent=2, default=str)

    def _read_jsonl(self, path: Path) -> List[Dict[str, Any]]:
        if not path.exists():
            return []
        entries = []
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                try:
                    entries.append(json.loads(line.strip()))
                except json.JSONDecodeError:
                    continue
        return entries

    def get_upload_history(self, days: int = 30, entity_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Import history for the last N days, newest first."""
        cutoff_date = datetime.now() - timedelta(days=days)
        history = []
        for entry in self._read_jsonl(self.uploads_log):
            try:
                entry_date = datetime.fromisoformat(entry['timestamp'])
            except (KeyError, ValueError):
                continue
            if entry_date >= cutoff_date:
                if entity_type is None or entry.get('entity_type') == entity_type:
                    history.append(entry)

        history.sort(key=lambda x: x['timestamp'], reverse=True)
        return history

    def get_change_history(self, entity_type: str, entity_id: str) -> List[Dict[str, Any]]:
        changes = [
            entry for entry in self._read_jsonl(self.changes_log)
            if entry.get('entity_type') == entity_type and entry.get('entity_id') == entity_id
        ]
        changes.sort(key=lambda x: x['timestamp'], reverse=True)
        return changes
