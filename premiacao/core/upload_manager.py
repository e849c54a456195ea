"""
Upload manager for monthly roster/achievement spreadsheets.
Pipeline: load -> detect/map columns -> transform -> validate -> stage.
"""
import pandas as pd
import json
import hashlib
import uuid
from pathlib import Path
from typing import Dict, List, Any, Optional, Callable, Tuple, Union
from dataclasses import dataclass, asdict
from datetime import datetime

from premiacao.core.config import settings
from premiacao.core.schemas import SchemaRegistry, COLUMN_KEYWORDS
from premiacao.core.audit import AuditLogger
from premiacao.core.utils import setup_logging

@dataclass
class UploadResult:
    """Result of upload operation with detailed metrics and errors."""
    batch_id: str
    success: bool
    month: str
    total_rows: int
    processed_rows: int
    error_rows: int
    warnings: List[str]
    errors: List[str]
    row_errors: List[Dict[str, Any]]
    file_hash: str
    timestamp: str
    staging_file: Optional[str] = None

    def to_dict(self):
        return asdict(self)

@dataclass
class ColumnMapping:
    """Maps an uploaded column to a schema field."""
    source_column: str
    target_field: str
    transform: Optional[str] = None  # 'upper', 'strip', 'number'

class UploadManager:
    """
    Loads CSV/Excel/JSON files, maps spreadsheet headers to schema fields,
    validates rows and stages the valid ones for the caller to commit.
    """

    def __init__(self, tenant_id: str, entity_type: str = 'bonus_import', data_dir: Optional[Union[str, Path]] = None):
        self.tenant_id = tenant_id
        self.entity_type = entity_type
        self.schema_registry = SchemaRegistry()
        self.audit_logger = AuditLogger(tenant_id, data_dir)
        self.logger = setup_logging(tenant_id)

        self.data_dir = Path(data_dir or settings.DATA_DIR)
        self.staging_dir = self.data_dir / "staging"
        self.staging_dir.mkdir(parents=True, exist_ok=True)

    def get_schema(self) -> Dict[str, Any]:
        return self.schema_registry.get_schema(self.entity_type)

    def generate_template(self) -> pd.DataFrame:
        """One-row sample sheet using the spreadsheet headers."""
        properties = self.get_schema().get('properties', {})
        sample = {}
        for name, field_schema in properties.items():
            header = field_schema.get('header', name)
            sample[header] = field_schema.get('example', "")
        return pd.DataFrame([sample])

    def load_file(self, file_path: Union[str, Path]) -> pd.DataFrame:
        """Load data from CSV, Excel, or JSON file. Cells are kept as text."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        file_ext = file_path.suffix.lower()

        try:
            if file_ext in ['.csv', '.txt']:
                df = self._read_csv(file_path)
            elif file_ext == '.xlsx':
                df = pd.read_excel(file_path, dtype=str).fillna("")
            elif file_ext == '.json':
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                df = pd.DataFrame(data if isinstance(data, list) else [data])
            else:
                raise ValueError(f"Unsupported file format: {file_ext}")
        except (UnicodeDecodeError, json.JSONDecodeError, pd.errors.ParserError) as e:
            raise ValueError(f"Error loading file: {str(e)}")

        df.columns = [str(c).strip() for c in df.columns]
        return df

    def _read_csv(self, file_path: Path) -> pd.DataFrame:
        last_error = None
        for encoding in settings.IMPORT_ENCODINGS:
            try:
                with open(file_path, 'r', encoding=encoding) as f:
                    header = f.readline()
                delimiter = ';' if ';' in header else ','
                return pd.read_csv(
                    file_path, sep=delimiter, encoding=encoding,
                    dtype=str, keep_default_na=False, skip_blank_lines=True,
                )
            except UnicodeDecodeError as e:
                last_error = e
        raise ValueError(f"Could not decode file with {settings.IMPORT_ENCODINGS}: {last_error}")

    def calculate_file_hash(self, file_path: Union[str, Path], scope: str = "") -> str:
        """MD5 of the file contents plus a scope (the target month)."""
        digest = hashlib.md5()
        with open(file_path, 'rb') as f:
            digest.update(f.read())
        digest.update(scope.encode('utf-8'))
        return digest.hexdigest()

    def detect_mappings(self, columns: List[str]) -> List[ColumnMapping]:
        """Match headers to fields by keyword; each header is used at most once."""
        claimed = set()
        mappings = []
        lowered = [(c, c.lower()) for c in columns]
        for target, keywords in COLUMN_KEYWORDS.items():
            for source, header in lowered:
                if source in claimed:
                    continue
                if any(k in header for k in keywords):
                    transform = 'upper' if target in ('name', 'role') else 'strip'
                    mappings.append(ColumnMapping(source, target, transform))
                    claimed.add(source)
                    break
        return mappings

    def map_columns(self, df: pd.DataFrame, mappings: List[ColumnMapping]) -> pd.DataFrame:
        """Keep mapped columns only, renamed to schema fields."""
        sources = [m.source_column for m in mappings if m.source_column in df.columns]
        mapped_df = df[sources].copy()
        mapped_df = mapped_df.rename(columns={m.source_column: m.target_field for m in mappings})

        for mapping in mappings:
            col = mapping.target_field
            if col not in mapped_df.columns or not mapping.transform:
                continue
            if mapping.transform == 'upper':
                mapped_df[col] = mapped_df[col].astype(str).str.strip().str.upper()
            elif mapping.transform == 'strip':
                mapped_df[col] = mapped_df[col].astype(str).str.strip()
            elif mapping.transform == 'number':
                mapped_df[col] = pd.to_numeric(mapped_df[col], errors='coerce')

        return mapped_df

    def validate_data(self, df: pd.DataFrame) -> Tuple[List[Dict], List[str]]:
        """Validate rows against the schema. Returns (row_errors, warnings)."""
        schema = self.get_schema()
        required_fields = schema.get('required', [])
        properties = schema.get('properties', {})

        row_errors = []
        warnings = []

        for position, (_, row) in enumerate(df.iterrows()):
            problems = []
            for field_name in required_fields:
                value = row.get(field_name)
                if field_name not in df.columns or pd.isna(value) or str(value).strip() in ('', 'NAN'):
                    problems.append(f"Missing required field: {field_name}")

            for field_name, value in row.items():
                field_schema = properties.get(field_name)
                if not field_schema or pd.isna(value):
                    continue
                if field_schema.get('type') == 'number' and isinstance(value, (int, float)):
                    minimum = field_schema.get('minimum')
                    if minimum is not None and value < minimum:
                        problems.append(f"{field_name}: below minimum {minimum}")
                if field_schema.get('type') == 'string' and isinstance(value, str):
                    max_length = field_schema.get('maxLength')
                    if max_length and len(value) > max_length:
                        problems.append(f"{field_name}: exceeds maximum length {max_length}")

            if problems:
                row_errors.append({
                    'row': position + 2,  # spreadsheet line, header is line 1
                    'index': position,
                    'errors': problems,
                    'data': row.to_dict()
                })

        return row_errors, warnings + self.missing_column_warnings(df)

    def missing_column_warnings(self, df: pd.DataFrame) -> List[str]:
        properties = self.get_schema().get('properties', {})
        return [
            f"Column '{field_schema.get('header', field_name)}' not found, using default"
            for field_name, field_schema in properties.items()
            if field_name not in df.columns
        ]

    def process_upload(
        self,
        file_path: Union[str, Path],
        month: str,
        mappings: Optional[List[ColumnMapping]] = None,
        transform_fn: Optional[Callable[[pd.DataFrame], pd.DataFrame]] = None,
        filename: Optional[str] = None
    ) -> UploadResult:
        batch_id = str(uuid.uuid4())
        timestamp = datetime.now().isoformat()

        def failed(message: str, file_hash: str = "") -> UploadResult:
            return UploadResult(
                batch_id=batch_id, success=False, month=month,
                total_rows=0, processed_rows=0, error_rows=0,
                warnings=[], errors=[message], row_errors=[],
                file_hash=file_hash, timestamp=timestamp
            )

        try:
            file_hash = self.calculate_file_hash(file_path, scope=month)
        except OSError as e:
            self.logger.warning("Import rejected, unreadable file %s: %s", file_path, e)
            return failed(f"File not found: {file_path}")

        if self.audit_logger.is_duplicate_upload(file_hash):
            self.logger.warning("Import rejected, duplicate file for %s: %s", month, file_path)
            return failed("File already imported for this month (duplicate detected)", file_hash)

        try:
            df = self.load_file(file_path)
        except (FileNotFoundError, ValueError) as e:
            self.audit_logger.log_upload(
                entity_type=self.entity_type, batch_id=batch_id, file_hash=file_hash,
                month=month, total_rows=0, processed_rows=0, error_rows=0,
                success=False, filename=filename, error_message=str(e)
            )
            self.logger.warning("Import failed for %s: %s", file_path, e)
            return failed(str(e), file_hash)

        total_rows = len(df)
        if total_rows == 0:
            return failed("File is empty", file_hash)

        mappings = mappings if mappings is not None else self.detect_mappings(list(df.columns))
        mapped_df = self.map_columns(df, mappings)
        warnings = self.missing_column_warnings(mapped_df)
        if transform_fn:
            mapped_df = transform_fn(mapped_df)

        row_errors, _ = self.validate_data(mapped_df)
        error_rows = len(row_errors)
        processed_rows = total_rows - error_rows

        staging_path = None
        if processed_rows > 0:
            error_positions = [err['index'] for err in row_errors]
            valid_df = mapped_df.drop(index=mapped_df.index[error_positions])
            staging_path = self.staging_dir / f"{self.tenant_id}_{self.entity_type}_{batch_id}.json"
            staging_data = {
                'batch_id': batch_id,
                'entity_type': self.entity_type,
                'tenant_id': self.tenant_id,
                'month': month,
                'timestamp': timestamp,
                'file_hash': file_hash,
                'data': valid_df.to_dict('records')
            }
            with open(staging_path, 'w', encoding='utf-8') as f:
                json.dump(staging_data, f, indent=2, default=str, ensure_ascii=False)

        for err in row_errors:
            self.logger.warning("Import row %s rejected: %s", err['row'], "; ".join(err['errors']))

        self.audit_logger.log_upload(
            entity_type=self.entity_type, batch_id=batch_id, file_hash=file_hash,
            month=month, total_rows=total_rows, processed_rows=processed_rows,
            error_rows=error_rows, success=processed_rows > 0, filename=filename
        )

        return UploadResult(
            batch_id=batch_id,
            success=processed_rows > 0,
            month=month,
            total_rows=total_rows,
            processed_rows=processed_rows,
            error_rows=error_rows,
            warnings=warnings,
            errors=[] if processed_rows > 0 else ["No valid rows found"],
            row_errors=row_errors,
            file_hash=file_hash,
            timestamp=timestamp,
            staging_file=str(staging_path) if staging_path else None
        )
