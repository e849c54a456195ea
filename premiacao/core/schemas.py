"""
Schema registry for importable spreadsheets.
Field definitions double as template generators and header-detection rules.
"""
from typing import Dict, Any, List

from premiacao.bonus.scales import KPIType

# Lower-case header fragments that identify each field, checked in order
COLUMN_KEYWORDS: Dict[str, List[str]] = {
    'name': ['nome', 'name'],
    'role': ['perfil', 'cargo', 'role'],
    'base_salary': ['salário', 'salario', 'salary', 'base'],
    KPIType.MONTHLY_BSC.value: ['bsc', 'vendas'],
    KPIType.QUARTERLY_GERENCIAL.value: ['gerencial', 'orçamento', 'orcamento', 'trim'],
    KPIType.MONTHLY_MAT.value: ['mat'],
    KPIType.ANNUAL_EBITDA.value: ['ebitda', 'anual'],
}

class SchemaRegistry:
    """Registry of JSON schemas for all importable entity types."""

    def __init__(self):
        self.schemas = self._initialize_schemas()

    def get_schema(self, entity_type: str) -> Dict[str, Any]:
        if entity_type not in self.schemas:
            raise ValueError(f"Schema not found for entity type: {entity_type}")
        return self.schemas[entity_type]

    def get_available_entities(self) -> list:
        return list(self.schemas.keys())

    def _initialize_schemas(self) -> Dict[str, Dict[str, Any]]:
        return {
            'employees': self._employee_schema(),
            'bonus_import': self._bonus_import_schema(),
        }

    def _employee_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "required": ["name", "base_salary"],
            "properties": {
                "name": {
                    "type": "string",
                    "minLength": 1,
                    "maxLength": 100,
                    "example": "MARIA DA SILVA"
                },
                "role": {
                    "type": "string",
                    "enum": ["GERENTE", "EQUIPE"],
                    "example": "EQUIPE"
                },
                "base_salary": {
                    "type": "number",
                    "minimum": 0,
                    "example": 4500.00
                }
            }
        }

    def _bonus_import_schema(self) -> Dict[str, Any]:
        """Roster plus one month of KPI achievements, one row per employee."""
        schema = self._employee_schema()
        properties = dict(schema["properties"])
        examples = {
            KPIType.MONTHLY_BSC: 98.5,
            KPIType.QUARTERLY_GERENCIAL: 101.0,
            KPIType.MONTHLY_MAT: 92.0,
            KPIType.ANNUAL_EBITDA: 100.0,
        }
        for kpi in KPIType:
            properties[kpi.value] = {
                "type": "number",
                "minimum": 0,
                "example": examples[kpi],
                "header": {
                    KPIType.MONTHLY_BSC: "Ating. BSC",
                    KPIType.QUARTERLY_GERENCIAL: "Ating. Gerencial",
                    KPIType.MONTHLY_MAT: "Ating. MAT",
                    KPIType.ANNUAL_EBITDA: "Ating. EBITDA",
                }[kpi],
            }
        properties["name"] = dict(properties["name"], header="Nome")
        properties["role"] = dict(properties["role"], header="Perfil")
        properties["base_salary"] = dict(properties["base_salary"], header="Salário")
        return {
            "type": "object",
            "required": ["name"],
            "properties": properties
        }
