import pytest
from premiacao.employees.manager import EmployeeManager
from premiacao.core.repositories import PerformanceRepository

SHEET = (
    "Nome;Perfil;Salário;Vendas BSC;Orçamento Gerencial;MAT;EBITDA\n"
    "maria;Gerente;R$ 10.000,00;100;90;97,9;100\n"
    "joao;Equipe;5000;85;;;\n"
    ";Equipe;3000;100;100;100;100\n"
)

def write_sheet(tmp_path, text=SHEET, name="planilha.csv", encoding="ISO-8859-1"):
    path = tmp_path / name
    path.write_bytes(text.encode(encoding))
    return path

def test_add_update_remove(tmp_path):
    em = EmployeeManager("demo-tenant", data_dir=tmp_path)
    emp = em.add_employee("  ana souza ", 3000, "gerente")
    assert emp["name"] == "ANA SOUZA" and emp["role"] == "GERENTE"
    updated = em.update_employee(emp["id"], base_salary=3500, role="EQUIPE")
    assert updated["base_salary"] == 3500.0 and updated["role"] == "EQUIPE"
    em.performance.set_employee_month("2026-09", emp["id"], {"MONTHLY_BSC": 100})
    assert em.remove_employee(emp["id"]) is True
    assert em.list_employees() == []
    assert em.performance.get_month("2026-09") == {}
    history = em.audit_logger.get_change_history("employees", emp["id"])
    assert [h["operation"] for h in history] == ["delete", "update", "create"]

def test_add_employee_validation(tmp_path):
    em = EmployeeManager("demo-tenant", data_dir=tmp_path)
    with pytest.raises(ValueError):
        em.add_employee("", 1000)
    with pytest.raises(ValueError):
        em.add_employee("ANA", 0)
    with pytest.raises(ValueError):
        em.update_employee("missing", base_salary=1)

def test_import_spreadsheet(tmp_path):
    em = EmployeeManager("demo-tenant", data_dir=tmp_path)
    res = em.import_spreadsheet(write_sheet(tmp_path), "2026-09", filename="planilha.csv")
    assert res["success"] is True
    upload = res["upload_result"]
    assert upload["total_rows"] == 3
    assert upload["processed_rows"] == 2
    assert upload["error_rows"] == 1
    assert upload["row_errors"][0]["row"] == 4
    assert res["employee_stats"]["created"] == 2

    maria = em.repository.find_by_name("MARIA")
    assert maria["base_salary"] == 10000.0 and maria["role"] == "GERENTE"
    joao = em.repository.find_by_name("JOAO")
    assert joao["role"] == "EQUIPE"

    month = PerformanceRepository("demo-tenant", data_dir=tmp_path).get_month("2026-09")
    assert month[maria["id"]] == {
        "MONTHLY_BSC": 100.0, "MONTHLY_MAT": 97.9,
        "QUARTERLY_GERENCIAL": 90.0, "ANNUAL_EBITDA": 100.0,
    }
    assert month[joao["id"]]["MONTHLY_MAT"] == 0.0

def test_reimport_updates_by_name_and_rejects_duplicates(tmp_path):
    em = EmployeeManager("demo-tenant", data_dir=tmp_path)
    path = write_sheet(tmp_path)
    assert em.import_spreadsheet(path, "2026-09")["success"] is True

    dup = em.import_spreadsheet(path, "2026-09")
    assert dup["success"] is False
    assert "duplicate" in dup["upload_result"]["errors"][0]

    res = em.import_spreadsheet(path, "2026-10")
    assert res["success"] is True
    assert res["employee_stats"]["created"] == 0
    assert res["employee_stats"]["updated"] == 2
    assert em.repository.get_count() == 2
    assert len(em.get_upload_history()) == 2

def test_import_utf8_comma_delimited(tmp_path):
    em = EmployeeManager("demo-tenant", data_dir=tmp_path)
    text = "nome,cargo,salario base,bsc\nCarla,analista,2000,120\n"
    res = em.import_spreadsheet(write_sheet(tmp_path, text, "c.csv", "utf-8"), "2026-09")
    assert res["success"] is True
    carla = em.repository.find_by_name("carla")
    assert carla["base_salary"] == 2000.0 and carla["role"] == "EQUIPE"
    assert any("Ating. EBITDA" in w for w in res["upload_result"]["warnings"])

def test_import_without_name_column_fails(tmp_path):
    em = EmployeeManager("demo-tenant", data_dir=tmp_path)
    res = em.import_spreadsheet(write_sheet(tmp_path, "cargo;bsc\nGERENTE;100\n", "x.csv"), "2026-09")
    assert res["success"] is False
    assert em.repository.get_count() == 0

def test_import_missing_file(tmp_path):
    em = EmployeeManager("demo-tenant", data_dir=tmp_path)
    res = em.import_spreadsheet(tmp_path / "nope.csv", "2026-09")
    assert res["success"] is False

def test_template_headers(tmp_path):
    em = EmployeeManager("demo-tenant", data_dir=tmp_path)
    template = em.get_template()
    assert list(template.columns)[:3] == ["Nome", "Perfil", "Salário"]
    assert len(template) == 1

def test_import_json_with_english_keys(tmp_path):
    em = EmployeeManager("demo-tenant", data_dir=tmp_path)
    path = tmp_path / "roster.json"
    path.write_text('[{"name": "Dora", "role": "Manager", "salary": "4.000,00", "bsc": "101"}]', encoding="utf-8")
    res = em.import_spreadsheet(path, "2026-09")
    assert res["success"] is True
    dora = em.repository.find_by_name("dora")
    assert dora["role"] == "GERENTE" and dora["base_salary"] == 4000.0
    assert em.performance.get_month("2026-09")[dora["id"]]["MONTHLY_BSC"] == 101.0

def test_salary_visibility_is_persisted(tmp_path):
    em = EmployeeManager("demo-tenant", data_dir=tmp_path)
    assert em.salaries_visible() is True
    em.set_salaries_visible(False)
    assert EmployeeManager("demo-tenant", data_dir=tmp_path).salaries_visible() is False
    assert EmployeeManager("other-tenant", data_dir=tmp_path).salaries_visible() is True
