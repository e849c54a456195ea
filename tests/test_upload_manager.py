import json
from premiacao.core.upload_manager import UploadManager, ColumnMapping

def test_detect_mappings_uses_each_header_once(tmp_path):
    um = UploadManager("demo-tenant", data_dir=tmp_path)
    cols = ["Nome", "Perfil", "Salário", "Ating. BSC", "Prêmio BSC", "Ating. MAT", "Ating. Trim.", "Ating. EBITDA"]
    found = {m.target_field: m.source_column for m in um.detect_mappings(cols)}
    assert found == {
        "name": "Nome",
        "role": "Perfil",
        "base_salary": "Salário",
        "MONTHLY_BSC": "Ating. BSC",
        "QUARTERLY_GERENCIAL": "Ating. Trim.",
        "MONTHLY_MAT": "Ating. MAT",
        "ANNUAL_EBITDA": "Ating. EBITDA",
    }

def test_load_json_and_stage(tmp_path):
    um = UploadManager("demo-tenant", data_dir=tmp_path)
    path = tmp_path / "rows.json"
    path.write_text(json.dumps([{"nome": "ana", "bsc": "99"}, {"nome": "", "bsc": "99"}]))
    result = um.process_upload(path, "2026-09")
    assert result.success is True
    assert result.processed_rows == 1 and result.error_rows == 1
    staged = json.loads(open(result.staging_file, encoding="utf-8").read())
    assert staged["month"] == "2026-09"
    assert staged["data"] == [{"name": "ANA", "MONTHLY_BSC": "99"}]

def test_explicit_mappings(tmp_path):
    um = UploadManager("demo-tenant", data_dir=tmp_path)
    path = tmp_path / "rows.csv"
    path.write_text("colaborador,valor\nana,100\n", encoding="utf-8")
    mappings = [ColumnMapping("colaborador", "name", "upper"), ColumnMapping("valor", "MONTHLY_MAT", "number")]
    result = um.process_upload(path, "2026-09", mappings=mappings)
    assert result.success is True
    staged = json.loads(open(result.staging_file, encoding="utf-8").read())
    assert staged["data"][0]["MONTHLY_MAT"] == 100

def test_unsupported_and_empty_files(tmp_path):
    um = UploadManager("demo-tenant", data_dir=tmp_path)
    bad = tmp_path / "rows.pdf"
    bad.write_bytes(b"%PDF")
    result = um.process_upload(bad, "2026-09")
    assert result.success is False
    assert "Unsupported" in result.errors[0]
    empty = tmp_path / "empty.csv"
    empty.write_text("Nome;Perfil\n", encoding="utf-8")
    result = um.process_upload(empty, "2026-09")
    assert result.success is False
    assert result.errors == ["File is empty"]
    history = um.audit_logger.get_upload_history()
    assert history and history[0]["success"] is False

def test_json_with_english_keys(tmp_path):
    um = UploadManager("demo-tenant", data_dir=tmp_path)
    path = tmp_path / "rows.json"
    path.write_text(json.dumps([
        {"name": "ana", "role": "manager", "salary": "1000", "MONTHLY_BSC": "100"},
    ]))
    result = um.process_upload(path, "2026-09")
    assert result.success is True and result.error_rows == 0
    staged = json.loads(open(result.staging_file, encoding="utf-8").read())
    assert staged["data"] == [{"name": "ANA", "role": "MANAGER", "base_salary": "1000", "MONTHLY_BSC": "100"}]
