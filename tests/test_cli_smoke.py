import json
from pathlib import Path

from openpyxl import Workbook
from typer.testing import CliRunner

from contact_ingest.cli import app

runner = CliRunner()

CSV = "Nome;Telefone;Cidade\nAna;(11) 99999-8888;Recife\nBia;11988887777;Natal\n;12;Olinda\n"


def write_file(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def run_command(tmp_path: Path, args: list[str], run_id: str = "run-1", env: dict[str, str] | None = None):
    result = runner.invoke(
        app,
        [
            "--log-dir",
            str(tmp_path / "logs"),
            "--report-dir",
            str(tmp_path / "reports"),
            "--run-id",
            run_id,
            *args,
        ],
        env=env,
    )
    return result


def read_report(tmp_path: Path, command: str, run_id: str = "run-1") -> dict:
    return json.loads((tmp_path / "reports" / f"report_{command}_{run_id}.json").read_text(encoding="utf-8"))


def test_help_shows_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "analyze" in result.stdout
    assert "normalize" in result.stdout
    assert "objects" in result.stdout


def test_analyze_requires_file(tmp_path):
    result = run_command(tmp_path, ["analyze"])
    assert result.exit_code == 2
    assert "--file is required" in result.output
    assert read_report(tmp_path, "analyze")["meta"]["command"] == "analyze"


def test_analyze_missing_file(tmp_path):
    result = run_command(tmp_path, ["analyze", "--file", str(tmp_path / "nao_existe.csv")])
    assert result.exit_code == 2
    assert "source file not found" in result.output


def test_analyze_writes_analysis_and_report(tmp_path):
    source = write_file(tmp_path / "lista.csv", CSV)
    result = run_command(tmp_path, ["analyze", "--file", str(source)])
    assert result.exit_code == 0, result.output

    analysis = json.loads((tmp_path / "reports" / "analysis_run-1.json").read_text(encoding="utf-8"))
    assert analysis["hasHeader"] is True
    assert analysis["mapping"] == {"name": 0, "phone": 1}
    assert analysis["totalRows"] == 3

    report = read_report(tmp_path, "analyze")
    assert report["status"] == "SUCCESS"
    assert report["meta"]["source_format"] == "csv"
    assert report["context"]["analysis"]["delimiter"] == ";"
    assert (tmp_path / "logs" / "analyze_run-1.log").exists()


def test_normalize_with_overrides(tmp_path):
    source = write_file(tmp_path / "lista.csv", CSV)
    out = tmp_path / "contatos.json"
    result = run_command(
        tmp_path,
        ["normalize", "--file", str(source), "--extra-col", "2", "--add-country-code", "--out", str(out)],
    )
    assert result.exit_code == 0, result.output

    contacts = json.loads(out.read_text(encoding="utf-8"))
    assert contacts == [
        {"name": "Ana", "phone": "5511999998888", "extras": {"Cidade": "Recife"}},
        {"name": "Bia", "phone": "5511988887777", "extras": {"Cidade": "Natal"}},
    ]
    report = read_report(tmp_path, "normalize")
    assert report["summary"]["rows_dropped"] == 1
    assert report["summary"]["rows_accepted"] == 2
    assert report["status"] == "PARTIAL"


def test_normalize_with_mapping_file(tmp_path):
    source = write_file(tmp_path / "lista.csv", CSV)
    mapping = write_file(tmp_path / "mapping.yml", "name: 2\n")
    result = run_command(tmp_path, ["normalize", "--file", str(source), "--mapping", str(mapping)])
    assert result.exit_code == 0, result.output

    contacts = json.loads((tmp_path / "reports" / "contacts_run-1.json").read_text(encoding="utf-8"))
    assert contacts == [{"name": "Recife"}, {"name": "Natal"}, {"name": "Olinda"}]


def test_normalize_without_contacts_exits_1(tmp_path):
    source = write_file(tmp_path / "numeros.csv", "12,34\n56,78\n")
    result = run_command(tmp_path, ["normalize", "--file", str(source)])
    assert result.exit_code == 1
    assert "no contacts produced" in result.output
    assert read_report(tmp_path, "normalize")["status"] == "FAILED"


def test_normalize_invalid_mapping_file(tmp_path):
    source = write_file(tmp_path / "lista.csv", CSV)
    mapping = write_file(tmp_path / "mapping.json", '{"name": "zero"}')
    result = run_command(tmp_path, ["normalize", "--file", str(source), "--mapping", str(mapping)])
    assert result.exit_code == 2
    assert "Invalid mapping file" in result.output


def test_corrupt_workbook_exits_2(tmp_path):
    source = tmp_path / "lista.xlsx"
    source.write_bytes(b"not a workbook")
    result = run_command(tmp_path, ["analyze", "--file", str(source)])
    assert result.exit_code == 2
    assert "Cannot read xlsx source" in result.output
    report = read_report(tmp_path, "analyze")
    assert report["status"] == "FAILED"
    assert [d["code"] for d in report["file_diagnostics"]] == ["FORMAT_ERROR"]


def test_objects_from_workbook(tmp_path):
    wb = Workbook()
    ws = wb.active
    ws.append(["Nome", "Nome", "E-mail"])
    ws.append(["Ana", "Souza", "ana@exemplo.com"])
    source = tmp_path / "lista.xlsx"
    wb.save(source)

    result = run_command(tmp_path, ["objects", "--file", str(source)])
    assert result.exit_code == 0, result.output
    records = json.loads((tmp_path / "reports" / "objects_run-1.json").read_text(encoding="utf-8"))
    assert records == [{"nome": "Ana", "nome_2": "Souza", "email": "ana@exemplo.com"}]


def test_invalid_log_level(tmp_path):
    source = write_file(tmp_path / "lista.csv", CSV)
    result = run_command(tmp_path, ["--log-level", "LOUD", "analyze", "--file", str(source)])
    assert result.exit_code == 2
    assert "invalid settings" in result.output
