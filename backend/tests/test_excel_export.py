from pathlib import Path

from openpyxl import load_workbook

from cashew_qc.config.settings import settings
from cashew_qc.services.audit_pipeline import run_audit
from cashew_qc.services.excel_export import generate_excel_report


class TestGenerateExcelReport:
    def test_sheets_and_header(self, dataset, thresholds, tmp_path):
        path = generate_excel_report(run_audit(dataset, thresholds), str(tmp_path / "report.xlsx"))
        workbook = load_workbook(path)
        assert workbook.sheetnames == ["Summary", "Bills", "Containers", "Cutting Tests", "Alerts"]
        assert workbook["Summary"]["A1"].value == "Metric"
        assert workbook["Alerts"]["A1"].font.bold
        assert workbook["Alerts"].max_row == 5
        assert workbook["Containers"]["C2"].value == "MSCU1234567"

    def test_default_path_under_export_dir(self, dataset, thresholds, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "export_dir", str(tmp_path / "exports"))
        path = generate_excel_report(run_audit(dataset, thresholds))
        assert Path(path).parent == tmp_path / "exports"
        assert Path(path).suffix == ".xlsx"
        assert Path(path).exists()
