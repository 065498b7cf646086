"""
Excel export service.
"""
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
from openpyxl.styles import Font, PatternFill

from cashew_qc.config.settings import settings
from cashew_qc.schemas.audit_report import AuditReport
from cashew_qc.services.audit_pipeline import report_to_frames

logger = logging.getLogger(__name__)

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")

SHEET_NAMES = {
    "bills": "Bills",
    "containers": "Containers",
    "cutting_tests": "Cutting Tests",
    "alerts": "Alerts",
}


def _summary_frame(report: AuditReport) -> pd.DataFrame:
    counts = report.alert_counts
    dashboard = report.dashboard
    distribution = dashboard.cutting_tests.moisture_distribution
    summary_data = {
        "Metric": [
            "Bills",
            "Containers",
            "Cutting Tests",
            "Containers With Net Weight",
            "Bills Pending Final Tests",
            "Containers Pending Cutting Tests",
            "High Moisture Tests",
            "Average Moisture (%)",
            "Total Alerts",
            "Errors",
            "Warnings",
            "Info",
        ],
        "Value": [
            report.summary.get("bill_count", 0),
            report.summary.get("container_count", 0),
            report.summary.get("cutting_test_count", 0),
            report.summary.get("containers_with_net_weight", 0),
            dashboard.bills.pending_final_tests,
            dashboard.containers.pending_tests,
            dashboard.cutting_tests.high_moisture,
            str(distribution.avg_moisture) if distribution.avg_moisture is not None else "",
            counts.total,
            counts.error,
            counts.warning,
            counts.info,
        ],
    }
    return pd.DataFrame(summary_data)


def _style_header(worksheet) -> None:
    for cell in worksheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
    for column_cells in worksheet.columns:
        width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column_cells)
        worksheet.column_dimensions[column_cells[0].column_letter].width = min(width + 2, 60)


def generate_excel_report(report: AuditReport, path: Optional[str] = None) -> str:
    """
    Generate Excel report with multiple sheets:
    - Summary
    - Bills
    - Containers
    - Cutting Tests
    - Alerts
    """
    if path is None:
        export_dir = Path(settings.export_dir)
        export_dir.mkdir(parents=True, exist_ok=True)
        file_path = export_dir / f"cashew_audit_{datetime.now():%Y%m%d_%H%M%S}.xlsx"
    else:
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

    start = time.perf_counter()
    frames = report_to_frames(report)

    with pd.ExcelWriter(file_path, engine="openpyxl") as writer:
        _summary_frame(report).to_excel(writer, sheet_name="Summary", index=False)
        for key, sheet_name in SHEET_NAMES.items():
            frames[key].to_excel(writer, sheet_name=sheet_name, index=False)
        for worksheet in writer.sheets.values():
            _style_header(worksheet)

    logger.info(
        "Wrote audit report to %s (%d alerts) in %.3fs",
        file_path,
        report.alert_counts.total,
        time.perf_counter() - start,
    )
    return str(file_path)
