"""
Script to audit an inspection workbook from the command line.

Reads bills, containers and cutting tests from an Excel workbook (or one or
more CSV files named after the record kind), runs every derivation and alert
rule, prints a summary and writes the Excel report.
"""
import argparse
import logging
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pandas as pd

from cashew_qc.config.settings import settings
from cashew_qc.services.audit_pipeline import containers_with_alerts, cutting_tests_with_alerts, run_audit
from cashew_qc.services.excel_export import generate_excel_report
from cashew_qc.services.file_parser import read_workbook
from cashew_qc.services.normalizer import normalize_workbook


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Audit cashew inspection records")
    parser.add_argument("files", nargs="+", help="Workbook (.xlsx) or CSV files (bills.csv, containers.csv, cutting_tests.csv)")
    parser.add_argument("-o", "--output", help="Path of the Excel report (defaults to the export directory)")
    parser.add_argument("--no-excel", action="store_true", help="Print the summary only")
    return parser.parse_args(argv)


def audit_files(files, output=None, write_excel=True):
    """Audit the given files. Returns the process exit code."""
    frames = {}
    for file_path in files:
        for kind, df in read_workbook(file_path).items():
            frames[kind] = pd.concat([frames[kind], df], ignore_index=True) if kind in frames else df

    normalized = normalize_workbook(frames)
    report = run_audit(normalized.dataset)

    print(f"Bills: {len(report.bills)}")
    print(f"Containers: {len(report.containers)}")
    print(f"Cutting tests: {len(report.cutting_tests)}")
    if normalized.rejected_rows:
        print(f"\n✗ {len(normalized.rejected_rows)} rows rejected:")
        for row in normalized.rejected_rows:
            print(f"  {row.record_kind} row {row.row_number}: {'; '.join(row.errors)}")

    counts = report.alert_counts
    print(f"\nAlerts: {counts.total} (errors={counts.error}, warnings={counts.warning}, info={counts.info})")
    for result in containers_with_alerts(report):
        for alert in result.alerts:
            print(f"  [{alert.severity.value}] container {result.container_number or result.container_id}: {alert.message}")
    for result in cutting_tests_with_alerts(report):
        for alert in result.alerts:
            print(f"  [{alert.severity.value}] cutting test {result.cutting_test_id}: {alert.message}")

    if write_excel:
        file_path = generate_excel_report(report, output)
        print(f"\n✓ Report written to {file_path}")

    return 1 if counts.error else 0


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    try:
        sys.exit(audit_files(args.files, args.output, not args.no_excel))
    except ValueError as e:
        print(f"✗ {e}")
        sys.exit(2)
