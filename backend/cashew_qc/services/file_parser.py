"""
File parsing and column mapping services for inspection workbooks.
"""
import pandas as pd
import logging
from typing import Dict, Optional
from pathlib import Path

from cashew_qc.config.mapping_loader import (
    get_column_mapping_for_kind,
    get_record_kind_for_sheet,
)

logger = logging.getLogger(__name__)

RECORD_KINDS = ("bills", "containers", "cutting_tests")

# Known column name patterns for mapping (case-insensitive matching),
# keyed by record kind then target field
COLUMN_PATTERNS: Dict[str, Dict[str, list]] = {
    "bills": {
        "id": ["id", "bill_id", "bill id"],
        "bill_number": ["bill_number", "bill number", "bill no", "bl number", "bl no", "b/l"],
        "seller": ["seller", "shipper", "exporter"],
        "buyer": ["buyer", "consignee", "importer"],
        "w_jute_bag": ["w_jute_bag", "jute bag", "jute_bag_weight", "bag weight"],
        "w_dunnage_dribag": ["w_dunnage_dribag", "dunnage", "dribag", "dunnage_dribag"],
        "net_on_bl": ["net_on_bl", "net on bl", "bl net"],
        "quantity_of_bags_on_bl": ["quantity_of_bags_on_bl", "bags on bl", "bl bags"],
        "origin": ["origin", "country of origin"],
        "inspection_start_date": ["inspection_start_date", "inspection start", "start date"],
        "inspection_end_date": ["inspection_end_date", "inspection end", "end date"],
        "inspection_location": ["inspection_location", "inspection location", "location", "warehouse"],
        "sampling_ratio": ["sampling_ratio", "sampling ratio", "sampling %"],
        "note": ["note", "notes", "remark", "remarks"],
    },
    "containers": {
        "id": ["id", "container_id", "container id"],
        "bill_id": ["bill_id", "bill id", "bill"],
        "truck": ["truck", "truck no", "truck_plate", "plate"],
        "container_number": ["container_number", "container number", "container no", "cont no"],
        "quantity_of_bags": ["quantity_of_bags", "quantity of bags", "bags", "bag count", "no. of bags"],
        "w_total": ["w_total", "total weight", "total_weight", "weighbridge total"],
        "w_truck": ["w_truck", "truck weight", "truck_weight"],
        "w_container": ["w_container", "container weight", "container tare", "container_weight"],
        "w_gross": ["w_gross", "gross weight", "gross_weight", "gross"],
        "w_tare": ["w_tare", "tare weight", "tare_weight", "tare"],
        "w_net": ["w_net", "net weight", "net_weight", "net"],
        "container_condition": ["container_condition", "container condition", "condition"],
        "seal_condition": ["seal_condition", "seal condition", "seal"],
        "note": ["note", "notes", "remark", "remarks"],
    },
    "cutting_tests": {
        "id": ["id", "cutting_test_id", "test id", "test_id"],
        "bill_id": ["bill_id", "bill id", "bill"],
        "container_id": ["container_id", "container id", "container"],
        "type": ["type", "cut type", "test type", "cut"],
        "moisture": ["moisture", "moisture %", "moisture_percent", "mc"],
        "sample_weight": ["sample_weight", "sample weight", "sample"],
        "nut_count": ["nut_count", "nut count", "nuts", "count"],
        "w_reject_nut": ["w_reject_nut", "reject nut", "reject"],
        "w_defective_nut": ["w_defective_nut", "defective nut", "defective_nut"],
        "w_defective_kernel": ["w_defective_kernel", "defective kernel", "defective_kernel"],
        "w_good_kernel": ["w_good_kernel", "good kernel", "good_kernel"],
        "w_sample_after_cut": ["w_sample_after_cut", "sample after cut", "after cut"],
        "outturn_rate": ["outturn_rate", "outturn", "kor", "out turn"],
        "note": ["note", "notes", "remark", "remarks"],
    },
}


def infer_file_type(filename: str) -> str:
    """Infer file type from extension."""
    ext = Path(filename).suffix.lower()
    if ext == ".xlsx" or ext == ".xls":
        return "xlsx"
    elif ext == ".csv":
        return "csv"
    else:
        return ext.lstrip(".")


def read_csv(file_path: str) -> pd.DataFrame:
    # Try different encodings
    for encoding in ["utf-8", "latin-1", "cp1252"]:
        try:
            return pd.read_csv(file_path, encoding=encoding)
        except UnicodeDecodeError:
            continue
    raise ValueError("Could not decode CSV file")


def infer_record_kind(name: str) -> Optional[str]:
    """Infer which record kind a sheet (or CSV file stem) holds."""
    kind = get_record_kind_for_sheet(name)
    if kind in RECORD_KINDS:
        return kind
    lowered = name.lower()
    if "cut" in lowered or "quality" in lowered or "sample" in lowered:
        return "cutting_tests"
    if "container" in lowered or "weigh" in lowered:
        return "containers"
    if "bill" in lowered or "b/l" in lowered:
        return "bills"
    return None


def read_workbook(file_path: str) -> Dict[str, pd.DataFrame]:
    """
    Read a workbook into one DataFrame per record kind.

    Excel files contribute every non-empty sheet whose name resolves to a record
    kind; a CSV file holds a single kind named by its file stem.
    """
    file_type = infer_file_type(file_path)
    frames: Dict[str, pd.DataFrame] = {}

    if file_type == "xlsx":
        excel_file = pd.ExcelFile(file_path)
        for sheet_name in excel_file.sheet_names:
            df = pd.read_excel(excel_file, sheet_name=sheet_name)
            if df.empty:
                continue
            kind = infer_record_kind(sheet_name)
            if kind is None:
                logger.warning("Skipping sheet %s in %s: unknown record kind", sheet_name, file_path)
                continue
            if kind in frames:
                frames[kind] = pd.concat([frames[kind], df], ignore_index=True)
            else:
                frames[kind] = df
        if not frames:
            raise ValueError("No bill, container or cutting test data found in Excel file")
    elif file_type == "csv":
        kind = infer_record_kind(Path(file_path).stem)
        if kind is None:
            raise ValueError(f"Cannot tell which records {Path(file_path).name} holds")
        frames[kind] = read_csv(file_path)
    else:
        raise ValueError(f"Unsupported file type: {file_type}")

    return frames


def infer_column_mapping(df: pd.DataFrame, record_kind: str) -> Dict[str, str]:
    """
    Infer column mappings from DataFrame column names.
    Returns dict mapping source_column -> target_field.

    Priority:
    1. Config file explicit mapping for the record kind
    2. Pattern-based inference from COLUMN_PATTERNS
    """
    mappings = {
        source: target
        for source, target in get_column_mapping_for_kind(record_kind).items()
        if source in df.columns
    }

    df_columns = [str(col).lower().strip() for col in df.columns]
    patterns_for_kind = COLUMN_PATTERNS[record_kind]

    # Exact names are settled for every field before any substring match, so
    # "truck" cannot claim a "w_truck" column
    for target_field, patterns in patterns_for_kind.items():
        if target_field in mappings.values():
            continue
        for col_idx, col_name in enumerate(df_columns):
            original_col = df.columns[col_idx]
            if original_col not in mappings and col_name in patterns:
                mappings[original_col] = target_field
                break

    # Substring matches: the longest matching pattern wins, so "Truck Weight"
    # goes to w_truck rather than truck and "Sample After Cut" is not a cut type
    candidates = []
    for target_field, patterns in patterns_for_kind.items():
        if target_field in mappings.values():
            continue
        for col_idx, col_name in enumerate(df_columns):
            original_col = df.columns[col_idx]
            if original_col in mappings:
                continue
            longest = max((len(pattern) for pattern in patterns if pattern in col_name), default=0)
            if longest:
                candidates.append((longest, target_field, original_col))

    candidates.sort(key=lambda candidate: candidate[0], reverse=True)
    for _, target_field, original_col in candidates:
        if original_col in mappings or target_field in mappings.values():
            continue
        mappings[original_col] = target_field

    return mappings
