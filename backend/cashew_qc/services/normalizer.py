"""
Data normalization service - converts raw DataFrame rows to bill, container and
cutting test records.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Type

import pandas as pd
from pydantic import BaseModel, ValidationError

from cashew_qc.schemas.bill import Bill
from cashew_qc.schemas.container import Container, ContainerCondition, SealCondition
from cashew_qc.schemas.cutting_test import CuttingTest, CuttingTestType
from cashew_qc.schemas.dataset import InspectionDataset, RejectedRow
from cashew_qc.services.file_parser import infer_column_mapping, read_workbook

logger = logging.getLogger(__name__)

DECIMAL_FIELDS = {
    "w_jute_bag", "sampling_ratio",
    "w_total", "w_truck", "w_container", "w_gross", "w_tare", "w_net",
    "moisture", "outturn_rate",
}
INT_FIELDS = {
    "id", "bill_id", "container_id", "w_dunnage_dribag", "net_on_bl", "quantity_of_bags_on_bl",
    "quantity_of_bags", "sample_weight", "nut_count", "w_reject_nut", "w_defective_nut",
    "w_defective_kernel", "w_good_kernel", "w_sample_after_cut",
}
DATE_FIELDS = {"inspection_start_date", "inspection_end_date"}

# Condition labels as they appear in exported sheets, including the Vietnamese
# values the inspection forms store
CONTAINER_CONDITION_ALIASES = {
    "intact": ContainerCondition.INTACT,
    "nguyên vẹn": ContainerCondition.INTACT,
    "damaged": ContainerCondition.DAMAGED,
    "hư hỏng": ContainerCondition.DAMAGED,
    "slightly damaged": ContainerCondition.SLIGHTLY_DAMAGED,
    "hư hỏng nhẹ": ContainerCondition.SLIGHTLY_DAMAGED,
    "severely damaged": ContainerCondition.SEVERELY_DAMAGED,
    "hư hỏng nặng": ContainerCondition.SEVERELY_DAMAGED,
}
SEAL_CONDITION_ALIASES = {
    "intact": SealCondition.INTACT,
    "nguyên vẹn": SealCondition.INTACT,
    "broken": SealCondition.BROKEN,
    "bị phá": SealCondition.BROKEN,
    "missing": SealCondition.MISSING,
    "thiếu": SealCondition.MISSING,
    "tampered": SealCondition.TAMPERED,
    "bị can thiệp": SealCondition.TAMPERED,
}
CUTTING_TEST_TYPE_ALIASES = {
    "final 1": CuttingTestType.FINAL_FIRST_CUT,
    "final first cut": CuttingTestType.FINAL_FIRST_CUT,
    "final 2": CuttingTestType.FINAL_SECOND_CUT,
    "final second cut": CuttingTestType.FINAL_SECOND_CUT,
    "final 3": CuttingTestType.FINAL_THIRD_CUT,
    "final third cut": CuttingTestType.FINAL_THIRD_CUT,
    "container": CuttingTestType.CONTAINER_CUT,
    "container cut": CuttingTestType.CONTAINER_CUT,
}

RECORD_LABELS = {
    "bills": "bill",
    "containers": "container",
    "cutting_tests": "cutting test",
}

RECORD_MODELS: Dict[str, Type[BaseModel]] = {
    "bills": Bill,
    "containers": Container,
    "cutting_tests": CuttingTest,
}


@dataclass
class NormalizedWorkbook:
    dataset: InspectionDataset
    rejected_rows: List[RejectedRow] = field(default_factory=list)


def _is_blank(val: Any) -> bool:
    if val is None:
        return True
    try:
        if pd.isna(val):
            return True
    except (TypeError, ValueError):
        pass
    return isinstance(val, str) and not val.strip()


def safe_decimal(val: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    Safely convert a value to Decimal.

    Handles common weighbridge sheet formats like:
    - "25,000"
    - "12.5%"
    - " 1 500 kg"
    """
    if _is_blank(val):
        return default
    try:
        if isinstance(val, str):
            s = val.strip().lower()
            for token in [",", "%", "kg", "g", " "]:
                s = s.replace(token, "")
            if not s:
                return default
            val = s
        number = Decimal(str(val))
    except (InvalidOperation, ValueError, TypeError):
        return default
    return number if number.is_finite() else default


def safe_int(val: Any, default: Optional[int] = None) -> Optional[int]:
    number = safe_decimal(val)
    if number is None or number != number.to_integral_value():
        return default
    return int(number)


def norm_text(val: Any) -> Optional[str]:
    """Normalize text: strip whitespace, empty becomes None."""
    if _is_blank(val):
        return None
    s = str(val).strip()
    return s if s else None


def parse_date(val: Any) -> Optional[datetime]:
    if _is_blank(val):
        return None
    if isinstance(val, (datetime, pd.Timestamp)):
        return pd.Timestamp(val).to_pydatetime()
    try:
        return pd.to_datetime(str(val)).to_pydatetime()
    except (ValueError, TypeError):
        return None


def _parse_alias(val: Any, aliases: Dict[str, Any]) -> Any:
    text = norm_text(val)
    if text is None:
        return None
    # Unknown labels pass through so record validation reports them
    return aliases.get(text.lower(), text)


def parse_cutting_test_type(val: Any) -> Any:
    number = safe_int(val)
    if number is not None:
        return number
    return _parse_alias(val, CUTTING_TEST_TYPE_ALIASES)


def normalize_row(row: pd.Series, mappings: Dict[str, str]) -> Dict[str, Any]:
    """
    Normalize a single row to record fields.

    Args:
        row: pandas Series representing one row
        mappings: dict mapping source_column -> target_field

    Returns:
        dict of target field -> parsed value (blank cells are left out so the
        record defaults apply)
    """
    result: Dict[str, Any] = {}
    for source_col, target_field in mappings.items():
        if source_col not in row.index:
            continue
        raw = row[source_col]
        if _is_blank(raw):
            continue

        if target_field in INT_FIELDS:
            value = safe_int(raw)
        elif target_field in DECIMAL_FIELDS:
            value = safe_decimal(raw)
        elif target_field in DATE_FIELDS:
            value = parse_date(raw)
        elif target_field == "container_condition":
            value = _parse_alias(raw, CONTAINER_CONDITION_ALIASES)
        elif target_field == "seal_condition":
            value = _parse_alias(raw, SEAL_CONDITION_ALIASES)
        elif target_field == "type":
            value = parse_cutting_test_type(raw)
        elif target_field == "container_number":
            text = norm_text(raw)
            value = text.upper().replace(" ", "") if text else None
        else:
            value = norm_text(raw)

        if value is not None:
            result[target_field] = value
    return result


def _format_errors(exc: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc']) or 'row'}: {err['msg']}"
        for err in exc.errors()
    ]


def _build_records(record_kind: str, df: pd.DataFrame, rejected: List[RejectedRow]) -> List[BaseModel]:
    model = RECORD_MODELS[record_kind]
    mappings = infer_column_mapping(df, record_kind)
    records = []
    seen_ids = set()
    for idx, row in df.iterrows():
        # Spreadsheet row number: header is row 1
        row_number = int(idx) + 2
        data = normalize_row(row, mappings)
        try:
            record = model(**data)
        except ValidationError as exc:
            rejected.append(RejectedRow(record_kind=record_kind, row_number=row_number, errors=_format_errors(exc)))
            continue
        if record.id in seen_ids:
            rejected.append(RejectedRow(
                record_kind=record_kind,
                row_number=row_number,
                errors=[f"Duplicate {RECORD_LABELS[record_kind]} id {record.id}"],
            ))
            continue
        seen_ids.add(record.id)
        records.append(record)
    return records


def normalize_workbook(frames: Dict[str, pd.DataFrame]) -> NormalizedWorkbook:
    """
    Build an InspectionDataset from per-kind DataFrames.

    Rows that fail record validation are rejected rather than aborting the load;
    containers and cutting tests whose bill or container was rejected (or never
    present) are rejected as well, so the dataset stays consistent.
    """
    rejected: List[RejectedRow] = []
    empty = pd.DataFrame()

    bills = _build_records("bills", frames.get("bills", empty), rejected)
    bill_ids = {bill.id for bill in bills}

    containers = []
    for container in _build_records("containers", frames.get("containers", empty), rejected):
        if container.bill_id in bill_ids:
            containers.append(container)
        else:
            rejected.append(RejectedRow(
                record_kind="containers",
                row_number=0,
                errors=[f"Container {container.id} references unknown bill {container.bill_id}"],
            ))
    container_ids = {container.id for container in containers}

    tests = []
    for test in _build_records("cutting_tests", frames.get("cutting_tests", empty), rejected):
        if test.bill_id not in bill_ids:
            error = f"Cutting test {test.id} references unknown bill {test.bill_id}"
        elif test.container_id is not None and test.container_id not in container_ids:
            error = f"Cutting test {test.id} references unknown container {test.container_id}"
        else:
            tests.append(test)
            continue
        rejected.append(RejectedRow(record_kind="cutting_tests", row_number=0, errors=[error]))

    for row in rejected:
        logger.warning("Rejected %s row %s: %s", row.record_kind, row.row_number, "; ".join(row.errors))

    dataset = InspectionDataset(bills=bills, containers=containers, cutting_tests=tests)
    return NormalizedWorkbook(dataset=dataset, rejected_rows=rejected)


def load_workbook(file_path: str) -> NormalizedWorkbook:
    """Read a workbook or CSV file and normalize it in one step."""
    frames = read_workbook(file_path)
    normalized = normalize_workbook(frames)
    logger.info(
        "Loaded %s: bills=%d containers=%d tests=%d rejected=%d",
        file_path,
        len(normalized.dataset.bills),
        len(normalized.dataset.containers),
        len(normalized.dataset.cutting_tests),
        len(normalized.rejected_rows),
    )
    return normalized
