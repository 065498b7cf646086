from decimal import Decimal

import pandas as pd
import pytest

from cashew_qc.schemas import ContainerCondition, CuttingTestType, SealCondition
from cashew_qc.services.file_parser import infer_column_mapping, infer_record_kind, read_workbook
from cashew_qc.services.normalizer import (
    load_workbook,
    normalize_row,
    normalize_workbook,
    parse_date,
    safe_decimal,
    safe_int,
)


def _frames():
    bills = pd.DataFrame([
        {"id": 1, "bill_number": "BL-001", "seller": "Binh Phuoc", "w_jute_bag": 1.5, "w_dunnage_dribag": 150},
    ])
    containers = pd.DataFrame([
        {
            "id": 10, "bill_id": 1, "Cont. No": "mscu 1234567", "quantity_of_bags": 100,
            "w_total": "25,000", "w_truck": 10000, "w_container": 2500,
            "container_condition": "Nguyên vẹn", "seal_condition": "Intact",
        },
        {
            "id": 11, "bill_id": 1, "Cont. No": "BAD", "quantity_of_bags": 100,
            "w_total": None, "w_truck": None, "w_container": None,
            "container_condition": None, "seal_condition": None,
        },
    ])
    tests = pd.DataFrame([
        {"id": 100, "bill_id": 1, "container_id": None, "type": "Final 1", "moisture": 10.5, "sample_weight": 1000},
        {"id": 101, "bill_id": 1, "container_id": 10, "type": 4, "moisture": "9.8%", "sample_weight": 1000},
        {"id": 102, "bill_id": 1, "container_id": 11, "type": 4, "moisture": 9.0, "sample_weight": 1000},
    ])
    return {"bills": bills, "containers": containers, "cutting_tests": tests}


class TestValueParsing:
    @pytest.mark.parametrize("raw,expected", [
        ("1,234.5", Decimal("1234.5")),
        ("12.5%", Decimal("12.5")),
        (" 1 500 kg", Decimal("1500")),
        (7, Decimal("7")),
        (10.5, Decimal("10.5")),
    ])
    def test_safe_decimal(self, raw, expected):
        assert safe_decimal(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "  ", float("nan"), "n/a"])
    def test_safe_decimal_blank_or_invalid(self, raw):
        assert safe_decimal(raw) is None

    def test_safe_int(self):
        assert safe_int(100.0) == 100
        assert safe_int("2,000") == 2000
        assert safe_int(1.5) is None

    def test_parse_date(self):
        assert parse_date("2024-03-05").day == 5
        assert parse_date(None) is None
        assert parse_date("not a date") is None


class TestColumnMapping:
    def test_exact_names_beat_substrings(self):
        df = pd.DataFrame(columns=["truck", "w_truck", "Cont. No", "W Total"])
        mappings = infer_column_mapping(df, "containers")
        assert mappings["truck"] == "truck"
        assert mappings["w_truck"] == "w_truck"
        assert mappings["Cont. No"] == "container_number"
        assert mappings["W Total"] == "w_total"

    def test_w_truck_not_taken_by_truck_plate(self):
        df = pd.DataFrame(columns=["w_truck"])
        assert infer_column_mapping(df, "containers") == {"w_truck": "w_truck"}

    def test_weighbridge_headers_go_to_weight_fields(self):
        df = pd.DataFrame(columns=["Truck Weight (kg)", "Truck No.", "Total Weight (kg)"])
        assert infer_column_mapping(df, "containers") == {
            "Truck Weight (kg)": "w_truck",
            "Truck No.": "truck",
            "Total Weight (kg)": "w_total",
        }

    def test_sample_after_cut_is_not_a_cut_type(self):
        df = pd.DataFrame(columns=["Sample After Cut (g)", "Sample (g)"])
        assert infer_column_mapping(df, "cutting_tests") == {
            "Sample After Cut (g)": "w_sample_after_cut",
            "Sample (g)": "sample_weight",
        }

    def test_container_id_not_taken_by_id(self):
        df = pd.DataFrame(columns=["Test No", "Container ID"])
        assert infer_column_mapping(df, "cutting_tests")["Container ID"] == "container_id"

    def test_descriptive_headers(self):
        df = pd.DataFrame(columns=["Test ID", "Bill ID", "Cut Type", "Moisture (%)", "Sample Weight (g)"])
        mappings = infer_column_mapping(df, "cutting_tests")
        assert mappings["Test ID"] == "id"
        assert mappings["Cut Type"] == "type"
        assert mappings["Moisture (%)"] == "moisture"
        assert mappings["Sample Weight (g)"] == "sample_weight"

    def test_record_kind_from_name(self):
        assert infer_record_kind("cutting_tests") == "cutting_tests"
        assert infer_record_kind("Sample results") == "cutting_tests"
        assert infer_record_kind("summary") is None


class TestNormalizeRow:
    def test_blank_cells_are_left_out(self):
        row = pd.Series({"id": 1, "w_jute_bag": None, "note": "  "})
        assert normalize_row(row, {"id": "id", "w_jute_bag": "w_jute_bag", "note": "note"}) == {"id": 1}

    def test_labels_are_parsed(self):
        row = pd.Series({"cond": "slightly damaged", "seal": "Bị phá", "cut": "Container cut"})
        result = normalize_row(
            row, {"cond": "container_condition", "seal": "seal_condition", "cut": "type"}
        )
        assert result == {
            "container_condition": ContainerCondition.SLIGHTLY_DAMAGED,
            "seal_condition": SealCondition.BROKEN,
            "type": CuttingTestType.CONTAINER_CUT,
        }


class TestNormalizeWorkbook:
    def test_builds_dataset_and_rejects_bad_rows(self):
        normalized = normalize_workbook(_frames())
        dataset = normalized.dataset

        assert [bill.id for bill in dataset.bills] == [1]
        assert dataset.bills[0].w_jute_bag == Decimal("1.5")

        assert [container.id for container in dataset.containers] == [10]
        container = dataset.containers[0]
        assert container.container_number == "MSCU1234567"
        assert container.w_total == Decimal("25000")
        assert container.container_condition == ContainerCondition.INTACT
        assert container.seal_condition == SealCondition.INTACT

        assert [test.id for test in dataset.cutting_tests] == [100, 101]
        assert dataset.cutting_tests[0].type == CuttingTestType.FINAL_FIRST_CUT
        assert dataset.cutting_tests[0].container_id is None
        assert dataset.cutting_tests[1].moisture == Decimal("9.8")

        rejected = {(row.record_kind, row.row_number) for row in normalized.rejected_rows}
        assert ("containers", 3) in rejected
        assert ("cutting_tests", 0) in rejected
        assert len(normalized.rejected_rows) == 2

    def test_type_and_container_must_agree(self):
        frames = _frames()
        frames["cutting_tests"] = pd.DataFrame([
            {"id": 100, "bill_id": 1, "container_id": 10, "type": 1, "moisture": 10.5, "sample_weight": 1000},
        ])
        normalized = normalize_workbook(frames)
        assert normalized.dataset.cutting_tests == []
        assert normalized.rejected_rows[-1].row_number == 2
        assert "Final sample tests cannot be associated with a container" in normalized.rejected_rows[-1].errors[0]

    def test_duplicate_ids_are_rejected(self):
        frames = _frames()
        frames["cutting_tests"] = pd.DataFrame([
            {"id": 100, "bill_id": 1, "type": "Final 1", "moisture": 10.5, "sample_weight": 1000},
            {"id": 100, "bill_id": 1, "type": "Final 2", "moisture": 9.5, "sample_weight": 1000},
        ])
        normalized = normalize_workbook(frames)
        assert [test.type for test in normalized.dataset.cutting_tests] == [CuttingTestType.FINAL_FIRST_CUT]
        duplicate = normalized.rejected_rows[-1]
        assert (duplicate.record_kind, duplicate.row_number) == ("cutting_tests", 3)
        assert duplicate.errors == ["Duplicate cutting test id 100"]

    def test_missing_sheets(self):
        normalized = normalize_workbook({"bills": _frames()["bills"]})
        assert len(normalized.dataset.bills) == 1
        assert normalized.dataset.containers == []


class TestReadWorkbook:
    def test_excel_round_trip(self, tmp_path):
        path = tmp_path / "inspection.xlsx"
        frames = _frames()
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            frames["bills"].to_excel(writer, sheet_name="Bills", index=False)
            frames["containers"].to_excel(writer, sheet_name="Container weighment", index=False)
            frames["cutting_tests"].to_excel(writer, sheet_name="Cutting Tests", index=False)
            pd.DataFrame({"remark": ["checked"]}).to_excel(writer, sheet_name="Notes", index=False)

        assert set(read_workbook(str(path))) == {"bills", "containers", "cutting_tests"}

        normalized = load_workbook(str(path))
        assert [test.id for test in normalized.dataset.cutting_tests] == [100, 101]
        assert len(normalized.rejected_rows) == 2

    def test_csv_kind_from_file_name(self, tmp_path):
        path = tmp_path / "bills.csv"
        _frames()["bills"].to_csv(path, index=False)
        frames = read_workbook(str(path))
        assert list(frames) == ["bills"]
        assert frames["bills"].loc[0, "bill_number"] == "BL-001"

    def test_unknown_csv_name(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text("a,b\n1,2\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Cannot tell which records"):
            read_workbook(str(path))

    def test_unsupported_type(self, tmp_path):
        path = tmp_path / "bills.json"
        path.write_text("{}", encoding="utf-8")
        with pytest.raises(ValueError, match="Unsupported file type"):
            read_workbook(str(path))

    def test_workbook_without_known_sheets(self, tmp_path):
        path = tmp_path / "other.xlsx"
        pd.DataFrame({"x": [1]}).to_excel(path, sheet_name="Summary", index=False)
        with pytest.raises(ValueError, match="No bill, container or cutting test data"):
            read_workbook(str(path))
