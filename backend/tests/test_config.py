from decimal import Decimal

from cashew_qc.config import mapping_loader
from cashew_qc.config.settings import settings
from cashew_qc.config.threshold_loader import Thresholds, get_thresholds, thresholds_from_config


class TestThresholds:
    def test_packaged_config_matches_defaults(self):
        assert get_thresholds() == Thresholds()

    def test_partial_override(self):
        t = thresholds_from_config({"moisture": {"critical": 14}, "container": {"tare_ratio_of_gross": 0.25}})
        assert t.moisture_critical == Decimal("14")
        assert t.tare_ratio_of_gross == Decimal("0.25")
        assert t.moisture_high == Decimal("11")

    def test_unknown_keys_are_ignored(self):
        assert thresholds_from_config({"moisture": {"wet": 99}, "other": {"x": 1}}) == Thresholds()

    def test_reads_configured_path(self, tmp_path, monkeypatch):
        path = tmp_path / "thresholds.yaml"
        path.write_text("outturn:\n  high: 52\n", encoding="utf-8")
        monkeypatch.setattr(settings, "thresholds_path", str(path))
        assert get_thresholds().outturn_high == Decimal("52")

    def test_missing_file_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "thresholds_path", str(tmp_path / "absent.yaml"))
        assert get_thresholds() == Thresholds()


class TestMappingConfig:
    def test_sheet_names(self):
        assert mapping_loader.get_record_kind_for_sheet("Cutting Tests") == "cutting_tests"
        assert mapping_loader.get_record_kind_for_sheet("Container weighment") == "containers"
        assert mapping_loader.get_record_kind_for_sheet("BILLS") == "bills"
        assert mapping_loader.get_record_kind_for_sheet("Notes") is None
        assert mapping_loader.get_record_kind_for_sheet("") is None

    def test_column_overrides(self):
        assert mapping_loader.get_column_mapping_for_kind("containers")["Cont. No"] == "container_number"
        assert mapping_loader.get_column_mapping_for_kind("unknown") == {}
