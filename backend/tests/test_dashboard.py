from decimal import Decimal

from cashew_qc.schemas import Bill, CuttingTest, CuttingTestType
from cashew_qc.services.dashboard import (
    bills_missing_final_samples,
    bills_pending_final_tests,
    build_dashboard_stats,
    containers_pending_cutting_tests,
    containers_with_high_moisture,
    missing_final_cut_types,
    tests_with_high_moisture as high_moisture_tests,
)


class TestMoistureQueries:
    def test_wettest_first(self, clean_final_cut):
        wetter = CuttingTest(id=200, bill_id=1, type=CuttingTestType.FINAL_THIRD_CUT, moisture=Decimal("13.1"))
        wet = CuttingTest(id=201, bill_id=1, type=CuttingTestType.FINAL_SECOND_CUT, moisture=Decimal("11.4"))
        result = high_moisture_tests([wet, clean_final_cut, wetter], Decimal("11"))
        assert [test.id for test in result] == [200, 201]

    def test_threshold_is_exclusive(self):
        test = CuttingTest(id=1, bill_id=1, type=CuttingTestType.FINAL_FIRST_CUT, moisture=Decimal("11"))
        assert high_moisture_tests([test], Decimal("11")) == []

    def test_containers_with_high_moisture(self, weighed_container, unweighed_container):
        wet_cut = CuttingTest(
            id=300, bill_id=1, container_id=11, type=CuttingTestType.CONTAINER_CUT, moisture=Decimal("12")
        )
        result = containers_with_high_moisture([weighed_container, unweighed_container], [wet_cut], Decimal("11"))
        assert [container.id for container in result] == [11]


class TestPendingQueries:
    def test_containers_pending_cutting_tests(self, weighed_container, unweighed_container, container_cut):
        result = containers_pending_cutting_tests([weighed_container, unweighed_container], [container_cut])
        assert [container.id for container in result] == [11]

    def test_missing_final_cut_types(self, bill, clean_final_cut, wet_final_cut):
        assert missing_final_cut_types(bill, [clean_final_cut, wet_final_cut]) == [CuttingTestType.FINAL_THIRD_CUT]

    def test_bills_pending_final_tests(self, bill, container_cut, clean_final_cut):
        other = Bill(id=2)
        assert [b.id for b in bills_pending_final_tests([bill, other], [clean_final_cut])] == [2]
        # container cuts do not count as final samples
        assert [b.id for b in bills_pending_final_tests([bill], [container_cut])] == [1]

    def test_bills_missing_final_samples_needs_containers(self, bill, weighed_container, clean_final_cut):
        other = Bill(id=2)
        result = bills_missing_final_samples([bill, other], [weighed_container], [clean_final_cut])
        assert [b.id for b in result] == [1]


class TestDashboardStats:
    def test_build(self, dataset, thresholds):
        stats = build_dashboard_stats(dataset, {10: [], 11: ["alert"]}, {101: ["alert"]}, thresholds)
        assert stats.bills.total == 1
        assert stats.bills.pending_final_tests == 0
        assert stats.bills.missing_final_samples == 1
        assert stats.containers.pending_tests == 1
        assert stats.containers.high_moisture == 0
        assert stats.containers.with_alerts == 1
        assert stats.cutting_tests.high_moisture == 1
        assert stats.cutting_tests.with_alerts == 1
        assert stats.cutting_tests.moisture_distribution.total == 3
