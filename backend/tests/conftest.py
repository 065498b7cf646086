from decimal import Decimal

import pytest

from cashew_qc.config.threshold_loader import Thresholds, clear_threshold_cache
from cashew_qc.schemas import Bill, Container, CuttingTest, CuttingTestType, InspectionDataset


@pytest.fixture(autouse=True)
def _reset_threshold_cache():
    clear_threshold_cache()
    yield
    clear_threshold_cache()


@pytest.fixture
def thresholds():
    return Thresholds()


@pytest.fixture
def bill():
    return Bill(
        id=1,
        bill_number="BL-2024-001",
        seller="Binh Phuoc Cashew",
        buyer="Nordic Nuts AB",
        w_jute_bag=Decimal("1.5"),
        w_dunnage_dribag=150,
    )


@pytest.fixture
def weighed_container():
    # gross 12500, tare 150.00, net 12200.00
    return Container(
        id=10,
        bill_id=1,
        truck="51C-12345",
        container_number="MSCU1234567",
        quantity_of_bags=100,
        w_total=Decimal("25000"),
        w_truck=Decimal("10000"),
        w_container=Decimal("2500"),
    )


@pytest.fixture
def unweighed_container():
    return Container(id=11, bill_id=1, container_number="TGHU7654321", quantity_of_bags=200)


@pytest.fixture
def clean_final_cut():
    # Derived outturn 46.38, every rule within range
    return CuttingTest(
        id=100,
        bill_id=1,
        type=CuttingTestType.FINAL_FIRST_CUT,
        moisture=Decimal("10.5"),
        sample_weight=1000,
        w_sample_after_cut=998,
        w_reject_nut=100,
        w_defective_nut=66,
        w_defective_kernel=20,
        w_good_kernel=253,
    )


@pytest.fixture
def wet_final_cut():
    return CuttingTest(
        id=101,
        bill_id=1,
        type=CuttingTestType.FINAL_SECOND_CUT,
        moisture=Decimal("11.2"),
        sample_weight=1000,
    )


@pytest.fixture
def container_cut():
    return CuttingTest(
        id=102,
        bill_id=1,
        container_id=10,
        type=CuttingTestType.CONTAINER_CUT,
        moisture=Decimal("9.8"),
        sample_weight=1000,
        outturn_rate=Decimal("48.5"),
    )


@pytest.fixture
def dataset(bill, weighed_container, unweighed_container, clean_final_cut, wet_final_cut, container_cut):
    return InspectionDataset(
        bills=[bill],
        containers=[weighed_container, unweighed_container],
        cutting_tests=[clean_final_cut, wet_final_cut, container_cut],
    )
