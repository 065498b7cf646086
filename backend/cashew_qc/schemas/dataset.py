"""
Inspection dataset schema - the in-memory snapshot a batch audit runs over.
"""
from pydantic import BaseModel, Field, model_validator
from typing import List

from cashew_qc.schemas.bill import Bill
from cashew_qc.schemas.container import Container
from cashew_qc.schemas.cutting_test import CuttingTest


class InspectionDataset(BaseModel):
    bills: List[Bill] = Field(default_factory=list)
    containers: List[Container] = Field(default_factory=list)
    cutting_tests: List[CuttingTest] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_references(self) -> "InspectionDataset":
        for label, records in (
            ("bill", self.bills),
            ("container", self.containers),
            ("cutting test", self.cutting_tests),
        ):
            seen = set()
            for record in records:
                if record.id in seen:
                    raise ValueError(f"Duplicate {label} id {record.id}")
                seen.add(record.id)

        bill_ids = {bill.id for bill in self.bills}
        container_ids = {container.id for container in self.containers}

        for container in self.containers:
            if container.bill_id not in bill_ids:
                raise ValueError(f"Container {container.id} references unknown bill {container.bill_id}")
        for test in self.cutting_tests:
            if test.bill_id not in bill_ids:
                raise ValueError(f"Cutting test {test.id} references unknown bill {test.bill_id}")
            if test.container_id is not None and test.container_id not in container_ids:
                raise ValueError(
                    f"Cutting test {test.id} references unknown container {test.container_id}"
                )
        return self


class RejectedRow(BaseModel):
    record_kind: str
    row_number: int
    errors: List[str] = Field(default_factory=list)
