"""
Batch audit API endpoints.
"""
import logging
import shutil
import tempfile
import traceback
from pathlib import Path

from fastapi import APIRouter, HTTPException, status, UploadFile, File as FastAPIFile
from fastapi.responses import FileResponse

from cashew_qc.schemas.audit_report import AuditReport
from cashew_qc.schemas.dataset import InspectionDataset
from cashew_qc.schemas.evaluation import UploadAuditResponse
from cashew_qc.services.audit_pipeline import run_audit
from cashew_qc.services.excel_export import generate_excel_report
from cashew_qc.services.file_parser import infer_file_type
from cashew_qc.services.normalizer import load_workbook

logger = logging.getLogger(__name__)
router = APIRouter()

SUPPORTED_FILE_TYPES = ("xlsx", "csv")


@router.post("", response_model=AuditReport)
async def create_audit(dataset: InspectionDataset):
    """Run every derivation and alert rule over an inspection dataset."""
    logger.info(
        "Running audit: bills=%d containers=%d tests=%d",
        len(dataset.bills),
        len(dataset.containers),
        len(dataset.cutting_tests),
    )
    return run_audit(dataset)


@router.post("/upload", response_model=UploadAuditResponse)
async def upload_and_audit(file: UploadFile = FastAPIFile(...)):
    """Upload an inspection workbook (xlsx or csv), normalize it and audit it."""
    file_type = infer_file_type(file.filename or "")
    if file_type not in SUPPORTED_FILE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type: {file_type}",
        )

    with tempfile.TemporaryDirectory() as temp_dir:
        file_path = Path(temp_dir) / Path(file.filename).name
        with open(file_path, "wb") as buffer:
            shutil.copyfileobj(file.file, buffer)

        try:
            normalized = load_workbook(str(file_path))
        except ValueError as e:
            logger.warning("Could not read %s: %s", file.filename, e)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e),
            )
        except Exception as e:
            logger.error(f"Error reading {file.filename}: {str(e)}")
            logger.error(f"Traceback: {traceback.format_exc()}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to read file: {str(e)}",
            )

    report = run_audit(normalized.dataset)
    return UploadAuditResponse(
        filename=file.filename,
        report=report,
        rejected_rows=normalized.rejected_rows,
    )


@router.post("/excel")
async def download_excel_report(dataset: InspectionDataset):
    """Audit a dataset and return the Excel report."""
    report = run_audit(dataset)
    try:
        file_path = generate_excel_report(report)
    except OSError as e:
        logger.error(f"Error writing Excel report: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate report: {str(e)}",
        )

    return FileResponse(
        file_path,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        filename=Path(file_path).name,
    )
