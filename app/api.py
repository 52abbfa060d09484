"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app.schemas import ReportResponse
from models.errors import InputUnavailable
from services.processor import ProcessorService, build_default_processor, build_processor
from settings import parse_year_month

router = APIRouter()


def get_processor() -> ProcessorService:
    return build_default_processor()


@router.post(
    "/reports",
    response_model=ReportResponse,
    summary="Aggregate an uploaded device export into monthly statistics.",
)
async def create_report(
    file: UploadFile = File(..., description="Pipe-delimited device export."),
    workers: Optional[int] = Query(None, ge=1, description="Worker threads to use."),
    cutoff: Optional[str] = Query(None, description="Earliest month kept, as YYYY-MM."),
    processor: ProcessorService = Depends(get_processor),
) -> ReportResponse:
    contents = await file.read()
    if not contents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )
    try:
        text = contents.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is not valid UTF-8.",
        ) from exc

    if cutoff is not None:
        try:
            processor = build_processor(workers=workers, cutoff=parse_year_month(cutoff))
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            ) from exc

    try:
        return processor.process_text(
            text, source_name=file.filename or "<upload>", workers=workers
        )
    except InputUnavailable as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        await file.close()


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "POST a device export to /reports."}
