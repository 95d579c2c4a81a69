from typing import Optional

from fastapi import APIRouter, Body, File, Form, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError
import logging

from pgxrisk.core.config import get_settings
from pgxrisk.schemas.pharma_schema import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    AnalysisError,
    AnalysisRequest,
    AnalysisResponse,
    ExplanationRequest,
)
from pgxrisk.services.llm.explanation_client import ExplanationClient
from pgxrisk.services.llm.explanation_service import build_request_explanation, enrich_results
from pgxrisk.services.pharmacogenomics.rule_loader import get_supported_drugs
from pgxrisk.services.pipeline.analysis_pipeline import run_analysis_pipeline

router = APIRouter()
logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".vcf", ".vcf.gz")

# Stand-in VCF for drug-only requests: one hom-ref row, no marker rsIDs
REFERENCE_VCF = (
    "##fileformat=VCFv4.1\n"
    "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tSAMPLE\n"
    "chr1\t1\t.\tA\tG\t.\t.\t.\tGT\t0/0"
)


def _error_response(code: str, message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"code": code, "message": message}})


def _first_validation_message(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return "Invalid input."
    return str(errors[0].get("msg", "Invalid input.")).removeprefix("Value error, ")


def check_upload(filename: Optional[str], size: int) -> Optional[AnalysisError]:
    """Size and file-name checks for an uploaded VCF."""
    if size > get_settings().MAX_UPLOAD_BYTES:
        limit_mb = get_settings().MAX_UPLOAD_BYTES // (1024 * 1024)
        return AnalysisError(code="FILE_TOO_LARGE", message=f"VCF file must be under {limit_mb}MB.")
    if not (filename or "").lower().endswith(ALLOWED_EXTENSIONS):
        return AnalysisError(code="INVALID_FILE_TYPE", message="Only .vcf and .vcf.gz files are accepted.")
    return None


@router.post(
    "/analyze",
    response_model=AnalysisResponse,
    status_code=status.HTTP_200_OK,
    summary="Analyze Pharmacogenomic Risk",
    description="Upload a VCF file and/or list drugs to receive per-drug pharmacogenomic risk assessments.",
)
async def analyze_pharmacogenomics(
    vcf: Optional[UploadFile] = File(None, description="Single-sample VCF file"),
    drugs: str = Form("", description="Comma-separated drug names (e.g., Codeine, Warfarin)"),
    language: str = Form(DEFAULT_LANGUAGE, description="Preferred explanation language"),
):
    """
    - **vcf**: optional genetic data file; without it a reference genotype is assumed
    - **drugs**: drugs to analyse; with a file and no drugs, every supported drug is analysed
    - **language**: one of the supported language codes
    """
    try:
        request = AnalysisRequest(drugs=drugs or "", language=language)
    except ValidationError as e:
        return _error_response("VALIDATION_ERROR", _first_validation_message(e))

    drug_names = request.drug_names()
    if vcf is None and not drug_names:
        return _error_response("NO_DRUGS", "Drug names are required for text-based analysis.")

    if vcf is not None:
        content = await vcf.read()
        upload_error = check_upload(vcf.filename, len(content))
        if upload_error is not None:
            return AnalysisResponse(results=[], errors=[upload_error], language=request.language, success=False)
        vcf_content = content.decode("utf-8", errors="replace")
        drugs_to_process = drug_names or get_supported_drugs()
    else:
        vcf_content = REFERENCE_VCF
        drugs_to_process = drug_names

    result = await run_in_threadpool(run_analysis_pipeline, vcf_content, drugs_to_process, request.language)
    results = result.results
    errors = list(result.errors)

    client = ExplanationClient()
    if client.enabled and results:
        results = await enrich_results(results, request.language, client)
        if client.quota_exceeded_message:
            errors.append(AnalysisError(code="LLM_QUOTA_EXCEEDED", message=client.quota_exceeded_message))

    return AnalysisResponse(
        results=results,
        errors=errors,
        language=request.language,
        success=not errors,
    )


@router.post("/explanation", summary="Template explanation for one drug result")
async def explain(payload: dict = Body(...)):
    try:
        request = ExplanationRequest.model_validate(payload)
    except ValidationError as e:
        return _error_response("VALIDATION_ERROR", _first_validation_message(e))

    explanation = build_request_explanation(request)
    return {
        "explanation": explanation.model_dump(),
        "input": request.model_dump(),
        "success": True,
    }


@router.get("/drugs", summary="Supported drugs and languages")
async def list_supported():
    return {"drugs": get_supported_drugs(), "languages": SUPPORTED_LANGUAGES}
