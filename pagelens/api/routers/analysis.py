"""
Document analysis API endpoints.
"""
from typing import Any, Callable

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from ..models.analysis import APIEnrichedPage, APIPage, DescribeImageResponse, EnrichedExtractResponse, ExtractResponse
from ..models.common import APIValidationIssue, ErrorResponse
from ..dependencies.engines import get_pipeline
from pagelens.pipeline.analysis import AnalysisPipeline, AnalysisResult, ErrorResult, FlowOutcome, Page

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Request body failed validation"},
    500: {"model": ErrorResponse, "description": "Upstream or internal failure"},
}


def convert_page(page: Page) -> APIPage:
    return APIPage(page=page.page_number, text=page.text, markdown=page.markdown, image_base64=page.image_base64)


def convert_enriched_page(page: Page) -> APIEnrichedPage:
    return APIEnrichedPage(
        page=page.page_number,
        text=page.text,
        markdown=page.markdown,
        image_base64=page.image_base64,
        data_uri=page.data_uri,
    )


def convert_error(error: ErrorResult) -> ErrorResponse:
    issues = None
    if error.issues is not None:
        issues = [APIValidationIssue(**issue.to_dict()) for issue in error.issues]
    return ErrorResponse(message=error.message, validation_issues=issues)


def convert_extract_result(result: AnalysisResult) -> ExtractResponse:
    return ExtractResponse(pages=[convert_page(p) for p in result.pages])


def convert_enriched_result(result: AnalysisResult) -> EnrichedExtractResponse:
    return EnrichedExtractResponse(
        pages=[convert_enriched_page(p) for p in result.pages],
        document_data_uri=result.document_data_uri,
    )


def convert_describe_result(result: AnalysisResult) -> DescribeImageResponse:
    return DescribeImageResponse(
        data_uri=result.document_data_uri,
        description=result.description,
        pages=[convert_enriched_page(p) for p in result.pages],
    )


def to_response(outcome: FlowOutcome, convert: Callable[[AnalysisResult], Any]) -> JSONResponse:
    if not outcome.ok:
        body = convert_error(outcome.error).model_dump(by_alias=True, exclude_none=True)
    else:
        body = convert(outcome.result).model_dump(by_alias=True)
    return JSONResponse(status_code=outcome.status_code, content=body)


@router.post("/extract", response_model=ExtractResponse, responses=ERROR_RESPONSES)
async def extract(payload: Any = Body(None), pipeline: AnalysisPipeline = Depends(get_pipeline)):
    """OCR only: the engine reads the URL directly and pages keep their extracted text."""
    outcome = await pipeline.extract(payload)
    return to_response(outcome, convert_extract_result)


@router.post("/extract-enriched", response_model=EnrichedExtractResponse, responses=ERROR_RESPONSES)
async def extract_enriched(payload: Any = Body(None), pipeline: AnalysisPipeline = Depends(get_pipeline)):
    """OCR plus vision descriptions for every page that carries an embedded image."""
    outcome = await pipeline.extract_enriched(payload)
    return to_response(outcome, convert_enriched_result)


@router.post("/describe-image", response_model=DescribeImageResponse, responses=ERROR_RESPONSES)
async def describe_image(payload: Any = Body(None), pipeline: AnalysisPipeline = Depends(get_pipeline)):
    outcome = await pipeline.describe_image(payload)
    return to_response(outcome, convert_describe_result)
