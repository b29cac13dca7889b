import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from pagelens.models.manager import ModelManager

from .errors import DEFAULT_ERROR_MESSAGE, DEFAULT_ERROR_STATUS, PipelineError
from .fetcher import DocumentFetcher
from .normalizer import DEFAULT_PAGE_PROMPT, PageNormalizer
from .ocr import TextExtractionClient
from .types import AnalysisRequest, AnalysisResult, ErrorResult, NormalizationPolicy
from .validator import validate_request
from .vlm import VisionDescriptionClient

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_PROMPT = "vision/describe_image@v1"


class Flow(Enum):
    EXTRACT = "extract"
    EXTRACT_ENRICHED = "extract-enriched"
    DESCRIBE_IMAGE = "describe-image"

@dataclass(frozen=True)
class FlowOutcome:
    status_code: int
    result: Optional[AnalysisResult] = None
    error: Optional[ErrorResult] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AnalysisPipeline:
    """
    Composes validation, fetching, extraction, vision and normalization into the
    three request flows. Every flow has one error boundary; nothing raised below
    it escapes as an exception.
    """

    def __init__(self, fetcher: DocumentFetcher, extraction_client: TextExtractionClient, vision_client: VisionDescriptionClient, normalizer: PageNormalizer, image_prompt_ref: str = DEFAULT_IMAGE_PROMPT):
        self.fetcher = fetcher
        self.extraction_client = extraction_client
        self.vision_client = vision_client
        self.normalizer = normalizer
        self.image_prompt_ref = image_prompt_ref

    @classmethod
    def from_manager(cls, manager: ModelManager) -> "AnalysisPipeline":
        pipeline_cfg = manager.section("pipeline")
        vision_client = VisionDescriptionClient(manager)
        normalizer = PageNormalizer(
            vision_client,
            page_prompt_ref=pipeline_cfg.get("page_prompt_ref", DEFAULT_PAGE_PROMPT),
            vision_concurrency=pipeline_cfg.get("vision_concurrency", 1),
        )
        return cls(
            fetcher=DocumentFetcher.from_config(manager.section("fetcher")),
            extraction_client=TextExtractionClient(manager),
            vision_client=vision_client,
            normalizer=normalizer,
            image_prompt_ref=pipeline_cfg.get("image_prompt_ref", DEFAULT_IMAGE_PROMPT),
        )

    async def extract(self, body: Any) -> FlowOutcome:
        return await self._run(Flow.EXTRACT, body, self._extract)

    async def extract_enriched(self, body: Any) -> FlowOutcome:
        return await self._run(Flow.EXTRACT_ENRICHED, body, self._extract_enriched)

    async def describe_image(self, body: Any) -> FlowOutcome:
        return await self._run(Flow.DESCRIBE_IMAGE, body, self._describe_image)

    async def _extract(self, request: AnalysisRequest) -> AnalysisResult:
        # the engine downloads the document itself
        raw_pages = await self.extraction_client.extract_url(request.url, request.kind)
        pages = await self.normalizer.normalize(raw_pages, NormalizationPolicy.EXTRACTION_ONLY)
        return AnalysisResult(pages=pages)

    async def _extract_enriched(self, request: AnalysisRequest) -> AnalysisResult:
        document = await self.fetcher.fetch(request.url, request.kind)

        if request.kind == "image":
            description = await self.vision_client.describe(document.encoded_data_uri, self.normalizer.page_prompt_ref)
            page = self.normalizer.single_image_page(document, description)
            return AnalysisResult(pages=[page], document_data_uri=document.encoded_data_uri)

        raw_pages = await self.extraction_client.extract_url(request.url, request.kind)
        pages = await self.normalizer.normalize(raw_pages, NormalizationPolicy.EXTRACTION_WITH_VISION)
        return AnalysisResult(pages=pages, document_data_uri=document.encoded_data_uri)

    async def _describe_image(self, request: AnalysisRequest) -> AnalysisResult:
        document = await self.fetcher.fetch(request.url, request.kind)
        description = await self.vision_client.describe(document.encoded_data_uri, self.image_prompt_ref)
        page = self.normalizer.single_image_page(document, description)
        return AnalysisResult(pages=[page], document_data_uri=document.encoded_data_uri, description=description)

    async def _run(self, flow: Flow, body: Any, handler: Callable[[AnalysisRequest], Awaitable[AnalysisResult]]) -> FlowOutcome:
        validation = validate_request(body)
        if not validation.ok:
            return FlowOutcome(status_code=400, error=ErrorResult(message="Invalid input", issues=validation.issues))

        request = validation.request
        logger.info(f"[{flow.value}] Processing {request.kind} from {request.url}")

        try:
            result = await handler(request)
        except PipelineError as e:
            status_code = e.status_code or DEFAULT_ERROR_STATUS
            logger.error(f"[{flow.value}] {type(e).__name__} ({status_code}): {e.message}")
            return FlowOutcome(status_code=status_code, error=ErrorResult(message=e.message or DEFAULT_ERROR_MESSAGE))
        except Exception as e:
            logger.exception(f"[{flow.value}] Error processing document")
            status_code = getattr(e, "status_code", None) or DEFAULT_ERROR_STATUS
            return FlowOutcome(status_code=status_code, error=ErrorResult(message=str(e) or DEFAULT_ERROR_MESSAGE))

        logger.info(f"[{flow.value}] Completed with {len(result.pages)} page(s)")
        return FlowOutcome(status_code=200, result=result)
