import logging
from typing import List

from pagelens.models.manager import ModelManager
from pagelens.models.providers.base import ModelError
from pagelens.models.services.ocr_base import DocumentSource

from .errors import ExtractionError
from .types import DocumentKind, FetchedDocument, RawPage

logger = logging.getLogger(__name__)


class TextExtractionClient:
    """Submits a document to the OCR engine and returns its pages, embedded images included."""

    def __init__(self, manager: ModelManager, task: str = "ocr"):
        self.model_manager = manager
        self.task = task

    async def extract(self, source: DocumentSource) -> List[RawPage]:
        try:
            response = await self.model_manager.ocr(self.task, source)
        except ModelError as e:
            raise ExtractionError(e.message, status_code=e.status_code) from e
        logger.info(f"Extraction returned {len(response.pages)} page(s)")
        return response.pages

    async def extract_url(self, url: str, kind: DocumentKind) -> List[RawPage]:
        return await self.extract(DocumentSource(kind=kind, url=url))

    async def extract_inline(self, document: FetchedDocument, kind: DocumentKind) -> List[RawPage]:
        return await self.extract(DocumentSource(kind=kind, data_uri=document.encoded_data_uri))
