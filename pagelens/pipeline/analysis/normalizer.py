"""
Normalization of upstream output into Page records.

Three policies decide where a page's text comes from:

- EXTRACTION_ONLY: the OCR engine's markdown.
- EXTRACTION_WITH_VISION: a vision description of the page's embedded image,
  falling back to the OCR markdown when the vision call fails. A failed page
  never fails the document.
- VISION_ONLY: a single page built from one fetched image and its description.

Page numbers come from the upstream zero-based index when present, otherwise
from the position in the sequence.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from pagelens.utils.image_converter import to_data_uri

from .errors import VisionError
from .types import FetchedDocument, NormalizationPolicy, PAGE_IMAGE_MEDIA_TYPE, Page, RawPage
from .vlm import VisionDescriptionClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_PROMPT = "vision/describe_page@v1"


def page_number(raw_page: RawPage, position: int) -> int:
    if raw_page.index is not None:
        return raw_page.index + 1
    return position + 1


class PageNormalizer:
    def __init__(self, vision_client: Optional[VisionDescriptionClient] = None, page_prompt_ref: str = DEFAULT_PAGE_PROMPT, vision_concurrency: int = 1):
        self.vision_client = vision_client
        self.page_prompt_ref = page_prompt_ref
        self.vision_concurrency = max(1, int(vision_concurrency))

    async def normalize(self, raw_pages: Sequence[RawPage], policy: NormalizationPolicy) -> List[Page]:
        if policy is NormalizationPolicy.EXTRACTION_ONLY:
            return [self._extracted_page(raw_page, position) for position, raw_page in enumerate(raw_pages)]
        if policy is NormalizationPolicy.EXTRACTION_WITH_VISION:
            return await self._enrich_pages(raw_pages)
        raise ValueError(f"{policy} does not normalize raw pages; use single_image_page")

    def single_image_page(self, document: FetchedDocument, description: str) -> Page:
        """The VISION_ONLY policy: exactly one page carrying the original bytes."""
        return Page(
            page_number=1,
            text=description,
            image_base64=document.base64,
            data_uri=document.encoded_data_uri,
        )

    def _extracted_page(self, raw_page: RawPage, position: int) -> Page:
        image = raw_page.first_image
        return Page(
            page_number=page_number(raw_page, position),
            text=raw_page.markdown,
            image_base64=image.image_base64 if image else None,
        )

    async def _enrich_pages(self, raw_pages: Sequence[RawPage]) -> List[Page]:
        if self.vision_client is None:
            raise ValueError("Vision enrichment requires a VisionDescriptionClient")

        if self.vision_concurrency == 1:
            pages = []
            for position, raw_page in enumerate(raw_pages):
                pages.append(await self._enriched_page(raw_page, position))
            return pages

        # gather keeps input order regardless of completion order
        semaphore = asyncio.Semaphore(self.vision_concurrency)

        async def bounded(position: int, raw_page: RawPage) -> Page:
            async with semaphore:
                return await self._enriched_page(raw_page, position)

        return list(await asyncio.gather(*(bounded(position, raw_page) for position, raw_page in enumerate(raw_pages))))

    async def _enriched_page(self, raw_page: RawPage, position: int) -> Page:
        number = page_number(raw_page, position)
        image = raw_page.first_image
        if image is None:
            return Page(page_number=number, text=raw_page.markdown)

        data_uri = to_data_uri(image.image_base64, PAGE_IMAGE_MEDIA_TYPE)
        try:
            text = await self.vision_client.describe(data_uri, self.page_prompt_ref)
        except VisionError as e:
            logger.warning(f"Vision enrichment failed for page {number}, keeping extracted text: {e.message}")
            text = raw_page.markdown

        return Page(page_number=number, text=text, image_base64=image.image_base64, data_uri=data_uri)
