import logging
import time
from typing import Any, List, Optional

import httpx
from mistralai import Mistral, models as mistral_models

from pagelens.utils.image_converter import strip_data_uri
from ..providers.base import ModelError, ModelTimeout
from .ocr_base import OcrEngine, OcrRequest, OcrResponse, RawPage, RawImage

logger = logging.getLogger(__name__)


def _field(obj: Any, name: str, default: Any = None) -> Any:
    # SDK returns pydantic objects; recorded fixtures and other engines hand back dicts
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def coerce_page(raw_page: Any) -> RawPage:
    """Convert one engine page record into a RawPage, validating as we go."""
    index = _field(raw_page, "index")
    if index is not None and not isinstance(index, int):
        try:
            index = int(index)
        except (TypeError, ValueError):
            index = None

    markdown = _field(raw_page, "markdown")
    if markdown is None:
        markdown = _field(raw_page, "text", "")

    images: List[RawImage] = []
    for raw_image in _field(raw_page, "images") or []:
        payload = _field(raw_image, "image_base64")
        if not payload:
            continue
        images.append(RawImage(image_base64=strip_data_uri(payload), id=_field(raw_image, "id")))

    return RawPage(markdown=str(markdown), index=index, images=images)


class MistralOcrService(OcrEngine):
    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None, server_url: Optional[str] = None, **settings):
        """
        Wraps the Mistral OCR endpoint. The timeout (seconds) is handed to the SDK,
        which owns the HTTP connection; no retries are configured.
        """
        self.settings = settings
        self.timeout = timeout
        self.client = Mistral(
            api_key=api_key,
            server_url=server_url,
            timeout_ms=int(timeout * 1000) if timeout else None,
        )
        logger.info("MistralOcrService initialized")

    def _build_document(self, req: OcrRequest) -> dict:
        source = req.source
        if source.kind == "pdf":
            return {"type": "document_url", "document_url": source.location}
        return {"type": "image_url", "image_url": source.location}

    async def ocr(self, req: OcrRequest) -> OcrResponse:
        t0 = time.perf_counter()
        try:
            response = await self.client.ocr.process_async(
                model=req.model,
                document=self._build_document(req),
                include_image_base64=req.include_image_base64,
                **(req.extra or {})
            )
        except mistral_models.HTTPValidationError as e:
            raise ModelError(f"Mistral OCR rejected the request: {e}", status_code=422) from e
        except mistral_models.SDKError as e:
            raise ModelError(e.message, status_code=e.status_code) from e
        except httpx.TimeoutException as e:
            raise ModelTimeout(f"Mistral OCR timeout after {self.timeout}s: {e}", status_code=504) from e
        except httpx.HTTPError as e:
            raise ModelError(f"Mistral OCR request failed: {e}") from e

        if response is None:
            raise ModelError("Mistral OCR returned an empty response")

        pages = [coerce_page(page) for page in (_field(response, "pages") or [])]
        meta = {
            "provider": "mistral_ocr",
            "model": _field(response, "model", req.model),
            "latency": time.perf_counter() - t0,
            "page_count": len(pages),
        }
        return OcrResponse(pages=pages, raw=response, meta=meta)

    async def health_check(self) -> bool:
        try:
            await self.client.models.list_async()
            return True
        except (mistral_models.SDKError, httpx.HTTPError):
            return False
