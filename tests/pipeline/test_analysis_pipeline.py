"""
Tests for the three analysis flows and their error boundary.

Fetcher, extraction and vision clients are mocked; the normalizer is real.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from pagelens.pipeline.analysis.analysis import AnalysisPipeline, FlowOutcome
from pagelens.pipeline.analysis.errors import ExtractionError, UpstreamFetchError, VisionError
from pagelens.pipeline.analysis.fetcher import DocumentFetcher
from pagelens.pipeline.analysis.normalizer import PageNormalizer
from pagelens.pipeline.analysis.ocr import TextExtractionClient
from pagelens.pipeline.analysis.types import NO_DESCRIPTION, FetchedDocument, RawImage, RawPage
from pagelens.pipeline.analysis.vlm import VisionDescriptionClient

PDF_URL = "https://files.example/report.pdf"
IMAGE_URL = "https://files.example/photo.png"


@pytest.fixture
def fetcher():
    fetcher = AsyncMock(spec=DocumentFetcher)
    fetcher.fetch.return_value = FetchedDocument.from_bytes(b"doc-bytes", "application/pdf")
    return fetcher

@pytest.fixture
def extraction():
    extraction = AsyncMock(spec=TextExtractionClient)
    extraction.extract_url.return_value = [
        RawPage(markdown="Intro", index=0),
        RawPage(markdown="Chart page", index=1, images=[RawImage("Q0hBUlQ=")]),
    ]
    return extraction

@pytest.fixture
def vision():
    vision = AsyncMock(spec=VisionDescriptionClient)
    vision.describe.return_value = "A chart of revenue by quarter"
    return vision

@pytest.fixture
def pipeline(fetcher, extraction, vision):
    normalizer = PageNormalizer(vision, page_prompt_ref="vision/describe_page@v1")
    return AnalysisPipeline(fetcher, extraction, vision, normalizer, image_prompt_ref="vision/describe_image@v1")


class TestValidationBoundary:
    @pytest.mark.parametrize("flow", ["extract", "extract_enriched", "describe_image"])
    def test_invalid_body_is_400_with_issues(self, pipeline, fetcher, extraction, vision, flow):
        outcome = asyncio.run(getattr(pipeline, flow)({"kind": "video"}))

        assert outcome.status_code == 400
        assert outcome.result is None
        assert outcome.error.message == "Invalid input"
        assert len(outcome.error.issues) == 2
        fetcher.fetch.assert_not_awaited()
        extraction.extract_url.assert_not_awaited()
        vision.describe.assert_not_awaited()


class TestPlainExtractionFlow:
    def test_engine_gets_url_and_fetch_is_skipped(self, pipeline, fetcher, extraction, vision):
        outcome = asyncio.run(pipeline.extract({"kind": "pdf", "url": PDF_URL}))

        assert outcome.status_code == 200
        assert [p.page_number for p in outcome.result.pages] == [1, 2]
        assert outcome.result.pages[1].text == "Chart page"
        assert outcome.result.pages[1].image_base64 == "Q0hBUlQ="
        assert outcome.result.pages[1].data_uri is None
        assert outcome.result.document_data_uri is None
        extraction.extract_url.assert_awaited_once_with(PDF_URL, "pdf")
        fetcher.fetch.assert_not_awaited()
        vision.describe.assert_not_awaited()

    def test_same_upstream_output_gives_identical_results(self, pipeline):
        body = {"kind": "pdf", "url": PDF_URL}
        first = asyncio.run(pipeline.extract(body))
        second = asyncio.run(pipeline.extract(body))
        assert first == second

    def test_extraction_failure_uses_upstream_status(self, pipeline, extraction):
        extraction.extract_url.side_effect = ExtractionError("Invalid API key", status_code=401)

        outcome = asyncio.run(pipeline.extract({"kind": "pdf", "url": PDF_URL}))

        assert outcome == FlowOutcome(status_code=401, error=outcome.error)
        assert outcome.error.message == "Invalid API key"
        assert outcome.error.issues is None


class TestEnrichedExtractionFlow:
    def test_pdf_pages_are_enriched(self, pipeline, fetcher, extraction, vision):
        outcome = asyncio.run(pipeline.extract_enriched({"kind": "pdf", "url": PDF_URL}))

        assert outcome.status_code == 200
        result = outcome.result
        assert result.document_data_uri == "data:application/pdf;base64,ZG9jLWJ5dGVz"
        assert [p.text for p in result.pages] == ["Intro", "A chart of revenue by quarter"]
        assert result.pages[1].data_uri == "data:image/jpeg;base64,Q0hBUlQ="
        fetcher.fetch.assert_awaited_once_with(PDF_URL, "pdf")
        extraction.extract_url.assert_awaited_once_with(PDF_URL, "pdf")
        vision.describe.assert_awaited_once_with("data:image/jpeg;base64,Q0hBUlQ=", "vision/describe_page@v1")

    def test_failed_page_vision_still_200(self, pipeline, vision):
        vision.describe.side_effect = VisionError("upstream 503", status_code=503)

        outcome = asyncio.run(pipeline.extract_enriched({"kind": "pdf", "url": PDF_URL}))

        assert outcome.status_code == 200
        assert [p.text for p in outcome.result.pages] == ["Intro", "Chart page"]

    def test_image_skips_extraction(self, pipeline, fetcher, extraction, vision):
        fetcher.fetch.return_value = FetchedDocument.from_bytes(b"png", "image/png")

        outcome = asyncio.run(pipeline.extract_enriched({"kind": "image", "url": IMAGE_URL}))

        assert outcome.status_code == 200
        [page] = outcome.result.pages
        assert page.page_number == 1
        assert page.text == "A chart of revenue by quarter"
        assert page.data_uri == "data:image/png;base64,cG5n"
        assert outcome.result.document_data_uri == "data:image/png;base64,cG5n"
        extraction.extract_url.assert_not_awaited()

    def test_image_vision_failure_fails_flow(self, pipeline, vision):
        vision.describe.side_effect = VisionError("quota exceeded", status_code=429)

        outcome = asyncio.run(pipeline.extract_enriched({"kind": "image", "url": IMAGE_URL}))

        assert outcome.status_code == 429
        assert outcome.error.message == "quota exceeded"

    def test_fetch_failure_defaults_to_500(self, pipeline, fetcher, extraction):
        fetcher.fetch.side_effect = UpstreamFetchError("Failed to fetch document: 404 Not Found", reason="http-status", status=404)

        outcome = asyncio.run(pipeline.extract_enriched({"kind": "pdf", "url": PDF_URL}))

        assert outcome.status_code == 500
        assert "404 Not Found" in outcome.error.message
        extraction.extract_url.assert_not_awaited()


class TestVisionOnlyFlow:
    def test_describes_fetched_bytes_regardless_of_kind(self, pipeline, extraction, vision):
        outcome = asyncio.run(pipeline.describe_image({"kind": "pdf", "url": PDF_URL}))

        assert outcome.status_code == 200
        result = outcome.result
        assert result.description == "A chart of revenue by quarter"
        assert result.document_data_uri == "data:application/pdf;base64,ZG9jLWJ5dGVz"
        [page] = result.pages
        assert page.page_number == 1
        assert page.image_base64 == "ZG9jLWJ5dGVz"
        vision.describe.assert_awaited_once_with(result.document_data_uri, "vision/describe_image@v1")
        extraction.extract_url.assert_not_awaited()

    def test_sentinel_is_success(self, pipeline, vision):
        vision.describe.return_value = NO_DESCRIPTION

        outcome = asyncio.run(pipeline.describe_image({"kind": "image", "url": IMAGE_URL}))

        assert outcome.status_code == 200
        assert outcome.result.description == "No description generated."
        assert outcome.result.pages[0].text == "No description generated."


class TestUnexpectedErrors:
    def test_unexpected_exception_is_500(self, pipeline, extraction):
        extraction.extract_url.side_effect = RuntimeError("socket closed")

        outcome = asyncio.run(pipeline.extract({"kind": "pdf", "url": PDF_URL}))

        assert outcome.status_code == 500
        assert outcome.error.message == "socket closed"

    def test_blank_message_gets_default(self, pipeline, extraction):
        extraction.extract_url.side_effect = RuntimeError()

        outcome = asyncio.run(pipeline.extract({"kind": "pdf", "url": PDF_URL}))

        assert outcome.status_code == 500
        assert outcome.error.message == "Internal Server Error"
