from .analysis import AnalysisPipeline, Flow, FlowOutcome
from .errors import ExtractionError, PipelineError, UpstreamEngineError, UpstreamFetchError, VisionError
from .fetcher import DocumentFetcher
from .normalizer import PageNormalizer
from .ocr import TextExtractionClient
from .types import AnalysisRequest, AnalysisResult, ErrorResult, FetchedDocument, NormalizationPolicy, Page, RawImage, RawPage
from .validator import validate_request
from .vlm import VisionDescriptionClient
