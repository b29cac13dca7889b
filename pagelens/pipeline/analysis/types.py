from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from pagelens.models.services.ocr_base import RawImage, RawPage
from pagelens.utils.image_converter import to_base64, to_data_uri

DocumentKind = Literal["pdf", "image"]

# Used when the remote server sends no content-type
DEFAULT_MEDIA_TYPES: Dict[str, str] = {
    "pdf": "application/pdf",
    "image": "image/jpeg",
}

PAGE_IMAGE_MEDIA_TYPE = "image/jpeg"
NO_DESCRIPTION = "No description generated."

# Input types
@dataclass(frozen=True)
class AnalysisMetadata:
    source: Optional[str] = None
    document_id: Optional[str] = None

@dataclass(frozen=True)
class AnalysisRequest:
    kind: DocumentKind
    url: str
    metadata: Optional[AnalysisMetadata] = None

@dataclass(frozen=True)
class ValidationIssue:
    loc: Tuple[Any, ...]
    msg: str
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return {"loc": list(self.loc), "msg": self.msg, "type": self.type}

@dataclass(frozen=True)
class ValidationOutcome:
    request: Optional[AnalysisRequest] = None
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.request is not None and not self.issues

@dataclass(frozen=True)
class FetchedDocument:
    content: bytes
    media_type: str
    encoded_data_uri: str

    @classmethod
    def from_bytes(cls, content: bytes, media_type: str) -> "FetchedDocument":
        return cls(content=content, media_type=media_type, encoded_data_uri=to_data_uri(content, media_type))

    @property
    def base64(self) -> str:
        return to_base64(self.content)

# Output types
@dataclass(frozen=True)
class Page:
    page_number: int
    text: str
    image_base64: Optional[str] = None
    data_uri: Optional[str] = None

    @property
    def markdown(self) -> str:
        # text and markdown always carry the same value
        return self.text

class NormalizationPolicy(Enum):
    EXTRACTION_ONLY = "extraction_only"
    EXTRACTION_WITH_VISION = "extraction_with_vision"
    VISION_ONLY = "vision_only"

@dataclass(frozen=True)
class AnalysisResult:
    pages: List[Page]
    document_data_uri: Optional[str] = None
    description: Optional[str] = None   # vision-only flow

@dataclass(frozen=True)
class ErrorResult:
    message: str
    issues: Optional[List[ValidationIssue]] = None

__all__ = [
    "AnalysisMetadata", "AnalysisRequest", "AnalysisResult", "DEFAULT_MEDIA_TYPES",
    "DocumentKind", "ErrorResult", "FetchedDocument", "NO_DESCRIPTION", "NormalizationPolicy",
    "PAGE_IMAGE_MEDIA_TYPE", "Page", "RawImage", "RawPage", "ValidationIssue",
    "ValidationOutcome",
]
