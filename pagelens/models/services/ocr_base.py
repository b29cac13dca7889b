from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

@dataclass(frozen=True)
class DocumentSource:
    """Either a remote URL or inline bytes already encoded as a data URI."""
    kind: Literal["pdf", "image"]
    url: Optional[str] = None
    data_uri: Optional[str] = None

    def __post_init__(self):
        if (self.url is None) == (self.data_uri is None):
            raise ValueError("DocumentSource needs exactly one of url or data_uri")

    @property
    def location(self) -> str:
        return self.url if self.url is not None else self.data_uri

@dataclass(frozen=True)
class RawImage:
    image_base64: str   # bare base64, no data: prefix
    id: Optional[str] = None

@dataclass(frozen=True)
class RawPage:
    markdown: str
    index: Optional[int] = None   # zero-based, as reported upstream
    images: List[RawImage] = field(default_factory=list)

    @property
    def first_image(self) -> Optional[RawImage]:
        return self.images[0] if self.images else None

@dataclass(frozen=True)
class OcrRequest:
    source: DocumentSource
    model: str
    include_image_base64: bool = True
    extra: Dict[str, Any] | None = None

@dataclass(frozen=True)
class OcrResponse:
    pages: List[RawPage]
    raw: Any               # engine-native payload
    meta: Dict[str, Any]   # timings, model, page count

class OcrEngine(ABC):
    @abstractmethod
    async def health_check(self) -> bool: raise NotImplementedError

    @abstractmethod
    async def ocr(self, req: OcrRequest) -> OcrResponse: raise NotImplementedError

    async def aclose(self) -> None:
        return None
