from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, Optional, List

#unified model errors
class ModelError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

class ModelTimeout(ModelError): ...

@dataclass(frozen=True)
class ChatRequest:
    model: str
    messages: List[Dict[str, Any]]
    params: Dict[str, Any] | None = None
    images: Optional[List[str]] = None #data URIs attached to the first user message

@dataclass(frozen=True)
class ModelResponse:
    content: Optional[str] #None when the provider returned no usable completion
    raw: Any #provider-native response obj/dict
    meta: Dict[str, Any] #timings, token counts, model, finish_reason, etc.

    @property
    def has_completion(self) -> bool:
        return bool(self.content)

class ModelProvider(ABC):
    @abstractmethod
    async def chat(self, req: ChatRequest) -> ModelResponse:
        raise NotImplementedError

    @abstractmethod
    async def health_check(self) -> bool:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None
