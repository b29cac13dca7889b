from __future__ import annotations
from typing import Dict, Any, Optional, List
import time

from openai import AsyncOpenAI
from openai import APIError, APIStatusError, APITimeoutError, APIConnectionError

from .base import ModelProvider, ChatRequest, ModelResponse, ModelError, ModelTimeout


class OpenAIProvider(ModelProvider):
    """Chat completions against any OpenAI-compatible endpoint (Mistral, OpenRouter, OpenAI)."""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, default_headers: Optional[Dict[str, str]] = None, timeout: float = 60.0, **kwargs):
        self.client = AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            default_headers=default_headers or {},
            timeout=timeout,
            max_retries=0,
            **kwargs
        )
        self.base_url = base_url
        self.timeout = timeout

    def _format_messages(self, messages: List[Dict[str, Any]], images: List[str]) -> List[Dict[str, Any]]:
        """Format messages with images - converts the first user message to content array format"""
        if not images:
            return messages

        image_contents = [{"type": "image_url", "image_url": {"url": data_uri}} for data_uri in images]

        processed_messages = []
        images_added = False

        for msg in messages:
            if msg.get("role") == "user" and not images_added:
                processed_msg = msg.copy()
                content_array = [{"type": "text", "text": msg.get("content", "")}]
                content_array.extend(image_contents)
                processed_msg["content"] = content_array
                processed_messages.append(processed_msg)
                images_added = True
            else:
                processed_messages.append(msg)

        return processed_messages

    async def chat(self, req: ChatRequest) -> ModelResponse:
        params = dict(req.params or {})
        messages = self._format_messages(req.messages, req.images or [])

        completion_params = {
            "model": req.model,
            "messages": messages,
            **params
        }

        t0 = time.perf_counter()
        try:
            response = await self.client.chat.completions.create(**completion_params)
        except APITimeoutError as e:
            raise ModelTimeout(f"Vision model timeout: {e}", status_code=504) from e
        except APIConnectionError as e:
            raise ModelError(f"Vision model connection error: {e}") from e
        except APIStatusError as e:
            raise ModelError(f"Vision model API error: {e.message}", status_code=e.status_code) from e
        except APIError as e:
            raise ModelError(f"Vision model API error: {e.message}") from e

        dt = time.perf_counter() - t0

        # No choices is a valid, empty completion; callers decide what that means
        content = None
        choices = getattr(response, 'choices', None) or []
        if choices:
            message = getattr(choices[0], 'message', None)
            content = getattr(message, 'content', None) or None

        meta = {
            "provider": "openai",
            "model": getattr(response, 'model', req.model),
            "latency": dt,
            "base_url": self.base_url or "https://api.openai.com/v1",
            "choices": len(choices),
        }

        if getattr(response, 'usage', None):
            try:
                meta["usage"] = response.usage.model_dump()
            except AttributeError:
                meta["usage"] = {
                    "prompt_tokens": getattr(response.usage, 'prompt_tokens', None),
                    "completion_tokens": getattr(response.usage, 'completion_tokens', None),
                    "total_tokens": getattr(response.usage, 'total_tokens', None)
                }

        if choices:
            meta["finish_reason"] = getattr(choices[0], 'finish_reason', None)

        return ModelResponse(content=content, raw=response, meta=meta)

    async def health_check(self) -> bool:
        try:
            await self.client.models.list()
            return True
        except APIError:
            return False

    async def aclose(self) -> None:
        await self.client.close()
