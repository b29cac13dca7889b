import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from pagelens.models.providers.base import ChatRequest, ModelError, ModelTimeout
from pagelens.models.providers.openai_sdk import OpenAIProvider


def _completion(content="A diagram", choices=1):
    response = MagicMock()
    if choices:
        choice = MagicMock()
        choice.message.content = content
        choice.finish_reason = "stop"
        response.choices = [choice]
    else:
        response.choices = []
    response.model = "pixtral-large-latest"
    response.usage.model_dump.return_value = {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}
    return response


def _request():
    return ChatRequest(
        model="pixtral-large-latest",
        messages=[
            {"role": "system", "content": "You describe documents."},
            {"role": "user", "content": "Describe this page."},
        ],
        params={"temperature": 0.1},
        images=["data:image/jpeg;base64,AAA"],
    )


class TestOpenAIProvider:
    @pytest.fixture
    def mock_client(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock()
        return client

    @pytest.fixture
    def provider(self, mock_client):
        with patch("pagelens.models.providers.openai_sdk.AsyncOpenAI", return_value=mock_client) as factory:
            provider = OpenAIProvider(base_url="https://api.mistral.ai/v1", api_key="k", timeout=12)
        assert factory.call_args.kwargs["max_retries"] == 0
        assert factory.call_args.kwargs["timeout"] == 12
        return provider

    def test_returns_first_choice_content(self, provider, mock_client):
        mock_client.chat.completions.create.return_value = _completion("A diagram")

        response = asyncio.run(provider.chat(_request()))

        assert response.content == "A diagram"
        assert response.has_completion
        assert response.meta["finish_reason"] == "stop"
        assert response.meta["usage"]["total_tokens"] == 15

    def test_images_attach_to_first_user_message(self, provider, mock_client):
        mock_client.chat.completions.create.return_value = _completion()

        asyncio.run(provider.chat(_request()))

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "pixtral-large-latest"
        assert kwargs["temperature"] == 0.1
        system, user = kwargs["messages"]
        assert system == {"role": "system", "content": "You describe documents."}
        assert user["content"] == [
            {"type": "text", "text": "Describe this page."},
            {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,AAA"}},
        ]

    def test_no_choices_is_empty_completion(self, provider, mock_client):
        mock_client.chat.completions.create.return_value = _completion(choices=0)

        response = asyncio.run(provider.chat(_request()))

        assert response.content is None
        assert not response.has_completion
        assert response.meta["choices"] == 0

    def test_status_error_keeps_status_code(self, provider, mock_client):
        http_response = httpx.Response(429, request=httpx.Request("POST", "https://api.mistral.ai/v1/chat/completions"))
        mock_client.chat.completions.create.side_effect = openai.RateLimitError("Too many requests", response=http_response, body=None)

        with pytest.raises(ModelError) as exc_info:
            asyncio.run(provider.chat(_request()))
        assert exc_info.value.status_code == 429

    def test_timeout(self, provider, mock_client):
        mock_client.chat.completions.create.side_effect = openai.APITimeoutError(request=httpx.Request("POST", "https://x"))

        with pytest.raises(ModelTimeout):
            asyncio.run(provider.chat(_request()))

    def test_connection_error_has_no_status(self, provider, mock_client):
        mock_client.chat.completions.create.side_effect = openai.APIConnectionError(request=httpx.Request("POST", "https://x"))

        with pytest.raises(ModelError) as exc_info:
            asyncio.run(provider.chat(_request()))
        assert exc_info.value.status_code is None

    def test_messages_untouched_without_images(self, provider):
        messages = [{"role": "user", "content": "hi"}]
        assert provider._format_messages(messages, []) is messages
