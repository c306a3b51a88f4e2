"""Tests for the embedding and generation provider adapters.

The OpenAI client and pydantic_ai agents are mocked; these tests check the
adapter contract (timeouts, explicit failures), not the APIs themselves.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.rag.date_range import DateRangeClassification
from app.rag.errors import ProviderError
from app.rag.providers.embedding import EmbeddingService
from app.rag.providers.generation import GenerationService


def _embedding_client(vector=None, side_effect=None) -> MagicMock:
    client = MagicMock()
    response = SimpleNamespace(data=[SimpleNamespace(embedding=vector)] if vector is not None else [])
    client.embeddings.create = AsyncMock(return_value=response, side_effect=side_effect)
    return client


class TestEmbeddingService:
    @pytest.mark.asyncio
    async def test_embed_text_returns_vector(self):
        client = _embedding_client([0.1, 0.2, 0.3])
        service = EmbeddingService(api_key="", model="text-embedding-3-small", dimension=3, client=client)

        assert await service.embed_text("heaviest bicep curl") == [0.1, 0.2, 0.3]
        client.embeddings.create.assert_awaited_once_with(
            model="text-embedding-3-small",
            input="heaviest bicep curl",
            dimensions=3,
        )

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self):
        service = EmbeddingService(api_key="", client=_embedding_client([0.1]))

        with pytest.raises(ValueError, match="empty"):
            await service.embed_text("   ")

    @pytest.mark.asyncio
    async def test_api_error_is_provider_error(self):
        service = EmbeddingService(api_key="", client=_embedding_client(side_effect=RuntimeError("401")))

        with pytest.raises(ProviderError) as exc_info:
            await service.embed_text("squat")

        assert exc_info.value.provider == "embedding"

    @pytest.mark.asyncio
    async def test_missing_vector_is_provider_error(self):
        service = EmbeddingService(api_key="", client=_embedding_client(None))

        with pytest.raises(ProviderError):
            await service.embed_text("squat")

    @pytest.mark.asyncio
    async def test_zero_vector_is_provider_error(self):
        service = EmbeddingService(api_key="", dimension=3, client=_embedding_client([0.0, 0.0, 0.0]))

        with pytest.raises(ProviderError, match="zero vector"):
            await service.embed_text("squat")

    @pytest.mark.asyncio
    async def test_wrong_dimension_is_provider_error(self):
        service = EmbeddingService(api_key="", client=_embedding_client([0.1, 0.2, 0.3]))

        with pytest.raises(ProviderError, match="expected dimension 1536, got 3"):
            await service.embed_text("squat")

    @pytest.mark.asyncio
    async def test_timeout_is_provider_error(self):
        async def slow_create(**_kwargs):
            await asyncio.sleep(1)

        client = MagicMock()
        client.embeddings.create = slow_create
        service = EmbeddingService(api_key="", client=client, timeout_seconds=0.01)

        with pytest.raises(ProviderError, match="timed out"):
            await service.embed_text("squat")

    def test_requires_api_key_without_client(self):
        with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
            EmbeddingService(api_key="")


class TestGenerationService:
    @pytest.fixture
    def service(self):
        return GenerationService(api_key="sk-test", model=MagicMock(), timeout_seconds=1.0)

    def test_builds_openai_chat_model_with_api_key(self):
        with (
            patch("app.rag.providers.generation.OpenAIProvider") as mock_provider_class,
            patch("app.rag.providers.generation.OpenAIChatModel") as mock_model_class,
        ):
            service = GenerationService(api_key="sk-live", model_name="gpt-4o-mini")

        mock_provider_class.assert_called_once_with(api_key="sk-live")
        mock_model_class.assert_called_once_with("gpt-4o-mini", provider=mock_provider_class.return_value)
        assert service._model is mock_model_class.return_value

    def test_requires_api_key_without_model(self):
        with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
            GenerationService(api_key="")

    @pytest.mark.asyncio
    async def test_generate_returns_text(self, service):
        with patch("app.rag.providers.generation.Agent") as mock_agent_class:
            mock_agent = MagicMock()
            mock_agent.run = AsyncMock(return_value=SimpleNamespace(output="You squatted 120kg!"))
            mock_agent_class.return_value = mock_agent

            text = await service.generate("prompt")

        assert text == "You squatted 120kg!"
        assert mock_agent_class.call_args.kwargs["output_type"] is str
        mock_agent.run.assert_awaited_once_with("prompt")

    @pytest.mark.asyncio
    async def test_generate_structured_returns_schema_instance(self, service):
        expected = DateRangeClassification(is_date_query=True, start_date="2025-11-07", end_date="2025-11-07")
        with patch("app.rag.providers.generation.Agent") as mock_agent_class:
            mock_agent = MagicMock()
            mock_agent.run = AsyncMock(return_value=SimpleNamespace(output=expected))
            mock_agent_class.return_value = mock_agent

            result = await service.generate_structured("prompt", DateRangeClassification)

        assert result == expected
        assert mock_agent_class.call_args.kwargs["output_type"] is DateRangeClassification

    @pytest.mark.asyncio
    async def test_generate_structured_wrong_type_is_provider_error(self, service):
        with patch("app.rag.providers.generation.Agent") as mock_agent_class:
            mock_agent = MagicMock()
            mock_agent.run = AsyncMock(return_value=SimpleNamespace(output={"is_date_query": True}))
            mock_agent_class.return_value = mock_agent

            with pytest.raises(ProviderError):
                await service.generate_structured("prompt", DateRangeClassification)

    @pytest.mark.asyncio
    async def test_agent_error_is_provider_error(self, service):
        with patch("app.rag.providers.generation.Agent") as mock_agent_class:
            mock_agent = MagicMock()
            mock_agent.run = AsyncMock(side_effect=RuntimeError("invalid api key"))
            mock_agent_class.return_value = mock_agent

            with pytest.raises(ProviderError) as exc_info:
                await service.generate("prompt")

        assert exc_info.value.provider == "generation"

    @pytest.mark.asyncio
    async def test_timeout_is_provider_error(self, service):
        async def slow_run(_prompt):
            await asyncio.sleep(1)

        service.timeout_seconds = 0.01
        with patch("app.rag.providers.generation.Agent") as mock_agent_class:
            mock_agent = MagicMock()
            mock_agent.run = slow_run
            mock_agent_class.return_value = mock_agent

            with pytest.raises(ProviderError, match="timed out"):
                await service.generate("prompt")
