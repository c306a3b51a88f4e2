"""Text generation service.

Wraps pydantic_ai agents so the pipeline sees two calls only:
free-text completion and schema-constrained completion.
"""

import asyncio
from typing import TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from app.rag.errors import ProviderError

GENERATION_MODEL = "gpt-4o-mini"

OutputT = TypeVar("OutputT", bound=BaseModel)


class GenerationService:
    """Prompt-in, completion-out access to the generation model.

    The chat model is built once with the configured API key; agents are
    cheap and built per call. Pass `model` to use a different pydantic_ai
    model (tests use this).
    """

    def __init__(
        self,
        *,
        api_key: str,
        model_name: str = GENERATION_MODEL,
        timeout_seconds: float = 30.0,
        model: Model | None = None,
    ) -> None:
        if model is None:
            if not api_key:
                raise RuntimeError(
                    "OPENAI_API_KEY is not set. Generation requires an OpenAI API key."
                )
            model = OpenAIChatModel(model_name, provider=OpenAIProvider(api_key=api_key))
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds
        self._model = model
        logger.info(f"Initialized GenerationService with model={model_name}")

    async def _run(self, agent: Agent, prompt: str, kind: str):
        try:
            result = await asyncio.wait_for(agent.run(prompt), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error(f"Generation call ({kind}) timed out after {self.timeout_seconds}s")
            raise ProviderError("generation", f"timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            logger.error(f"Generation call ({kind}) failed: {e}")
            raise ProviderError("generation", f"{kind} generation failed: {e}") from e
        return result.output

    async def generate(self, prompt: str) -> str:
        """Generate a plain-text completion for the prompt.

        Returns:
            Completion text, possibly empty

        Raises:
            ProviderError: If the call fails or times out
        """
        agent = Agent(model=self._model, output_type=str)
        output = await self._run(agent, prompt, "text")
        return output or ""

    async def generate_structured(self, prompt: str, output_type: type[OutputT]) -> OutputT:
        """Generate a completion constrained to the pydantic schema `output_type`.

        Raises:
            ProviderError: If the call fails, times out or the output does not
                validate against the schema
        """
        agent = Agent(model=self._model, output_type=output_type)
        output = await self._run(agent, prompt, "structured")
        if not isinstance(output, output_type):
            raise ProviderError("generation", f"expected {output_type.__name__}, got {type(output).__name__}")
        return output
