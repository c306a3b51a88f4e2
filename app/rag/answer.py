"""Grounded answer generation.

Grounding is enforced through the prompt only: the model is told to answer
from the context and to reply with FALLBACK_ANSWER when it cannot.
"""

from datetime import date

from loguru import logger

from app.rag.errors import GenerationFailure
from app.rag.providers.generation import GenerationService
from app.rag.types import ContextBlock, QueryStage

FALLBACK_ANSWER = "I couldn't find any data for that, please try asking another question."


def build_answer_prompt(query: str, context: ContextBlock, current_date: date) -> str:
    return f"""You are a very enthusiastic fitness assistant who helps users understand their workout data.
Based on the context provided below, please answer the user's question.
The current date is {current_date.isoformat()}.
If the context is empty or does not contain the answer, say "{FALLBACK_ANSWER}".
Do not make up information that is not in the context.

Context:
---
{context}
---

Question: "{query}"

Answer:
"""


class AnswerGenerator:
    """Produces the final answer from the question and its context block."""

    def __init__(self, generation_service: GenerationService) -> None:
        self.generation_service = generation_service

    async def answer(self, query: str, context: ContextBlock, current_date: date) -> str:
        """Answer the question from the context.

        An empty context returns FALLBACK_ANSWER without calling the model.

        Raises:
            GenerationFailure: If the generation call fails
        """
        if not context.strip():
            logger.info("Empty context, returning fallback answer without generation")
            return FALLBACK_ANSWER

        prompt = build_answer_prompt(query, context, current_date)
        logger.debug(f"LLM Prompt: Answer Generation\n{prompt}")

        try:
            text = await self.generation_service.generate(prompt)
        except Exception as e:
            logger.exception(f"Answer generation failed: {e}")
            raise GenerationFailure(QueryStage.GENERATE, f"answer generation failed: {e}") from e

        answer = (text or "").strip()
        if not answer:
            logger.warning("Generation returned no text, substituting fallback answer")
            return FALLBACK_ANSWER
        return answer
