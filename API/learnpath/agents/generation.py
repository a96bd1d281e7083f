"""
Generation facade: the LLM-backed operations of the app.

Each call builds its prompt, runs it through the bounded executor with a
use-case timeout, and validates the decoded JSON into typed models. Any
failure surfaces as a single GenerationFailed carrying a user-safe message;
the details stay in the log. Results are all-or-nothing and never cached here.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from learnpath.agents.prompts import (
    build_alter_roadmap_prompt,
    build_lesson_prompt,
    build_questions_prompt,
    build_roadmap_prompt,
)
from learnpath.core.llm_errors import GenerationFailed, LLMError
from learnpath.core.llm_provider import BaseLLMProvider, get_llm_provider
from learnpath.core.logging import DOMAIN_GENERATION, get_domain_logger
from learnpath.core.settings import settings
from learnpath.schemas.generation import LessonContent, QuestionList, QuestionSpec, Roadmap, WeekPlan

logger = get_domain_logger(__name__, DOMAIN_GENERATION)

QUESTIONS_FAILED = "Failed to generate questions - please try again"
ROADMAP_FAILED = "Failed to generate roadmap - please try again"
LESSON_FAILED = "Failed to generate lesson content - please try again"

_LessonAdapter = TypeAdapter(LessonContent)


class GenerationService:
    def __init__(self, provider: BaseLLMProvider | None = None):
        self._provider = provider

    @property
    def provider(self) -> BaseLLMProvider:
        # Resolved lazily so settings changes (tests, reloads) are picked up.
        return self._provider or get_llm_provider()

    async def _generate(
        self,
        *,
        use_case: str,
        prompt: str,
        timeout_ms: int,
        adapter: TypeAdapter,
        require_list: bool,
        failure_message: str,
        user_id: str | None,
    ) -> Any:
        try:
            decoded = await self.provider.execute(prompt, timeout_ms)
        except LLMError as exc:
            logger.error(
                "%s generation failed | user=%s | code=%s | %s",
                use_case,
                user_id or "-",
                exc.code,
                exc,
            )
            raise GenerationFailed(failure_message) from exc

        if require_list and not isinstance(decoded, list):
            logger.error(
                "%s generation returned %s instead of a JSON array | user=%s",
                use_case,
                type(decoded).__name__,
                user_id or "-",
            )
            raise GenerationFailed(failure_message)

        try:
            return adapter.validate_python(decoded)
        except ValidationError as exc:
            logger.error(
                "%s generation returned a malformed payload | user=%s | errors=%s",
                use_case,
                user_id or "-",
                exc.errors(include_url=False),
            )
            raise GenerationFailed(failure_message) from exc

    async def generate_questions(self, goal: str, *, user_id: str | None = None) -> list[QuestionSpec]:
        logger.info("Generating questions | user=%s | goal=%s", user_id or "-", goal)
        prompt = build_questions_prompt(
            goal,
            count=settings.question_count,
            option_count=settings.question_option_count,
        )
        return await self._generate(
            use_case="questions",
            prompt=prompt,
            timeout_ms=settings.questions_timeout_ms,
            adapter=QuestionList,
            require_list=True,
            failure_message=QUESTIONS_FAILED,
            user_id=user_id,
        )

    async def generate_roadmap(
        self,
        goal: str,
        answers: Mapping[str, Any],
        *,
        user_id: str | None = None,
    ) -> list[WeekPlan]:
        logger.info("Generating roadmap | user=%s | goal=%s | answers=%s", user_id or "-", goal, len(answers))
        prompt = build_roadmap_prompt(goal, answers, weeks=settings.roadmap_weeks)
        return await self._generate(
            use_case="roadmap",
            prompt=prompt,
            timeout_ms=settings.roadmap_timeout_ms,
            adapter=Roadmap,
            require_list=True,
            failure_message=ROADMAP_FAILED,
            user_id=user_id,
        )

    async def alter_roadmap(
        self,
        goal: str,
        weeks: list[dict],
        request: str,
        *,
        user_id: str | None = None,
    ) -> list[WeekPlan]:
        logger.info("Altering roadmap | user=%s | goal=%s", user_id or "-", goal)
        prompt = build_alter_roadmap_prompt(goal, weeks, request, week_count=settings.roadmap_weeks)
        return await self._generate(
            use_case="roadmap_alter",
            prompt=prompt,
            timeout_ms=settings.roadmap_timeout_ms,
            adapter=Roadmap,
            require_list=True,
            failure_message=ROADMAP_FAILED,
            user_id=user_id,
        )

    async def generate_lesson_content(self, lesson: Any, *, user_id: str | None = None) -> LessonContent:
        logger.info("Generating lesson content | user=%s | lesson=%s", user_id or "-", lesson.title)
        prompt = build_lesson_prompt(
            lesson,
            key_concepts=settings.lesson_key_concepts,
            examples=settings.lesson_examples,
            assessment_questions=settings.lesson_assessment_questions,
        )
        return await self._generate(
            use_case="lesson",
            prompt=prompt,
            timeout_ms=settings.lesson_timeout_ms,
            adapter=_LessonAdapter,
            require_list=False,
            failure_message=LESSON_FAILED,
            user_id=user_id,
        )


generation_service = GenerationService()


def dump_models(items: list[BaseModel]) -> list[dict]:
    """Serialize validated models back to the camelCase shape the LLM produced."""
    return [item.model_dump(by_alias=True) for item in items]
