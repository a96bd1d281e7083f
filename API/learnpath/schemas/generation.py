"""Typed shapes of the payloads the LLM is asked to produce.

Field names follow the camelCase keys used in the prompts; Python code uses
the snake_case attributes.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class _LLMShape(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuestionSpec(_LLMShape):
    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=1)


class TopicSpec(_LLMShape):
    title: str = Field(min_length=1)
    lesson_objective: str
    estimated_time: str


class WeekPlan(_LLMShape):
    title: str = Field(min_length=1)
    topics: list[TopicSpec]


class ExampleCode(_LLMShape):
    description: str
    code: str
    output: str = ""


class AssessmentQuestion(_LLMShape):
    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=1)
    answer: str


class LessonContent(_LLMShape):
    title: str
    lesson_objective: str
    estimated_time: str
    lesson_content: str
    key_concepts: list[str] = Field(default_factory=list)
    example_code: list[ExampleCode] = Field(default_factory=list)
    assessment_questions: list[AssessmentQuestion] = Field(min_length=1)


QuestionList = TypeAdapter(list[QuestionSpec])
Roadmap = TypeAdapter(list[WeekPlan])
