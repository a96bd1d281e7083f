"""
Prompt builders for the three generation use cases.

Every builder returns a single user-turn string that spells out the exact
output format: item counts, field names, and an instruction to emit bare JSON.
Builders are pure and cannot fail.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

NO_PROSE = "No explanations, no markdown, just the JSON {kind}."


def _flatten_answers(answers: Mapping[str, Any]) -> str:
    return "\n".join(f"{question}: {answer}" for question, answer in answers.items())


def build_questions_prompt(goal: str, count: int = 5, option_count: int = 3) -> str:
    example = [
        {
            "question": "What is your current experience level?",
            "options": ["Beginner", "Intermediate", "Advanced"][:option_count]
            + [f"Option {i + 1}" for i in range(3, option_count)],
        }
    ]
    return (
        f"Generate exactly {count} specific questions to understand the user's learning needs for: {goal}\n\n"
        f"Each question must have exactly {option_count} answer options.\n\n"
        "Return ONLY a JSON array with this exact format:\n"
        f"{json.dumps(example, indent=2)}\n\n"
        f"{NO_PROSE.format(kind='array')}"
    )


def build_roadmap_prompt(goal: str, answers: Mapping[str, Any], weeks: int = 8) -> str:
    example = [
        {
            "title": "Week 1: Foundation",
            "topics": [
                {
                    "title": "Topic Name",
                    "lessonObjective": "What you'll learn",
                    "estimatedTime": "2 hours",
                }
            ],
        }
    ]
    return (
        f"Create a detailed {weeks}-week learning roadmap for: {goal}\n\n"
        "User answers:\n"
        f"{_flatten_answers(answers)}\n\n"
        f"Return ONLY a JSON array of exactly {weeks} weeks with this exact format:\n"
        f"{json.dumps(example, indent=2)}\n\n"
        f"{NO_PROSE.format(kind='array')}"
    )


def build_alter_roadmap_prompt(
    goal: str,
    weeks: list[dict],
    request: str,
    week_count: int = 8,
) -> str:
    """Ask for a revised roadmap that keeps the goal but applies the user's changes."""
    return (
        f"Original goal: {goal}\n\n"
        f"Current roadmap weeks: {json.dumps(weeks)}\n\n"
        f"User requested changes: {request}\n\n"
        "Modify the roadmap according to the user's request while maintaining the overall structure and goal.\n"
        f"{build_roadmap_prompt(goal, {'Requested changes': request}, weeks=week_count)}"
    )


def build_lesson_prompt(
    lesson: Any,
    key_concepts: int = 3,
    examples: int = 1,
    assessment_questions: int = 1,
) -> str:
    """`lesson` is anything exposing title, lesson_objective and estimated_time."""
    title = lesson.title
    objective = lesson.lesson_objective
    estimated_time = lesson.estimated_time
    example = {
        "title": title,
        "lessonObjective": objective,
        "estimatedTime": estimated_time,
        "lessonContent": "Detailed explanation in 3-4 paragraphs",
        "keyConcepts": [f"concept{i + 1}" for i in range(key_concepts)],
        "exampleCode": [
            {
                "description": "Example description",
                "code": "code here",
                "output": "expected output",
            }
        ],
        "assessmentQuestions": [
            {
                "question": "Question text?",
                "options": ["Option A", "Option B", "Option C", "Option D"],
                "answer": "Option A",
            }
        ],
    }
    return (
        "Create lesson content for:\n"
        f"Title: {title}\n"
        f"Objective: {objective}\n"
        f"Time: {estimated_time}\n\n"
        f"Include exactly {key_concepts} key concepts, {examples} example(s) in exampleCode "
        f"and {assessment_questions} assessment question(s). "
        "Each assessment answer must be copied verbatim from its options.\n\n"
        "Return ONLY this JSON format:\n"
        f"{json.dumps(example, indent=2)}\n\n"
        f"{NO_PROSE.format(kind='object')}"
    )
