"""
LLM quiz generation from study material
"""
from anthropic import AsyncAnthropic
from pydantic import ValidationError
from stdntlab.config import settings
from stdntlab.modules.quizzes.schemas import GeneratedQuiz
from typing import Optional
import json
import logging

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You write multiple choice quizzes for students. You answer with JSON only."

QUIZ_PROMPT = """Based on the following material, create a quiz with multiple choice questions. Return the response as a JSON object with the following structure:
{{
  "questions": [
    {{
      "question": "Question text here",
      "options": ["Option A text", "Option B text", "Option C text", "Option D text"],
      "correct_answer": "Option A text"
    }}
  ]
}}

Material content:
Title: {title}
Content: {content}

Generate 5-10 relevant multiple choice questions based on this material. Make sure each question has exactly 4 options (A, B, C, D format) and the correct_answer matches one of the options exactly."""


class QuizGenerationError(Exception):
    pass


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_quiz(text: str) -> GeneratedQuiz:
    """Parse model output into a validated quiz"""
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse quiz response: {text!r}")
        raise QuizGenerationError("Failed to parse quiz data from the model") from e
    try:
        return GeneratedQuiz.model_validate(data)
    except ValidationError as e:
        raise QuizGenerationError("Invalid quiz format from the model") from e


class QuizGenerator:
    def __init__(self, api_key: Optional[str] = None):
        api_key = api_key or settings.anthropic_api_key
        self.model = settings.quiz_model
        self.max_tokens = settings.quiz_max_tokens
        self.client = AsyncAnthropic(api_key=api_key) if api_key else None

    @property
    def is_available(self) -> bool:
        return self.client is not None

    async def generate(self, title: str, content: str) -> GeneratedQuiz:
        if self.client is None:
            raise QuizGenerationError("Quiz generation is not configured: ANTHROPIC_API_KEY is not set")

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": QUIZ_PROMPT.format(title=title, content=content)}],
            )
        except Exception as e:
            logger.error(f"Error generating quiz: {e}")
            raise QuizGenerationError("Failed to generate quiz") from e

        if not response.content or not getattr(response.content[0], "text", None):
            raise QuizGenerationError("No response text from the model")
        return parse_quiz(response.content[0].text)


_generator: Optional[QuizGenerator] = None


def get_quiz_generator() -> QuizGenerator:
    global _generator
    if _generator is None:
        _generator = QuizGenerator()
    return _generator
