"""
Prompt templates for quiz generation.

The model is asked for raw JSON only. The parser still strips markdown
fences because the instruction is not always followed.
"""

from __future__ import annotations

RESPONSE_SCHEMA_EXAMPLE = """{
  "title": "A title that fits the material",
  "questions": [
    {
      "question": "Question text...",
      "options": ["A. Option 1", "B. Option 2", "C. Option 3", "D. Option 4"],
      "correct_answer": "A",
      "explanation": "Short explanation of why the answer is correct"
    }
  ]
}"""

QUIZ_PROMPT_TEMPLATE = """Return ONLY a valid raw JSON object based on the attached material.

Rules:
- Write {question_count} multiple-choice questions at {difficulty} difficulty.
- Every question must have exactly one correct option.
- For every question include an "explanation" that briefly justifies the correct answer.
- Generate the "title" automatically from the content of the material.
- "correct_answer" must be the letter of the correct option.
- Do NOT include any introduction, commentary, or markdown formatting such as ```json.
- The structure must be exactly:
{schema}
"""

SOURCE_TEXT_HEADER = "\n\nMaterial:\n"


def build_quiz_prompt(question_count: int, difficulty: str) -> str:
    """Build the instruction part of a generation request."""
    return QUIZ_PROMPT_TEMPLATE.format(
        question_count=question_count,
        difficulty=difficulty,
        schema=RESPONSE_SCHEMA_EXAMPLE,
    )


def build_text_prompt(question_count: int, difficulty: str, source_text: str) -> str:
    """Build a single-part prompt that embeds already extracted text."""
    return build_quiz_prompt(question_count, difficulty) + SOURCE_TEXT_HEADER + source_text
