"""Fill-in-the-blank question generation from free-text notes.

The heuristic is deliberately shallow:

- sentences are fragments between ``.``, ``!`` and ``?`` longer than
  ``MIN_SENTENCE_LENGTH`` characters;
- a sentence qualifies when it has at least ``MIN_CANDIDATES`` words longer
  than ``MIN_WORD_LENGTH`` characters;
- one such word is blanked out and the remaining words of similar length
  become distractors, padded with ``Option N`` labels when scarce.

Nothing here raises on odd input; poor material simply yields fewer
questions.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from typing import Any, List, MutableMapping, Optional, Sequence

from ..core.logging import get_logger

__all__ = [
    "BLANK",
    "QUESTION_PREFIX",
    "OPTION_COUNT",
    "GeneratedQuestion",
    "split_sentences",
    "blank_candidates",
    "build_question",
    "pick_distractors",
    "generate_questions_from_content",
]

BLANK = "_____"
QUESTION_PREFIX = "Fill in the blank: "
OPTION_COUNT = 4
MIN_SENTENCE_LENGTH = 20
MIN_WORD_LENGTH = 3
MIN_CANDIDATES = 3
LENGTH_TOLERANCE = 2

_SENTENCE_SPLIT = re.compile(r"[.!?]+")

logger = get_logger("quizzer.generator")


@dataclass(frozen=True)
class GeneratedQuestion:
    """A question ready to be persisted as a ``quiz_questions`` record."""

    question: str
    options: tuple[str, ...]
    correct_answer: int

    @property
    def answer(self) -> str:
        return self.options[self.correct_answer]

    def to_record(self, quiz_id: str, order: int) -> MutableMapping[str, Any]:
        return {
            "quiz_id": quiz_id,
            "question": self.question,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "order": order,
        }


def split_sentences(content: object) -> List[str]:
    """Return stripped sentence fragments long enough to quiz on."""

    if not isinstance(content, str):
        return []
    fragments = (part.strip() for part in _SENTENCE_SPLIT.split(content))
    return [s for s in fragments if len(s) > MIN_SENTENCE_LENGTH]


def blank_candidates(sentence: str) -> List[str]:
    return [w for w in sentence.split(" ") if len(w) > MIN_WORD_LENGTH]


def pick_distractors(
    answer: str, words: Sequence[str], rng: random.Random
) -> List[str]:
    """Pick three wrong options, preferring words of similar length."""

    pool = [
        w
        for w in dict.fromkeys(words)
        if w != answer and abs(len(w) - len(answer)) <= LENGTH_TOLERANCE
    ]
    wrong: List[str] = []
    while len(wrong) < OPTION_COUNT - 1 and pool:
        wrong.append(pool.pop(rng.randrange(len(pool))))
    while len(wrong) < OPTION_COUNT - 1:
        wrong.append(f"Option {len(wrong) + 1}")
    return wrong


def build_question(
    sentence: str, rng: random.Random
) -> Optional[GeneratedQuestion]:
    """Turn one sentence into a question, or ``None`` if it is too thin."""

    words = blank_candidates(sentence)
    if len(words) < MIN_CANDIDATES:
        return None
    answer = rng.choice(words)
    stem = sentence.replace(answer, BLANK, 1)
    options = [answer, *pick_distractors(answer, words, rng)]
    rng.shuffle(options)
    return GeneratedQuestion(
        question=f"{QUESTION_PREFIX}{stem}",
        options=tuple(options),
        correct_answer=options.index(answer),
    )


def generate_questions_from_content(
    content: object,
    num_questions: int,
    *,
    rng: Optional[random.Random] = None,
) -> List[GeneratedQuestion]:
    """Generate up to ``num_questions`` questions from ``content``.

    Sentences are drawn without replacement; a drawn sentence that cannot
    produce a question still uses up one of the requested slots.
    """

    sentences = split_sentences(content)
    try:
        requested = int(num_questions)
    except (TypeError, ValueError):
        requested = 0
    if requested <= 0 or not sentences:
        return []

    rng = rng or random.Random()
    indices = list(range(len(sentences)))
    rng.shuffle(indices)

    questions: List[GeneratedQuestion] = []
    skipped = 0
    for index in indices[:requested]:
        question = build_question(sentences[index], rng)
        if question is None:
            skipped += 1
            continue
        questions.append(question)

    logger.debug(
        "Generated questions from content",
        extra={
            "requested": requested,
            "sentences": len(sentences),
            "generated": len(questions),
            "skipped": skipped,
        },
    )
    return questions
