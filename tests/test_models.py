from __future__ import annotations

import pytest

from study_notes.models import ModelError, Note, Quiz, QuizAttempt, QuizQuestion


def test_note_from_dict_fills_optional_fields():
    note = Note.from_dict({"id": "n1", "user_id": "alice", "title": "", "content": "x"})

    assert note.subject == ""
    assert note.display_title == "Untitled"
    assert note.to_dict()["content"] == "x"


def test_note_requires_identity_fields():
    with pytest.raises(ModelError, match="user_id"):
        Note.from_dict({"id": "n1", "title": "t", "content": "c"})


def test_quiz_round_trips_through_dict():
    payload = {
        "id": "z1",
        "note_id": "n1",
        "user_id": "alice",
        "title": "Cells - Quiz",
        "created_at": "2024-01-01T00:00:00+00:00",
    }

    assert Quiz.from_dict(payload).to_dict() == payload


def test_question_validates_correct_answer_range():
    with pytest.raises(ModelError, match="out of range"):
        QuizQuestion(
            id="q", quiz_id="z", question="?", options=("a", "b"), correct_answer=2
        )


def test_question_rejects_empty_options_and_negative_order():
    with pytest.raises(ModelError):
        QuizQuestion(id="q", quiz_id="z", question="?", options=(), correct_answer=0)
    with pytest.raises(ModelError):
        QuizQuestion(
            id="q",
            quiz_id="z",
            question="?",
            options=("a",),
            correct_answer=0,
            order=-1,
        )


def test_question_from_dict_coerces_lists_to_tuples():
    question = QuizQuestion.from_dict(
        {
            "id": "q",
            "quiz_id": "z",
            "question": "Fill in the blank: _____",
            "options": ["a", "b", "c", "d"],
            "correct_answer": "2",
            "order": 1,
        }
    )

    assert question.options == ("a", "b", "c", "d")
    assert question.correct_option == "c"
    assert question.option_text(None) is None
    assert question.option_text(7) is None
    assert question.to_dict()["options"] == ["a", "b", "c", "d"]


@pytest.mark.parametrize(
    "options, correct",
    [("abcd", 0), (None, 0), (["a", "b"], "first")],
)
def test_question_from_dict_rejects_malformed_payloads(options, correct):
    with pytest.raises(ModelError):
        QuizQuestion.from_dict(
            {
                "id": "q",
                "quiz_id": "z",
                "question": "?",
                "options": options,
                "correct_answer": correct,
            }
        )


def test_attempt_bounds_score_by_total():
    with pytest.raises(ModelError):
        QuizAttempt(id="a", quiz_id="z", user_id="u", score=4, total_questions=3)
    with pytest.raises(ModelError):
        QuizAttempt(id="a", quiz_id="z", user_id="u", score=-1, total_questions=3)


def test_attempt_from_dict_normalizes_answers():
    attempt = QuizAttempt.from_dict(
        {
            "id": "a",
            "quiz_id": "z",
            "user_id": "u",
            "score": 2,
            "total_questions": 3,
            "answers": {"0": "1", "1": 2, "2": 0},
        }
    )

    assert attempt.answers == {"0": 1, "1": 2, "2": 0}
    assert attempt.percent == 67
    assert attempt.to_dict()["answers"] == {"0": 1, "1": 2, "2": 0}


def test_attempt_from_dict_rejects_non_mapping_answers():
    with pytest.raises(ModelError):
        QuizAttempt.from_dict(
            {
                "id": "a",
                "quiz_id": "z",
                "user_id": "u",
                "score": 0,
                "total_questions": 1,
                "answers": [1],
            }
        )
