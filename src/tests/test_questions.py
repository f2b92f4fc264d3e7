# src/tests/test_questions.py
import json
import logging

import pytest
import requests

from src.climb.questions import (
    DEFAULT_QUESTIONS, HttpQuestionProvider, JsonFileQuestionProvider, Question,
    QuestionHeightTracker, QuestionSourceError, load_question_pool
)

ENTRY = {
    "id": 42, "question": "2 + 2?", "answers": ["3", "4", "5"], "correct": "4",
    "difficulty": "Easy", "subject": "Math", "explanation": "Basic.", "points": 100,
}


# ------------------------ Height tracker ------------------------

def test_tracker_triggers_once_per_threshold():
    shown = []
    t = QuestionHeightTracker(start_y=1000, questions=DEFAULT_QUESTIONS[:2],
                              height_per_question=2000, on_show_question=shown.append)
    assert t.next_trigger_height == -1000
    assert t.check_height(-999) is None
    assert t.check_height(-1000) is DEFAULT_QUESTIONS[0]
    assert t.has_active_question
    assert t.last_question_height == -1000
    assert t.next_trigger_height == -3000
    # active: nothing else fires however high the player goes
    assert t.check_height(-10_000) is None
    assert shown == [DEFAULT_QUESTIONS[0]]


def test_tracker_advances_and_wraps():
    t = QuestionHeightTracker(start_y=0, questions=DEFAULT_QUESTIONS[:2], height_per_question=100)
    seen = []
    y = 0
    for _ in range(3):
        y -= 100
        seen.append(t.check_height(y))
        t.question_answered()
    assert [q.id for q in seen] == [1, 2, 1]
    assert t.current_index == 1


def test_tracker_with_empty_pool_never_fires():
    shown = []
    t = QuestionHeightTracker(start_y=0, questions=[], on_show_question=shown.append)
    assert t.check_height(-1_000_000) is None
    assert not t.has_active_question
    assert t.current_question is None
    assert shown == []


def test_answer_without_active_question_is_ignored():
    t = QuestionHeightTracker(start_y=0, questions=DEFAULT_QUESTIONS)
    t.question_answered()
    assert t.current_index == 0


# ------------------------ Question records ------------------------

def test_from_dict_normalizes_difficulty():
    q = Question.from_dict(ENTRY)
    assert q.id == 42 and q.correct == "4" and q.difficulty == "easy"


@pytest.mark.parametrize("patch", [
    {"answers": ["only"], "correct": "only"},
    {"correct": "7"},
    {"difficulty": "impossible"},
    {"id": None},
])
def test_from_dict_rejects_malformed(patch):
    with pytest.raises(ValueError):
        Question.from_dict({**ENTRY, **patch})


def test_from_dict_missing_key():
    entry = dict(ENTRY)
    del entry["question"]
    with pytest.raises(ValueError):
        Question.from_dict(entry)


def test_default_pool_is_well_formed():
    assert [q.id for q in DEFAULT_QUESTIONS] == [1, 2, 3, 4, 5]
    for q in DEFAULT_QUESTIONS:
        assert q.correct in q.answers


# ------------------------ Providers ------------------------

class FakeResponse:
    def __init__(self, payload=None, status=200, bad_json=False):
        self.payload = payload
        self.status = status
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if self.bad_json:
            raise ValueError("no JSON")
        return self.payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.exc is not None:
            raise self.exc
        return self.response


def test_http_provider_random_endpoint():
    session = FakeSession(FakeResponse({"success": True, "data": [ENTRY, {**ENTRY, "id": 43}]}))
    provider = HttpQuestionProvider("http://quiz.test/api/", timeout=2.0, session=session)
    questions = provider.fetch_questions(1)
    assert session.calls == [("http://quiz.test/api/questions/random/1", 2.0)]
    assert [q.id for q in questions] == [42]


def test_http_provider_difficulty_endpoint():
    session = FakeSession(FakeResponse({"success": True, "data": [ENTRY]}))
    provider = HttpQuestionProvider("http://quiz.test/api", difficulty="HARD", session=session)
    provider.fetch_questions(20)
    assert session.calls[0][0] == "http://quiz.test/api/questions/difficulty/hard"


def test_http_provider_rejects_unknown_difficulty():
    with pytest.raises(ValueError):
        HttpQuestionProvider("http://quiz.test/api", difficulty="legendary", session=FakeSession())


@pytest.mark.parametrize("session", [
    FakeSession(exc=requests.ConnectionError("refused")),
    FakeSession(FakeResponse(status=500)),
    FakeSession(FakeResponse(bad_json=True)),
    FakeSession(FakeResponse({"success": False, "error": "db down"})),
    FakeSession(FakeResponse({"success": True, "data": {"not": "a list"}})),
    FakeSession(FakeResponse({"success": True, "data": [{"id": 1}]})),
])
def test_http_provider_failures_raise_source_error(session):
    provider = HttpQuestionProvider("http://quiz.test/api", session=session)
    with pytest.raises(QuestionSourceError):
        provider.fetch_questions(5)


def test_json_file_provider(tmp_path):
    path = tmp_path / "questions.json"
    path.write_text(json.dumps([ENTRY, {**ENTRY, "id": 43}, {**ENTRY, "id": 44}]), encoding="utf-8")
    questions = JsonFileQuestionProvider(path).fetch_questions(2)
    assert len(questions) == 2
    assert {q.id for q in questions} <= {42, 43, 44}


def test_json_file_provider_missing_file(tmp_path):
    with pytest.raises(QuestionSourceError):
        JsonFileQuestionProvider(tmp_path / "nope.json").fetch_questions(3)


# ------------------------ Pool loading ------------------------

def test_pool_defaults_without_provider():
    assert load_question_pool(None) == DEFAULT_QUESTIONS


def test_pool_falls_back_on_failure(caplog):
    provider = HttpQuestionProvider("http://quiz.test/api",
                                    session=FakeSession(exc=requests.Timeout("slow")))
    with caplog.at_level(logging.WARNING):
        pool = load_question_pool(provider, 20)
    assert pool == DEFAULT_QUESTIONS
    assert "using 5 defaults" in caplog.text


def test_pool_falls_back_on_empty_result():
    class Empty:
        def fetch_questions(self, count):
            return []
    assert load_question_pool(Empty()) == DEFAULT_QUESTIONS


def test_pool_uses_provider_questions():
    session = FakeSession(FakeResponse({"success": True, "data": [ENTRY]}))
    pool = load_question_pool(HttpQuestionProvider("http://quiz.test/api", session=session), 20)
    assert [q.id for q in pool] == [42]
