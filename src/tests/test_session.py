# src/tests/test_session.py
import pytest

from src.climb.platforms import CORRECT, INCORRECT, NEUTRAL
from src.climb.questions import DEFAULT_QUESTIONS
from src.climb.session import GameSession


def started_session(seed=7, **kwargs):
    # questions stay out of the way unless a test asks for them
    kwargs.setdefault("height_per_question", 1e9)
    s = GameSession(seed=seed, **kwargs)
    s.start()
    return s


def test_start_builds_world_and_loads_defaults():
    s = GameSession(seed=1)
    created = s.start()
    assert s.started
    assert s.questions == DEFAULT_QUESTIONS
    assert created[0].is_ground
    assert len(s.platforms) == len(created)
    assert s.tracker.start_y == s.spawn_y == 450
    with pytest.raises(AssertionError):
        s.start()


def test_update_before_start_is_an_error():
    with pytest.raises(AssertionError):
        GameSession(seed=1).update(0.1, 400)


def test_negative_dt_rejected():
    s = started_session()
    with pytest.raises(ValueError):
        s.update(-0.01, s.spawn_y)


def test_extension_runs_off_accumulated_time():
    # rate 0 disables the near-top extension so only the interval counts
    s = started_session(extend_rate_per_s=0.0)
    tip = s.world.path_tip
    player_y = s.world.top_y
    for _ in range(179):
        assert s.update(1 / 60, player_y) == []
    assert s.world.path_tip is tip
    created = s.update(1 / 60 + 1e-9, player_y)
    assert len(created) >= 5
    assert s.world.path_tip is not tip
    assert s.elapsed_since_extend == 0.0


def test_one_large_step_also_extends():
    s = started_session(extend_rate_per_s=0.0)
    tip = s.world.path_tip
    s.update(3.0, s.world.top_y)
    assert s.world.path_tip is not tip


def test_near_top_extension_is_rate_limited():
    s = started_session(extend_rate_per_s=1e9, extend_interval_s=1e9)
    tip = s.world.path_tip
    s.update(1 / 60, s.world.top_y)
    assert s.world.path_tip is not tip
    # far below the tip: not near the top, nothing happens
    s2 = started_session(extend_rate_per_s=1e9, extend_interval_s=1e9)
    tip2 = s2.world.path_tip
    s2.update(1 / 60, s2.world.top_y + 2 * s2.screen_height)
    assert s2.world.path_tip is tip2


def test_cleanup_runs_on_interval():
    destroyed = []
    s = started_session(on_platform_destroyed=destroyed.append,
                        extend_rate_per_s=0.0, extend_interval_s=1e9)
    far_above = s.world.top_y - 5000
    s.update(4.9, far_above)
    assert destroyed == []
    s.update(0.2, far_above)
    assert destroyed
    assert all(p.y <= far_above + 2 * s.screen_height for p in s.platforms if not p.is_answer)


def test_question_shows_answer_platforms_above_player():
    shown = []
    s = started_session(on_show_question=shown.append, height_per_question=500,
                        extend_rate_per_s=0.0, extend_interval_s=1e9)
    player_y = s.spawn_y - 500
    created = s.update(1 / 60, player_y)
    assert shown == [DEFAULT_QUESTIONS[0]]
    answers = [p for p in created if p.is_answer]
    assert len(answers) == len(DEFAULT_QUESTIONS[0].answers)
    assert all(abs(p.y - (player_y - 200)) <= 50 for p in answers)
    # active question: climbing further shows nothing new
    assert [p for p in s.update(1 / 60, player_y - 5000) if p.is_answer] == []


def test_answer_selected_resolves_and_rearms():
    s = started_session(height_per_question=500, extend_rate_per_s=0.0, extend_interval_s=1e9)
    created = s.update(1 / 60, s.spawn_y - 500)
    right = next(p for p in created if p.kind == CORRECT)
    assert s.answer_selected(right) is True
    assert right.kind == NEUTRAL and right in s.lifecycle
    assert s.lifecycle.answer_platforms() == []
    assert not s.tracker.has_active_question
    assert s.tracker.current_question is DEFAULT_QUESTIONS[1]

    created = s.update(1 / 60, s.spawn_y - 1000)
    wrong = next(p for p in created if p.kind == INCORRECT)
    assert s.answer_selected(wrong) is False
    assert s.lifecycle.answer_platforms() == []


def test_same_seed_same_session():
    a, b = started_session(seed=123), started_session(seed=123)
    for s in (a, b):
        y = s.spawn_y
        for _ in range(600):
            y -= 5
            s.update(1 / 60, y)
    assert [(p.x, p.y, p.kind) for p in a.platforms] == [(p.x, p.y, p.kind) for p in b.platforms]


def _crowded_pairs(records, live):
    return [(r.id, p.id) for r in records for p in live
            if p is not r and abs(p.x - r.x) < 50 and abs(p.y - r.y) < 40]


@pytest.mark.parametrize("seed", range(0, 200, 7))
def test_answer_platforms_never_crowd_live_platforms(seed):
    s = started_session(seed=seed, height_per_question=300)
    y = s.spawn_y
    batches = 0
    for _ in range(400):
        y -= 20
        answers = [p for p in s.update(1 / 60, y) if p.is_answer]
        if answers:
            batches += 1
            assert _crowded_pairs(answers, s.platforms) == []
            q = s.tracker.current_question
            s.question_answered(q.answers[batches % len(q.answers)])
    assert batches > 0


def test_ui_answers_leave_no_answer_platforms_behind():
    s = started_session(seed=21, height_per_question=400)
    y = s.spawn_y
    answered = 0
    for _ in range(1000):
        y -= 30
        s.update(1 / 60, y)
        if s.tracker.has_active_question:
            q = s.tracker.current_question
            assert s.lifecycle.answer_platforms(q.id)
            s.question_answered(q.correct if answered % 2 else q.answers[-1])
            answered += 1
            assert s.lifecycle.answer_platforms() == []
            assert not s.tracker.has_active_question
    assert answered > 20
    assert s.questions_answered == answered
    # correct picks stay as neutral platforms and are evicted like any other
    s.lifecycle.cleanup(y)
    assert all(p.y <= y + 2 * s.screen_height for p in s.platforms)


def test_ui_answer_resolves_the_matching_platform():
    s = started_session(height_per_question=500, extend_rate_per_s=0.0, extend_interval_s=1e9)
    created = s.update(1 / 60, s.spawn_y - 500)
    q = DEFAULT_QUESTIONS[0]
    picked = next(p for p in created if p.answer == q.correct)
    assert s.question_answered(q.correct) is True
    assert picked in s.lifecycle and picked.kind == NEUTRAL
    assert s.lifecycle.answer_platforms() == []
    assert s.tracker.current_question is DEFAULT_QUESTIONS[1]


def test_ui_answer_after_platforms_are_gone():
    s = started_session(height_per_question=500, extend_rate_per_s=0.0, extend_interval_s=1e9)
    s.update(1 / 60, s.spawn_y - 500)
    s.lifecycle.clear_question_platforms()
    assert s.question_answered("1944") is False
    assert s.questions_answered == 1 and s.correct_answers == 0
    assert not s.tracker.has_active_question


def test_ui_answer_without_active_question_is_ignored():
    s = started_session()
    assert s.question_answered("1945") is False
    assert s.questions_answered == 0
    assert s.tracker.current_index == 0


def test_correct_answers_score_question_points():
    s = started_session(height_per_question=500, score_multiplier=1.5,
                        extend_rate_per_s=0.0, extend_interval_s=1e9)
    created = s.update(1 / 60, s.spawn_y - 500)
    right = next(p for p in created if p.kind == CORRECT)
    s.answer_selected(right)
    assert s.score == 150                  # floor(100 * 1.5)

    created = s.update(1 / 60, s.spawn_y - 1000)
    wrong = next(p for p in created if p.kind == INCORRECT)
    s.answer_selected(wrong)
    assert s.score == 150

    s.update(1 / 60, s.spawn_y - 1500)
    s.question_answered(DEFAULT_QUESTIONS[2].correct)
    assert s.score == 150 + 150
    assert (s.questions_answered, s.correct_answers) == (3, 2)
