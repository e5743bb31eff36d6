from quiz_delivery.core.models import Question, QuestionType, Quiz
from quiz_delivery.core.ordering import OrderingEngine, seed_for, seeded_shuffle


def _quiz(quiz_id="quiz-1", count=12, shuffle=True):
    questions = [
        Question(id=f"q{index}", type=QuestionType.IDENTIFICATION, prompt=f"Prompt {index}")
        for index in range(count)
    ]
    return Quiz(id=quiz_id, title="Ordering", questions=questions, shuffle_questions=shuffle)


def test_same_pair_always_gets_the_same_order():
    quiz = _quiz()
    first = OrderingEngine().display_order(quiz, "student-1")
    for _ in range(5):
        assert OrderingEngine().display_order(quiz, "student-1") == first


def test_order_is_a_permutation_of_the_questions():
    quiz = _quiz()
    order = OrderingEngine().display_order(quiz, "student-1")
    assert sorted(order) == sorted(question.id for question in quiz.questions)
    assert len(set(order)) == len(order)


def test_different_students_and_quizzes_get_different_orders():
    engine = OrderingEngine()
    quiz = _quiz()
    orders = {tuple(engine.display_order(quiz, f"student-{n}")) for n in range(20)}
    assert len(orders) > 15
    other_quiz = _quiz(quiz_id="quiz-2")
    assert engine.display_order(quiz, "student-1") != engine.display_order(other_quiz, "student-1")


def test_seed_depends_on_both_identifiers():
    assert seed_for("quiz-1", "student-1") == seed_for("quiz-1", "student-1")
    assert seed_for("quiz-1", "student-1") != seed_for("quiz-1", "student-2")
    assert seed_for("quiz-1", "student-1") != seed_for("quiz-2", "student-1")


def test_authored_order_kept_when_shuffle_disabled():
    quiz = _quiz(shuffle=False)
    assert OrderingEngine().display_order(quiz, "student-1") == [f"q{index}" for index in range(12)]


def test_seeded_shuffle_does_not_mutate_input():
    items = ["a", "b", "c", "d"]
    shuffled = seeded_shuffle(items, 42)
    assert items == ["a", "b", "c", "d"]
    assert shuffled == seeded_shuffle(["a", "b", "c", "d"], 42)


def test_single_question_and_empty_quiz():
    assert seeded_shuffle(["only"], 7) == ["only"]
    assert seeded_shuffle([], 7) == []
