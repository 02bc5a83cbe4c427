import pytest

from painel.db.models import AnswerOption as AnswerOptionRow, ProfileAnswer, ProfileQuestion
from painel.services.domain import ProfileType, QuestionCategory, UserAnswer
from painel.services.errors import NotFoundError, UnexpectedError, ValidationError
from painel.services.risk_profile import (
    calculate_profile,
    get_profile,
    get_question,
    profile_exists,
    score_to_profile,
    serialize_questionnaire,
)
from painel.services.stores import SqlProfileStore, SqlQuestionCatalog

from fakes import FakeProfileStore, FakeQuestionCatalog, make_question


@pytest.fixture
def questions():
    return FakeQuestionCatalog(
        [
            make_question(1, (1, 5, 10)),
            make_question(2, (1, 5, 10)),
            make_question(3, (1, 20, 80)),
            make_question(4, (1, 5, 10), is_active=False),
        ]
    )


@pytest.mark.parametrize(
    "score,expected",
    [
        (0, ProfileType.CONSERVATIVE),
        (30, ProfileType.CONSERVATIVE),
        (31, ProfileType.MODERATE),
        (70, ProfileType.MODERATE),
        (71, ProfileType.AGGRESSIVE),
        (100, ProfileType.AGGRESSIVE),
    ],
)
def test_score_ranges_are_inclusive(score, expected):
    assert score_to_profile(score) is expected


@pytest.mark.parametrize("score", [-1, 101, 250])
def test_out_of_range_score_falls_back_to_conservative(score):
    assert score_to_profile(score) is ProfileType.CONSERVATIVE


def test_calculate_profile_sums_option_scores(questions):
    profiles = FakeProfileStore()
    result = calculate_profile(
        7,
        [UserAnswer(1, 13), UserAnswer(2, 22), UserAnswer(3, 32)],
        questions=questions,
        profiles=profiles,
    )
    # 10 + 5 + 20
    assert result.score == 35
    assert result.profile_type is ProfileType.MODERATE
    assert [a.option_score for a in result.answers] == [10, 5, 20]
    assert profiles.commits == 1
    assert profiles.exists_for_user(7)


def test_calculate_profile_reaches_aggressive(questions):
    result = calculate_profile(
        1,
        [UserAnswer(1, 13), UserAnswer(3, 33)],
        questions=questions,
        profiles=FakeProfileStore(),
    )
    assert result.score == 90
    assert result.profile_type is ProfileType.AGGRESSIVE


def test_empty_answers_rejected(questions):
    with pytest.raises(ValidationError, match="At least one answer"):
        calculate_profile(1, [], questions=questions, profiles=FakeProfileStore())


def test_duplicate_question_rejected(questions):
    with pytest.raises(ValidationError, match="Duplicate answer for question: 1"):
        calculate_profile(
            1,
            [UserAnswer(1, 11), UserAnswer(1, 12)],
            questions=questions,
            profiles=FakeProfileStore(),
        )


def test_option_from_other_question_rejected(questions):
    with pytest.raises(ValidationError, match="Invalid answer option: 21 for question: 1"):
        calculate_profile(
            1, [UserAnswer(1, 21)], questions=questions, profiles=FakeProfileStore()
        )


@pytest.mark.parametrize("question_id", [4, 99])
def test_unknown_or_inactive_question_rejected(questions, question_id):
    profiles = FakeProfileStore()
    with pytest.raises(ValidationError, match=f"Question not found: {question_id}"):
        calculate_profile(
            1,
            [UserAnswer(question_id, question_id * 10 + 1)],
            questions=questions,
            profiles=profiles,
        )
    assert not profiles.exists_for_user(1)


def test_recalculation_replaces_answers_and_keeps_calculated_at(questions):
    profiles = FakeProfileStore()
    first = calculate_profile(
        3,
        [UserAnswer(1, 11), UserAnswer(2, 21), UserAnswer(3, 31)],
        questions=questions,
        profiles=profiles,
    )
    second = calculate_profile(3, [UserAnswer(3, 33)], questions=questions, profiles=profiles)

    stored = profiles.by_user_id(3)
    assert [a.question_id for a in stored.answers] == [3]
    assert second.score == 80
    assert second.calculated_at == first.calculated_at
    assert second.updated_at is not None


def test_get_profile_without_profile_raises(questions):
    with pytest.raises(NotFoundError):
        get_profile(42, questions=questions, profiles=FakeProfileStore())


def test_questionnaire_hides_scores_and_inactive_questions(questions):
    payload = serialize_questionnaire(questions)
    assert [q["id"] for q in payload] == [1, 2, 3]
    assert "score" not in payload[0]["options"][0]


def test_get_question_inactive_is_not_found(questions):
    assert get_question(1, questions)["id"] == 1
    with pytest.raises(NotFoundError):
        get_question(4, questions)


def _options_by_question(db):
    mapping = {}
    for question in db.query(ProfileQuestion).order_by(ProfileQuestion.order).all():
        mapping[question.id] = [
            opt.id
            for opt in db.query(AnswerOptionRow)
            .filter(AnswerOptionRow.question_id == question.id)
            .order_by(AnswerOptionRow.score)
            .all()
        ]
    return mapping


def test_sql_store_replaces_previous_answer_set(seeded, user_token):
    _, user = user_token
    options = _options_by_question(seeded)
    questions = SqlQuestionCatalog(seeded)
    profiles = SqlProfileStore(seeded)

    everything = [UserAnswer(qid, opts[0]) for qid, opts in options.items()]
    first = calculate_profile(user.id, everything, questions=questions, profiles=profiles)
    assert first.score == 5
    assert first.profile_type is ProfileType.CONSERVATIVE

    qid, opts = next(iter(options.items()))
    second = calculate_profile(
        user.id, [UserAnswer(qid, opts[-1])], questions=questions, profiles=profiles
    )
    assert second.score == 10

    assert seeded.query(ProfileAnswer).count() == 1
    stored = get_profile(user.id, questions=questions, profiles=profiles)
    assert stored.score == 10
    assert len(stored.answers) == 1
    assert profile_exists(user.id, profiles=profiles)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("RiskTolerance", QuestionCategory.RISK_TOLERANCE),
        (" timehorizon ", QuestionCategory.TIME_HORIZON),
        ("Astrologia", None),
        (None, None),
    ],
)
def test_question_category_parse(raw, expected):
    assert QuestionCategory.parse(raw) is expected


def test_seeded_questions_carry_their_category(seeded):
    catalog = SqlQuestionCatalog(seeded)
    categories = [q.category for q in catalog.active_questions()]
    assert categories == [
        QuestionCategory.OBJECTIVES,
        QuestionCategory.TIME_HORIZON,
        QuestionCategory.RISK_TOLERANCE,
        QuestionCategory.KNOWLEDGE,
        QuestionCategory.FINANCIAL_SITUATION,
    ]
    assert serialize_questionnaire(catalog)[0]["category"] == "Objectives"


def test_unknown_question_category_is_unexpected(db_session):
    row = ProfileQuestion(question_text="Signo?", category="Astrologia", weight=1, order=1)
    row.answer_options = [AnswerOptionRow(option_text="Áries", score=1, description="")]
    db_session.add(row)
    db_session.commit()

    with pytest.raises(UnexpectedError):
        SqlQuestionCatalog(db_session).question_by_id(row.id)
