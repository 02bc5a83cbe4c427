from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from painel.services.domain import (
    AnswerOption,
    Profile,
    ProfileAnswerRecord,
    ProfileType,
    Question,
    UserAnswer,
)
from painel.services.errors import NotFoundError, ValidationError
from painel.services.stores import ProfileStore, QuestionCatalog

logger = logging.getLogger(__name__)


# Faixas inclusivas de pontuação por perfil
PROFILE_RANGES: Sequence[Tuple[ProfileType, int, int]] = (
    (ProfileType.CONSERVATIVE, 0, 30),
    (ProfileType.MODERATE, 31, 70),
    (ProfileType.AGGRESSIVE, 71, 100),
)

# Pontuação fora das faixas (catálogo alterado) cai no perfil mais prudente
FALLBACK_PROFILE = ProfileType.CONSERVATIVE


@dataclass(frozen=True)
class ValidatedAnswer:
    question: Question
    option: AnswerOption


@dataclass(frozen=True)
class AnswerDetail:
    question_text: str
    option_text: str
    question_weight: int
    option_score: int


@dataclass(frozen=True)
class ProfileResult:
    user_id: int
    profile_type: ProfileType
    score: int
    calculated_at: datetime
    updated_at: Optional[datetime]
    answers: Sequence[AnswerDetail]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def score_to_profile(score: int) -> ProfileType:
    for profile_type, low, high in PROFILE_RANGES:
        if low <= score <= high:
            return profile_type
    logger.warning(
        "Pontuacao %s fora das faixas conhecidas; usando %s",
        score,
        FALLBACK_PROFILE.value,
    )
    return FALLBACK_PROFILE


def compute_score(options: Sequence[AnswerOption]) -> int:
    # O peso da pergunta é apenas informativo: não entra na soma
    return sum(int(option.score) for option in options)


def validate_answers(
    answers: Sequence[UserAnswer], questions: QuestionCatalog
) -> List[ValidatedAnswer]:
    if not answers:
        raise ValidationError("At least one answer is required")

    seen: set[int] = set()
    for answer in answers:
        if answer.question_id in seen:
            raise ValidationError(f"Duplicate answer for question: {answer.question_id}")
        seen.add(answer.question_id)

    validated: List[ValidatedAnswer] = []
    for answer in answers:
        question = questions.question_by_id(answer.question_id)
        if question is None or not question.is_active:
            raise ValidationError(f"Question not found: {answer.question_id}")

        option = questions.answer_option_by_id(answer.answer_option_id)
        if option is None or option.question_id != answer.question_id:
            raise ValidationError(
                f"Invalid answer option: {answer.answer_option_id} "
                f"for question: {answer.question_id}"
            )
        validated.append(ValidatedAnswer(question=question, option=option))
    return validated


def _details_from_validated(validated: Sequence[ValidatedAnswer]) -> List[AnswerDetail]:
    return [
        AnswerDetail(
            question_text=item.question.text,
            option_text=item.option.text,
            question_weight=item.question.weight,
            option_score=item.option.score,
        )
        for item in validated
    ]


def calculate_profile(
    user_id: int,
    answers: Sequence[UserAnswer],
    *,
    questions: QuestionCatalog,
    profiles: ProfileStore,
) -> ProfileResult:
    """Score a questionnaire submission and store it as the user's profile.

    The previous answer set of an existing profile is replaced, never merged.
    Lookup, profile write and answer replacement share one transaction so a
    concurrent resubmission never leaves a mix of old and new answers.
    """
    logger.info("Calculando perfil do usuario %s (%s respostas)", user_id, len(answers))

    validated = validate_answers(answers, questions)
    score = compute_score([item.option for item in validated])
    profile_type = score_to_profile(score)
    now = _utcnow()

    records = [
        ProfileAnswerRecord(
            question_id=item.question.id,
            answer_option_id=item.option.id,
            answered_at=now,
        )
        for item in validated
    ]

    with profiles.transaction():
        profile = profiles.by_user_id(user_id, for_update=True)
        if profile is not None:
            profile.profile_type = profile_type
            profile.score = score
            profile.updated_at = now
            profiles.update(profile)
        else:
            profile = profiles.create(
                Profile(
                    user_id=user_id,
                    profile_type=profile_type,
                    score=score,
                    calculated_at=now,
                )
            )
        profiles.replace_answers(profile.id, records)

    logger.info(
        "Perfil do usuario %s calculado: %s (pontuacao %s)",
        user_id,
        profile_type.value,
        score,
    )

    return ProfileResult(
        user_id=user_id,
        profile_type=profile_type,
        score=score,
        calculated_at=profile.calculated_at,
        updated_at=profile.updated_at,
        answers=_details_from_validated(validated),
    )


def get_profile(
    user_id: int, *, questions: QuestionCatalog, profiles: ProfileStore
) -> ProfileResult:
    profile = profiles.by_user_id(user_id)
    if profile is None:
        raise NotFoundError(f"Profile not found for user {user_id}")

    details: List[AnswerDetail] = []
    for answer in profile.answers:
        question = questions.question_by_id(answer.question_id)
        option = questions.answer_option_by_id(answer.answer_option_id)
        details.append(
            AnswerDetail(
                question_text=question.text if question else "Unknown",
                option_text=option.text if option else "Unknown",
                question_weight=question.weight if question else 0,
                option_score=option.score if option else 0,
            )
        )

    return ProfileResult(
        user_id=profile.user_id,
        profile_type=profile.profile_type,
        score=profile.score,
        calculated_at=profile.calculated_at,
        updated_at=profile.updated_at,
        answers=details,
    )


def profile_exists(user_id: int, *, profiles: ProfileStore) -> bool:
    return profiles.exists_for_user(user_id)


def serialize_question(question: Question) -> Dict[str, object]:
    # Pontuação das opções não é exposta ao investidor
    return {
        "id": question.id,
        "text": question.text,
        "category": question.category.value,
        "weight": question.weight,
        "order": question.order,
        "options": [
            {"id": opt.id, "text": opt.text, "description": opt.description}
            for opt in question.options
        ],
    }


def serialize_questionnaire(questions: QuestionCatalog) -> List[Dict[str, object]]:
    return [serialize_question(q) for q in questions.active_questions()]


def get_question(question_id: int, questions: QuestionCatalog) -> Dict[str, object]:
    question = questions.question_by_id(question_id)
    if question is None or not question.is_active:
        raise NotFoundError(f"Question not found: {question_id}")
    return serialize_question(question)
