from typing import Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, conint
from sqlalchemy.orm import Session

from painel.db.base import get_db
from painel.routes.auth import get_current_user, User  # type: ignore
from painel.routes.common import raise_http_error
from painel.services.allocations import get_allocation_template
from painel.services.domain import UserAnswer
from painel.services.errors import ServiceError
from painel.services.risk_profile import (
    ProfileResult,
    calculate_profile,
    get_profile,
    get_question,
    serialize_questionnaire,
)
from painel.services.stores import SqlProfileStore, SqlQuestionCatalog

router = APIRouter(prefix="/profile", tags=["profile"])


class AnswerIn(BaseModel):
    question_id: conint(ge=1)
    answer_option_id: conint(ge=1)


class ProfileRequest(BaseModel):
    answers: List[AnswerIn]


def _profile_payload(result: ProfileResult) -> Dict[str, object]:
    allocation = get_allocation_template(result.profile_type)
    return {
        "user_id": result.user_id,
        "profile_type": result.profile_type.value,
        "score": result.score,
        "calculated_at": result.calculated_at,
        "updated_at": result.updated_at,
        "answers": [
            {
                "question_text": a.question_text,
                "option_text": a.option_text,
                "question_weight": a.question_weight,
                "option_score": a.option_score,
            }
            for a in result.answers
        ],
        "allocation": {
            "conservative_percentage": allocation.conservative_pct,
            "moderate_percentage": allocation.moderate_pct,
            "aggressive_percentage": allocation.aggressive_pct,
            "description": allocation.description,
        },
    }


@router.get("/questions")
def list_questions(db: Session = Depends(get_db)):
    try:
        return serialize_questionnaire(SqlQuestionCatalog(db))
    except ServiceError as exc:
        raise_http_error(exc)


@router.get("/questions/{question_id}")
def question_detail(question_id: int, db: Session = Depends(get_db)):
    try:
        return get_question(question_id, SqlQuestionCatalog(db))
    except ServiceError as exc:
        raise_http_error(exc)


@router.get("")
def read_profile(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        result = get_profile(
            user.id,
            questions=SqlQuestionCatalog(db),
            profiles=SqlProfileStore(db),
        )
    except ServiceError as exc:
        raise_http_error(exc)
    return _profile_payload(result)


@router.post("")
def submit_profile(
    body: ProfileRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    answers = [
        UserAnswer(question_id=a.question_id, answer_option_id=a.answer_option_id)
        for a in body.answers
    ]
    try:
        result = calculate_profile(
            user.id,
            answers,
            questions=SqlQuestionCatalog(db),
            profiles=SqlProfileStore(db),
        )
    except ServiceError as exc:
        raise_http_error(exc)
    return _profile_payload(result)
