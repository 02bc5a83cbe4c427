from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence


class ProfileType(str, Enum):
    CONSERVATIVE = "Conservative"
    MODERATE = "Moderate"
    AGGRESSIVE = "Aggressive"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["ProfileType"]:
        """Case-insensitive lookup; returns None for unknown values."""
        if raw is None:
            return None
        if isinstance(raw, ProfileType):
            return raw
        key = str(raw).strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


class RiskLevel(str, Enum):
    LOW = "Baixo"
    MEDIUM = "Médio"
    MEDIUM_HIGH = "Médio-Alto"
    HIGH = "Alto"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["RiskLevel"]:
        if raw is None:
            return None
        key = str(raw).strip().lower()
        for member in cls:
            if member.value.lower() == key or member.name.lower() == key:
                return member
        return None


class QuestionCategory(str, Enum):
    OBJECTIVES = "Objectives"
    TIME_HORIZON = "TimeHorizon"
    RISK_TOLERANCE = "RiskTolerance"
    KNOWLEDGE = "Knowledge"
    FINANCIAL_SITUATION = "FinancialSituation"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["QuestionCategory"]:
        if raw is None:
            return None
        key = str(raw).strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


TARGET_PROFILE_SEPARATOR = "|"


def parse_target_profiles(raw: Optional[str]) -> FrozenSet[ProfileType]:
    if not raw:
        return frozenset()
    parsed = (ProfileType.parse(part) for part in raw.split(TARGET_PROFILE_SEPARATOR))
    return frozenset(p for p in parsed if p is not None)


def format_target_profiles(profiles: Sequence[ProfileType]) -> str:
    ordered = [p for p in ProfileType if p in set(profiles)]
    return TARGET_PROFILE_SEPARATOR.join(p.value for p in ordered)


@dataclass(frozen=True)
class AnswerOption:
    id: int
    question_id: int
    text: str
    score: int
    description: str = ""


@dataclass(frozen=True)
class Question:
    id: int
    text: str
    category: QuestionCategory
    weight: int
    order: int
    is_active: bool
    options: Sequence[AnswerOption] = ()


@dataclass(frozen=True)
class UserAnswer:
    question_id: int
    answer_option_id: int


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    description: str
    category: str
    risk_level: RiskLevel
    minimum_investment: float
    liquidity_days: int
    target_profiles: FrozenSet[ProfileType]
    administration_fee: float
    expected_return: float
    issuer: str
    is_active: bool = True


@dataclass(frozen=True)
class ProfileAnswerRecord:
    question_id: int
    answer_option_id: int
    answered_at: Optional[datetime] = None


@dataclass
class Profile:
    user_id: int
    profile_type: ProfileType
    score: int
    calculated_at: datetime
    updated_at: Optional[datetime] = None
    id: Optional[int] = None
    answers: List[ProfileAnswerRecord] = field(default_factory=list)


@dataclass(frozen=True)
class SimulationRecord:
    user_id: int
    profile_type: str
    invested_amount: float
    investment_months: int
    total_return: float
    net_return: float
    total_amount: float
    details: str
    simulated_at: Optional[datetime] = None
    id: Optional[int] = None
