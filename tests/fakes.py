"""In-memory collaborators for exercising the engines without a database."""

from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from painel.services.domain import (
    AnswerOption,
    Product,
    Profile,
    ProfileType,
    Question,
    QuestionCategory,
    RiskLevel,
    SimulationRecord,
)
from painel.services.stores import (
    RISK_ORDER,
    ProductCatalog,
    ProfileStore,
    QuestionCatalog,
    SimulationStore,
)


def make_product(
    id: int,
    risk_level: RiskLevel = RiskLevel.LOW,
    expected_return: float = 0.01,
    minimum_investment: float = 0.0,
    liquidity_days: int = 30,
    target_profiles=(ProfileType.CONSERVATIVE,),
    category: str = "RendaFixa",
    is_active: bool = True,
) -> Product:
    return Product(
        id=id,
        name=f"Produto {id}",
        description="",
        category=category,
        risk_level=risk_level,
        minimum_investment=minimum_investment,
        liquidity_days=liquidity_days,
        target_profiles=frozenset(target_profiles),
        administration_fee=0.0,
        expected_return=expected_return,
        issuer="Emissor",
        is_active=is_active,
    )


def make_question(id: int, scores, is_active: bool = True) -> Question:
    options = tuple(
        AnswerOption(id=id * 10 + n, question_id=id, text=f"Opcao {n}", score=score)
        for n, score in enumerate(scores, start=1)
    )
    return Question(
        id=id,
        text=f"Pergunta {id}",
        category=QuestionCategory.OBJECTIVES,
        weight=10,
        order=id,
        is_active=is_active,
        options=options,
    )


class FakeQuestionCatalog(QuestionCatalog):
    def __init__(self, questions):
        self.questions = {q.id: q for q in questions}

    def active_questions(self) -> List[Question]:
        return [q for q in self.questions.values() if q.is_active]

    def question_by_id(self, question_id: int) -> Optional[Question]:
        return self.questions.get(question_id)

    def answer_option_by_id(self, option_id: int) -> Optional[AnswerOption]:
        for question in self.questions.values():
            for option in question.options:
                if option.id == option_id:
                    return option
        return None


class FakeProductCatalog(ProductCatalog):
    def __init__(self, products):
        self.products = {p.id: p for p in products}

    def active_products(self) -> List[Product]:
        return [p for p in self.products.values() if p.is_active]

    def product_by_id(self, product_id: int) -> Optional[Product]:
        return self.products.get(product_id)

    def products_by_profile(self, profile_type: ProfileType) -> List[Product]:
        selected = [
            p for p in self.active_products() if profile_type in p.target_profiles
        ]
        selected.sort(key=lambda p: (RISK_ORDER[p.risk_level], -p.expected_return, p.id))
        return selected


class FakeProfileStore(ProfileStore):
    def __init__(self, profiles=()):
        self.profiles: Dict[int, Profile] = {p.user_id: p for p in profiles}
        self.commits = 0

    @contextmanager
    def transaction(self):
        yield
        self.commits += 1

    def by_user_id(self, user_id: int, *, for_update: bool = False) -> Optional[Profile]:
        return self.profiles.get(user_id)

    def exists_for_user(self, user_id: int) -> bool:
        return user_id in self.profiles

    def create(self, profile: Profile) -> Profile:
        profile.id = len(self.profiles) + 1
        self.profiles[profile.user_id] = profile
        return profile

    def update(self, profile: Profile) -> None:
        self.profiles[profile.user_id] = profile

    def replace_answers(self, profile_id, answers) -> None:
        for profile in self.profiles.values():
            if profile.id == profile_id:
                profile.answers = list(answers)


class FakeSimulationStore(SimulationStore):
    def __init__(self, records=()):
        self.records: List[SimulationRecord] = []
        for record in records:
            self.add(record)

    def add(self, record: SimulationRecord) -> SimulationRecord:
        stored = replace(
            record,
            id=len(self.records) + 1,
            simulated_at=record.simulated_at or datetime(2024, 1, 1),
        )
        self.records.append(stored)
        return stored

    def by_id(self, simulation_id: int) -> Optional[SimulationRecord]:
        for record in self.records:
            if record.id == simulation_id:
                return record
        return None

    def by_user_id(self, user_id: int) -> List[SimulationRecord]:
        return [r for r in self.records if r.user_id == user_id]

    def by_date_range(self, start: datetime, end: datetime) -> List[SimulationRecord]:
        return sorted(
            (r for r in self.records if start <= r.simulated_at <= end),
            key=lambda r: r.simulated_at,
        )


class UntouchableStore:
    """Fails the test if any storage method is reached."""

    def __getattr__(self, name):
        raise AssertionError(f"storage accessed: {name}")
