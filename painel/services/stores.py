"""Catalog and storage collaborators used by the advisory engines.

Each collaborator is a small abstract base class; the ``Sql*`` classes implement
them on top of a SQLAlchemy session.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import ContextManager, Iterator, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from painel.db.models import (
    AnswerOption as AnswerOptionRow,
    InvestmentProduct,
    InvestmentSimulation,
    InvestorProfile,
    ProfileAnswer,
    ProfileQuestion,
)
from painel.services.domain import (
    AnswerOption,
    Product,
    Profile,
    ProfileAnswerRecord,
    ProfileType,
    Question,
    QuestionCategory,
    RiskLevel,
    SimulationRecord,
    parse_target_profiles,
)
from painel.services.errors import UnexpectedError

logger = logging.getLogger(__name__)

RISK_ORDER = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.MEDIUM_HIGH: 2,
    RiskLevel.HIGH: 3,
}


class QuestionCatalog(ABC):
    """Read access to the risk questionnaire."""

    @abstractmethod
    def active_questions(self) -> List[Question]: ...

    @abstractmethod
    def question_by_id(self, question_id: int) -> Optional[Question]: ...

    @abstractmethod
    def answer_option_by_id(self, option_id: int) -> Optional[AnswerOption]: ...


class ProductCatalog(ABC):
    """Read access to the investment product catalog."""

    @abstractmethod
    def active_products(self) -> List[Product]: ...

    @abstractmethod
    def product_by_id(self, product_id: int) -> Optional[Product]: ...

    @abstractmethod
    def products_by_profile(self, profile_type: ProfileType) -> List[Product]: ...


class ProfileStore(ABC):
    """Investor profiles and their answer sets."""

    @abstractmethod
    def transaction(self) -> ContextManager[None]:
        """Unit of work: commits on success, rolls back on any error."""

    @abstractmethod
    def by_user_id(self, user_id: int, *, for_update: bool = False) -> Optional[Profile]: ...

    @abstractmethod
    def exists_for_user(self, user_id: int) -> bool: ...

    @abstractmethod
    def create(self, profile: Profile) -> Profile: ...

    @abstractmethod
    def update(self, profile: Profile) -> None: ...

    @abstractmethod
    def replace_answers(
        self, profile_id: int, answers: Sequence[ProfileAnswerRecord]
    ) -> None: ...


class SimulationStore(ABC):
    """Append-only simulation records."""

    @abstractmethod
    def add(self, record: SimulationRecord) -> SimulationRecord: ...

    @abstractmethod
    def by_id(self, simulation_id: int) -> Optional[SimulationRecord]: ...

    @abstractmethod
    def by_user_id(self, user_id: int) -> List[SimulationRecord]: ...

    @abstractmethod
    def by_date_range(self, start: datetime, end: datetime) -> List[SimulationRecord]: ...


@contextmanager
def _storage_errors(db: Session, message: str, *args) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception(message, *args)
        db.rollback()
        raise UnexpectedError("Falha ao acessar o armazenamento") from exc


def _to_option(row: AnswerOptionRow) -> AnswerOption:
    return AnswerOption(
        id=row.id,
        question_id=row.question_id,
        text=row.option_text,
        score=int(row.score),
        description=row.description or "",
    )


def _to_question(row: ProfileQuestion) -> Question:
    category = QuestionCategory.parse(row.category)
    if category is None:
        logger.error("Pergunta %s com categoria desconhecida %r", row.id, row.category)
        raise UnexpectedError(f"Categoria de pergunta desconhecida: {row.category}")
    return Question(
        id=row.id,
        text=row.question_text,
        category=category,
        weight=int(row.weight or 0),
        order=int(row.order or 0),
        is_active=bool(row.is_active),
        options=tuple(_to_option(opt) for opt in row.answer_options),
    )


def _to_product(row: InvestmentProduct) -> Product:
    risk = RiskLevel.parse(row.risk_level)
    if risk is None:
        logger.warning(
            "Produto %s com nivel de risco desconhecido %r; tratado como Alto",
            row.id,
            row.risk_level,
        )
        risk = RiskLevel.HIGH
    return Product(
        id=row.id,
        name=row.name,
        description=row.description or "",
        category=row.category,
        risk_level=risk,
        minimum_investment=float(row.minimum_investment or 0.0),
        liquidity_days=int(row.liquidity_days or 0),
        target_profiles=parse_target_profiles(row.target_profile),
        administration_fee=float(row.administration_fee or 0.0),
        expected_return=float(row.expected_return),
        issuer=row.issuer or "",
        is_active=bool(row.is_active),
    )


def _to_profile(row: InvestorProfile) -> Profile:
    profile_type = ProfileType.parse(row.profile_type)
    if profile_type is None:
        logger.warning(
            "Perfil %s com tipo desconhecido %r; assumindo Conservative",
            row.id,
            row.profile_type,
        )
        profile_type = ProfileType.CONSERVATIVE
    return Profile(
        id=row.id,
        user_id=row.user_id,
        profile_type=profile_type,
        score=int(row.score),
        calculated_at=row.calculated_at,
        updated_at=row.updated_at,
        answers=[
            ProfileAnswerRecord(
                question_id=a.question_id,
                answer_option_id=a.answer_option_id,
                answered_at=a.answered_at,
            )
            for a in row.answers
        ],
    )


def _to_record(row: InvestmentSimulation) -> SimulationRecord:
    return SimulationRecord(
        id=row.id,
        user_id=row.user_id,
        profile_type=row.profile_type,
        invested_amount=float(row.invested_amount),
        investment_months=int(row.investment_months),
        total_return=float(row.total_return),
        net_return=float(row.net_return),
        total_amount=float(row.total_amount),
        details=row.simulation_details,
        simulated_at=row.simulated_at,
    )


class SqlQuestionCatalog(QuestionCatalog):
    def __init__(self, db: Session):
        self.db = db

    def active_questions(self) -> List[Question]:
        with _storage_errors(self.db, "Erro ao listar perguntas ativas"):
            rows = (
                self.db.query(ProfileQuestion)
                .options(selectinload(ProfileQuestion.answer_options))
                .filter(ProfileQuestion.is_active.is_(True))
                .order_by(ProfileQuestion.order.asc(), ProfileQuestion.id.asc())
                .all()
            )
        return [_to_question(row) for row in rows]

    def question_by_id(self, question_id: int) -> Optional[Question]:
        with _storage_errors(self.db, "Erro ao buscar pergunta %s", question_id):
            row = (
                self.db.query(ProfileQuestion)
                .options(selectinload(ProfileQuestion.answer_options))
                .filter(ProfileQuestion.id == question_id)
                .first()
            )
        return _to_question(row) if row else None

    def answer_option_by_id(self, option_id: int) -> Optional[AnswerOption]:
        with _storage_errors(self.db, "Erro ao buscar opcao de resposta %s", option_id):
            row = self.db.query(AnswerOptionRow).filter(AnswerOptionRow.id == option_id).first()
        return _to_option(row) if row else None


class SqlProductCatalog(ProductCatalog):
    def __init__(self, db: Session):
        self.db = db

    def active_products(self) -> List[Product]:
        with _storage_errors(self.db, "Erro ao listar produtos ativos"):
            rows = (
                self.db.query(InvestmentProduct)
                .filter(InvestmentProduct.is_active.is_(True))
                .order_by(InvestmentProduct.category.asc(), InvestmentProduct.id.asc())
                .all()
            )
        return [_to_product(row) for row in rows]

    def product_by_id(self, product_id: int) -> Optional[Product]:
        with _storage_errors(self.db, "Erro ao buscar produto %s", product_id):
            row = (
                self.db.query(InvestmentProduct)
                .filter(InvestmentProduct.id == product_id)
                .first()
            )
        return _to_product(row) if row else None

    def products_by_profile(self, profile_type: ProfileType) -> List[Product]:
        with _storage_errors(
            self.db, "Erro ao buscar produtos do perfil %s", profile_type.value
        ):
            rows = (
                self.db.query(InvestmentProduct)
                .filter(
                    InvestmentProduct.is_active.is_(True),
                    InvestmentProduct.target_profile.contains(profile_type.value),
                )
                .all()
            )
        products = [
            p for p in (_to_product(row) for row in rows) if profile_type in p.target_profiles
        ]
        products.sort(key=lambda p: (RISK_ORDER[p.risk_level], -p.expected_return, p.id))
        return products


class SqlProfileStore(ProfileStore):
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as exc:
            logger.exception("Erro ao gravar perfil; transacao desfeita")
            self.db.rollback()
            raise UnexpectedError("Falha ao gravar o perfil do investidor") from exc
        except Exception:
            self.db.rollback()
            raise

    def _row_for_user(self, user_id: int, for_update: bool = False) -> Optional[InvestorProfile]:
        query = self.db.query(InvestorProfile).filter(InvestorProfile.user_id == user_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def by_user_id(self, user_id: int, *, for_update: bool = False) -> Optional[Profile]:
        with _storage_errors(self.db, "Erro ao buscar perfil do usuario %s", user_id):
            row = self._row_for_user(user_id, for_update)
            return _to_profile(row) if row else None

    def exists_for_user(self, user_id: int) -> bool:
        with _storage_errors(self.db, "Erro ao verificar perfil do usuario %s", user_id):
            return (
                self.db.query(InvestorProfile.id)
                .filter(InvestorProfile.user_id == user_id)
                .first()
                is not None
            )

    def create(self, profile: Profile) -> Profile:
        row = InvestorProfile(
            user_id=profile.user_id,
            profile_type=profile.profile_type.value,
            score=profile.score,
            calculated_at=profile.calculated_at,
            updated_at=profile.updated_at,
        )
        self.db.add(row)
        self.db.flush()
        profile.id = row.id
        return profile

    def update(self, profile: Profile) -> None:
        row = self.db.get(InvestorProfile, profile.id)
        if row is None:
            raise UnexpectedError(f"Perfil {profile.id} desapareceu durante a atualização")
        row.profile_type = profile.profile_type.value
        row.score = profile.score
        row.updated_at = profile.updated_at
        self.db.flush()

    def replace_answers(
        self, profile_id: int, answers: Sequence[ProfileAnswerRecord]
    ) -> None:
        removed = (
            self.db.query(ProfileAnswer)
            .filter(ProfileAnswer.profile_id == profile_id)
            .delete(synchronize_session="fetch")
        )
        # Remove antes de inserir por causa da unicidade (perfil, pergunta)
        self.db.flush()
        for answer in answers:
            self.db.add(
                ProfileAnswer(
                    profile_id=profile_id,
                    question_id=answer.question_id,
                    answer_option_id=answer.answer_option_id,
                    answered_at=answer.answered_at,
                )
            )
        self.db.flush()
        # Objetos carregados do perfil precisam refletir o novo conjunto
        self.db.expire_all()
        logger.info(
            "Substituidas %s respostas por %s no perfil %s",
            removed,
            len(answers),
            profile_id,
        )


class SqlSimulationStore(SimulationStore):
    def __init__(self, db: Session):
        self.db = db

    def add(self, record: SimulationRecord) -> SimulationRecord:
        with _storage_errors(
            self.db, "Erro ao gravar simulacao do usuario %s", record.user_id
        ):
            row = InvestmentSimulation(
                user_id=record.user_id,
                profile_type=record.profile_type,
                invested_amount=record.invested_amount,
                investment_months=record.investment_months,
                total_return=record.total_return,
                net_return=record.net_return,
                total_amount=record.total_amount,
                simulation_details=record.details,
            )
            if record.simulated_at is not None:
                row.simulated_at = record.simulated_at
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        return _to_record(row)

    def by_id(self, simulation_id: int) -> Optional[SimulationRecord]:
        with _storage_errors(self.db, "Erro ao buscar simulacao %s", simulation_id):
            row = self.db.get(InvestmentSimulation, simulation_id)
        return _to_record(row) if row else None

    def by_user_id(self, user_id: int) -> List[SimulationRecord]:
        with _storage_errors(self.db, "Erro ao listar simulacoes do usuario %s", user_id):
            rows = (
                self.db.query(InvestmentSimulation)
                .filter(InvestmentSimulation.user_id == user_id)
                .order_by(
                    InvestmentSimulation.simulated_at.desc(),
                    InvestmentSimulation.id.desc(),
                )
                .all()
            )
        return [_to_record(row) for row in rows]

    def by_date_range(self, start: datetime, end: datetime) -> List[SimulationRecord]:
        with _storage_errors(
            self.db, "Erro ao buscar simulacoes de %s ate %s", start, end
        ):
            rows = (
                self.db.query(InvestmentSimulation)
                .filter(
                    InvestmentSimulation.simulated_at >= start,
                    InvestmentSimulation.simulated_at <= end,
                )
                .order_by(InvestmentSimulation.simulated_at.asc())
                .all()
            )
        return [_to_record(row) for row in rows]
