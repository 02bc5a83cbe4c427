from datetime import datetime, timezone
from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    ForeignKey,
    Text,
    UniqueConstraint,
    Boolean,
    Index,
)
from sqlalchemy.orm import relationship
from .base import Base


def _utcnow() -> datetime:
    # Datas gravadas em UTC "naive"
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow)

    investor_profile = relationship(
        "InvestorProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    simulations = relationship(
        "InvestmentSimulation", back_populates="user", cascade="all, delete-orphan"
    )


class ProfileQuestion(Base):
    __tablename__ = "profile_questions"
    id = Column(Integer, primary_key=True)
    question_text = Column(String, nullable=False)
    category = Column(String, nullable=False)  # Objectives|TimeHorizon|RiskTolerance|...
    weight = Column(Integer, nullable=False, default=1)  # 1-100, informativo
    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    answer_options = relationship(
        "AnswerOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="AnswerOption.id",
    )


class AnswerOption(Base):
    __tablename__ = "answer_options"
    id = Column(Integer, primary_key=True)
    question_id = Column(
        Integer, ForeignKey("profile_questions.id", ondelete="CASCADE"), nullable=False
    )
    option_text = Column(String, nullable=False)
    score = Column(Integer, nullable=False)
    description = Column(String, nullable=True)

    question = relationship("ProfileQuestion", back_populates="answer_options")


class InvestorProfile(Base):
    __tablename__ = "investor_profiles"
    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    profile_type = Column(String, nullable=False)  # Conservative|Moderate|Aggressive
    score = Column(Integer, nullable=False)
    calculated_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="investor_profile")
    answers = relationship(
        "ProfileAnswer",
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="ProfileAnswer.id",
    )


class ProfileAnswer(Base):
    __tablename__ = "profile_answers"
    __table_args__ = (
        UniqueConstraint(
            "profile_id", "question_id", name="uq_profile_answers_profile_question"
        ),
    )
    id = Column(Integer, primary_key=True)
    profile_id = Column(
        Integer, ForeignKey("investor_profiles.id", ondelete="CASCADE"), nullable=False
    )
    question_id = Column(
        Integer, ForeignKey("profile_questions.id", ondelete="RESTRICT"), nullable=False
    )
    answer_option_id = Column(
        Integer, ForeignKey("answer_options.id", ondelete="RESTRICT"), nullable=False
    )
    answered_at = Column(DateTime, default=_utcnow, nullable=False)

    profile = relationship("InvestorProfile", back_populates="answers")
    question = relationship("ProfileQuestion")
    selected_option = relationship("AnswerOption")


class InvestmentProduct(Base):
    __tablename__ = "investment_products"
    __table_args__ = (
        Index("ix_investment_products_category_active", "category", "is_active"),
        Index("ix_investment_products_risk_level_active", "risk_level", "is_active"),
    )
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=False)  # RendaFixa|TesouroDireto|Fundos|FII
    risk_level = Column(String, nullable=False)  # Baixo|Médio|Médio-Alto|Alto
    minimum_investment = Column(Float, nullable=False, default=0.0)
    liquidity_days = Column(Integer, nullable=False, default=0)
    target_profile = Column(String, nullable=False)  # ex.: "Conservative|Moderate"
    administration_fee = Column(Float, nullable=False, default=0.0)
    expected_return = Column(Float, nullable=False)  # taxa ao mês
    issuer = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class InvestmentSimulation(Base):
    __tablename__ = "investment_simulations"
    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile_type = Column(String, nullable=False)
    invested_amount = Column(Float, nullable=False)
    investment_months = Column(Integer, nullable=False)
    total_return = Column(Float, nullable=False)  # rendimento bruto
    net_return = Column(Float, nullable=False)  # rendimento líquido
    total_amount = Column(Float, nullable=False)  # investido + líquido
    simulation_details = Column(Text, nullable=False)  # JSON versionado
    simulated_at = Column(DateTime, default=_utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="simulations")
