from sqlalchemy.orm import Session
from passlib.hash import bcrypt
from .base import Base, SessionLocal, engine
from .models import AnswerOption, InvestmentProduct, ProfileQuestion, User
from painel.services.domain import ProfileType, QuestionCategory, format_target_profiles


QUESTIONNAIRE = (
    (
        "Qual é o seu principal objetivo com este investimento?",
        QuestionCategory.OBJECTIVES,
        25,
        (
            ("Preservação do capital e liquidez imediata", 1, "Foco total em segurança"),
            ("Acumular patrimônio para um objetivo de médio prazo (3 a 5 anos)", 5, "Equilíbrio"),
            ("Crescimento do patrimônio no longo prazo (acima de 10 anos)", 10, "Foco em retorno"),
        ),
    ),
    (
        "Em quanto tempo você precisará deste dinheiro?",
        QuestionCategory.TIME_HORIZON,
        25,
        (
            ("Até 1 ano", 1, "Curto prazo"),
            ("De 2 a 5 anos", 5, "Médio prazo"),
            ("Mais de 5 anos", 10, "Longo prazo"),
        ),
    ),
    (
        "Qual o nível máximo de perda temporária você aceitaria?",
        QuestionCategory.RISK_TOLERANCE,
        30,
        (
            ("Até 5% - Prefiro não ter perdas, mesmo que os ganhos sejam baixos", 1, "Baixa tolerância"),
            ("Entre 5% e 15% - Entendo que flutuações são normais", 10, "Tolerância moderada"),
            ("Acima de 15% - Estou ciente dos riscos e focado no potencial de retorno", 20, "Alta tolerância"),
        ),
    ),
    (
        "Como você descreveria seu conhecimento sobre investimentos?",
        QuestionCategory.KNOWLEDGE,
        10,
        (
            ("Iniciante - Conheço apenas Poupança e CDB", 1, "Conhecimento básico"),
            ("Intermediário - Entendo Tesouro Direto, LCI/LCA e Fundos", 5, "Conhecimento intermediário"),
            ("Avançado - Tenho experiência com Ações, FIIs e derivativos", 10, "Conhecimento avançado"),
        ),
    ),
    (
        "Este investimento representa qual percentual do seu patrimônio total?",
        QuestionCategory.FINANCIAL_SITUATION,
        10,
        (
            ("Acima de 50% - Qualquer perda teria impacto significativo", 1, "Alto impacto"),
            ("Entre 10% e 50% - Uma perda seria incômoda, mas não catastrófica", 5, "Impacto moderado"),
            ("Abaixo de 10% - Tenho patrimônio sólido e posso assumir riscos", 10, "Baixo impacto"),
        ),
    ),
)


# nome, descrição, categoria, risco, mínimo, liquidez (dias), perfis, taxa adm., retorno ao mês, emissor
PRODUCTS = (
    ("Poupança Caixa", "Aplicação tradicional com liquidez diária e rentabilidade baseada na TR. Garantida pelo FGC até R$ 250 mil.",
     "RendaFixa", "Baixo", 50.00, 1, (ProfileType.CONSERVATIVE,), 0.0, 0.0050, "Caixa Econômica Federal"),
    ("CDB Caixa - DI + 0.5%", "Certificado de Depósito Bancário pós-fixado atrelado ao CDI com garantia do FGC até R$ 250 mil.",
     "RendaFixa", "Baixo", 1000.00, 30, (ProfileType.CONSERVATIVE, ProfileType.MODERATE), 0.0010, 0.0075, "Caixa Econômica Federal"),
    ("LCI Caixa - 90 dias", "Letra de Crédito Imobiliário com isenção de IR para pessoa física. Liquidez no vencimento.",
     "RendaFixa", "Baixo", 5000.00, 90, (ProfileType.CONSERVATIVE, ProfileType.MODERATE), 0.0015, 0.0068, "Caixa Econômica Federal"),
    ("Tesouro Selic 2026", "Tesouro Direto pós-fixado atrelado à taxa Selic. Ideal para reserva de emergência.",
     "TesouroDireto", "Baixo", 35.00, 1, (ProfileType.CONSERVATIVE, ProfileType.MODERATE), 0.0, 0.0062, "Tesouro Nacional"),
    ("Tesouro IPCA+ 2035", "Tesouro Direto atrelado à inflação (IPCA) + taxa fixa. Proteção contra inflação.",
     "TesouroDireto", "Médio", 35.00, 1080, (ProfileType.MODERATE,), 0.0, 0.0070, "Tesouro Nacional"),
    ("Fundo Caixa RF DI", "Fundo de Renda Fixa com carteira referenciada no DI. Baixa volatilidade.",
     "Fundos", "Baixo", 1000.00, 30, (ProfileType.CONSERVATIVE, ProfileType.MODERATE), 0.0050, 0.0058, "Caixa Econômica Federal"),
    ("Fundo Caixa Ações Ibovespa", "Fundo de Ações com carteira diversificada nas principais ações do Ibovespa.",
     "Fundos", "Alto", 5000.00, 30, (ProfileType.AGGRESSIVE, ProfileType.MODERATE), 0.0150, 0.0100, "Caixa Econômica Federal"),
    ("Fundo Caixa Multimercado FIC FIM", "Fundo multimercado com estratégia flexível em diferentes classes de ativos.",
     "Fundos", "Médio", 2500.00, 60, (ProfileType.MODERATE, ProfileType.AGGRESSIVE), 0.0120, 0.0079, "Caixa Econômica Federal"),
    ("Fundo Caixa Small Caps", "Foco em empresas de pequeno capital com alto potencial de crescimento.",
     "Fundos", "Alto", 10000.00, 90, (ProfileType.AGGRESSIVE,), 0.0200, 0.0125, "Caixa Econômica Federal"),
    ("FII Caixa Shopping Centers", "Fundo de Investimento Imobiliário com foco em shoppings centers premium.",
     "FII", "Médio-Alto", 500.00, 30, (ProfileType.MODERATE, ProfileType.AGGRESSIVE), 0.0100, 0.0092, "Caixa Econômica Federal"),
)


def seed_questionnaire(db: Session) -> None:
    # Idempotente pelo texto da pergunta
    for order, (text, category, weight, options) in enumerate(QUESTIONNAIRE, start=1):
        if db.query(ProfileQuestion).filter_by(question_text=text).first():
            continue
        question = ProfileQuestion(
            question_text=text, category=category.value, weight=weight, order=order
        )
        question.answer_options = [
            AnswerOption(option_text=opt_text, score=score, description=desc)
            for opt_text, score, desc in options
        ]
        db.add(question)
    db.commit()


def seed_products(db: Session) -> None:
    for (name, description, category, risk, minimum, liquidity, profiles, fee, expected, issuer) in PRODUCTS:
        if db.query(InvestmentProduct).filter_by(name=name).first():
            continue
        db.add(
            InvestmentProduct(
                name=name,
                description=description,
                category=category,
                risk_level=risk,
                minimum_investment=minimum,
                liquidity_days=liquidity,
                target_profile=format_target_profiles(profiles),
                administration_fee=fee,
                expected_return=expected,
                issuer=issuer,
            )
        )
    db.commit()


def run_seed():
    Base.metadata.create_all(bind=engine)
    db: Session = SessionLocal()
    try:
        # Usuário + senha "password"
        if not db.query(User).filter_by(email="user@example.com").first():
            db.add(
                User(
                    name="Investidor",
                    email="user@example.com",
                    password_hash=bcrypt.hash("password"),
                )
            )
            db.commit()

        seed_questionnaire(db)
        seed_products(db)
        print("Seed concluído. Login: user@example.com / password")
    finally:
        db.close()


if __name__ == "__main__":
    run_seed()
