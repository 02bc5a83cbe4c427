import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Header
from jose import JWTError, jwt
from passlib.hash import bcrypt
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from painel.db.base import get_db
from painel.db.models import User
from painel.settings import get_settings

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

_BEARER = {"WWW-Authenticate": "Bearer"}


class Credentials(BaseModel):
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        email = value.strip().lower()
        if "@" not in email:
            raise ValueError("email inválido")
        return email


class Registration(Credentials):
    name: str = Field(min_length=1, max_length=120)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("nome obrigatório")
        return name


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers=_BEARER)


def issue_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    auth = get_settings().auth
    expires_at = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=auth.access_token_expire_minutes)
    )
    claims = {"sub": str(user_id), "exp": expires_at}
    return jwt.encode(claims, auth.secret_key, algorithm=auth.algorithm)


def _user_id_from_token(token: str) -> int:
    auth = get_settings().auth
    try:
        claims = jwt.decode(token, auth.secret_key, algorithms=[auth.algorithm])
    except JWTError:
        raise _unauthorized("Token de acesso inválido ou expirado")
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        raise _unauthorized("Token de acesso sem usuário")


def get_current_user(
    authorization: str | None = Header(None), db: Session = Depends(get_db)
) -> User:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Token de acesso ausente")

    user = db.get(User, _user_id_from_token(token.strip()))
    if user is None:
        raise _unauthorized("Usuário do token não existe mais")
    return user


def _public_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "created_at": user.created_at,
    }


@router.post("/register", status_code=201)
def register(body: Registration, db: Session = Depends(get_db)):
    if db.query(User.id).filter(User.email == body.email).first():
        raise HTTPException(status_code=409, detail="Já existe uma conta com este email")

    user = User(name=body.name, email=body.email, password_hash=bcrypt.hash(body.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Conta criada para o usuario %s", user.id)
    return _public_user(user)


@router.post("/login")
def login(body: Credentials, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email).first()
    if user is None or not bcrypt.verify(body.password, user.password_hash):
        logger.warning("Falha de login para %s", body.email)
        raise _unauthorized("Email ou senha incorretos")

    return {
        "access_token": issue_token(user.id),
        "token_type": "bearer",
        "expires_in": get_settings().auth.access_token_expire_minutes * 60,
    }


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return _public_user(current_user)
