from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import re
import jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from ..config import settings
from ..dependencies import get_db
from ..domain.enums import UserRole
from ..domain.models import User
from ..application.errors import ValidacaoError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


@dataclass(frozen=True)
class Sessao:
    """Identidade verificada do chamador. Todo acesso a dados usa o company_id daqui."""
    user_id: str
    company_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def validar_senha_forte(password: str) -> None:
    """Mínimo 8 caracteres, com maiúscula, minúscula, número e caractere especial."""
    if (
        len(password or "") < 8
        or not re.search(r"[A-Z]", password)
        or not re.search(r"[a-z]", password)
        or not re.search(r"\d", password)
        or not re.search(r"[^A-Za-z0-9]", password)
    ):
        raise ValidacaoError(
            "A senha deve ter pelo menos 8 caracteres, incluindo maiúscula, minúscula, número e caractere especial",
            ["password"],
        )

def create_access_token(user: User, expires_minutes: int = None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes or settings.access_token_expire_minutes)
    to_encode = {
        "sub": user.email,
        "userId": user.id,
        "companyId": user.company_id,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm="HS256")

def decode_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    except jwt.PyJWTError:
        return None


def _token_da_requisicao(request: Request, bearer: Optional[str]) -> Optional[str]:
    return bearer or request.cookies.get(settings.auth_cookie_name)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(oauth2_scheme_optional),
) -> User:
    """Aceita o token no header Authorization (Bearer) ou no cookie de sessão."""
    token = _token_da_requisicao(request, token)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autenticado",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_token(token)
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido")
    user_id = payload.get("userId")
    if not user_id:
        raise HTTPException(status_code=401, detail="Credenciais inválidas")
    user = db.get(User, user_id)
    if not user or user.company_id != payload.get("companyId"):
        raise HTTPException(status_code=401, detail="Usuário não encontrado")
    if user.company is not None and not user.company.active:
        raise HTTPException(status_code=403, detail="Empresa inativa")
    return user


def get_current_session(user: User = Depends(get_current_user)) -> Sessao:
    return Sessao(user_id=user.id, company_id=user.company_id, role=user.role)
