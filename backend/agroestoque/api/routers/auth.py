from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...infrastructure.logging_config import get_logger
from ...security.auth import create_access_token, verify_password, get_current_user
from ...domain.models import User
from ...application.dtos import UserOut
from ...config import settings
from ...application.services_audit import log_audit, MODULE_AUTH, ACTION_LOGIN, ACTION_LOGOUT

router = APIRouter(prefix="/auth", tags=["auth"])
logger = get_logger("api.auth")


@router.post("/login")
def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """
    Autenticação por e-mail (campo username do formulário OAuth2) e senha.
    Devolve o token e também o grava em cookie http-only.
    """
    user = UnitOfWork(db).users.by_email(form_data.username)
    # Mesma resposta para usuário inexistente e senha errada
    if not user or not verify_password(form_data.password, user.password_hash):
        logger.warning("Falha de login para %s", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="E-mail ou senha inválidos",
        )
    if user.company is not None and not user.company.active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Empresa inativa")

    token = create_access_token(user)
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )
    log_audit(
        db,
        module=MODULE_AUTH,
        action=ACTION_LOGIN,
        entity_type="User",
        entity_id=user.id,
        summary=f"Login: {user.email}",
        user_id=user.id,
        company_id=user.company_id,
    )
    return {
        "access_token": token,
        "token_type": "bearer",
        "user": UserOut.model_validate(user),
    }


@router.post("/logout")
def logout(response: Response, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    response.delete_cookie(settings.auth_cookie_name)
    log_audit(
        db, MODULE_AUTH, ACTION_LOGOUT, "User", current_user.id,
        user_id=current_user.id, company_id=current_user.company_id,
    )
    return {"message": "Logout realizado com sucesso"}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
