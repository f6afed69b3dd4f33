"""
Auditoria de Ações
==================
Registro imutável das operações relevantes (movimentos, cadastros, login).
- Try-safe: falha de auditoria não derruba a operação principal
- Somente INSERT
- Sessão separada, aberta sobre o mesmo bind da sessão de trabalho
"""
from typing import Any, Dict, Optional
import logging
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from ..domain.models_audit import AuditLog

logger = logging.getLogger(__name__)

# Módulos
MODULE_ENTRADAS = "ENTRADAS"
MODULE_SAIDAS = "SAIDAS"
MODULE_ESTOQUE = "ESTOQUE"
MODULE_CADASTROS = "CADASTROS"
MODULE_USUARIOS = "USUARIOS"
MODULE_AUTH = "AUTH"

# Ações
ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"
ACTION_DEACTIVATE = "DEACTIVATE"
ACTION_ADJUST = "ADJUST"
ACTION_LOGIN = "LOGIN"
ACTION_LOGOUT = "LOGOUT"
ACTION_CHANGE_ROLE = "CHANGE_ROLE"


def log_audit(
    db: Session,
    module: str,
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    summary: Optional[str] = None,
    metadata_: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    company_id: Optional[str] = None,
) -> None:
    """
    Registra um evento de auditoria. Chamar depois do commit da operação.
    """
    audit_db = None
    try:
        audit_db = sessionmaker(bind=db.get_bind(), future=True)()
        audit_db.add(AuditLog(
            module=module,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            summary=summary,
            metadata_=metadata_,
            user_id=user_id,
            company_id=company_id,
        ))
        audit_db.commit()
    except SQLAlchemyError as e:
        if audit_db:
            audit_db.rollback()
        logger.warning("Falha ao registrar auditoria %s/%s: %s", module, action, e)
    finally:
        if audit_db:
            audit_db.close()
