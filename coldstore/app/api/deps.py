from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import Generator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from coldstore.app.db.models.models_v1 import User
from coldstore.app.db.session import SessionLocal
from coldstore.services.errors import ConflictError

logger = logging.getLogger(__name__)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_today() -> date:
    # dépendance séparée : les tests figent la date pour les règles d'expiration
    return date.today()


def get_current_user(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> User:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-User-Id header") from None

    user = db.get(User, user_id)
    if not user or not user.active:
        raise HTTPException(status_code=401, detail="Unknown or inactive user")
    return user


def require_roles(*roles):
    """Dependency factory : 403 si le rôle de l'appelant n'est pas listé."""

    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning("user %s (%s) denied, requires %s", user.id, user.role.value, [r.value for r in roles])
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return checker


@contextmanager
def service_errors(db: Session):
    """
    Traduit les erreurs métier en HTTPException après rollback.

    LookupError -> 404, ConflictError -> 409, ValueError -> 400
    """
    try:
        yield
    except LookupError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConflictError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        db.rollback()
        logger.warning("request rejected: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
