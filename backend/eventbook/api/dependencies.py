import logging

from fastapi import Depends, HTTPException, status
from jose import JWTError
from sqlalchemy.orm import Session

from ..crud import crud_marketplace
from ..database import get_db
from ..models.user import User
from .auth import decode_access_token, oauth2_scheme

logger = logging.getLogger(__name__)

__all__ = ["get_db", "get_current_user"]


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception
    try:
        payload = decode_access_token(token)
        subject = payload.get("sub")
        if subject is None:
            raise credentials_exception
        user_id = int(subject)
    except (JWTError, ValueError, TypeError):
        logger.warning("Rejected bearer token")
        raise credentials_exception
    user = crud_marketplace.get_user(db, user_id)
    if user is None:
        raise credentials_exception
    return user
