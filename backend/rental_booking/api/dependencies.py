from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from ..core.config import settings

# Tokens are issued by the account service; this API only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    id: int
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def get_current_actor(token: str = Depends(oauth2_scheme)) -> Actor:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            raise credentials_exception
        actor_id = int(subject)
    except (JWTError, ValueError):
        raise credentials_exception
    role = payload.get("role") or ROLE_USER
    if role not in (ROLE_USER, ROLE_ADMIN):
        raise credentials_exception
    return Actor(id=actor_id, role=role)


def get_current_admin(current_actor: Actor = Depends(get_current_actor)) -> Actor:
    if not current_actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required.",
        )
    return current_actor
