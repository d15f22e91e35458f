# teamboard/dependencies.py

from typing import Callable, ContextManager, Generator, Optional
from fastapi import Depends
from fastapi.requests import HTTPConnection
from sqlalchemy.orm import Session

from teamboard.core.exceptions import AuthError
from teamboard.core.security import TokenIssuer, oauth2_scheme
from teamboard.crud.user import get_user
from teamboard.database import SessionLocal, session_scope
from teamboard.models.user import User
from teamboard.services.notifier import ChannelRegistry

def get_db() -> Generator[Session, None, None]:
    """
    Yields a database session and closes it once the request is done.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_session_scope() -> Callable[[], ContextManager[Session]]:
    """
    Session factory for long-lived connections, which open one session per unit of work
    instead of holding a pooled connection for their whole lifetime.
    """
    return session_scope

def get_token_issuer(connection: HTTPConnection) -> TokenIssuer:
    return connection.app.state.token_issuer

def get_notifier(connection: HTTPConnection) -> ChannelRegistry:
    return connection.app.state.notifier

def resolve_user(db: Session, token_issuer: TokenIssuer, token: Optional[str]) -> User:
    """
    Turns a raw bearer token into a User; shared by HTTP routes and the WebSocket endpoint.
    """
    if not token:
        raise AuthError("Not authorized to access this route")
    user_id = token_issuer.verify(token)
    user = get_user(db, user_id)
    if user is None:
        raise AuthError("User not found")
    return user

def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> User:
    """
    Resolves the Authorization: Bearer header to the calling user, or raises AuthError (401).
    """
    return resolve_user(db, token_issuer, token)
