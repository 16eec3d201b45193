from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from backtrack.core.errors import Forbidden, NotFound, Unauthorized
from backtrack.db.db import get_context
from backtrack.models.user import User
from backtrack.services.credential_service import CredentialService, TokenClaims

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_actor(
    token: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    context=Depends(get_context),
) -> TokenClaims:
    if not token:
        raise Unauthorized("Missing bearer token")

    return CredentialService(context.settings).verify(token.credentials)


def require_admin(actor: TokenClaims = Depends(get_current_actor)) -> TokenClaims:
    if not actor.is_admin:
        raise Forbidden("Admin access required")
    return actor


def get_db_user(session: Session, actor: TokenClaims) -> User:
    user = session.get(User, actor.actor_id)

    if not user:
        raise NotFound("User not found")

    return user
