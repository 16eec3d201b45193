"""
Actor registration, password checks and bearer tokens.

Passwords are hashed with ``bcrypt``; tokens are HS256 JWTs signed with
``python-jose`` and carry the actor id (``sub``) and role.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from backtrack.core.config import Settings
from backtrack.core.errors import ConflictError, InvalidCredentials, Unauthorized, ValidationError
from backtrack.models.user import User

logger = logging.getLogger(__name__)

ROLES = ("member", "admin")


class TokenClaims(BaseModel):
    actor_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _encode_password(password: str) -> bytes:
    encoded = password.encode("utf-8")
    # bcrypt only looks at the first 72 bytes
    if len(encoded) > 72:
        raise ValidationError("Password must be at most 72 bytes")
    return encoded


class CredentialService:
    def __init__(self, settings: Settings, session: Optional[Session] = None):
        self.settings = settings
        self.session = session

    def register(self, username: str, password: str, name: str = None, contact: str = None, role: str = "member") -> User:
        if role not in ROLES:
            raise ValidationError(f"Unknown role '{role}'")

        username = username.strip()
        existing = self.session.exec(select(User).where(User.username == username)).first()
        if existing:
            raise ConflictError("User already exists")

        password_hash = bcrypt.hashpw(_encode_password(password), bcrypt.gensalt()).decode("utf-8")
        user = User(username=username, password_hash=password_hash, name=name, contact=contact, role=role)

        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            # lost a race with a concurrent registration of the same name
            self.session.rollback()
            raise ConflictError("User already exists")
        self.session.refresh(user)

        logger.info(f"Registered user {user.id} ({user.role})")
        return user

    def authenticate(self, username: str, password: str) -> Tuple[str, User]:
        user = self.session.exec(select(User).where(User.username == username.strip())).first()

        if not user:
            raise InvalidCredentials("Invalid credentials")

        try:
            matches = bcrypt.checkpw(_encode_password(password), user.password_hash.encode("utf-8"))
        except ValidationError:
            matches = False

        if not matches:
            raise InvalidCredentials("Invalid credentials")

        return self.issue_token(user), user

    def issue_token(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        expiry = now + timedelta(minutes=self.settings.access_token_expire_minutes)

        jwt_payload = {
            "sub": str(user.id),
            "role": user.role,
            "iat": now,
            "exp": expiry,
        }

        return jwt.encode(jwt_payload, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self.settings.jwt_secret, algorithms=[self.settings.jwt_algorithm])
        except JWTError:
            raise Unauthorized("Invalid or expired token")

        try:
            return TokenClaims(actor_id=int(payload["sub"]), role=payload["role"])
        except (KeyError, TypeError, ValueError):
            raise Unauthorized("Invalid or expired token")
