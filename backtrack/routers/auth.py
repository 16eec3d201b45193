from typing import Literal, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from backtrack.core.errors import Forbidden
from backtrack.db.db import get_context, get_session
from backtrack.services.credential_service import CredentialService, TokenClaims
from backtrack.utils.auth_helper import get_current_actor, get_db_user

router = APIRouter()


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=72)
    name: Optional[str] = Field(default=None, max_length=100)
    contact: Optional[str] = Field(default=None, max_length=200)
    role: Literal["member", "admin"] = "member"


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    token: str
    actor: dict


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(payload: RegisterRequest, session: Session = Depends(get_session), context=Depends(get_context)):
    if payload.role == "admin" and not context.settings.allow_admin_registration:
        raise Forbidden("Admin registration is disabled")

    credentials = CredentialService(context.settings, session)
    user = credentials.register(
        payload.username,
        payload.password,
        name=payload.name,
        contact=payload.contact,
        role=payload.role,
    )

    return TokenResponse(token=credentials.issue_token(user), actor=user.public_view())


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, session: Session = Depends(get_session), context=Depends(get_context)):
    token, user = CredentialService(context.settings, session).authenticate(payload.username, payload.password)

    return TokenResponse(token=token, actor=user.public_view())


@router.get("/me")
def me(session: Session = Depends(get_session), actor: TokenClaims = Depends(get_current_actor)):
    return get_db_user(session, actor).public_view()
