import uuid
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from backtrack.services.credential_service import TokenClaims
from backtrack.services.providers import get_workflow
from backtrack.services.verification_service import VerificationWorkflow
from backtrack.utils.auth_helper import get_current_actor, require_admin


router = APIRouter()


class VerificationCreateRequest(BaseModel):
    item_id: uuid.UUID
    item_type: Literal["lost", "found"]
    proof: Optional[str] = Field(default=None, max_length=2000)  # url to image or text proof
    question: Optional[str] = Field(default=None, max_length=280)
    answer: Optional[str] = Field(default=None, max_length=280)


class VerificationRejectRequest(BaseModel):
    rejection_reason: Optional[str] = Field(default=None, max_length=280)


@router.post("", status_code=201)
def create_verification(
    payload: VerificationCreateRequest,
    workflow: VerificationWorkflow = Depends(get_workflow),
    actor: TokenClaims = Depends(get_current_actor),
):
    return workflow.create(
        payload.item_type,
        payload.item_id,
        actor,
        proof=payload.proof,
        question=payload.question,
        answer=payload.answer,
    )


@router.get("")
def list_verifications(
    status: Optional[Literal["pending", "approved", "rejected"]] = None,
    limit: int = Query(50, ge=1, le=100),
    workflow: VerificationWorkflow = Depends(get_workflow),
    admin: TokenClaims = Depends(require_admin),
):
    """Claims for moderation, newest first."""
    return workflow.list(status=status, limit=limit)


@router.get("/item/{kind}/{item_id}")
def list_item_verifications(
    kind: Literal["lost", "found"],
    item_id: uuid.UUID,
    workflow: VerificationWorkflow = Depends(get_workflow),
    actor: TokenClaims = Depends(get_current_actor),
):
    """Review claims on an item - accessible by its owner and admins."""
    return workflow.list_for_item(kind, item_id, actor)


@router.get("/{verification_id}")
def get_verification(
    verification_id: uuid.UUID,
    workflow: VerificationWorkflow = Depends(get_workflow),
    actor: TokenClaims = Depends(get_current_actor),
):
    return workflow.get(verification_id, actor)


@router.put("/{verification_id}/approve")
def approve_verification(
    verification_id: uuid.UUID,
    workflow: VerificationWorkflow = Depends(get_workflow),
    actor: TokenClaims = Depends(get_current_actor),
):
    return workflow.approve(verification_id, actor)


@router.put("/{verification_id}/reject")
def reject_verification(
    verification_id: uuid.UUID,
    payload: Optional[VerificationRejectRequest] = None,
    workflow: VerificationWorkflow = Depends(get_workflow),
    actor: TokenClaims = Depends(get_current_actor),
):
    reason = payload.rejection_reason if payload else None
    return workflow.reject(verification_id, actor, reason)
