"""
Ownership verification challenges.

A challenge is ``pending`` until the item's owner (or an admin) approves
or rejects it; both outcomes are terminal.  Approval moves the item one
step along its chain through the lifecycle service, in the same commit.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from backtrack.core.errors import AppError, ConflictError, Forbidden, InvalidTransition, NotFound, ValidationError
from backtrack.models.kind import Kind, get_kind
from backtrack.models.verification import Verification
from backtrack.services.credential_service import TokenClaims
from backtrack.services.lifecycle_service import ItemLifecycleService, can_mutate

logger = logging.getLogger(__name__)

STATUSES = ("pending", "approved", "rejected")


class VerificationWorkflow:
    def __init__(self, session: Session, lifecycle: ItemLifecycleService):
        self.session = session
        self.lifecycle = lifecycle
        self.repository = lifecycle.repository

    def create(
        self,
        item_type: str,
        item_id: uuid.UUID,
        actor: TokenClaims,
        proof: Optional[str] = None,
        question: Optional[str] = None,
        answer: Optional[str] = None,
    ) -> Verification:
        kind = get_kind(item_type)
        item = self.lifecycle.get(kind, item_id)

        # Prevent self-claim
        if kind.owner_of(item) == actor.actor_id:
            raise ValidationError("You cannot claim your own item")

        if item.status != kind.initial_status:
            raise InvalidTransition("This item has already been resolved")

        if self._pending_for(kind, item.id):
            raise ConflictError("Already a pending claim for this item exists")

        challenge = Verification(
            item_id=item.id,
            item_type=kind.name,
            claimant_id=actor.actor_id,
            proof=proof,
            question=question,
            answer=answer,
        )
        item.verification_id = challenge.id
        item.updated_at = datetime.now(timezone.utc)

        self.session.add(challenge)
        self.session.add(item)
        try:
            self.session.commit()
        except IntegrityError:
            # a concurrent request opened a challenge first
            self.session.rollback()
            raise ConflictError("Already a pending claim for this item exists")
        self.session.refresh(challenge)

        logger.info(f"Verification {challenge.id} opened on {kind.name} item {item.id} by user {actor.actor_id}")
        return challenge

    def approve(self, challenge_id: uuid.UUID, actor: TokenClaims) -> Verification:
        challenge, kind, item = self._load_for_decision(challenge_id, actor)

        challenge.status = "approved"
        challenge.verified_by = actor.actor_id
        challenge.decided_at = datetime.now(timezone.utc)
        self.session.add(challenge)

        # commits the challenge together with the item's new status
        try:
            self.lifecycle.transition(kind, item.id, kind.successor(kind.initial_status), actor)
        except AppError:
            self.session.rollback()
            raise
        self.session.refresh(challenge)

        logger.info(f"Verification {challenge.id} approved by user {actor.actor_id}")
        return challenge

    def reject(self, challenge_id: uuid.UUID, actor: TokenClaims, reason: Optional[str] = None) -> Verification:
        challenge, kind, item = self._load_for_decision(challenge_id, actor)

        challenge.status = "rejected"
        challenge.rejection_reason = reason
        challenge.verified_by = actor.actor_id
        challenge.decided_at = datetime.now(timezone.utc)
        self.session.add(challenge)
        self.repository.commit()
        self.session.refresh(challenge)

        logger.info(f"Verification {challenge.id} rejected by user {actor.actor_id}")
        return challenge

    def get(self, challenge_id: uuid.UUID, actor: TokenClaims) -> Verification:
        challenge = self._get(challenge_id)

        if actor.is_admin or challenge.claimant_id == actor.actor_id:
            return challenge

        kind = get_kind(challenge.item_type)
        item = self.repository.get(kind, challenge.item_id)
        if item is None or not can_mutate(actor, kind, item):
            raise Forbidden("Not authorized to view this verification")

        return challenge

    def list_for_item(self, item_type: str, item_id: uuid.UUID, actor: TokenClaims) -> List[Verification]:
        kind = get_kind(item_type)
        item = self.lifecycle.get(kind, item_id)

        if not can_mutate(actor, kind, item):
            raise Forbidden("Not authorized to review claims for this item")

        query = (
            select(Verification)
            .where(Verification.item_type == kind.name)
            .where(Verification.item_id == item.id)
            .order_by(col(Verification.created_at).desc())
        )
        return list(self.session.exec(query).all())

    def list(self, status: Optional[str] = None, limit: int = 50) -> List[Verification]:
        if status and status not in STATUSES:
            raise ValidationError(f"Unknown verification status '{status}'")

        query = select(Verification)
        if status:
            query = query.where(Verification.status == status)

        query = query.order_by(col(Verification.created_at).desc()).limit(limit)
        return list(self.session.exec(query).all())

    def _get(self, challenge_id: uuid.UUID) -> Verification:
        challenge = self.session.get(Verification, challenge_id)
        if not challenge:
            raise NotFound("Verification not found")
        return challenge

    def _load_for_decision(self, challenge_id: uuid.UUID, actor: TokenClaims):
        challenge = self._get(challenge_id)

        kind = get_kind(challenge.item_type)
        item = self.repository.get(kind, challenge.item_id)
        if not item:
            raise NotFound("Verified item no longer exists")

        if not can_mutate(actor, kind, item):
            raise Forbidden("Not authorized to decide this verification")

        if challenge.status != "pending":
            raise InvalidTransition(f"Verification is already {challenge.status}")

        return challenge, kind, item

    def _pending_for(self, kind: Kind, item_id: uuid.UUID) -> Optional[Verification]:
        return self.session.exec(
            select(Verification)
            .where(Verification.item_type == kind.name)
            .where(Verification.item_id == item_id)
            .where(Verification.status == "pending")
        ).first()
