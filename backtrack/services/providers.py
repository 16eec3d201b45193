from fastapi import Depends
from sqlmodel import Session

from backtrack.db.db import get_context, get_session
from backtrack.services.item_repository import ItemRepository
from backtrack.services.lifecycle_service import ItemLifecycleService
from backtrack.services.search_service import SearchFacade
from backtrack.services.verification_service import VerificationWorkflow


def get_repository(session: Session = Depends(get_session)) -> ItemRepository:
    return ItemRepository(session)


def get_lifecycle(
    repository: ItemRepository = Depends(get_repository),
    context=Depends(get_context),
) -> ItemLifecycleService:
    return ItemLifecycleService(repository, context.media)


def get_workflow(
    session: Session = Depends(get_session),
    lifecycle: ItemLifecycleService = Depends(get_lifecycle),
) -> VerificationWorkflow:
    return VerificationWorkflow(session, lifecycle)


def get_search(repository: ItemRepository = Depends(get_repository)) -> SearchFacade:
    return SearchFacade(repository)
