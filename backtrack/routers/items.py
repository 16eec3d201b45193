import uuid
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from backtrack.db.db import get_context
from backtrack.models.kind import FOUND, LOST, Kind, get_kind
from backtrack.services.credential_service import TokenClaims
from backtrack.services.lifecycle_service import ItemLifecycleService
from backtrack.services.providers import get_lifecycle, get_search
from backtrack.services.search_service import SearchFacade
from backtrack.utils.auth_helper import get_current_actor
from backtrack.utils.form_validator import parse_attributes
from backtrack.utils.uploads import spool_uploads


router = APIRouter()

KindName = Literal["lost", "found"]


class TransitionRequest(BaseModel):
    status: str


def serialize_item(kind: Kind, record) -> dict:
    data = record.model_dump(mode="json")
    data["kind"] = kind.name
    return data


def serialize_items(kind: Kind, records) -> list:
    return [serialize_item(kind, record) for record in records]


def _form_payload(**fields) -> dict:
    # unset form fields are left out so patches only touch what was sent
    return {name: value for name, value in fields.items() if value is not None}


@router.get("/search")
def search_items(
    q: str = Query("", max_length=100),
    search: SearchFacade = Depends(get_search),
):
    results = search.search(q)

    return {
        "lost": serialize_items(LOST, results["lost"]),
        "found": serialize_items(FOUND, results["found"]),
    }


@router.get("/mine")
def get_my_items(
    search: SearchFacade = Depends(get_search),
    actor: TokenClaims = Depends(get_current_actor),
):
    results = search.owned_by(actor.actor_id)

    return {
        "lost": serialize_items(LOST, results["lost"]),
        "found": serialize_items(FOUND, results["found"]),
    }


@router.post("/{kind}", status_code=201)
async def create_item(
    kind: KindName,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    contact_info: Optional[str] = Form(None),
    attributes: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    context=Depends(get_context),
    lifecycle: ItemLifecycleService = Depends(get_lifecycle),
    actor: TokenClaims = Depends(get_current_actor),
):
    item_kind = get_kind(kind)

    payload = _form_payload(
        title=title,
        description=description,
        location=location,
        date=date or None,
        contact_info=contact_info,
        attributes=parse_attributes(attributes),
    )

    image_paths = await spool_uploads(images, context.settings)
    # storage and database calls block, so they run off the event loop
    record = await run_in_threadpool(lifecycle.create, item_kind, payload, image_paths, actor)

    return serialize_item(item_kind, record)


@router.get("/{kind}")
def list_items(
    kind: KindName,
    q: Optional[str] = Query(None, max_length=100),
    location: Optional[str] = Query(None, max_length=100),
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: SearchFacade = Depends(get_search),
):
    item_kind = get_kind(kind)
    records = search.list(item_kind, status=status, location=location, keyword=q, page=page, page_size=limit)

    return serialize_items(item_kind, records)


@router.get("/{kind}/{item_id}")
def get_item(
    kind: KindName,
    item_id: uuid.UUID,
    lifecycle: ItemLifecycleService = Depends(get_lifecycle),
):
    item_kind = get_kind(kind)
    return serialize_item(item_kind, lifecycle.get(item_kind, item_id))


@router.put("/{kind}/{item_id}")
async def update_item(
    kind: KindName,
    item_id: uuid.UUID,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    contact_info: Optional[str] = Form(None),
    attributes: Optional[str] = Form(None),
    existing_images: Optional[List[str]] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    context=Depends(get_context),
    lifecycle: ItemLifecycleService = Depends(get_lifecycle),
    actor: TokenClaims = Depends(get_current_actor),
):
    item_kind = get_kind(kind)

    patch = _form_payload(
        title=title,
        description=description,
        location=location,
        date=date or None,
        contact_info=contact_info,
        attributes=parse_attributes(attributes),
    )

    # an omitted list keeps nothing, like a form that removed every image
    kept = [url for url in existing_images or [] if url]

    image_paths = await spool_uploads(images, context.settings)
    record = await run_in_threadpool(lifecycle.update, item_kind, item_id, patch, image_paths, kept, actor)

    return serialize_item(item_kind, record)


@router.delete("/{kind}/{item_id}")
def delete_item(
    kind: KindName,
    item_id: uuid.UUID,
    lifecycle: ItemLifecycleService = Depends(get_lifecycle),
    actor: TokenClaims = Depends(get_current_actor),
):
    lifecycle.delete(get_kind(kind), item_id, actor)

    return {"ok": True, "message": "Item deleted successfully."}


@router.put("/{kind}/{item_id}/transition")
def transition_item(
    kind: KindName,
    item_id: uuid.UUID,
    payload: TransitionRequest,
    lifecycle: ItemLifecycleService = Depends(get_lifecycle),
    actor: TokenClaims = Depends(get_current_actor),
):
    item_kind = get_kind(kind)
    record = lifecycle.transition(item_kind, item_id, payload.status, actor)

    return serialize_item(item_kind, record)


@router.put("/lost/{item_id}/mark-found")
def mark_lost_item_found(
    item_id: uuid.UUID,
    lifecycle: ItemLifecycleService = Depends(get_lifecycle),
    actor: TokenClaims = Depends(get_current_actor),
):
    found = lifecycle.promote_lost_to_found(item_id, actor)

    return {
        "message": "Lost item marked as found and moved successfully!",
        "found_item": serialize_item(FOUND, found),
    }
