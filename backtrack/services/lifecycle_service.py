"""
Item lifecycle: create, update, delete, status transitions and promotion.

One service handles both collections; everything that differs between
lost and found items (status chain, storage namespace, field names) is
read from the ``Kind`` descriptor.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from backtrack.core.errors import AppError, Forbidden, InvalidTransition, NotFound, StoreError, ValidationError
from backtrack.models.found_item import FoundItem
from backtrack.models.kind import FOUND, LOST, Kind
from backtrack.services.credential_service import TokenClaims
from backtrack.services.item_repository import ItemRepository
from backtrack.utils.form_validator import ValidatedItem, validate_item, validate_item_patch
from backtrack.utils.media_store import MediaStore, discard_local_file

logger = logging.getLogger(__name__)


def can_mutate(actor: TokenClaims, kind: Kind, record) -> bool:
    return actor.is_admin or kind.owner_of(record) == actor.actor_id


def ensure_can_mutate(actor: TokenClaims, kind: Kind, record):
    if not can_mutate(actor, kind, record):
        raise Forbidden(f"You can only modify {kind.name} items you posted or if you are an admin")


def _now():
    return datetime.now(timezone.utc)


class ItemLifecycleService:
    def __init__(self, repository: ItemRepository, media: MediaStore):
        self.repository = repository
        self.media = media

    def get(self, kind: Kind, item_id: uuid.UUID):
        record = self.repository.get(kind, item_id)
        if not record:
            raise NotFound("Item not found")
        return record

    def create(self, kind: Kind, payload: dict, image_paths: List[str], actor: TokenClaims):
        try:
            item = validate_item(payload)
        except ValidationError:
            self._discard(image_paths)
            raise

        urls, error = self._upload_all(kind, image_paths)
        if error:
            # blobs already uploaded stay in the store; there is no rollback
            logger.warning(f"Creating {kind.name} item aborted after {len(urls)} upload(s): {error.message}")
            raise error

        record = kind.model(
            **self._fields(kind, item),
            images=urls,
            status=kind.initial_status,
            **{kind.owner_field: actor.actor_id},
        )
        self.repository.save(record)

        logger.info(f"Created {kind.name} item {record.id} for user {actor.actor_id}")
        return record

    def update(
        self,
        kind: Kind,
        item_id: uuid.UUID,
        patch: dict,
        new_image_paths: List[str],
        existing_images: Optional[List[str]],
        actor: TokenClaims,
    ):
        """Apply ``patch`` and reconcile images.

        ``existing_images`` lists the current images to keep, in order;
        ``None`` keeps them all.  New uploads are appended after them.
        """
        try:
            record = self.get(kind, item_id)
            ensure_can_mutate(actor, kind, record)

            changes = validate_item_patch(patch).model_dump(exclude_unset=True)
            kept = self._kept_images(record, existing_images)

            if record.status == kind.terminal_status:
                images_changed = bool(new_image_paths) or kept != list(record.images)
                if images_changed or set(changes) - {"attributes"}:
                    raise InvalidTransition("Returned items can only change their attributes")

            merged = validate_item({**self._payload_of(kind, record), **changes})
        except AppError:
            self._discard(new_image_paths)
            raise

        removed = [url for url in record.images if url not in kept]
        uploaded, error = self._upload_all(kind, new_image_paths)

        for field, value in self._fields(kind, merged).items():
            setattr(record, field, value)
        record.images = kept + uploaded
        record.updated_at = _now()
        self.repository.save(record)

        # dropped blobs go only once the record no longer references them
        for url in removed:
            self.media.delete(url)

        if error:
            # the uploads that succeeded stay attached to the record
            logger.warning(f"Updated {kind.name} item {record.id} with {len(uploaded)} of {len(new_image_paths)} new image(s)")
            raise error

        logger.info(f"Updated {kind.name} item {record.id} by user {actor.actor_id}")
        return record

    def delete(self, kind: Kind, item_id: uuid.UUID, actor: TokenClaims):
        record = self.get(kind, item_id)
        ensure_can_mutate(actor, kind, record)

        for url in record.images:
            self.media.delete(url)

        self.repository.delete(record)
        logger.info(f"Deleted {kind.name} item {item_id} by user {actor.actor_id}")

    def transition(self, kind: Kind, item_id: uuid.UUID, target: str, actor: TokenClaims):
        record = self.get(kind, item_id)
        ensure_can_mutate(actor, kind, record)

        if target not in kind.chain:
            raise InvalidTransition(f"'{target}' is not a {kind.name} item status")

        expected = kind.successor(record.status)
        if target != expected:
            raise InvalidTransition(f"Cannot move {kind.name} item from '{record.status}' to '{target}'")

        previous = record.status
        record.status = target
        if isinstance(record, FoundItem) and target == kind.terminal_status:
            record.returned_to_owner = True
        record.updated_at = _now()
        self.repository.save(record)

        logger.info(f"{kind.name.capitalize()} item {record.id}: {previous} -> {target}")
        return record

    def promote_lost_to_found(self, lost_id: uuid.UUID, actor: TokenClaims) -> FoundItem:
        """Move a lost item into the found collection as returned to its owner.

        The create and the delete commit separately.  If the delete fails
        both records stay live and ``StoreError`` is raised.
        """
        lost = self.get(LOST, lost_id)
        ensure_can_mutate(actor, LOST, lost)

        if lost.status == LOST.terminal_status:
            raise InvalidTransition("Returned items cannot be marked as found")

        found = FoundItem(
            title=lost.title,
            description=lost.description,
            location_found=lost.location,
            date_found=_now(),
            contact_info=lost.contact_info,
            images=list(lost.images),
            attributes=dict(lost.attributes or {}),
            finder_id=actor.actor_id,
            status=FOUND.terminal_status,
            returned_to_owner=True,
        )
        self.repository.save(found)

        # images now belong to the found record, so the blobs are kept
        try:
            self.repository.delete(lost)
        except StoreError:
            logger.error(f"Lost item {lost_id} was copied to found item {found.id} but not deleted; both records remain")
            raise

        logger.info(f"Lost item {lost_id} marked as found ({found.id}) by user {actor.actor_id}")
        return found

    def _upload_all(self, kind: Kind, paths: List[str]):
        """Upload in order, stopping at the first failure.

        Returns the URLs that made it and the error, if any.
        """
        urls = []
        for index, path in enumerate(paths):
            try:
                urls.append(self.media.upload(path, kind.namespace))
            except AppError as e:
                self._discard(paths[index + 1:])
                return urls, e
        return urls, None

    @staticmethod
    def _discard(paths: List[str]):
        for path in paths or []:
            discard_local_file(path)

    @staticmethod
    def _kept_images(record, existing_images: Optional[List[str]]) -> List[str]:
        if existing_images is None:
            return list(record.images)

        kept = list(dict.fromkeys(existing_images))
        unknown = [url for url in kept if url not in record.images]
        if unknown:
            raise ValidationError("Existing images must already belong to the item", detail={"unknown_images": unknown})
        return kept

    @staticmethod
    def _payload_of(kind: Kind, record) -> dict:
        return {
            "title": record.title,
            "description": record.description,
            "location": getattr(record, kind.location_field),
            "date": getattr(record, kind.date_field),
            "contact_info": record.contact_info,
            "attributes": dict(record.attributes or {}),
        }

    @staticmethod
    def _fields(kind: Kind, item: ValidatedItem) -> dict:
        return {
            "title": item.title,
            "description": item.description,
            kind.location_field: item.location,
            kind.date_field: item.date,
            "contact_info": item.contact_info,
            "attributes": dict(item.attributes),
        }
