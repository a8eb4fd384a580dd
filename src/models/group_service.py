"""
Group service: the coordinator behind the /api/groups routes
Validates payloads, assigns IDs, normalizes words, routes image fields through
the image vault and writes back through the document store
"""
from typing import Any, Callable, List, Optional, Sequence, Set, Union

from loguru import logger
from pydantic import ValidationError

from models.document_store import DocumentStore
from models.errors import GroupNotFound, GroupValidationError, ImageIndexError
from models.vocab_models import (
    DEFAULT_GROUP_TITLE, GROUP_SIZE, AddImageRequest, GroupCreate, GroupUpdate,
    ImportRequest, Word, WordGroup
)
from utils.identifiers import generate_id, now_ms
from utils.image_vault import DecodedImage, ImageVault, decode_data_uri, is_data_uri

IMPORT_FORMAT_ERROR = "Invalid format. Expected: { title: string, words: [...] }"

# A value headed for an image field: decoded bytes still to be written, or a URL kept as-is
PendingImage = Union[DecodedImage, str]


def normalize_words(words: Sequence[Word], id_factory: Callable[[], str] = generate_id) -> List[Word]:
    """Copy words so every id is present and unique within the group"""
    seen: Set[str] = set()
    normalized = []
    for word in words:
        word_id = word.id
        if not word_id or word_id in seen:
            word_id = id_factory()
        seen.add(word_id)
        normalized.append(word.model_copy(update={"id": word_id}))
    return normalized


def pad_words(words: List[Word], size: int = GROUP_SIZE, id_factory: Callable[[], str] = generate_id) -> List[Word]:
    padded = list(words)
    while len(padded) < size:
        padded.append(Word(id=id_factory()))
    return padded


class GroupService:
    def __init__(
        self,
        store: DocumentStore,
        vault: ImageVault,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = generate_id,
    ):
        self.store = store
        self.vault = vault
        self._clock = clock
        self._new_id = id_factory

    # ============= READ =============

    def list_groups(self) -> List[WordGroup]:
        """All groups, newest first; ties keep document order"""
        return sorted(self.store.get_all(), key=lambda g: g.createdAt, reverse=True)

    def get_group(self, group_id: str) -> WordGroup:
        group = self.store.get_one(group_id)
        if group is None:
            raise GroupNotFound()
        return group

    # ============= WRITE =============

    def create_group(self, payload: GroupCreate) -> WordGroup:
        fields = payload.provided_fields()
        group_id = payload.id or self._new_id()

        main_pending = self._prepare_image(fields.get("imageUrl"))
        list_pending = self._prepare_image_list(fields.get("imageUrls"))

        with self.store.lock:
            # Creating over an existing id replaces that record and its images
            existing = self.store.get_one(group_id)
            written: List[str] = []
            try:
                image_url = self._commit_image(main_pending, group_id, written)
                image_urls = self._commit_image_list(list_pending, group_id, written)
                group = WordGroup(
                    id=group_id,
                    title=fields.get("title") or DEFAULT_GROUP_TITLE,
                    createdAt=fields.get("createdAt") or self._clock(),
                    passed=fields.get("passed", False),
                    imageUrl=image_url,
                    imageUrls=image_urls,
                    lastScore=fields.get("lastScore"),
                    words=normalize_words(fields.get("words", []), self._new_id),
                )
                self.store.upsert(group)
            except Exception:
                self._discard(written)
                raise
            if existing is not None:
                self._remove_replaced_images(existing, group)

        logger.info(f"Group created: {group.title} (ID: {group.id})")
        return group

    def update_group(self, group_id: str, payload: GroupUpdate) -> WordGroup:
        fields = payload.provided_fields()

        # Decode before touching any stored file so a bad data URI costs nothing
        main_value = fields.get("imageUrl") or None
        main_pending = self._prepare_image(main_value)
        list_pending = self._prepare_image_list(fields.get("imageUrls"))

        with self.store.lock:
            existing = self.get_group(group_id)
            merged = existing.model_dump()
            for name in ("title", "createdAt", "passed", "lastScore"):
                if name in fields:
                    merged[name] = fields[name]
            if "words" in fields:
                merged["words"] = normalize_words(fields["words"], self._new_id)

            main_changed = main_pending is not None and main_pending != existing.imageUrl

            written: List[str] = []
            try:
                if main_changed:
                    merged["imageUrl"] = self._commit_image(main_pending, group_id, written)
                if list_pending is not None:
                    merged["imageUrls"] = self._commit_image_list(list_pending, group_id, written)
                merged["id"] = group_id
                updated = WordGroup.model_validate(merged)
                self.store.upsert(updated)
            except Exception:
                self._discard(written)
                raise
            self._remove_replaced_images(existing, updated)

        logger.info(f"Group updated: {updated.title} (ID: {updated.id})")
        return updated

    def delete_group(self, group_id: str) -> None:
        with self.store.lock:
            existing = self.get_group(group_id)
            self.store.delete(group_id)
            for url in [existing.imageUrl] + list(existing.imageUrls or []):
                if url:
                    self.vault.remove(url)
        logger.info(f"Group deleted: {existing.title} (ID: {group_id})")

    def add_image(self, group_id: str, payload: AddImageRequest) -> WordGroup:
        with self.store.lock:
            existing = self.get_group(group_id)
            if not is_data_uri(payload.image):
                raise GroupValidationError("Invalid image data")
            decoded = decode_data_uri(payload.image)

            written: List[str] = []
            try:
                url = self._commit_image(decoded, group_id, written)
                updated = existing.model_copy(update={"imageUrls": list(existing.imageUrls or []) + [url]})
                self.store.upsert(updated)
            except Exception:
                self._discard(written)
                raise

        logger.info(f"Image added to group {group_id}: {url}")
        return updated

    def remove_image(self, group_id: str, index: int) -> WordGroup:
        with self.store.lock:
            existing = self.get_group(group_id)
            image_urls = list(existing.imageUrls or [])
            if index < 0 or index >= len(image_urls):
                raise ImageIndexError()

            removed = image_urls.pop(index)
            updated = existing.model_copy(update={"imageUrls": image_urls})
            self.store.upsert(updated)
            if removed != updated.imageUrl and removed not in image_urls:
                self.vault.remove(removed)

        logger.info(f"Image {index} removed from group {group_id}: {removed}")
        return updated

    def import_group(self, payload: Any) -> WordGroup:
        """Create a group from {title, words}, padding the word list to a full group"""
        try:
            request = ImportRequest.model_validate(payload)
        except ValidationError as e:
            raise GroupValidationError(IMPORT_FORMAT_ERROR) from e

        words = pad_words(normalize_words(request.words, self._new_id), GROUP_SIZE, self._new_id)
        group = WordGroup(
            id=self._new_id(),
            title=request.title,
            createdAt=self._clock(),
            passed=False,
            words=words,
        )
        with self.store.lock:
            self.store.upsert(group)

        logger.info(f"Group imported: {group.title} (ID: {group.id}, {len(request.words)} words)")
        return group

    # ============= IMAGE HELPERS =============

    def _prepare_image(self, value: Optional[str]) -> Optional[PendingImage]:
        if not value:
            return None
        if is_data_uri(value):
            return decode_data_uri(value)
        return value

    def _prepare_image_list(self, values: Optional[List[Optional[str]]]) -> Optional[List[PendingImage]]:
        if values is None:
            return None
        return [self._prepare_image(v) for v in values if v]

    def _commit_image(self, pending: Optional[PendingImage], key: str, written: List[str]) -> Optional[str]:
        if isinstance(pending, DecodedImage):
            url = self.vault.store(pending, key)
            written.append(url)
            return url
        return pending

    def _commit_image_list(self, pending: Optional[List[PendingImage]], group_id: str, written: List[str]) -> Optional[List[str]]:
        if pending is None:
            return None
        return [self._commit_image(p, f"{group_id}_img{idx}", written) for idx, p in enumerate(pending)]

    def _remove_replaced_images(self, previous: WordGroup, current: WordGroup) -> None:
        """Unlink files the previous record referenced that the stored record no longer does"""
        still_referenced = {current.imageUrl, *(current.imageUrls or [])}
        for url in [previous.imageUrl, *(previous.imageUrls or [])]:
            if url and url not in still_referenced:
                self.vault.remove(url)
                still_referenced.add(url)

    def _discard(self, urls: List[str]) -> None:
        """Drop files written by a transaction that did not reach the document"""
        for url in urls:
            try:
                self.vault.remove(url, force=True)
            except Exception as e:
                logger.warning(f"Could not discard orphan image {url}: {e}")
