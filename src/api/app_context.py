# src/api/app_context.py
from dataclasses import dataclass
from typing import Callable, Optional

from models.document_store import DocumentStore
from models.group_service import GroupService
from utils.config_loader import Settings
from utils.identifiers import generate_id, now_ms
from utils.image_vault import ImageVault


@dataclass
class AppContext:
    settings: Settings
    store: DocumentStore
    vault: ImageVault
    group_service: GroupService
    clock: Callable[[], int]


def build_context(
    settings: Settings,
    clock: Optional[Callable[[], int]] = None,
    id_factory: Optional[Callable[[], str]] = None,
) -> AppContext:
    clock = clock or now_ms
    store = DocumentStore(settings.data_path)
    vault = ImageVault(
        settings.images_path,
        url_prefix=settings.image_prefix,
        retention=settings.image_retention,
        clock=clock,
    )
    group_service = GroupService(store, vault, clock=clock, id_factory=id_factory or generate_id)
    return AppContext(
        settings=settings,
        store=store,
        vault=vault,
        group_service=group_service,
        clock=clock,
    )
