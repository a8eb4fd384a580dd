"""
Shared dependencies for API routes
"""
from fastapi import Depends, Request
from typing import Annotated

from api.app_context import AppContext
from models.group_service import GroupService
from utils.image_vault import ImageVault


def get_app_context(request: Request) -> AppContext:
    return request.app.state.context


def get_group_service(context: Annotated[AppContext, Depends(get_app_context)]) -> GroupService:
    return context.group_service


def get_image_vault(context: Annotated[AppContext, Depends(get_app_context)]) -> ImageVault:
    return context.vault


# Dependency shortcuts
Groups = Annotated[GroupService, Depends(get_group_service)]
Vault = Annotated[ImageVault, Depends(get_image_vault)]
