"""
Image file routes
Serves the files written by the image vault at its URL prefix
"""
import mimetypes

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from api.dependencies import Vault

MEDIA_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "bmp": "image/bmp",
}


def media_type_for(filename: str) -> str:
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension in MEDIA_TYPES:
        return MEDIA_TYPES[extension]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def create_router(prefix: str) -> APIRouter:
    """Build the read-only image router mounted at the vault's URL prefix"""
    router = APIRouter(prefix=prefix, tags=["Images"])

    @router.get("/{filename}")
    async def get_image_file(filename: str, vault: Vault):
        """
        Serve an image file

        - **filename**: Name returned inside a vault URL
        """
        file_path = vault.path_for_url(vault.url_for(filename))
        if file_path is None or not file_path.is_file():
            raise HTTPException(status_code=404, detail=f"Image {filename} not found")

        response = FileResponse(
            path=str(file_path),
            media_type=media_type_for(filename),
        )
        response.headers["Cache-Control"] = "public, max-age=3600"
        return response

    return router
