"""Serves stored workspace images."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from workboard.services import file_storage

router = APIRouter()

# Uploaded files (SVG in particular) must never run script in the API origin.
IMAGE_RESPONSE_HEADERS = {
    "Cache-Control": "public, max-age=86400",
    "Content-Security-Policy": "default-src 'none'; style-src 'unsafe-inline'; sandbox",
    "X-Content-Type-Options": "nosniff",
}


@router.get("/images/{file_id}")
async def get_image(file_id: str):
    """Stream a stored image. Public so it can be used in <img> tags."""
    abs_path = file_storage.find_image(file_id)
    if abs_path is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return FileResponse(abs_path, headers=IMAGE_RESPONSE_HEADERS)
