"""ICS upload route."""

import logging
from typing import Union

from aiohttp import web

from ...ics.exceptions import ICSImportError, InvalidUploadError, MissingUploadError
from ...ics.importer import import_ics
from ...storage.database import DatabaseManager
from ..auth import login_required

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "file"
ICS_EXTENSION = ".ics"


async def read_upload(request: web.Request, max_bytes: int) -> tuple[str, bytes]:
    """Read the uploaded ICS file from a multipart form.

    Returns:
        Tuple of file name and raw content

    Raises:
        MissingUploadError: If the form has no file in the ``file`` field
        InvalidUploadError: If the file name does not end in ``.ics``
        web.HTTPRequestEntityTooLarge: If the file exceeds ``max_bytes``
    """
    form = await request.post()
    upload: Union[web.FileField, str, bytes, None] = form.get(UPLOAD_FIELD)
    if not isinstance(upload, web.FileField):
        raise MissingUploadError("No file uploaded")

    filename = upload.filename or ""
    if not filename.lower().endswith(ICS_EXTENSION):
        raise InvalidUploadError("Only ICS files are allowed")

    content = upload.file.read()
    if len(content) > max_bytes:
        raise web.HTTPRequestEntityTooLarge(max_size=max_bytes, actual_size=len(content))
    return filename, content


def register_ics_routes(
    app: web.Application,
    store: DatabaseManager,
    timezone: str,
    max_upload_bytes: int,
) -> None:
    """Register the ICS upload route.

    Args:
        app: aiohttp web application
        store: Database manager receiving imported events
        timezone: Application timezone for ICS date-time values
        max_upload_bytes: Largest accepted file size
    """

    @login_required(store)
    async def upload_ics(request: web.Request, user_id: str) -> web.Response:
        """Import events from an uploaded ICS file."""
        try:
            filename, content = await read_upload(request, max_upload_bytes)
        except ICSImportError as e:
            return web.json_response({"error": e.message}, status=400)
        except web.HTTPRequestEntityTooLarge:
            return web.json_response(
                {"error": f"File exceeds the {max_upload_bytes} byte upload limit"}, status=413
            )

        logger.info("Importing %s (%d bytes) for user %s", filename, len(content), user_id)
        summary = await import_ics(store, user_id, content, tz=timezone)

        return web.json_response(
            {
                "message": f"{summary.imported_count} events imported successfully",
                "importedCount": summary.imported_count,
                "events": [event.to_api_dict() for event in summary.imported_events],
            }
        )

    app.router.add_post("/api/ics/upload", upload_ics)
