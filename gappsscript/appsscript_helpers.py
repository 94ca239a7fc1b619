"""
Google Apps Script Helper Functions

Reads and writes the files of an Apps Script project through the Apps Script
API, and finds the projects bound to a spreadsheet or document through Drive.

The Apps Script API only replaces a project's content as a whole, so a
single-file update reads the current file set, swaps in the new source and
writes every file back.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from googleapiclient.errors import HttpError

from core.errors import (
    ErrorContext,
    InvalidParameterError,
    NotFoundError,
    PermissionDeniedError,
    translate_http_error,
)
from core.style_codec import validate_choice

logger = logging.getLogger(__name__)

SCRIPT_MIME_TYPE = "application/vnd.google-apps.script"
SCRIPT_FILE_TYPES = ["SERVER_JS", "HTML", "JSON"]

# Code fence language per file type
_FENCE_LANGUAGES = {"SERVER_JS": "javascript", "HTML": "html", "JSON": "json"}

_FILE_EXTENSIONS = (".gs", ".js", ".html", ".json")

_SCRIPT_PERMISSION_SUGGESTION = (
    "Enable the Google Apps Script API for the Cloud project and in the user's "
    "Apps Script settings, make sure the account has Editor access to the "
    "script, and re-authorize if the token lacks the script.projects scope."
)


async def _execute_script_request(request, script_id: str) -> Dict[str, Any]:
    """Execute an Apps Script API request, adding setup guidance to permission errors."""
    try:
        return await asyncio.to_thread(request.execute)
    except HttpError as error:
        translated = translate_http_error(error, script_id)
        if isinstance(translated, PermissionDeniedError):
            translated.structured.suggestion = _SCRIPT_PERMISSION_SUGGESTION
        raise translated from error


def fence_language(file_type: Optional[str]) -> str:
    return _FENCE_LANGUAGES.get(file_type or "", "")


async def fetch_script_content(service, script_id: str) -> Dict[str, Any]:
    """Read the full content (every file with its source) of a script project."""
    return await _execute_script_request(
        service.projects().getContent(scriptId=script_id), script_id
    )


async def fetch_script_metadata(service, script_id: str) -> Dict[str, Any]:
    """Read project metadata: title, parent container, create and update times."""
    return await _execute_script_request(
        service.projects().get(scriptId=script_id), script_id
    )


async def list_script_files(service, script_id: str) -> List[Dict[str, Any]]:
    """
    List the files of a script project in project order.

    Returns:
        Dicts with name, type and source. Missing names and types read as "Unknown".
    """
    content = await fetch_script_content(service, script_id)
    return [
        {
            "name": file.get("name") or "Unknown",
            "type": file.get("type") or "Unknown",
            "source": file.get("source") or "",
        }
        for file in content.get("files", [])
    ]


async def get_script_file(service, script_id: str, file_name: str) -> Dict[str, Any]:
    """
    Read one file of a script project by exact name.

    Raises:
        NotFoundError: if the project has no file with that name
    """
    files = await list_script_files(service, script_id)
    for file in files:
        if file["name"] == file_name:
            return file

    available = [file["name"] for file in files]
    suggestion = "Use one of the available file names."
    if file_name.lower().endswith(_FILE_EXTENSIONS):
        suggestion = "File names do not include an extension: use 'Code', not 'Code.gs'."
    raise NotFoundError(
        f"File '{file_name}' not found in script project {script_id}. Available files: {available}",
        suggestion=suggestion,
        context=ErrorContext(received={"file_name": file_name}, available=available),
    )


def merge_script_file(
    files: List[Dict[str, Any]], file_name: str, source: str, file_type: str = "SERVER_JS"
) -> Tuple[List[Dict[str, Any]], bool]:
    """
    Put source into the named file, keeping every other file unchanged.

    An existing file keeps its type and metadata. A missing file is appended
    with file_type.

    Returns:
        (updated file list, True if the file already existed)
    """
    updated = []
    existed = False
    for file in files:
        if file.get("name") == file_name:
            existed = True
            file = {**file, "source": source}
        updated.append(file)
    if not existed:
        updated.append({"name": file_name, "type": file_type, "source": source})
    return updated, existed


async def update_script_file(
    service, script_id: str, file_name: str, source: str, file_type: str = "SERVER_JS"
) -> bool:
    """
    Replace the source of one file, creating it if needed.

    Returns:
        True if an existing file was updated, False if a new file was created
    """
    if not file_name or not file_name.strip():
        raise InvalidParameterError("file_name must not be empty")
    file_type = validate_choice(file_type, SCRIPT_FILE_TYPES, "file_type")

    content = await fetch_script_content(service, script_id)
    files, existed = merge_script_file(content.get("files", []), file_name, source, file_type)
    logger.debug(
        f"Writing {len(files)} file(s) to script {script_id} "
        f"({'updating' if existed else 'creating'} '{file_name}')"
    )
    await _execute_script_request(
        service.projects().updateContent(scriptId=script_id, body={"files": files}),
        script_id,
    )
    return existed


async def find_bound_scripts(drive_service, file_id: str) -> List[Dict[str, Any]]:
    """
    Find the Apps Script projects bound to a spreadsheet or document.

    Container-bound projects are Drive files of the script MIME type whose
    parent is the container file.
    """
    if "'" in file_id or "\\" in file_id:
        raise InvalidParameterError(f"Invalid file ID: {file_id!r}")

    response = await asyncio.to_thread(
        drive_service.files()
        .list(
            q=f"'{file_id}' in parents and mimeType='{SCRIPT_MIME_TYPE}' and trashed=false",
            fields="files(id,name,createdTime,modifiedTime)",
            supportsAllDrives=True,
            includeItemsFromAllDrives=True,
        )
        .execute
    )
    return [
        {
            "scriptId": file.get("id"),
            "name": file.get("name"),
            "createdTime": file.get("createdTime"),
            "modifiedTime": file.get("modifiedTime"),
        }
        for file in response.get("files", [])
    ]
