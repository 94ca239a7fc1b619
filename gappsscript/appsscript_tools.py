"""
Google Apps Script MCP Tools

This module provides MCP tools for reading and editing the source files of
Apps Script projects, including scripts bound to a spreadsheet or document.
"""
import json
import logging

from auth.service_decorator import require_google_service
from core.server import server
from core.utils import handle_http_errors
from gappsscript.appsscript_helpers import (
    fence_language,
    fetch_script_metadata,
    find_bound_scripts,
    get_script_file,
    list_script_files,
    update_script_file,
)

logger = logging.getLogger(__name__)


@server.tool()
@handle_http_errors("get_bound_script_id", is_read_only=True, service_type="drive")
@require_google_service("drive", "drive_read")
async def get_bound_script_id(service, file_id: str) -> str:
    """
    Finds the Apps Script projects bound to a Google Spreadsheet or Document.

    Args:
        file_id (str): The ID of the spreadsheet or document. Required.

    Returns:
        str: JSON with the bound scripts (scriptId, name, createdTime, modifiedTime), or a message if none exist.
    """
    logger.info(f"[get_bound_script_id] Invoked. File: {file_id}")

    scripts = await find_bound_scripts(service, file_id)
    if not scripts:
        return (
            f"No bound Apps Script project found for file {file_id}. The file may not "
            "have any scripts attached, or you may not have access."
        )

    logger.info(f"[get_bound_script_id] Found {len(scripts)} bound script(s) on {file_id}")
    return json.dumps({"scripts": scripts}, indent=2)


@server.tool()
@handle_http_errors("get_apps_script_metadata", is_read_only=True, service_type="script")
@require_google_service("script", "script_read")
async def get_apps_script_metadata(service, script_id: str) -> str:
    """
    Gets metadata about an Apps Script project.

    Args:
        script_id (str): The Script ID (Project Settings in the Apps Script editor). Required.

    Returns:
        str: Title, script ID, parent container, create time and update time.
    """
    logger.info(f"[get_apps_script_metadata] Invoked. Script: {script_id}")

    metadata = await fetch_script_metadata(service, script_id)
    return "\n".join(
        [
            "Apps Script project metadata:",
            f"- Title: {metadata.get('title') or 'Unknown'}",
            f"- Script ID: {metadata.get('scriptId') or script_id}",
            f"- Parent ID: {metadata.get('parentId') or 'None (standalone script)'}",
            f"- Create Time: {metadata.get('createTime') or 'Unknown'}",
            f"- Update Time: {metadata.get('updateTime') or 'Unknown'}",
        ]
    )


@server.tool()
@handle_http_errors("list_apps_script_files", is_read_only=True, service_type="script")
@require_google_service("script", "script_read")
async def list_apps_script_files(service, script_id: str) -> str:
    """
    Lists all files in an Apps Script project.

    Args:
        script_id (str): The Script ID (Project Settings in the Apps Script editor). Required.

    Returns:
        str: One line per file with its name and type.
    """
    logger.info(f"[list_apps_script_files] Invoked. Script: {script_id}")

    files = await list_script_files(service, script_id)
    if not files:
        return f"Apps Script project {script_id} has no files."

    lines = [f"- {file['name']} ({file['type']})" for file in files]
    return f"Apps Script project {script_id} has {len(files)} file(s):\n" + "\n".join(lines)


@server.tool()
@handle_http_errors("read_apps_script_file", is_read_only=True, service_type="script")
@require_google_service("script", "script_read")
async def read_apps_script_file(service, script_id: str, file_name: str) -> str:
    """
    Reads the source code of one file in an Apps Script project.

    Args:
        script_id (str): The Script ID (Project Settings in the Apps Script editor). Required.
        file_name (str): File name without extension, e.g. "Code" (not "Code.gs"). Required.

    Returns:
        str: The file's name, type and source in a code block.
    """
    logger.info(f"[read_apps_script_file] Invoked. Script: {script_id}, File: {file_name}")

    file = await get_script_file(service, script_id, file_name)
    return (
        f"File: {file['name']} ({file['type']})\n\n"
        f"```{fence_language(file['type'])}\n{file['source']}\n```"
    )


@server.tool()
@handle_http_errors("update_apps_script_file", service_type="script")
@require_google_service("script", "script_write")
async def update_apps_script_file(
    service,
    script_id: str,
    file_name: str,
    source: str,
    file_type: str = "SERVER_JS",
) -> str:
    """
    Replaces the source code of one file in an Apps Script project.

    The other files of the project are written back unchanged. A file that
    does not exist yet is created with file_type.

    Args:
        script_id (str): The Script ID (Project Settings in the Apps Script editor). Required.
        file_name (str): File name without extension, e.g. "Code" (not "Code.gs"). Required.
        source (str): The new source code for the file. Required.
        file_type (str): SERVER_JS for .gs files, HTML for .html files, JSON for appsscript.json. Used only when creating a file. Defaults to SERVER_JS.

    Returns:
        str: Confirmation message.
    """
    logger.info(f"[update_apps_script_file] Invoked. Script: {script_id}, File: {file_name}")

    existed = await update_script_file(service, script_id, file_name, source, file_type)
    action = "updated" if existed else "created"
    logger.info(f"[update_apps_script_file] {action.capitalize()} '{file_name}' in {script_id}")
    return f"Successfully {action} file '{file_name}' in Apps Script project {script_id}."
