"""
Google service injection for tool functions.

Credentials are read from an authorized-user token file (see
core.config.get_token_file). Obtaining that token is outside this server;
any OAuth flow that writes the standard authorized-user JSON works.
"""
import asyncio
import functools
import inspect
import logging
import os
from typing import Dict, List

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from core.config import get_token_file
from core.errors import PermissionDeniedError

logger = logging.getLogger(__name__)

SHEETS_READONLY_SCOPE = "https://www.googleapis.com/auth/spreadsheets.readonly"
SHEETS_WRITE_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
DOCS_READONLY_SCOPE = "https://www.googleapis.com/auth/documents.readonly"
DOCS_WRITE_SCOPE = "https://www.googleapis.com/auth/documents"
SCRIPT_READONLY_SCOPE = "https://www.googleapis.com/auth/script.projects.readonly"
SCRIPT_WRITE_SCOPE = "https://www.googleapis.com/auth/script.projects"
DRIVE_READONLY_SCOPE = "https://www.googleapis.com/auth/drive.readonly"

SCOPE_GROUPS: Dict[str, List[str]] = {
    "sheets_read": [SHEETS_READONLY_SCOPE],
    "sheets_write": [SHEETS_WRITE_SCOPE],
    "docs_read": [DOCS_READONLY_SCOPE],
    "docs_write": [DOCS_WRITE_SCOPE],
    "script_read": [SCRIPT_READONLY_SCOPE],
    "script_write": [SCRIPT_WRITE_SCOPE],
    "drive_read": [DRIVE_READONLY_SCOPE],
}

SERVICE_CONFIGS = {
    "sheets": {"service": "sheets", "version": "v4"},
    "docs": {"service": "docs", "version": "v1"},
    "script": {"service": "script", "version": "v1"},
    "drive": {"service": "drive", "version": "v3"},
}


def _load_credentials(scopes: List[str]) -> Credentials:
    token_file = get_token_file()
    if not os.path.exists(token_file):
        raise PermissionDeniedError(
            f"No Google credentials found at {token_file}",
            reason="The server needs an authorized-user token file to call Google APIs.",
            suggestion="Set GOOGLE_OAUTH_TOKEN_FILE to an authorized-user JSON file.",
        )

    credentials = Credentials.from_authorized_user_file(token_file, scopes)
    if not credentials.valid:
        if credentials.expired and credentials.refresh_token:
            logger.debug("Refreshing expired Google credentials")
            try:
                credentials.refresh(Request())
            except RefreshError as e:
                raise PermissionDeniedError(
                    "Stored Google credentials could not be refreshed",
                    reason=str(e),
                    suggestion="Re-authorize and rewrite the token file.",
                ) from e
        else:
            raise PermissionDeniedError(
                "Stored Google credentials are invalid and cannot be refreshed",
                suggestion="Re-authorize and rewrite the token file.",
            )
    return credentials


def get_google_service(service_type: str, scope_group: str):
    """Build a discovery resource for the given service and scope group."""
    if service_type not in SERVICE_CONFIGS:
        raise ValueError(f"Unknown service type: {service_type}")
    if scope_group not in SCOPE_GROUPS:
        raise ValueError(f"Unknown scope group: {scope_group}")

    config = SERVICE_CONFIGS[service_type]
    credentials = _load_credentials(SCOPE_GROUPS[scope_group])
    return build(
        config["service"],
        config["version"],
        credentials=credentials,
        cache_discovery=False,
    )


def require_google_service(service_type: str, scope_group: str):
    """
    Decorator that injects an authenticated Google service as the first
    positional argument of the wrapped tool.

    The `service` parameter is removed from the exposed signature so that
    tool schemas do not advertise it.

    Args:
        service_type: one of the keys of SERVICE_CONFIGS, e.g. "sheets"
        scope_group: one of the keys of SCOPE_GROUPS, e.g. "sheets_write"
    """

    def decorator(func):
        original_sig = inspect.signature(func)
        params = list(original_sig.parameters.values())
        if not params or params[0].name != "service":
            raise TypeError(
                f"{func.__name__} must take 'service' as its first parameter"
            )
        wrapper_sig = original_sig.replace(parameters=params[1:])

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            service = await asyncio.to_thread(
                get_google_service, service_type, scope_group
            )
            return await func(service, *args, **kwargs)

        wrapper.__signature__ = wrapper_sig
        return wrapper

    return decorator
