import asyncio
import functools
import logging
import ssl
from typing import Optional

from fastmcp.exceptions import ToolError
from googleapiclient.errors import HttpError

from core.errors import UnavailableError, WorkspaceEditError, translate_http_error

logger = logging.getLogger(__name__)

# Tool parameters that name the remote file a request targets
_TARGET_ID_PARAMS = ("spreadsheet_id", "document_id", "script_id", "file_id")


def _target_id(kwargs) -> Optional[str]:
    for name in _TARGET_ID_PARAMS:
        if kwargs.get(name):
            return kwargs[name]
    return None


def structured_tool_error(error: WorkspaceEditError) -> ToolError:
    """Wrap an engine error so the client receives its structured JSON payload."""
    return ToolError(error.to_json())


def handle_http_errors(
    tool_name: str, is_read_only: bool = False, service_type: Optional[str] = None
):
    """
    A decorator to handle Google API HttpErrors and transient SSL errors in a standardized way.

    It wraps a tool function, catches HttpError, logs a detailed error message,
    and translates it into the engine's error taxonomy with the HTTP status
    preserved. Taxonomy errors are raised to the client as a ToolError whose
    message is the structured JSON payload (code, message, reason, suggestion
    and context).

    If is_read_only is True, it will also catch ssl.SSLError and retry with
    exponential backoff. Mutating tools are never retried: a batchUpdate is
    atomic per call, and whether to re-run it is the caller's decision.

    Args:
        tool_name (str): The name of the tool being decorated (e.g., 'format_cells').
        is_read_only (bool): If True, the operation is considered safe to retry on
                             transient network errors. Defaults to False.
        service_type (str): Optional. The Google service type ('sheets', 'docs', 'script' or 'drive').
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            max_retries = 3 if is_read_only else 1
            base_delay = 1

            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except ssl.SSLError as e:
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            f"SSL error in {tool_name} on attempt {attempt + 1}: {e}. Retrying in {delay} seconds..."
                        )
                        await asyncio.sleep(delay)
                    else:
                        logger.error(
                            f"SSL error in {tool_name} on final attempt: {e}. Raising exception."
                        )
                        unavailable = UnavailableError(
                            f"A transient SSL error occurred in '{tool_name}' after {attempt + 1} attempt(s). "
                            "This is likely a temporary network or certificate issue. Please try again shortly."
                        )
                        raise structured_tool_error(unavailable) from e
                except HttpError as error:
                    translated = translate_http_error(error, _target_id(kwargs))
                    logger.error(
                        f"API error in {tool_name} ({service_type or 'unknown service'}): {error}",
                        exc_info=True,
                    )
                    raise structured_tool_error(translated) from error
                except WorkspaceEditError as e:
                    logger.warning(f"{tool_name} failed: [{e.structured.code}] {e.message}")
                    raise structured_tool_error(e) from e
                except Exception as e:
                    message = f"An unexpected error occurred in {tool_name}: {e}"
                    logger.exception(message)
                    raise Exception(message) from e

        return wrapper

    return decorator
