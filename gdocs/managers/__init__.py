"""
Google Docs Operation Managers

Managers that orchestrate multi-request document edits.
"""

from .cell_edit_manager import CellEditBuilder, CellEditState, TableCellEditManager

__all__ = [
    "CellEditBuilder",
    "CellEditState",
    "TableCellEditManager",
]
