"""
Shared fixtures for Google Docs unit tests.
"""
import pytest


def _paragraph(start, text):
    end = start + len(text) + 1
    return {
        "startIndex": start,
        "endIndex": end,
        "paragraph": {"elements": [{"startIndex": start, "endIndex": end,
                                    "textRun": {"content": text + "\n"}}]},
    }


def _cell(start, text):
    paragraph = _paragraph(start + 1, text)
    return {"startIndex": start, "endIndex": paragraph["endIndex"], "content": [paragraph]}


@pytest.fixture
def table_doc():
    """
    A document as returned by documents().get, with this body layout:

        1-7    paragraph "Intro"
        7      table start
        8      row 0: cell(9) "Name" [10,15)  cell(15) "" [16,17)
        17     row 1: cell(18) "Ada" [19,23)  cell(23) "36" [24,27)
        27     paragraph after the table
    """
    row0 = {"startIndex": 8, "endIndex": 17, "tableCells": [_cell(9, "Name"), _cell(15, "")]}
    row1 = {"startIndex": 17, "endIndex": 27, "tableCells": [_cell(18, "Ada"), _cell(23, "36")]}
    table = {"startIndex": 7, "endIndex": 27,
             "table": {"rows": 2, "columns": 2, "tableRows": [row0, row1]}}
    return {
        "body": {
            "content": [
                {"startIndex": 0, "endIndex": 1, "sectionBreak": {}},
                _paragraph(1, "Intro"),
                table,
                _paragraph(27, ""),
            ]
        }
    }
