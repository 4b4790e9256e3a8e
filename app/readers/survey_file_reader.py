"""
app/readers/survey_file_reader.py

Decodes uploaded survey spreadsheets (CSV or Excel workbooks) into a header
list plus one field map per data row.
"""

from __future__ import annotations

import csv
import io
import logging
import zipfile
from pathlib import PurePath
from typing import Any

import numpy as np
import pandas as pd

from app.domain.survey_import import DecodedFile
from app.errors import EmptyFileError, SurveyFileError, UnsupportedFormatError

logger = logging.getLogger(__name__)

DELIMITED_EXTENSIONS: frozenset[str] = frozenset({".csv"})
WORKBOOK_ENGINES: dict[str, str] = {
    ".xlsx": "openpyxl",
    ".xls": "xlrd",
}
SUPPORTED_EXTENSIONS: frozenset[str] = DELIMITED_EXTENSIONS | frozenset(WORKBOOK_ENGINES)

_CANDIDATE_DELIMITERS = ",;\t|"
_SNIFF_SAMPLE_CHARS = 64 * 1024


def file_extension(filename: str | None) -> str:
    """
    Return the lower-cased extension of ``filename`` including the dot.
    """

    return PurePath((filename or "").strip()).suffix.lower()


class SurveyFileReader:
    """
    Turns raw upload bytes into ``DecodedFile`` regardless of source format.
    """

    def read(self, *, content: bytes, filename: str) -> DecodedFile:
        extension = file_extension(filename)
        if extension in DELIMITED_EXTENSIONS:
            decoded = self._read_delimited(content)
        elif extension in WORKBOOK_ENGINES:
            decoded = self._read_workbook(content, engine=WORKBOOK_ENGINES[extension])
        else:
            raise UnsupportedFormatError(
                "Unsupported file format. Use CSV or XLSX.",
                context={
                    "filename": filename,
                    "supported_extensions": sorted(SUPPORTED_EXTENSIONS),
                },
            )

        if not decoded.rows:
            raise EmptyFileError("File is empty.", context={"filename": filename})

        logger.debug(
            "Decoded survey file filename=%r headers=%d rows=%d",
            filename,
            len(decoded.headers),
            len(decoded.rows),
        )
        return decoded

    # ------------------------------------------------------------------
    # Delimited text
    # ------------------------------------------------------------------

    def _read_delimited(self, content: bytes) -> DecodedFile:
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise SurveyFileError("CSV must be UTF-8 encoded.") from exc

        delimiter = self._detect_delimiter(text[:_SNIFF_SAMPLE_CHARS])
        try:
            reader = csv.DictReader(io.StringIO(text, newline=""), delimiter=delimiter)
            headers = tuple(reader.fieldnames or ())
            rows: list[dict[str, Any]] = []
            for raw_row in reader:
                row = {key: value for key, value in raw_row.items() if key is not None}
                if self._is_blank_row(row.values()):
                    continue
                rows.append(row)
        except csv.Error as exc:
            raise SurveyFileError(f"Invalid CSV format: {exc}") from exc

        return DecodedFile(headers=headers, rows=rows)

    @staticmethod
    def _detect_delimiter(sample: str) -> str:
        if not sample.strip():
            return ","
        try:
            dialect = csv.Sniffer().sniff(sample, delimiters=_CANDIDATE_DELIMITERS)
        except csv.Error:
            return ","
        return dialect.delimiter

    # ------------------------------------------------------------------
    # Workbooks
    # ------------------------------------------------------------------

    def _read_workbook(self, content: bytes, *, engine: str) -> DecodedFile:
        try:
            frame = pd.read_excel(
                io.BytesIO(content),
                sheet_name=0,
                header=None,
                dtype=object,
                engine=engine,
            )
        except (ValueError, KeyError, OSError, zipfile.BadZipFile) as exc:
            raise SurveyFileError(f"Unable to read workbook: {exc}") from exc

        records = [
            [self._clean_cell(value) for value in record]
            for record in frame.itertuples(index=False, name=None)
        ]
        if not records:
            return DecodedFile(headers=(), rows=[])

        header_cells = list(records[0])
        # pandas pads the header row to the widest data row
        while header_cells and header_cells[-1] is None:
            header_cells.pop()
        headers = tuple("" if value is None else str(value) for value in header_cells)
        rows: list[dict[str, Any]] = []
        for record in records[1:]:
            if self._is_blank_row(record):
                continue
            row: dict[str, Any] = {}
            for column_index, header in enumerate(headers):
                row[header] = record[column_index] if column_index < len(record) else None
            rows.append(row)

        return DecodedFile(headers=headers, rows=rows)

    @staticmethod
    def _clean_cell(value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, float) and np.isnan(value):
            return None
        if value is pd.NaT:
            return None
        if isinstance(value, np.generic):
            return value.item()
        return value

    @staticmethod
    def _is_blank_row(values: Any) -> bool:
        for value in values:
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            return False
        return True
