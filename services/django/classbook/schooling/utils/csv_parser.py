# schooling/utils/csv_parser.py

import logging

import pandas as pd

from .column_mapper import map_equivalent_columns

logger = logging.getLogger(__name__)


def _read_frame(source):
    # Every cell stays a string; blank cells become "" rather than NaN.
    return pd.read_csv(
        source,
        dtype=str,
        keep_default_na=False,
        encoding="utf-8-sig",
        skip_blank_lines=True,
    )


def _sanitize_dataframe(df):
    """Drop columns whose header normalizes to nothing."""
    return df.loc[:, [str(col).strip() != "" for col in df.columns]]


def parse_student_csv(source, file_name=None):
    """
    Parse an uploaded student sheet.

    ``source`` is a path or a file-like object. Headers are normalized and
    mapped onto canonical student fields; rows keep file order. Returns the
    same status dictionary shape the upload views expect:
    ``{"status": "ok", "type", "file", "columns", "rows"}`` or
    ``{"status": "error", "file", "message"}``.
    """

    filename = file_name or getattr(source, "name", None) or str(source)

    try:
        df = _read_frame(source)
    except pd.errors.EmptyDataError:
        return {
            "status": "ok",
            "type": "Students",
            "file": filename,
            "columns": [],
            "rows": [],
        }
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as exc:
        logger.warning("Could not parse student upload %s: %s", filename, exc)
        return {
            "status": "error",
            "type": "Students",
            "file": filename,
            "message": f"Failed to parse CSV file: {exc}",
        }

    mapping = map_equivalent_columns(df.columns)
    df = df.rename(columns=mapping)
    df = _sanitize_dataframe(df)

    return {
        "status": "ok",
        "type": "Students",
        "file": filename,
        "columns": list(df.columns),
        "rows": df.to_dict(orient="records"),
    }
