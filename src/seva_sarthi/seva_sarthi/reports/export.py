from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Sequence

import pandas as pd

CSV_MIMETYPE = "text/csv"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
EXPORT_FORMATS = ("csv", "xlsx")


@dataclass(frozen=True)
class ExportFile:
    content: bytes
    filename: str
    mimetype: str


def rows_to_frame(rows: Sequence[dict], columns: Sequence[str]) -> pd.DataFrame:
    # Keep the column order stable even for an empty report.
    return pd.DataFrame(list(rows), columns=list(columns))


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    # utf-8-sig so Excel opens Devanagari / Gujarati names correctly
    return df.to_csv(index=False).encode("utf-8-sig")


def to_xlsx_bytes(df: pd.DataFrame, *, sheet_name: str = "Report") -> bytes:
    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name[:31])
    return out.getvalue()
