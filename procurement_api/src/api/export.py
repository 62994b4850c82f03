from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

import pandas as pd
from fastapi.responses import JSONResponse, Response, StreamingResponse

from src.schemas.common import ExportFormat

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _attachment(filename: str) -> Dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


def _csv(df: pd.DataFrame, name: str) -> StreamingResponse:
    text = io.StringIO()
    df.to_csv(text, index=False)
    text.seek(0)
    return StreamingResponse(text, media_type="text/csv", headers=_attachment(f"{name}.csv"))


def _xlsx(df: pd.DataFrame, name: str) -> StreamingResponse:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=name[:31])
    buffer.seek(0)
    return StreamingResponse(buffer, media_type=XLSX_MEDIA_TYPE, headers=_attachment(f"{name}.xlsx"))


def _pdf(df: pd.DataFrame, name: str) -> StreamingResponse:
    """Landscape letter page: a title line with the UTC timestamp, then one grid table."""
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import landscape, letter
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=landscape(letter), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
    )
    stamp = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    title = Paragraph(f"{name.replace('_', ' ').title()} ({stamp})", getSampleStyleSheet()["Title"])

    cells = [list(df.columns)] + df.fillna("").astype(str).values.tolist()
    if len(cells) == 1:
        cells.append([""] * len(df.columns))
    table = Table(cells, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 7),
                ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ]
        )
    )
    doc.build([title, table])
    buffer.seek(0)
    return StreamingResponse(buffer, media_type="application/pdf", headers=_attachment(f"{name}.pdf"))


_RENDERERS: Dict[ExportFormat, Callable[[pd.DataFrame, str], StreamingResponse]] = {
    ExportFormat.csv: _csv,
    ExportFormat.xlsx: _xlsx,
    ExportFormat.pdf: _pdf,
}


# PUBLIC_INTERFACE
def export_rows(
    rows: List[Dict[str, Any]],
    filename_base: str,
    export_format: ExportFormat,
    columns: List[str],
) -> Response:
    """
    Render export rows as a JSON array or as a csv/xlsx/pdf download.

    `columns` fixes the column order and keeps the header row when nothing matched.
    """
    export_format = ExportFormat(export_format)
    if export_format is ExportFormat.json:
        return JSONResponse(content=rows, headers=_attachment(f"{filename_base}.json"))
    df = pd.DataFrame(rows, columns=columns)
    return _RENDERERS[export_format](df, filename_base)
