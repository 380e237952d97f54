"""
Workbook input/output (openpyxl).

Input workbook:
- sheet 1: header row, then longitude in column A and latitude in column B
- sheet 2 (optional): header row, then excluded settlement names in column A

Output workbook: one row per input point, in input order; failed rows are
filled light pink so a human can spot them quickly.
"""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterable, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from settlescout.domain.models import Coordinate, PointResult

logger = logging.getLogger(__name__)

RESULT_HEADERS = [
    "Source longitude",
    "Source latitude",
    "Name",
    "Kind",
    "Settlement longitude",
    "Settlement latitude",
    "Distance (km)",
    "Population",
    "Status",
]

FAILED_ROW_FILL = PatternFill(fill_type="solid", start_color="FFFFB6C1", end_color="FFFFB6C1")


def parse_number(value: Any) -> float | None:
    """Parse a numeric cell; strings may use `,` as decimal separator. Bad cells are None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().replace(",", ".")
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


class WorkbookReadError(RuntimeError):
    """The input workbook is missing or is not a readable xlsx file."""


def _open_workbook(path: str | Path) -> Any:
    try:
        return load_workbook(Path(path), read_only=True, data_only=True)
    except (OSError, zipfile.BadZipFile, InvalidFileException, KeyError) as exc:
        raise WorkbookReadError(f"Cannot read input workbook {path}: {exc}") from exc


def read_points(path: str | Path) -> list[Coordinate]:
    """Read source points from the first sheet (header skipped, malformed rows skipped).

    Raises:
        WorkbookReadError: If the file is missing or not a valid workbook.
    """
    wb = _open_workbook(path)
    try:
        ws = wb.worksheets[0]
        points: list[Coordinate] = []
        skipped = 0
        for row in ws.iter_rows(min_row=2, values_only=True):
            if row is None or len(row) < 2:
                skipped += 1
                continue
            lon = parse_number(row[0])
            lat = parse_number(row[1])
            if lon is None or lat is None:
                skipped += 1
                continue
            points.append(Coordinate(lon=lon, lat=lat))
    finally:
        wb.close()

    if skipped:
        logger.debug("Skipped %s malformed rows in %s", skipped, path)
    return points


def read_excluded_names(path: str | Path) -> set[str]:
    """Read excluded settlement names from the second sheet, if there is one."""
    wb = _open_workbook(path)
    try:
        if len(wb.worksheets) < 2:
            return set()
        ws = wb.worksheets[1]
        names: set[str] = set()
        for row in ws.iter_rows(min_row=2, values_only=True):
            if not row or row[0] is None:
                continue
            name = str(row[0]).strip()
            if name:
                names.add(name)
        return names
    finally:
        wb.close()


def _result_row(result: PointResult, not_available_marker: str) -> list[Any]:
    row: list[Any] = [result.point.lon, result.point.lat]
    settlement = result.outcome.settlement
    if settlement is None:
        return row + [None] * 6 + [result.outcome.status_text]
    population: Any = settlement.population if settlement.population is not None else not_available_marker
    return row + [
        settlement.name,
        settlement.kind,
        settlement.coordinate.lon,
        settlement.coordinate.lat,
        round(settlement.distance_km, 2),
        population,
        "OK",
    ]


def _autofit_columns(ws: Any) -> None:
    widths: dict[int, int] = {}
    for row in ws.iter_rows():
        for cell in row:
            if cell.value is None:
                continue
            widths[cell.column] = max(widths.get(cell.column, 0), len(str(cell.value)))
    for column, width in widths.items():
        ws.column_dimensions[get_column_letter(column)].width = width + 2


def write_results(
    results: Sequence[PointResult] | Iterable[PointResult],
    output_dir: str | Path,
    *,
    now: datetime | None = None,
    not_available_marker: str = "N/A",
) -> Path:
    """Write `Results_<timestamp>.xlsx` under `output_dir` and return its path."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"Results_{stamp}.xlsx"

    wb = Workbook()
    ws = wb.active
    ws.title = "Results"
    ws.append(RESULT_HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for result in results:
        ws.append(_result_row(result, not_available_marker))
        if not result.outcome.ok:
            for cell in ws[ws.max_row]:
                cell.fill = FAILED_ROW_FILL

    _autofit_columns(ws)
    wb.save(out_path)
    logger.info("Results saved: %s", out_path)
    return out_path
