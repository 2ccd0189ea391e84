"""Read a storm overflow EDM return into a typed, immutable dataset."""
from __future__ import annotations

import csv
import io
import logging
import math
from collections import Counter
from pathlib import Path
from typing import Dict, List, Mapping, Tuple, Union

import pandas as pd
import requests

from spillmap.models import (
    MALFORMED_ROW,
    PARSE_FAILURE,
    Dataset,
    Diagnostic,
    SpillDataError,
    SpillRecord,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_S = 30

# 2022 return layout
SOURCE_HEADERS = [
    'Water Company Name',
    'Site Name\n(EA Consents Database)',
    'Site Name\n(WaSC operational)\n[optional]',
    'EA Permit Reference\n(EA Consents Database)',
    'WaSC Supplementary Permit Ref.\n[optional]',
    'Activity Reference on Permit',
    'Storm Discharge Asset Type',
    'Outlet Discharge NGR\n(EA Consents Database)',
    'WFD Waterbody ID (Cycle 2)\n(discharge outlet)',
    'WFD Waterbody Catchment Name (Cycle 2)\n(discharge outlet)',
    'Receiving Water / Environment (common name)\n(EA Consents Database)',
    'Shellfish Water (only populate for storm overflow with a Shellfish Water EDM requirement)',
    'Bathing Water (only populate for storm overflow with a Bathing Water EDM requirement)',
    'Treatment Method\n(over & above Storm Tank settlement / screening)',
    'Initial EDM Commission Date',
    'Total Duration (hrs) all spills prior to processing through 12-24h count method',
    'Counted spills using 12-24h count method',
    'Long-term average spill count',
    'No. full years EDM data\n(years)',
    'EDM Operation -\n% of reporting period EDM operational',
    'EDM Operation -\nReporting % -\nPrimary Reason <90%',
    'EDM Operation -\nAction taken / planned -\nStatus & timeframe',
    'High Spill Frequency -\nOperational Review -\nPrimary Reason',
    'High Spill Frequency -\nAction taken / planned -\nStatus & timeframe',
    'High Spill Frequency -\nEnvironmental Enhancement -\nPlanning Position (Hydraulic capacity)',
    '',
    'Grid reference',
    'Latitude',
    'Longitude',
]
COLUMN_COUNT = len(SOURCE_HEADERS)

COLUMN_REMAP: Dict[int, str] = {
    1: 'site_name',
    6: 'asset_type',
    10: 'receiving_water',
    15: 'spills_duration',
    16: 'spills_count',
    19: 'monitoring',
    27: 'lat',
    28: 'lng',
}

ROW_COLUMN = '__row__'


def _parse_failure(row: int, field: str, raw: str, detail: str) -> Diagnostic:
    return Diagnostic(
        kind=PARSE_FAILURE,
        row=row,
        field=field,
        value=raw,
        message=f"{field} {raw!r} is not a number; {detail}",
    )


def _parse_float(raw: str) -> float:
    value = float(raw.strip())
    if not math.isfinite(value):
        raise ValueError(f"non-finite value {raw!r}")
    return value


def _coerce_float(raw: str, row: int, field: str, issues: List[Diagnostic]) -> float:
    try:
        return _parse_float(raw)
    except ValueError:
        issues.append(_parse_failure(row, field, raw, 'using NaN'))
        return float('nan')


def _coerce_count(raw: str, row: int, issues: List[Diagnostic]) -> int:
    try:
        count = int(_parse_float(raw))
    except ValueError:
        issues.append(_parse_failure(row, 'spills_count', raw, 'using 0'))
        return 0
    if count < 0:
        issues.append(
            Diagnostic(
                kind=PARSE_FAILURE,
                row=row,
                field='spills_count',
                value=raw,
                message=f"spills_count {raw!r} is negative; using 0",
            )
        )
        return 0
    return count


def coerce_row(fields: Mapping[str, str], row: int) -> Tuple[SpillRecord, List[Diagnostic]]:
    """Turn one remapped row of strings into a record.

    Never raises; each numeric field that does not parse is reported in the
    returned diagnostics and carries NaN (or 0 for the spill count).
    """
    issues: List[Diagnostic] = []
    semantic = set(COLUMN_REMAP.values())
    record = SpillRecord(
        site_name=fields.get('site_name', '').strip(),
        asset_type=fields.get('asset_type', '').strip(),
        receiving_water=fields.get('receiving_water', '').strip(),
        spills_duration=_coerce_float(fields.get('spills_duration', ''), row, 'spills_duration', issues),
        spills_count=_coerce_count(fields.get('spills_count', ''), row, issues),
        monitoring=_coerce_float(fields.get('monitoring', '').replace('%', ''), row, 'monitoring', issues),
        lat=_coerce_float(fields.get('lat', ''), row, 'lat', issues),
        lng=_coerce_float(fields.get('lng', ''), row, 'lng', issues),
        row=row,
        extra=tuple(
            (name, value)
            for name, value in fields.items()
            if name not in semantic and name != ROW_COLUMN
        ),
    )
    return record, issues


def _remapped_columns(header: List[str]) -> List[str]:
    # Positional names are claimed before any header text.
    taken = set(COLUMN_REMAP.values()) | {ROW_COLUMN}
    columns = []
    for idx, name in enumerate(header):
        if idx in COLUMN_REMAP:
            columns.append(COLUMN_REMAP[idx])
            continue
        if name in taken:
            name = f"{name}.{idx}"
        taken.add(name)
        columns.append(name)
    return columns


def _tokenize(text: str) -> Tuple[List[str], List[List[str]], List[Diagnostic]]:
    reader = csv.reader(io.StringIO(text), delimiter=',', quotechar='"')
    header = None
    rows: List[List[str]] = []
    issues: List[Diagnostic] = []
    for fields in reader:
        if not fields or fields == ['']:
            continue
        if header is None:
            header = fields
            if len(header) != COLUMN_COUNT:
                raise SpillDataError(
                    f"Expected a {COLUMN_COUNT}-column header, found {len(header)} columns"
                )
            continue
        if len(fields) != COLUMN_COUNT:
            issues.append(
                Diagnostic(
                    kind=MALFORMED_ROW,
                    row=reader.line_num,
                    field=None,
                    value=None,
                    message=f"expected {COLUMN_COUNT} fields, found {len(fields)}; row skipped",
                )
            )
            continue
        rows.append(fields + [reader.line_num])
    if header is None:
        raise SpillDataError('Input has no header row')
    return header, rows, issues


def _summarize(diagnostics: List[Diagnostic]) -> None:
    counts = Counter(diag.kind for diag in diagnostics)
    for kind, count in sorted(counts.items()):
        logger.warning('%d %s diagnostic(s) while reading input', count, kind)
    for diag in diagnostics:
        logger.debug('row %s: %s', diag.row, diag.message)


def parse_spill_csv(text: str) -> Dataset:
    """Parse the text of a return into a ``Dataset``.

    Rows with the wrong number of fields are skipped and reported; a bad or
    missing header raises ``SpillDataError``.
    """
    header, rows, issues = _tokenize(text)
    df = pd.DataFrame(rows, columns=_remapped_columns(header) + [ROW_COLUMN])
    records: List[SpillRecord] = []
    for fields in df.to_dict(orient='records'):
        record, row_issues = coerce_row(fields, int(fields[ROW_COLUMN]))
        records.append(record)
        issues.extend(row_issues)
    issues.sort(key=lambda diag: diag.row or 0)
    _summarize(issues)
    logger.info('Loaded %d spill records', len(records))
    return Dataset(records=tuple(records), diagnostics=tuple(issues))


def read_source_text(source: Union[str, Path]) -> str:
    source_text = str(source)
    if source_text.startswith(('http://', 'https://')):
        response = requests.get(source_text, timeout=REQUEST_TIMEOUT_S)
        response.raise_for_status()
        return response.text
    path = Path(source).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Missing source file: {path}")
    return path.read_text(encoding='utf-8-sig')


def load_spill_csv(source: Union[str, Path]) -> Dataset:
    return parse_spill_csv(read_source_text(source))
