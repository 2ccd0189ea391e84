"""Value types shared by the spill map pipeline stages."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pandas as pd

PARSE_FAILURE = 'parse_failure'
MALFORMED_ROW = 'malformed_row'
CLASSIFICATION_FALLBACK = 'classification_fallback'
DEGENERATE_STATISTICS = 'degenerate_statistics'

NUMERIC_FIELDS = ['spills_duration', 'spills_count', 'monitoring', 'lat', 'lng']


class SpillDataError(ValueError):
    """Raised when the input cannot be read as a spill return at all."""


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    row: Optional[int]
    field: Optional[str]
    value: Optional[str]
    message: str

    def as_dict(self) -> Dict[str, object]:
        return {
            'kind': self.kind,
            'row': self.row,
            'field': self.field,
            'value': self.value,
            'message': self.message,
        }


@dataclass(frozen=True)
class SpillRecord:
    """One storm overflow return, coerced once at load time."""

    site_name: str
    asset_type: str
    receiving_water: str
    spills_duration: float
    spills_count: int
    monitoring: float
    lat: float
    lng: float
    row: Optional[int] = None
    extra: Tuple[Tuple[str, str], ...] = ()

    @property
    def has_location(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lng)

    def extra_field(self, header: str, default: str = '') -> str:
        for name, value in self.extra:
            if name == header:
                return value
        return default


@dataclass(frozen=True)
class Dataset:
    """The loaded records plus everything that went wrong reading them."""

    records: Tuple[SpillRecord, ...]
    diagnostics: Tuple[Diagnostic, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {name: getattr(record, name) for name in NUMERIC_FIELDS}
            for record in self.records
        ]
        return pd.DataFrame(rows, columns=NUMERIC_FIELDS, dtype=float)

    def diagnostics_of(self, kind: str) -> List[Diagnostic]:
        return [diag for diag in self.diagnostics if diag.kind == kind]
