#!/usr/bin/env python3
"""Generate the storm overflow spill map (HTML) from an EDM return CSV."""
from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd
import requests

from spillmap.compose import MapParameters, build_spill_map
from spillmap.config import ConfigError, SpillMapConfig, config_from_env
from spillmap.ingest import load_spill_csv
from spillmap.logging_config import setup_logging
from spillmap.models import Diagnostic, SpillDataError

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path('spill_map.html')
DIAGNOSTIC_COLUMNS = ['kind', 'row', 'field', 'value', 'message']
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _display_path(path: Path) -> Path:
    try:
        return path.resolve().relative_to(Path.cwd())
    except ValueError:
        return path


def _write_diagnostics_csv(diagnostics: List[Diagnostic], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame([diag.as_dict() for diag in diagnostics], columns=DIAGNOSTIC_COLUMNS)
    df.to_csv(path, index=False)
    print(f"✔️  Wrote {_display_path(path)}")


def _write_payload_json(params: MapParameters, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(params.to_payload(), indent=2), encoding='utf-8')
    print(f"✔️  Wrote {_display_path(path)}")


def _write_map_html(spill_map, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    spill_map.save(str(path))
    print(f"✔️  Wrote {_display_path(path)}")


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Render storm overflow spill returns as an interactive map.')
    parser.add_argument('source', help='Path or http(s) URL of the EDM return CSV')
    parser.add_argument('--output', type=Path, default=DEFAULT_OUTPUT, help='HTML file to write')
    parser.add_argument('--diagnostics', type=Path, help='Optional CSV of rows and fields that needed attention')
    parser.add_argument('--payload', type=Path, help='Optional JSON dump of the marker and heat parameters')
    parser.add_argument('--zoom', type=int, help='Initial map zoom')
    parser.add_argument('--size-range', type=float, nargs=2, metavar=('MIN', 'MAX'), help='Marker size range in px')
    parser.add_argument('--opacity', type=float, help='Marker fill opacity')
    parser.add_argument('--heat-radius', type=float, help='Heat layer point radius in px')
    parser.add_argument('--heat-blur', type=float, help='Heat layer blur in px')
    parser.add_argument(
        '--log-level',
        default='INFO',
        type=str.upper,
        choices=LOG_LEVELS,
        help='Logging level (default: INFO)',
    )
    parser.add_argument('--log-file', type=Path, help='Also log to this file')
    return parser.parse_args(argv)


def _resolve_config(args: argparse.Namespace) -> SpillMapConfig:
    config = config_from_env()
    overrides = {
        'zoom': args.zoom,
        'size_range': tuple(args.size_range) if args.size_range else None,
        'opacity': args.opacity,
        'heat_radius': args.heat_radius,
        'heat_blur': args.heat_blur,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return dataclasses.replace(config, **overrides).validate()


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    try:
        config = _resolve_config(args)
        dataset = load_spill_csv(args.source)
        spill_map, params = build_spill_map(dataset, config)
    except (SpillDataError, ConfigError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except requests.RequestException as exc:
        print(f"Error: could not fetch {args.source}: {exc}", file=sys.stderr)
        return 1
    logger.info(
        'Placed %d markers and %d heat points around %.4f, %.4f',
        len(params.markers),
        len(params.heat.points),
        *params.view.center,
    )
    _write_map_html(spill_map, args.output)
    if args.diagnostics:
        _write_diagnostics_csv(list(dataset.diagnostics) + params.diagnostics, args.diagnostics)
    if args.payload:
        _write_payload_json(params, args.payload)
    return 0


if __name__ == '__main__':
    sys.exit(main())
