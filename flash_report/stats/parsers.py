"""Metrics CSV ingestion."""
from __future__ import annotations

import csv
import logging
import math
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from ..config.schema import ColumnRef, MetricColumns
from ..models.core import LUMINANCE, RED, MetricSample, Timestamp

logger = logging.getLogger(__name__)


class MetricsFormatError(ValueError):
    """Raised when the metrics file does not match the expected layout."""


def iter_metric_samples(
    path: Path,
    columns: MetricColumns = MetricColumns(),
) -> Iterator[MetricSample]:
    """Stream samples from a metrics CSV in file order.

    The header is resolved before the first sample is produced, so a layout
    problem surfaces before any detection work happens.
    """

    with path.open('r', encoding='utf-8', errors='replace', newline='') as handle:
        reader = csv.reader(handle)
        header = next(reader, None)
        if header is None:
            logger.warning('Metrics file %s is empty', path.name)
            return
        header = [name.strip() for name in header]
        ts_col = _resolve_column(header, columns.timestamp, role='timestamp')
        metric_cols = {
            metric: _resolve_column(header, ref, role=metric)
            for metric, ref in metric_column_refs(columns).items()
        }
        logger.debug(
            'Resolved metric columns in %s: timestamp=%s %s',
            path.name,
            header[ts_col],
            ', '.join(f'{metric}={header[idx]}' for metric, idx in metric_cols.items()),
        )
        previous: Optional[Timestamp] = None
        for row in reader:
            if not row or not any(cell.strip() for cell in row):
                continue
            sample = _row_to_sample(row, ts_col, metric_cols, line=reader.line_num)
            if previous is not None and sample.timestamp < previous:
                raise MetricsFormatError(
                    f'Line {reader.line_num}: timestamp {sample.timestamp} precedes previous {previous}'
                )
            previous = sample.timestamp
            yield sample


def load_metric_samples(path: Path, columns: MetricColumns = MetricColumns()) -> List[MetricSample]:
    """Materialize every sample from a metrics CSV."""

    return list(iter_metric_samples(path, columns))


def metric_column_refs(columns: MetricColumns) -> Dict[str, ColumnRef]:
    return {LUMINANCE: columns.luminance, RED: columns.red}


def _resolve_column(header: Sequence[str], ref: ColumnRef, *, role: str) -> int:
    if isinstance(ref, int):
        if ref < 0 or ref >= len(header):
            raise MetricsFormatError(
                f'Column position {ref} for {role} is out of range ({len(header)} columns)'
            )
        return ref
    try:
        return header.index(ref)
    except ValueError:
        raise MetricsFormatError(
            f"Column '{ref}' for {role} not found. Available: {', '.join(header)}"
        ) from None


def _row_to_sample(
    row: Sequence[str],
    ts_col: int,
    metric_cols: Dict[str, int],
    *,
    line: int,
) -> MetricSample:
    try:
        timestamp = Timestamp.parse(row[ts_col])
    except IndexError:
        raise MetricsFormatError(f'Line {line}: missing timestamp column') from None
    except ValueError as exc:
        raise MetricsFormatError(f'Line {line}: {exc}') from exc

    values: Dict[str, float] = {}
    for metric, idx in metric_cols.items():
        try:
            raw = row[idx]
        except IndexError:
            raise MetricsFormatError(f'Line {line}: missing {metric} column') from None
        try:
            value = float(raw)
        except ValueError as exc:
            raise MetricsFormatError(
                f"Line {line}: {metric} value '{raw}' is not numeric"
            ) from exc
        if math.isnan(value):
            raise MetricsFormatError(f"Line {line}: {metric} value is NaN")
        values[metric] = value
    return MetricSample(timestamp=timestamp, values=values)
