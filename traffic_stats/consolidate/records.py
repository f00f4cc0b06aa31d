"""
Traffic record model.

A TrafficRecord is one row of a Polars DataFrame with RECORD_SCHEMA. Extraction
output arrives as nested dicts (passengers / cargo / atms) and is flattened here.
"""

import math

import polars as pl

from .identity import is_known_month, parse_time_period

MANUAL_SOURCE = 'Manual'

RECORD_SCHEMA = {
    'airport_name': pl.Utf8,
    'category': pl.Utf8,
    'month': pl.Utf8,
    'year': pl.Int64,
    'report_type': pl.Utf8,
    'pax_domestic': pl.Float64,
    'pax_international': pl.Float64,
    'pax_total': pl.Float64,
    'pax_previous_year': pl.Float64,
    'pax_previous_month': pl.Float64,
    'pax_growth_pct': pl.Float64,
    'cargo_dom_inbound': pl.Float64,
    'cargo_dom_outbound': pl.Float64,
    'cargo_dom_total': pl.Float64,
    'cargo_intl_inbound': pl.Float64,
    'cargo_intl_outbound': pl.Float64,
    'cargo_intl_total': pl.Float64,
    'cargo_total': pl.Float64,
    'cargo_previous_year': pl.Float64,
    'cargo_previous_month': pl.Float64,
    'cargo_growth_pct': pl.Float64,
    'atm_dom_pax': pl.Float64,
    'atm_dom_cargo': pl.Float64,
    'atm_dom_total': pl.Float64,
    'atm_intl_pax': pl.Float64,
    'atm_intl_cargo': pl.Float64,
    'atm_intl_total': pl.Float64,
    'atm_total': pl.Float64,
    'atm_previous_year': pl.Float64,
    'atm_previous_month': pl.Float64,
    'atm_growth_pct': pl.Float64,
    'source_file': pl.Utf8,
}

# column -> path into the nested extraction payload
NESTED_FIELD_PATHS = {
    'pax_domestic': ('passengers', 'domestic'),
    'pax_international': ('passengers', 'international'),
    'pax_total': ('passengers', 'total'),
    'pax_previous_year': ('passengers', 'previousYear'),
    'pax_previous_month': ('passengers', 'previousMonth'),
    'pax_growth_pct': ('passengers', 'growthPercentage'),
    'cargo_dom_inbound': ('cargo', 'domestic', 'inbound'),
    'cargo_dom_outbound': ('cargo', 'domestic', 'outbound'),
    'cargo_dom_total': ('cargo', 'domestic', 'total'),
    'cargo_intl_inbound': ('cargo', 'international', 'inbound'),
    'cargo_intl_outbound': ('cargo', 'international', 'outbound'),
    'cargo_intl_total': ('cargo', 'international', 'total'),
    'cargo_total': ('cargo', 'total'),
    'cargo_previous_year': ('cargo', 'previousYear'),
    'cargo_previous_month': ('cargo', 'previousMonth'),
    'cargo_growth_pct': ('cargo', 'growthPercentage'),
    'atm_dom_pax': ('atms', 'domestic', 'pax'),
    'atm_dom_cargo': ('atms', 'domestic', 'cargo'),
    'atm_dom_total': ('atms', 'domestic', 'total'),
    'atm_intl_pax': ('atms', 'international', 'pax'),
    'atm_intl_cargo': ('atms', 'international', 'cargo'),
    'atm_intl_total': ('atms', 'international', 'total'),
    'atm_total': ('atms', 'total'),
    'atm_previous_year': ('atms', 'previousYear'),
    'atm_previous_month': ('atms', 'previousMonth'),
    'atm_growth_pct': ('atms', 'growthPercentage'),
}

SCALAR_FIELDS = {
    'airport_name': 'airportName',
    'category': 'category',
    'month': 'month',
    'year': 'year',
    'report_type': 'reportType',
    'source_file': 'sourceFile',
}


def empty_records():
    return pl.DataFrame(schema=RECORD_SCHEMA)


def _as_number(value):
    if value is None or isinstance(value, bool):
        return None
    raw = value if isinstance(value, (int, float)) else str(value).replace(',', '').replace('%', '').strip()
    try:
        number = float(raw)
    except (ValueError, OverflowError):
        return None
    # NaN and Infinity are valid JSON literals for json.loads
    return number if math.isfinite(number) else None


def _as_year(value):
    number = _as_number(value)
    return None if number is None else int(number)


def _dig(payload, path):
    node = payload
    for part in path:
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def flatten_record(candidate):
    """
    Flatten one nested extraction candidate into a RECORD_SCHEMA row.

    Month and year missing from the candidate are recovered from its
    'timePeriod' label when possible. Unknown keys are ignored.

    Args:
        candidate: Dict in the nested TrafficRecord shape

    Returns:
        dict: Flat row keyed by RECORD_SCHEMA columns
    """
    row = {column: candidate.get(field) for column, field in SCALAR_FIELDS.items()}
    for column, path in NESTED_FIELD_PATHS.items():
        row[column] = _as_number(_dig(candidate, path))

    row['year'] = _as_year(row['year'])
    if not is_known_month(row['month']) or row['year'] is None:
        period_month, period_year = parse_time_period(candidate.get('timePeriod'))
        if not is_known_month(row['month']) and period_month is not None:
            row['month'] = period_month
        if row['year'] is None:
            row['year'] = period_year

    for column in ('airport_name', 'category', 'month', 'report_type', 'source_file'):
        if row[column] is not None:
            row[column] = str(row[column]).strip()
    return row


def records_from_candidates(candidates):
    """
    Build a RECORD_SCHEMA DataFrame from nested extraction candidates.

    Args:
        candidates: Iterable of nested candidate dicts

    Returns:
        pl.DataFrame: One row per candidate, in input order
    """
    rows = [flatten_record(candidate) for candidate in candidates if isinstance(candidate, dict)]
    if not rows:
        return empty_records()
    return pl.DataFrame(rows, schema=RECORD_SCHEMA)


def conform_to_schema(df):
    """Add missing RECORD_SCHEMA columns as nulls, cast, and order columns."""
    missing = [pl.lit(None, dtype=dtype).alias(name) for name, dtype in RECORD_SCHEMA.items() if name not in df.columns]
    if missing:
        df = df.with_columns(missing)
    return df.select([pl.col(name).cast(dtype) for name, dtype in RECORD_SCHEMA.items()])

