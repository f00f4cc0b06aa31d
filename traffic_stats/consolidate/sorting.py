"""
Multi-key sort over the consolidated record set.

Each SortKey maps to a fixed list of typed projection expressions; sorting is
stable and returns a new DataFrame.
"""

from enum import Enum

import polars as pl

from .identity import month_index_expr


class SortKey(str, Enum):
    YEAR = 'year'
    MONTH = 'month'
    AIRPORT_NAME = 'airport_name'
    TOTAL_PAX = 'total_pax'
    PAX_YOY = 'pax_yoy'
    DOM_PAX = 'dom_pax'
    INTL_PAX = 'intl_pax'
    TOTAL_CARGO = 'total_cargo'
    CARGO_YOY = 'cargo_yoy'
    DOM_CARGO = 'dom_cargo'
    INTL_CARGO = 'intl_cargo'
    TOTAL_ATM = 'total_atm'
    ATM_YOY = 'atm_yoy'
    DOM_ATM = 'dom_atm'
    INTL_ATM = 'intl_atm'
    DOM_PAX_ATM = 'dom_pax_atm'
    DOM_CARGO_ATM = 'dom_cargo_atm'
    INTL_PAX_ATM = 'intl_pax_atm'
    INTL_CARGO_ATM = 'intl_cargo_atm'


class SortDirection(str, Enum):
    ASC = 'asc'
    DESC = 'desc'


def _text(column):
    return pl.col(column).cast(pl.Utf8).fill_null('').str.to_lowercase()


def _number(column):
    return pl.col(column).cast(pl.Float64).fill_null(0.0)


SORT_PROJECTIONS = {
    SortKey.YEAR: lambda: [pl.col('year').fill_null(0)],
    # Month names only order within a year
    SortKey.MONTH: lambda: [pl.col('year').fill_null(0), month_index_expr('month')],
    SortKey.AIRPORT_NAME: lambda: [_text('airport_name')],
    SortKey.TOTAL_PAX: lambda: [_number('pax_total')],
    SortKey.PAX_YOY: lambda: [_number('pax_growth_pct')],
    SortKey.DOM_PAX: lambda: [_number('pax_domestic')],
    SortKey.INTL_PAX: lambda: [_number('pax_international')],
    SortKey.TOTAL_CARGO: lambda: [_number('cargo_total')],
    SortKey.CARGO_YOY: lambda: [_number('cargo_growth_pct')],
    SortKey.DOM_CARGO: lambda: [_number('cargo_dom_total')],
    SortKey.INTL_CARGO: lambda: [_number('cargo_intl_total')],
    SortKey.TOTAL_ATM: lambda: [_number('atm_total')],
    SortKey.ATM_YOY: lambda: [_number('atm_growth_pct')],
    SortKey.DOM_ATM: lambda: [_number('atm_dom_total')],
    SortKey.INTL_ATM: lambda: [_number('atm_intl_total')],
    SortKey.DOM_PAX_ATM: lambda: [_number('atm_dom_pax')],
    SortKey.DOM_CARGO_ATM: lambda: [_number('atm_dom_cargo')],
    SortKey.INTL_PAX_ATM: lambda: [_number('atm_intl_pax')],
    SortKey.INTL_CARGO_ATM: lambda: [_number('atm_intl_cargo')],
}


def _resolve_key(key):
    if isinstance(key, SortKey):
        return key
    try:
        return SortKey(key)
    except ValueError:
        return None


def sort_records(records, key, direction=SortDirection.ASC):
    """
    Sort records by one of the SortKey projections.

    Args:
        records: DataFrame with RECORD_SCHEMA columns (not modified)
        key: SortKey member or its string value
        direction: 'asc' or 'desc'

    Returns:
        pl.DataFrame: New frame in sorted order; equal keys keep their input order,
        unknown keys return an unchanged copy
    """
    resolved = _resolve_key(key)
    if resolved is None or records.height < 2:
        return records.clone()

    descending = SortDirection(direction) == SortDirection.DESC
    projections = SORT_PROJECTIONS[resolved]()
    sort_columns = [f'__sort_{i}' for i in range(len(projections))]

    return (
        records.with_columns([expr.alias(name) for expr, name in zip(projections, sort_columns)])
        .sort(sort_columns, descending=descending, maintain_order=True)
        .drop(sort_columns)
    )


def toggle_direction(current_key, current_direction, requested_key):
    """
    Direction for a sort request: ascending, unless the same key is already ascending.

    Returns:
        SortDirection: Direction to apply for requested_key
    """
    if _resolve_key(current_key) == _resolve_key(requested_key) and SortDirection(current_direction) == SortDirection.ASC:
        return SortDirection.DESC
    return SortDirection.ASC
