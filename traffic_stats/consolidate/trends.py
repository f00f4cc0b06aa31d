"""
Time-series aggregation of the record set into per-period, per-airport vectors.
"""

import polars as pl

from .identity import month_index_expr

METRIC_COLUMNS = {
    'pax': 'pax_total',
    'cargo': 'cargo_total',
    'atm': 'atm_total',
}


def airport_names(records):
    """Sorted distinct airport names present in the record set."""
    if records.is_empty():
        return []
    return sorted(name for name in records['airport_name'].unique().to_list() if name is not None)


def aggregate_trends(records):
    """
    Pivot records into one row per reporting period.

    Periods are grouped by the month label as written plus the year, so two
    spellings of one calendar month stay separate rows sharing a sort_key. When
    an airport has several records in one period the last one wins.

    Args:
        records: DataFrame with RECORD_SCHEMA columns

    Returns:
        pl.DataFrame: Columns period, sort_key, then pax_/cargo_/atm_<airport>
        for every airport, ordered by sort_key ascending
    """
    if records.is_empty():
        return pl.DataFrame(schema={'period': pl.Utf8, 'sort_key': pl.Int64})

    airports = airport_names(records)

    periods = records.with_columns(
        [
            pl.concat_str([pl.col('month').fill_null(''), pl.col('year').cast(pl.Utf8).fill_null('')], separator=' ')
            .alias('period'),
            (pl.col('year').fill_null(0) * 100 + month_index_expr('month')).alias('sort_key'),
        ]
    )

    aggregations = []
    for airport in airports:
        is_airport = pl.col('airport_name') == airport
        for prefix, column in METRIC_COLUMNS.items():
            aggregations.append(pl.col(column).filter(is_airport).last().alias(f'{prefix}_{airport}'))

    return (
        periods.group_by(['period', 'sort_key'], maintain_order=True)
        .agg(aggregations)
        .sort('sort_key', maintain_order=True)
    )


def to_period_vectors(trends):
    """
    Plain-dict view of aggregate_trends output.

    Returns:
        list: One dict per period with 'period', 'sort_key' and a 'metrics'
        mapping of airport -> {'pax', 'cargo', 'atm'}
    """
    vectors = []
    prefixes = tuple(f'{prefix}_' for prefix in METRIC_COLUMNS)
    for row in trends.iter_rows(named=True):
        metrics = {}
        for column, value in row.items():
            if not column.startswith(prefixes):
                continue
            prefix, airport = column.split('_', 1)
            metrics.setdefault(airport, {})[prefix] = value
        vectors.append({'period': row['period'], 'sort_key': row['sort_key'], 'metrics': metrics})
    return vectors
