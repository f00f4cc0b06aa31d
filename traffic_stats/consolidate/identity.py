"""
Identity key utilities for deduplication operations.
Provides month resolution and the (airport, month, year) identity key, both as
plain functions and as Polars expressions for frame-wide use.
"""

import re

import polars as pl

MONTHS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

# ASCII unit separator, stripped from airport names before joining
KEY_SEPARATOR = '\x1f'

_PERIOD_PATTERN = re.compile(r'([A-Za-z]+)[\s\-/.,\']*(\d{2,4})')


def _find_month(label):
    if not isinstance(label, str):
        return -1
    lowered = label.strip().lower()
    if not lowered:
        return -1
    for idx, name in enumerate(MONTHS):
        if lowered.startswith(name.lower()):
            return idx
    return -1


def month_index(label):
    """
    Resolve a free-form month label to an index in [0, 11].

    Matches case-insensitively on the three-letter prefix ("Sep", "sept",
    "September" all resolve to 8). Unrecognized labels fall back to 0.

    Args:
        label: Month label as extracted from the report

    Returns:
        int: Month index, 0 when the label is not recognized
    """
    found = _find_month(label)
    return 0 if found == -1 else found


def is_known_month(label):
    return _find_month(label) != -1


def normalize_airport(airport_name):
    if airport_name is None:
        return ''
    return str(airport_name).replace(KEY_SEPARATOR, '').strip().lower()


def identity_key(airport_name, month, year):
    """
    Build the canonical identity key for one airport/month/year observation.

    Args:
        airport_name: Airport name in any casing or padding
        month: Free-form month label
        year: Report year (int or numeric string)

    Returns:
        str: Lower-cased key; equal for records describing the same observation
    """
    year_part = '' if year is None else str(year).strip().lower()
    return KEY_SEPARATOR.join([normalize_airport(airport_name), str(month_index(month)), year_part])


def month_index_expr(column='month'):
    """
    Create a Polars expression resolving a month label column to its index.

    Args:
        column: Name of the month label column

    Returns:
        pl.Expr: Int64 expression, 0 for unrecognized or null labels
    """
    label = pl.col(column).cast(pl.Utf8).fill_null('').str.strip_chars().str.to_lowercase()
    expr = pl.lit(0, dtype=pl.Int64)
    # Checked in reverse so the earliest month wins, mirroring month_index
    for idx in reversed(range(len(MONTHS))):
        expr = pl.when(label.str.starts_with(MONTHS[idx].lower())).then(pl.lit(idx, dtype=pl.Int64)).otherwise(expr)
    return expr


def known_month_expr(column='month'):
    """Polars expression that is True where the month label resolves to a real month."""
    label = pl.col(column).cast(pl.Utf8).fill_null('').str.strip_chars().str.to_lowercase()
    return pl.any_horizontal([label.str.starts_with(name.lower()) for name in MONTHS])


def identity_key_expr():
    """
    Create a Polars expression for the identity key of each record row.

    Returns:
        pl.Expr: Utf8 expression aliased as 'identity_key'
    """
    airport = (
        pl.col('airport_name').cast(pl.Utf8).fill_null('').str.replace_all(KEY_SEPARATOR, '', literal=True)
        .str.strip_chars().str.to_lowercase()
    )
    year = pl.col('year').cast(pl.Utf8).fill_null('')
    return pl.concat_str([airport, month_index_expr('month').cast(pl.Utf8), year], separator=KEY_SEPARATOR).alias(
        'identity_key'
    )


def parse_time_period(text):
    """
    Split a period label such as 'Oct 2023' or 'September-24' into (month, year).

    Args:
        text: Period label

    Returns:
        tuple: (month_label, year) or (None, None) when no period is found
    """
    if not isinstance(text, str):
        return None, None
    for match in _PERIOD_PATTERN.finditer(text):
        month_label, year_text = match.group(1), match.group(2)
        if not is_known_month(month_label) or len(year_text) == 3:
            continue
        year = int(year_text)
        if len(year_text) == 2:
            year += 2000
        return MONTHS[month_index(month_label)], year
    return None, None
