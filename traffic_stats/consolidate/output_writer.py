"""
Output writer module for exporting the consolidated record set.
"""

from pathlib import Path

import polars as pl

# ----------------------------
# Constants for output formats
# ----------------------------
FORMAT_EXTENSIONS = {'csv': 'csv', 'xlsx': 'xlsx', 'parquet': 'parquet'}

FORMAT_WRITERS = {
    'csv': lambda df, path: df.write_csv(path, quote_style='always'),
    'xlsx': lambda df, path: df.write_excel(path, worksheet='Airport Traffic Data'),
    'parquet': lambda df, path: df.write_parquet(path, compression='snappy', statistics=True),
}

# Export header -> record column
EXPORT_COLUMNS = {
    'Year': 'year',
    'Month': 'month',
    'Airport': 'airport_name',
    'Total Pax': 'pax_total',
    'Pax YoY%': 'pax_growth_pct',
    'DOM Pax': 'pax_domestic',
    'INTL Pax': 'pax_international',
    'Total Cargo': 'cargo_total',
    'Cargo YoY%': 'cargo_growth_pct',
    'DOM Cargo': 'cargo_dom_total',
    'INTL Cargo': 'cargo_intl_total',
    'Total ATM': 'atm_total',
    'ATM YoY%': 'atm_growth_pct',
    'DOM ATM': 'atm_dom_total',
    'INTL ATM': 'atm_intl_total',
    'DOM Pax ATM': 'atm_dom_pax',
    'DOM Cargo ATM': 'atm_dom_cargo',
    'INTL Pax ATM': 'atm_intl_pax',
    'INTL Cargo ATM': 'atm_intl_cargo',
}


def build_export_frame(records):
    """
    Flatten records into export rows with human-readable column headers.

    Args:
        records: DataFrame with RECORD_SCHEMA columns

    Returns:
        pl.DataFrame: One row per record, columns named as EXPORT_COLUMNS keys
    """
    return records.select([pl.col(column).alias(header) for header, column in EXPORT_COLUMNS.items()])


def export_records(records, export_name, output_dir, logger, output_format='xlsx'):
    """
    Write the export artifact '{export_name}_Master_Export.{ext}'.

    Args:
        records: DataFrame with RECORD_SCHEMA columns (full set or a subset)
        export_name: Requested output name
        output_dir: Directory to write into (created if missing)
        logger: Logger instance
        output_format: 'xlsx', 'csv' or 'parquet'

    Returns:
        Path: Path of the written file
    """
    output_format = output_format.lower()
    if output_format not in FORMAT_EXTENSIONS:
        logger.warning(f"Unknown format '{output_format}', defaulting to xlsx")
        output_format = 'xlsx'

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    file_path = output_dir / f'{export_name}_Master_Export.{FORMAT_EXTENSIONS[output_format]}'

    export_df = build_export_frame(records)
    FORMAT_WRITERS[output_format](export_df, file_path)
    logger.info(f'Exported {export_df.height:,} record(s) to {file_path}')
    return file_path
