import argparse
import json
import os
import sys

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm
from traffic_stats.consolidate.blob_store import SqliteBlobStore
from traffic_stats.consolidate.dataset import TrafficDataset
from traffic_stats.consolidate.output_writer import export_records
from traffic_stats.consolidate.sorting import SortDirection, SortKey, sort_records
from traffic_stats.consolidate.trends import aggregate_trends
from traffic_stats.errors import IngestionAbortedError
from traffic_stats.extraction.document_text import discover_upload_files
from traffic_stats.extraction.field_extraction import build_extractor
from traffic_stats.file_utils import (
    archive_processed_files,
    backup_store,
    cleanup_old_backups,
    get_run_logger,
    setup_orchestrator_logger,
)
from traffic_stats.ingest_pipeline import run_ingestion
from traffic_stats.validation_utils import run_post_processing_validation

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# ANSI color codes
COLOR_BLUE = '\033[94m'  # bright blue
COLOR_RESET = '\033[0m'


def load_config(config_path):
    with open(config_path) as f:
        return json.load(f)


def build_parser():
    parser = argparse.ArgumentParser(description='Consolidate airport traffic statistics from monthly reports.')
    parser.add_argument(
        '--config', default=os.path.join(BASE_DIR, 'config', 'consolidator_config.json'), help='Path to config JSON.'
    )
    sub = parser.add_subparsers(dest='command', required=True)

    ingest = sub.add_parser('ingest', help='Extract and merge every report in the upload directory.')
    ingest.add_argument('--upload-dir', help='Directory with PDF/XLSX/XLS/CSV reports. Defaults to config.')
    ingest.add_argument('--policy', choices=['record', 'both'], help='Duplicate detection policy. Defaults to config.')
    ingest.add_argument('--category', choices=['Passengers', 'Cargo', 'ATMs'], help='Metric family hint for extraction.')
    ingest.add_argument('--no-archive', action='store_true', help='Leave processed files in the upload directory.')

    delete = sub.add_parser('delete-file', help='Remove a processed file and every record it produced.')
    delete.add_argument('name', help='File name as listed by the files command.')

    sub.add_parser('wipe', help='Remove all records and provenance entries.')
    sub.add_parser('files', help='List processed files.')

    listing = sub.add_parser('list', help='Print the consolidated records.')
    listing.add_argument('--sort-key', default=SortKey.YEAR.value, choices=[k.value for k in SortKey])
    listing.add_argument('--direction', default=SortDirection.DESC.value, choices=[d.value for d in SortDirection])

    sub.add_parser('trends', help='Print per-period, per-airport totals.')

    export = sub.add_parser('export', help='Write the consolidated records to a spreadsheet.')
    export.add_argument('name', help='Export name; written as <name>_Master_Export.<ext>.')
    export.add_argument('--format', choices=['xlsx', 'csv', 'parquet'], help='Output format. Defaults to config.')
    return parser


def cmd_ingest(args, global_config, dataset, store_path, logger):
    function_dirs = global_config['function_dirs']
    upload_dir = args.upload_dir or os.path.join(BASE_DIR, function_dirs['upload_files'])
    policy = args.policy or global_config.get('dedup_policy', 'both')
    extraction_config = global_config.get('extraction', {})
    category = args.category or extraction_config.get('category')

    files = discover_upload_files(upload_dir, logger)
    if not files:
        tqdm.write(f'[INFO] No files to process in {upload_dir}')
        return 0

    backup_dir = os.path.join(os.path.dirname(store_path), 'backups')
    backup_store(store_path, backup_dir, logger=logger)
    cleanup_old_backups(
        backup_dir, os.path.basename(store_path), retention_days=global_config.get('retention_days', 5), logger=logger
    )

    run_logger = get_run_logger(BASE_DIR, 'ingest')
    extractor = build_extractor(extraction_config, run_logger)
    tqdm.write(f'[INFO] Processing {len(files)} file(s) with policy={policy}')

    try:
        summary = run_ingestion(
            dataset,
            files,
            extractor,
            run_logger,
            policy=policy,
            strict_months=global_config.get('strict_months', False),
            category=category,
        )
    except IngestionAbortedError as e:
        logger.error(f'Ingestion failed: {e}')
        tqdm.write(f'[ERROR] {e}')
        run_post_processing_validation(dataset, logger)
        return 1

    tqdm.write(f'[OK] {summary.message()}')
    logger.debug(f'Ingestion summary: {summary.as_dict()}')

    if run_post_processing_validation(dataset, logger):
        tqdm.write('[OK] Validation passed')
    else:
        tqdm.write('[WARNING] Validation failed')

    if not args.no_archive:
        archive_processed_files(upload_dir, [f.name for f in files], logger)
    return 0


def cmd_list(args, dataset):
    ordered = sort_records(dataset.records, args.sort_key, args.direction)
    columns = ['year', 'month', 'airport_name', 'pax_total', 'cargo_total', 'atm_total', 'source_file']
    print(ordered.select(columns))
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)

    logger = setup_orchestrator_logger(BASE_DIR)
    logger.info('Traffic consolidation log started')

    config = load_config(args.config)
    global_config = config['global']
    function_dirs = global_config['function_dirs']

    db_files_dir = os.path.join(BASE_DIR, function_dirs['db_files'])
    os.makedirs(db_files_dir, exist_ok=True)
    store_path = os.path.join(db_files_dir, global_config.get('store_file', 'traffic_store.db'))

    store = SqliteBlobStore(store_path)
    dataset = TrafficDataset.load(store, logger)
    tqdm.write(f'{COLOR_BLUE}=== {len(dataset):,} records from {len(dataset.ledger)} file(s) ==={COLOR_RESET}')

    with logging_redirect_tqdm():
        if args.command == 'ingest':
            return cmd_ingest(args, global_config, dataset, store_path, logger)

        if args.command == 'delete-file':
            removed = dataset.delete_file(args.name)
            tqdm.write(f'[OK] Removed {removed} record(s) from {args.name}')
            return 0

        if args.command == 'wipe':
            dataset.wipe()
            tqdm.write('[OK] Purged all master records')
            return 0

        if args.command == 'files':
            for entry in dataset.ledger.entries():
                print(f'{entry["name"]}\t{entry["report_type"]}\t{entry["record_count"]}\t{entry["processed_at"]}')
            return 0

        if args.command == 'list':
            return cmd_list(args, dataset)

        if args.command == 'trends':
            print(aggregate_trends(dataset.records))
            return 0

        if args.command == 'export':
            output_dir = os.path.join(BASE_DIR, function_dirs['output_files'])
            output_format = args.format or global_config.get('output_format', 'xlsx')
            export_records(dataset.records, args.name, output_dir, logger, output_format=output_format)
            return 0

    return 0


if __name__ == '__main__':
    sys.exit(main())
