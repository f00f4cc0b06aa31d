"""
Count validation utilities for verifying that the provenance ledger matches the
live record set.
"""

from traffic_stats.consolidate.merger import count_by_source, find_duplicate_keys
from traffic_stats.consolidate.records import MANUAL_SOURCE


def validate_ledger_counts(dataset, logger):
    """
    Check every FileMeta record_count against the live records of that file.

    Args:
        dataset: TrafficDataset instance
        logger: Logger instance

    Returns:
        list: (file_name, ledger_count, live_count) tuples for mismatching files
    """
    live_counts = count_by_source(dataset.records)
    mismatches = []

    for entry in dataset.ledger.entries():
        live = live_counts.pop(entry['name'], 0)
        if live != entry['record_count']:
            mismatches.append((entry['name'], entry['record_count'], live))

    # Records attributed to files the ledger does not know about
    for file_name, live in live_counts.items():
        if file_name == MANUAL_SOURCE:
            continue
        mismatches.append((file_name, 0, live))

    for file_name, ledger_count, live in mismatches:
        logger.warning(f'[FAIL] Count mismatch for {file_name}: ledger={ledger_count:,}, records={live:,}')
    return mismatches


def validate_identity_uniqueness(dataset, logger):
    """
    Check that no two live records share an identity key.

    Returns:
        list: Duplicated identity keys (empty when valid)
    """
    duplicates = find_duplicate_keys(dataset.records)
    if duplicates:
        logger.warning(f'[FAIL] {len(duplicates)} identity key(s) occur more than once')
    return duplicates


def run_post_processing_validation(dataset, logger):
    """
    Run validation after an ingestion run. Logs the outcome and never raises.

    Args:
        dataset: TrafficDataset instance
        logger: Logger instance

    Returns:
        bool: True when counts match and identity keys are unique
    """
    try:
        logger.info('Running post-processing validation')
        mismatches = validate_ledger_counts(dataset, logger)
        duplicates = validate_identity_uniqueness(dataset, logger)

        if not mismatches and not duplicates:
            logger.info(
                f'[PASS] Validation passed: {len(dataset):,} records across {len(dataset.ledger)} file(s)'
            )
            return True

        logger.warning('Validation failed - please investigate')
        return False

    except Exception as e:
        logger.error(f'Error running post-processing validation: {e}')
        return False
