"""
Ingestion Pipeline - sequential, fail-fast consolidation of uploaded reports

Each file is handled strictly one at a time, in file-name order:
- File-name fast path: skip documents already in the provenance ledger
- Document text: PDF / spreadsheet to plain text
- Field extraction: text to candidate records (retried on transient failures)
- Record dedup: drop candidates whose identity key is already stored or repeated
- Commit: append accepted records and register the file's FileMeta, then persist
"""

import sys
import time
from pathlib import Path

from tqdm import tqdm

from traffic_stats.consolidate.merger import DedupPolicy, merge_candidates, seed_identity_keys, should_skip_file
from traffic_stats.errors import IngestionAbortedError
from traffic_stats.extraction.document_text import extract_text

# Color constants for progress display
COLOR_GREEN = '\033[92m'  # bright green
COLOR_YELLOW = '\033[93m'  # yellow
COLOR_RESET = '\033[0m'

OUTCOME_IMPORTED = 'imported'
OUTCOME_ALL_DUPLICATES = 'all_duplicates'
OUTCOME_NO_DATA = 'no_data'


class IngestionSummary:
    """Counters reported once at the end of every ingestion run."""

    def __init__(self):
        self.accepted_records = 0
        self.skipped_records = 0
        self.skipped_files = 0
        self.rejected_records = 0
        self.files_processed = []
        self.records_by_file = {}

    @property
    def outcome(self):
        if self.accepted_records > 0:
            return OUTCOME_IMPORTED
        if self.skipped_records > 0 or self.skipped_files > 0:
            return OUTCOME_ALL_DUPLICATES
        return OUTCOME_NO_DATA

    def message(self):
        if self.outcome == OUTCOME_IMPORTED:
            msg = f'Successfully imported {self.accepted_records} new records.'
            if self.skipped_records:
                msg += f' (Skipped {self.skipped_records} duplicates)'
        elif self.outcome == OUTCOME_ALL_DUPLICATES:
            msg = (
                f'All {self.skipped_records} data points and {self.skipped_files} file(s) were already present. '
                'No new records added.'
            )
        else:
            msg = 'No records were found in the uploaded files.'
        if self.rejected_records:
            msg += f' Rejected {self.rejected_records} record(s) with unrecognized months.'
        return msg

    def as_dict(self):
        return {
            'outcome': self.outcome,
            'accepted_records': self.accepted_records,
            'skipped_records': self.skipped_records,
            'skipped_files': self.skipped_files,
            'rejected_records': self.rejected_records,
            'files_processed': list(self.files_processed),
            'records_by_file': dict(self.records_by_file),
        }


def run_ingestion(
    dataset,
    files,
    extractor,
    logger,
    policy=DedupPolicy.BOTH,
    strict_months=False,
    category=None,
    text_reader=extract_text,
):
    """
    Ingest uploaded report files into the dataset.

    Files are processed in file-name order. Each file is committed as soon as it
    is merged, so files before a failure keep their records even though the run
    as a whole fails.

    Args:
        dataset: TrafficDataset (owned by this run until it returns)
        files: Iterable of file paths
        extractor: Object with extract(text, category=None) -> list of candidate dicts
        logger: Logger instance
        policy: DedupPolicy value
        strict_months: Reject candidates with unrecognized month labels
        category: Optional metric-family hint for the extractor
        text_reader: Callable (path, logger) -> str

    Returns:
        IngestionSummary: Counters for the run

    Raises:
        IngestionAbortedError: Text or field extraction failed for a file; the
            remaining queue is abandoned
    """
    policy = DedupPolicy(policy)
    report_type = 'APAO' if category is None else 'AAI'
    queue = sorted((Path(f) for f in files), key=lambda path: path.name)
    summary = IngestionSummary()

    if not queue:
        logger.warning('No files supplied for ingestion.')
        return summary

    logger.debug(f'=== Starting ingestion of {len(queue)} file(s), policy={policy.value} ===')
    start_time = time.time()

    # Seeded once, then grown as each file's records are accepted
    seen_keys = seed_identity_keys(dataset.records)

    file_pbar = tqdm(
        total=len(queue),
        desc=f'{COLOR_GREEN}Consolidating{COLOR_RESET}',
        unit='file',
        file=sys.stderr,
        leave=False,
    )
    try:
        for index, path in enumerate(queue, start=1):
            file_name = path.name
            file_pbar.set_postfix_str(f'{index}/{len(queue)}: {file_name}')

            if should_skip_file(dataset.ledger, file_name, policy):
                summary.skipped_files += 1
                logger.info(f'Skipping {file_name}: already processed')
                file_pbar.update(1)
                continue

            try:
                text = text_reader(path, logger)
                candidates = extractor.extract(text, category=category)
            except Exception as e:
                logger.error(f'Extraction failed for {file_name}, aborting remaining {len(queue) - index} file(s): {e}')
                raise IngestionAbortedError(file_name, e, summary) from e

            result = merge_candidates(candidates, seen_keys, file_name, logger, strict_months=strict_months)
            dataset.commit_file(file_name, result.accepted, report_type=report_type)

            summary.accepted_records += result.accepted_count
            summary.skipped_records += result.skipped_records
            summary.rejected_records += result.rejected_records
            summary.files_processed.append(file_name)
            summary.records_by_file[file_name] = result.accepted_count

            tqdm.write(
                f'{COLOR_YELLOW}Processed {file_name}: candidates={result.candidate_count} '
                f'new={result.accepted_count} duplicates={result.skipped_records}{COLOR_RESET}'
            )
            file_pbar.update(1)
    finally:
        file_pbar.close()

    logger.info(
        f'Ingestion finished in {time.time() - start_time:.2f} s: accepted={summary.accepted_records:,} '
        f'skipped_records={summary.skipped_records:,} skipped_files={summary.skipped_files} '
        f'files={len(summary.files_processed)}'
    )
    return summary
