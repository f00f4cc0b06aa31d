"""
Deduplication merger.
Decides whether a whole file is worth extracting and which extracted candidate
records are genuinely new observations.
"""

from enum import Enum

import polars as pl

from .identity import identity_key_expr, known_month_expr
from .records import conform_to_schema, records_from_candidates


class DedupPolicy(str, Enum):
    """Record-level dedup always runs; BOTH adds the file-name fast path in front of it."""

    RECORD = 'record'
    BOTH = 'both'


class MergeResult:
    """Outcome of merging one file's candidates."""

    def __init__(self, accepted, skipped_records=0, rejected_records=0, candidate_count=0):
        self.accepted = accepted
        self.skipped_records = skipped_records
        self.rejected_records = rejected_records
        self.candidate_count = candidate_count

    @property
    def accepted_count(self):
        return self.accepted.height

    def __repr__(self):
        return (
            f'MergeResult(accepted={self.accepted_count}, skipped={self.skipped_records}, '
            f'rejected={self.rejected_records}, candidates={self.candidate_count})'
        )


def should_skip_file(ledger, file_name, policy):
    """
    File-granularity check: skip extraction of a file whose name is already in the ledger.

    A changed document reused under an old name is not detected by this check.

    Args:
        ledger: ProvenanceLedger instance
        file_name: Name of the uploaded file
        policy: DedupPolicy value

    Returns:
        bool: True if the file must be skipped before extraction
    """
    if DedupPolicy(policy) == DedupPolicy.RECORD:
        return False
    return ledger.has(file_name)


def seed_identity_keys(records):
    """
    Collect the identity keys of the committed record set.

    Args:
        records: DataFrame with RECORD_SCHEMA columns

    Returns:
        set: Identity keys already present in the store
    """
    if records.is_empty():
        return set()
    return set(records.select(identity_key_expr())['identity_key'].to_list())


def merge_candidates(candidates, seen_keys, source_file, logger, strict_months=False):
    """
    Record-granularity deduplication of one file's extracted candidates.

    Candidates whose identity key is already in seen_keys, or repeats an earlier
    candidate of the same batch, are skipped. Accepted keys are added to
    seen_keys so that later files in the same run are checked against them.

    Args:
        candidates: List of nested candidate dicts, or a RECORD_SCHEMA DataFrame
        seen_keys: Mutable set of identity keys (updated in place)
        source_file: Name stamped on every accepted record
        logger: Logger instance
        strict_months: Reject candidates whose month label is not recognized

    Returns:
        MergeResult: Accepted records (RECORD_SCHEMA) plus counters
    """
    if isinstance(candidates, pl.DataFrame):
        batch = conform_to_schema(candidates)
    else:
        batch = records_from_candidates(candidates)

    candidate_count = batch.height
    if batch.is_empty():
        logger.debug(f'No candidate records extracted from {source_file}')
        return MergeResult(batch, candidate_count=0)

    batch = batch.with_columns(pl.lit(source_file, dtype=pl.Utf8).alias('source_file'))

    # Month labels that fall back to January
    unknown_month = ~known_month_expr('month')
    unknown = batch.filter(unknown_month)
    rejected = 0
    if unknown.height > 0:
        labels = sorted({str(value) for value in unknown['month'].to_list()})
        if strict_months:
            logger.warning(f'Rejecting {unknown.height} record(s) from {source_file} with unrecognized month: {labels}')
            batch = batch.filter(~unknown_month)
            rejected = unknown.height
        else:
            logger.warning(f'{unknown.height} record(s) from {source_file} have unrecognized month {labels}; filed as Jan')

    batch = batch.with_columns(identity_key_expr())

    # First occurrence within the batch wins, then drop anything already stored
    keep = pl.col('identity_key').is_first_distinct()
    if seen_keys:
        keep = keep & ~pl.col('identity_key').is_in(pl.Series(list(seen_keys), dtype=pl.Utf8))
    accepted = batch.filter(keep)

    skipped = batch.height - accepted.height
    seen_keys.update(accepted['identity_key'].to_list())

    logger.debug(
        f'Merged {source_file}: candidates={candidate_count}, accepted={accepted.height}, '
        f'skipped={skipped}, rejected={rejected}'
    )
    accepted = accepted.drop('identity_key')
    return MergeResult(accepted, skipped_records=skipped, rejected_records=rejected, candidate_count=candidate_count)


def count_by_source(records):
    """
    Count live records per source file.

    Args:
        records: DataFrame with a 'source_file' column

    Returns:
        dict: source_file -> record count (null source files are not counted)
    """
    if records.is_empty():
        return {}
    counts = records.filter(pl.col('source_file').is_not_null()).group_by('source_file').agg(pl.len().alias('count'))
    return dict(zip(counts['source_file'].to_list(), counts['count'].to_list()))


def find_duplicate_keys(records):
    """
    Return identity keys that occur more than once in a record set.

    Args:
        records: DataFrame with RECORD_SCHEMA columns

    Returns:
        list: Duplicated identity keys (empty when the uniqueness invariant holds)
    """
    if records.is_empty():
        return []
    keys = records.select(identity_key_expr())
    return sorted(set(keys.filter(pl.col('identity_key').is_duplicated())['identity_key'].to_list()))
