"""
Consolidation package for airport traffic records.

This package provides modular components for:
- Identity keys for (airport, month, year) observations
- Provenance tracking of source files
- Record-level deduplication against the stored dataset
- Multi-key sorting and time-series aggregation
- Dataset persistence and export
"""

from .blob_store import SqliteBlobStore
from .dataset import TrafficDataset
from .identity import identity_key, identity_key_expr, is_known_month, month_index, parse_time_period
from .merger import DedupPolicy, MergeResult, merge_candidates, seed_identity_keys, should_skip_file
from .output_writer import export_records
from .provenance import ProvenanceLedger
from .records import RECORD_SCHEMA, empty_records, flatten_record, records_from_candidates
from .sorting import SortDirection, SortKey, sort_records
from .trends import aggregate_trends, to_period_vectors

__all__ = [  # noqa: RUF022
    # Identity keys
    'identity_key',
    'identity_key_expr',
    'is_known_month',
    'month_index',
    'parse_time_period',
    # Records
    'RECORD_SCHEMA',
    'empty_records',
    'flatten_record',
    'records_from_candidates',
    # Provenance and storage
    'ProvenanceLedger',
    'SqliteBlobStore',
    'TrafficDataset',
    # Deduplication
    'DedupPolicy',
    'MergeResult',
    'merge_candidates',
    'seed_identity_keys',
    'should_skip_file',
    # Views
    'SortDirection',
    'SortKey',
    'sort_records',
    'aggregate_trends',
    'to_period_vectors',
    'export_records',
]
