"""
Consolidated dataset: the record frame and its provenance ledger, kept in step
and persisted together through a key/blob store.
"""

import io

import polars as pl

from .merger import count_by_source
from .provenance import ProvenanceLedger
from .records import conform_to_schema, empty_records

RECORDS_KEY = 'records'
LEDGER_KEY = 'ledger'


class TrafficDataset:
    """
    In-memory record set plus ledger, owned by one ingestion pipeline at a time.

    Every mutating method leaves the pair consistent (each FileMeta record_count
    equals its live record count) and then persists both blobs.
    """

    def __init__(self, store, logger, records=None, ledger=None):
        self.store = store
        self.logger = logger
        self._records = records if records is not None else empty_records()
        self.ledger = ledger if ledger is not None else ProvenanceLedger()

    @property
    def records(self):
        return self._records

    def __len__(self):
        return self._records.height

    @classmethod
    def load(cls, store, logger):
        """
        Read the dataset from the store once at start-up.

        Absent or unparseable blobs yield an empty state. sqlite3 errors propagate.

        Args:
            store: Object with load/save/clear
            logger: Logger instance

        Returns:
            TrafficDataset: Loaded dataset
        """
        records = empty_records()
        ledger = ProvenanceLedger()

        records_blob = store.load(RECORDS_KEY)
        if records_blob is not None:
            try:
                records = conform_to_schema(pl.read_parquet(io.BytesIO(records_blob)))
                logger.debug(f'Loaded {records.height:,} existing records')
            except Exception as e:
                logger.warning(f'Stored records could not be parsed, starting empty: {e}')
                records = empty_records()

        ledger_blob = store.load(LEDGER_KEY)
        if ledger_blob is not None:
            try:
                ledger = ProvenanceLedger.from_json(ledger_blob)
                logger.debug(f'Loaded {len(ledger)} ledger entries')
            except ValueError as e:
                logger.warning(f'Stored ledger could not be parsed, starting empty: {e}')
                ledger = ProvenanceLedger()

        return cls(store, logger, records=records, ledger=ledger)

    def persist(self):
        buffer = io.BytesIO()
        self._records.write_parquet(buffer, compression='snappy', statistics=True)
        self.store.save(RECORDS_KEY, buffer.getvalue())
        self.store.save(LEDGER_KEY, self.ledger.to_json())
        self.logger.debug(f'Persisted {self._records.height:,} records and {len(self.ledger)} ledger entries')

    def commit_file(self, file_name, accepted, report_type='APAO'):
        """
        Append one file's accepted records and register its FileMeta atomically.

        If the name is already registered (record-granularity policy re-submitting
        a same-named file), the entry is replaced with the recomputed live count.

        Args:
            file_name: Source document name
            accepted: RECORD_SCHEMA DataFrame of new records for this file
            report_type: Ledger report type

        Returns:
            dict: The registered FileMeta entry
        """
        new_records = pl.concat([self._records, conform_to_schema(accepted)], how='vertical_relaxed')
        new_ledger = self.ledger.copy()
        live_count = count_by_source(new_records).get(file_name, 0)
        if new_ledger.has(file_name):
            self.logger.debug(f'Replacing ledger entry for re-submitted file {file_name}')
            new_ledger.remove_file(file_name)
        entry = new_ledger.register(file_name, live_count, report_type=report_type)

        self._records = new_records
        self.ledger = new_ledger
        self.persist()
        return entry

    def delete_file(self, file_name):
        """
        Cascading removal of a file's FileMeta and every record it produced.

        Args:
            file_name: Source document name

        Returns:
            int: Number of records removed
        """
        before = self._records.height
        new_records = self._records.filter(pl.col('source_file').is_null() | (pl.col('source_file') != file_name))
        new_ledger = self.ledger.copy()
        removed_entry = new_ledger.remove_file(file_name)
        removed = before - new_records.height

        if removed_entry is None and removed == 0:
            self.logger.warning(f'No ledger entry or records found for {file_name}')
            return 0

        self._records = new_records
        self.ledger = new_ledger
        self.persist()
        self.logger.info(f'Deleted {file_name}: removed {removed} record(s)')
        return removed

    def wipe(self):
        self._records = empty_records()
        self.ledger.wipe()
        self.store.clear()
        self.logger.info('Wiped all records and ledger entries')
