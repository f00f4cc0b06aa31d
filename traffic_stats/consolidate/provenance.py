"""
Provenance ledger.
Tracks which source file produced how many records so that deleting a file can
cascade to its records.
"""

import json
import uuid
from datetime import datetime

REPORT_TYPES = ('APAO', 'AAI')


class ProvenanceLedger:
    """
    Ordered collection of FileMeta entries, unique by file name.

    A FileMeta entry is a dict with keys: id, name, processed_at, record_count,
    report_type. Entries are never changed after registration; they are only
    removed (per file or all at once).
    """

    def __init__(self, entries=None):
        self._entries = {}
        for entry in entries or []:
            self._entries[entry['name']] = dict(entry)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, file_name):
        return self.has(file_name)

    def has(self, file_name):
        return file_name in self._entries

    def get(self, file_name):
        entry = self._entries.get(file_name)
        return dict(entry) if entry is not None else None

    def entries(self):
        return [dict(entry) for entry in self._entries.values()]

    def register(self, file_name, record_count, report_type='APAO'):
        """
        Create the FileMeta entry for a processed file.

        Args:
            file_name: Name of the source document
            record_count: Live records attributed to the file
            report_type: 'APAO' (full records) or 'AAI' (category-split rows)

        Returns:
            dict: The new FileMeta entry
        """
        if file_name in self._entries:
            raise ValueError(f'File already registered in ledger: {file_name}')
        if report_type not in REPORT_TYPES:
            raise ValueError(f'Unknown report type: {report_type}')
        entry = {
            'id': uuid.uuid4().hex,
            'name': file_name,
            'processed_at': datetime.now().isoformat(timespec='seconds'),
            'record_count': int(record_count),
            'report_type': report_type,
        }
        self._entries[file_name] = entry
        return dict(entry)

    def remove_file(self, file_name):
        """Remove and return the entry for file_name, or None if it was not registered."""
        return self._entries.pop(file_name, None)

    def wipe(self):
        self._entries.clear()

    def copy(self):
        return ProvenanceLedger(self.entries())

    def to_json(self):
        return json.dumps(self.entries(), ensure_ascii=False).encode('utf-8')

    @classmethod
    def from_json(cls, blob):
        """
        Rebuild a ledger from to_json() output.

        Raises:
            ValueError: If the blob is not a JSON list of entries
        """
        data = json.loads(blob.decode('utf-8') if isinstance(blob, bytes) else blob)
        if not isinstance(data, list):
            raise ValueError('Ledger blob must be a JSON list')
        for entry in data:
            if not isinstance(entry, dict) or 'name' not in entry:
                raise ValueError(f'Malformed ledger entry: {entry!r}')
        return cls(data)
