import pytest

from traffic_stats.consolidate.provenance import ProvenanceLedger


def test_register_and_has():
    ledger = ProvenanceLedger()
    entry = ledger.register('APAO_Sep24.pdf', 5)
    assert ledger.has('APAO_Sep24.pdf')
    assert 'APAO_Sep24.pdf' in ledger
    assert entry['record_count'] == 5
    assert entry['report_type'] == 'APAO'
    assert entry['id'] and entry['processed_at']


def test_register_ids_are_unique():
    ledger = ProvenanceLedger()
    first = ledger.register('a.pdf', 1)
    second = ledger.register('b.pdf', 2)
    assert first['id'] != second['id']


def test_duplicate_names_are_rejected():
    ledger = ProvenanceLedger()
    ledger.register('a.pdf', 1)
    with pytest.raises(ValueError):
        ledger.register('a.pdf', 3)


def test_entries_are_copies():
    ledger = ProvenanceLedger()
    ledger.register('a.pdf', 1)
    ledger.entries()[0]['record_count'] = 99
    assert ledger.get('a.pdf')['record_count'] == 1


def test_remove_file_and_wipe():
    ledger = ProvenanceLedger()
    ledger.register('a.pdf', 1)
    ledger.register('b.pdf', 2)
    assert ledger.remove_file('a.pdf')['name'] == 'a.pdf'
    assert ledger.remove_file('a.pdf') is None
    assert len(ledger) == 1
    ledger.wipe()
    assert len(ledger) == 0


def test_json_round_trip_keeps_order():
    ledger = ProvenanceLedger()
    ledger.register('b.pdf', 2)
    ledger.register('a.xlsx', 7, report_type='AAI')
    restored = ProvenanceLedger.from_json(ledger.to_json())
    assert [e['name'] for e in restored.entries()] == ['b.pdf', 'a.xlsx']
    assert restored.get('a.xlsx')['report_type'] == 'AAI'


@pytest.mark.parametrize('blob', [b'{"name": "x"}', b'[1, 2]', b'not json'])
def test_from_json_rejects_malformed_blobs(blob):
    with pytest.raises(ValueError):
        ProvenanceLedger.from_json(blob)
