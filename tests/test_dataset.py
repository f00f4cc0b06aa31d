import polars as pl

from tests.helpers import make_candidate
from traffic_stats.consolidate.blob_store import SqliteBlobStore
from traffic_stats.consolidate.dataset import LEDGER_KEY, RECORDS_KEY, TrafficDataset
from traffic_stats.consolidate.merger import merge_candidates
from traffic_stats.consolidate.records import records_from_candidates


def _accepted(file_name, months, logger, airport='Delhi', year=2024):
    candidates = [make_candidate(airport, month, year) for month in months]
    return merge_candidates(candidates, set(), file_name, logger).accepted


def test_commit_appends_records_and_registers_file(dataset, memory_store, logger):
    entry = dataset.commit_file('APAO_Sep24.pdf', _accepted('APAO_Sep24.pdf', ['Sep', 'Oct'], logger))
    assert len(dataset) == 2
    assert entry['record_count'] == 2
    assert dataset.ledger.has('APAO_Sep24.pdf')
    assert set(memory_store.blobs) == {RECORDS_KEY, LEDGER_KEY}


def test_commit_of_empty_file_still_registers(dataset, logger):
    empty = records_from_candidates([])
    entry = dataset.commit_file('blank.pdf', empty)
    assert entry['record_count'] == 0
    assert len(dataset) == 0
    assert dataset.ledger.has('blank.pdf')


def test_recommit_replaces_entry_with_live_count(dataset, logger):
    dataset.commit_file('a.pdf', _accepted('a.pdf', ['Jan', 'Feb'], logger))
    entry = dataset.commit_file('a.pdf', _accepted('a.pdf', ['Mar'], logger))
    assert len(dataset.ledger) == 1
    assert entry['record_count'] == 3
    assert dataset.ledger.get('a.pdf')['record_count'] == 3


def test_delete_file_cascades(dataset, logger):
    months = ['Jan', 'Feb', 'Mar', 'Apr', 'May']
    dataset.commit_file('APAO_Sep24.pdf', _accepted('APAO_Sep24.pdf', months, logger))
    dataset.commit_file('other.pdf', _accepted('other.pdf', ['Jan'], logger, airport='Goa'))

    removed = dataset.delete_file('APAO_Sep24.pdf')

    assert removed == 5
    assert not dataset.ledger.has('APAO_Sep24.pdf')
    assert dataset.records['source_file'].to_list() == ['other.pdf']
    assert dataset.ledger.get('other.pdf')['record_count'] == 1


def test_delete_unknown_file_is_a_no_op(dataset, memory_store, logger):
    dataset.commit_file('a.pdf', _accepted('a.pdf', ['Jan'], logger))
    saves_before = len(memory_store.saves)
    assert dataset.delete_file('missing.pdf') == 0
    assert len(dataset) == 1
    assert len(memory_store.saves) == saves_before


def test_wipe_clears_everything(dataset, memory_store, logger):
    dataset.commit_file('a.pdf', _accepted('a.pdf', ['Jan'], logger))
    dataset.wipe()
    assert len(dataset) == 0
    assert len(dataset.ledger) == 0
    assert memory_store.blobs == {}


def test_round_trip_through_sqlite(tmp_path, logger):
    store = SqliteBlobStore(tmp_path / 'db' / 'traffic_store.db')
    dataset = TrafficDataset(store, logger)
    dataset.commit_file('a.pdf', _accepted('a.pdf', ['Jan', 'Feb'], logger))

    reloaded = TrafficDataset.load(SqliteBlobStore(tmp_path / 'db' / 'traffic_store.db'), logger)

    assert reloaded.records.equals(dataset.records)
    assert [e['name'] for e in reloaded.ledger.entries()] == ['a.pdf']
    assert reloaded.ledger.get('a.pdf')['id'] == dataset.ledger.get('a.pdf')['id']


def test_load_from_empty_store(memory_store, logger):
    dataset = TrafficDataset.load(memory_store, logger)
    assert len(dataset) == 0
    assert len(dataset.ledger) == 0


def test_corrupted_blobs_load_as_empty(memory_store, logger):
    memory_store.save(RECORDS_KEY, b'not parquet')
    memory_store.save(LEDGER_KEY, b'{broken')
    dataset = TrafficDataset.load(memory_store, logger)
    assert len(dataset) == 0
    assert len(dataset.ledger) == 0
    assert isinstance(dataset.records, pl.DataFrame)
