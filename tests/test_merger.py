from tests.helpers import make_candidate
from traffic_stats.consolidate.merger import (
    DedupPolicy,
    count_by_source,
    find_duplicate_keys,
    merge_candidates,
    seed_identity_keys,
    should_skip_file,
)
from traffic_stats.consolidate.provenance import ProvenanceLedger
from traffic_stats.consolidate.records import records_from_candidates


def test_intra_batch_duplicates_yield_one_record(logger):
    candidates = [make_candidate('Delhi', 'Sep', 2024, pax=1.0), make_candidate('delhi ', 'September', 2024, pax=2.0)]
    result = merge_candidates(candidates, set(), 'a.pdf', logger)
    assert result.accepted_count == 1
    assert result.skipped_records == 1
    # First occurrence wins
    assert result.accepted['pax_total'].to_list() == [1.0]


def test_candidates_already_stored_are_skipped(logger):
    existing = records_from_candidates([make_candidate('Delhi', 'Sep', 2024)])
    seen = seed_identity_keys(existing)
    candidates = [make_candidate('Delhi', 'Sep', 2024), make_candidate('Delhi', 'Oct', 2024)]
    result = merge_candidates(candidates, seen, 'b.pdf', logger)
    assert result.accepted['month'].to_list() == ['Oct']
    assert result.skipped_records == 1
    assert len(seen) == 2


def test_seen_keys_carry_across_files(logger):
    seen = set()
    merge_candidates([make_candidate('Goa', 'Jan', 2024)], seen, 'a.pdf', logger)
    second = merge_candidates([make_candidate('GOA', 'jan', 2024)], seen, 'b.pdf', logger)
    assert second.accepted_count == 0
    assert second.skipped_records == 1


def test_accepted_records_are_stamped_with_source_file(logger):
    candidate = make_candidate('Pune', 'Mar', 2024)
    candidate['sourceFile'] = 'something-else.pdf'
    result = merge_candidates([candidate], set(), 'APAO_Mar24.pdf', logger)
    assert result.accepted['source_file'].to_list() == ['APAO_Mar24.pdf']


def test_unrecognized_month_defaults_to_january(logger):
    result = merge_candidates(
        [make_candidate('Pune', 'Q1', 2024), make_candidate('Pune', 'Jan', 2024)], set(), 'a.pdf', logger
    )
    assert result.accepted_count == 1
    assert result.rejected_records == 0


def test_strict_months_rejects_unrecognized_labels(logger):
    result = merge_candidates(
        [make_candidate('Pune', 'Q1', 2024), make_candidate('Pune', 'Jan', 2024)],
        set(),
        'a.pdf',
        logger,
        strict_months=True,
    )
    assert result.accepted['month'].to_list() == ['Jan']
    assert result.rejected_records == 1
    assert result.skipped_records == 0


def test_empty_candidates(logger):
    result = merge_candidates([], set(), 'a.pdf', logger)
    assert result.accepted_count == 0
    assert result.candidate_count == 0


def test_file_skip_depends_on_policy():
    ledger = ProvenanceLedger()
    ledger.register('a.pdf', 1)
    assert should_skip_file(ledger, 'a.pdf', DedupPolicy.BOTH)
    assert should_skip_file(ledger, 'a.pdf', 'both')
    assert not should_skip_file(ledger, 'b.pdf', DedupPolicy.BOTH)
    assert not should_skip_file(ledger, 'a.pdf', DedupPolicy.RECORD)


def test_count_by_source_and_duplicate_keys(logger):
    records = records_from_candidates(
        [make_candidate('Delhi', 'Sep', 2024), make_candidate('Delhi', 'Oct', 2024), make_candidate('delhi', 'sep', 2024)]
    )
    assert len(find_duplicate_keys(records)) == 1

    result = merge_candidates(
        [make_candidate('Delhi', 'Sep', 2024), make_candidate('Delhi', 'Oct', 2024)], set(), 'a.pdf', logger
    )
    assert count_by_source(result.accepted) == {'a.pdf': 2}
