from tests.helpers import make_candidate
from traffic_stats.consolidate.records import empty_records, records_from_candidates
from traffic_stats.consolidate.trends import aggregate_trends, airport_names, to_period_vectors


def test_periods_are_ordered_chronologically():
    records = records_from_candidates(
        [make_candidate('Delhi', 'Jan', 2024, pax=10.0), make_candidate('Delhi', 'Feb', 2023, pax=20.0)]
    )
    trends = aggregate_trends(records)
    assert trends['period'].to_list() == ['Feb 2023', 'Jan 2024']
    assert trends['sort_key'].to_list() == [202301, 202400]
    assert trends['pax_Delhi'].to_list() == [20.0, 10.0]


def test_one_column_per_airport_and_metric():
    records = records_from_candidates(
        [
            make_candidate('Delhi', 'Sep', 2024, pax=1.0, cargo=2.0, atm=3.0),
            make_candidate('Goa', 'Sep', 2024, pax=4.0, cargo=5.0, atm=6.0),
            make_candidate('Goa', 'Oct', 2024, pax=7.0),
        ]
    )
    trends = aggregate_trends(records)
    assert trends.columns == ['period', 'sort_key', 'pax_Delhi', 'cargo_Delhi', 'atm_Delhi', 'pax_Goa', 'cargo_Goa', 'atm_Goa']
    sep = trends.row(0, named=True)
    assert (sep['pax_Delhi'], sep['cargo_Delhi'], sep['atm_Delhi']) == (1.0, 2.0, 3.0)
    assert sep['atm_Goa'] == 6.0
    # Delhi has no October record
    assert trends.row(1, named=True)['pax_Delhi'] is None


def test_month_spellings_stay_separate_groups():
    records = records_from_candidates(
        [make_candidate('Delhi', 'Sep', 2024, pax=1.0), make_candidate('Goa', 'September', 2024, pax=2.0)]
    )
    trends = aggregate_trends(records)
    assert trends['period'].to_list() == ['Sep 2024', 'September 2024']
    assert trends['sort_key'].to_list() == [202408, 202408]


def test_last_write_wins_within_group():
    records = records_from_candidates(
        [make_candidate('Delhi', 'Sep', 2024, pax=1.0), make_candidate('Delhi', 'Sep', 2024, pax=9.0)]
    )
    trends = aggregate_trends(records)
    assert trends.height == 1
    assert trends['pax_Delhi'].to_list() == [9.0]


def test_empty_records_give_empty_trends():
    trends = aggregate_trends(empty_records())
    assert trends.is_empty()
    assert trends.columns == ['period', 'sort_key']


def test_period_vectors_view():
    records = records_from_candidates([make_candidate('New_Delhi', 'Sep', 2024, pax=1.0, cargo=2.0, atm=3.0)])
    vectors = to_period_vectors(aggregate_trends(records))
    assert vectors == [
        {'period': 'Sep 2024', 'sort_key': 202408, 'metrics': {'New_Delhi': {'pax': 1.0, 'cargo': 2.0, 'atm': 3.0}}}
    ]


def test_airport_names_sorted():
    records = records_from_candidates([make_candidate('Goa', 'Sep', 2024), make_candidate('Delhi', 'Sep', 2024)])
    assert airport_names(records) == ['Delhi', 'Goa']
