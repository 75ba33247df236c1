"""
Tests for tolerant record matching.

Covers each predicate in isolation (client, organization, metric, month,
year), the metric field policy, and filter_records counts.
"""

import pytest

from brand_snapshot.models.enums import MatchDimension
from brand_snapshot.services.matching import (
    DEFAULT_METRIC_POLICY,
    MatchCriteria,
    MetricMatchPolicy,
    evaluate_row,
    filter_records,
    match_client,
    match_metric,
    match_month,
    match_organization,
    match_year,
    normalize_month,
    row_matches,
)
from brand_snapshot.tests.factories import make_coaching_row, make_metric_row


@pytest.fixture
def jul_criteria() -> MatchCriteria:
    return MatchCriteria.for_window(['Alorica'], 'UHC', 'NPS', ['Jul'], 2025)


class TestNormalizeMonth:

    @pytest.mark.parametrize('value,expected', [
        ('Sep', 'Sep'),
        ('sep', 'Sep'),
        ('SEPT', 'Sep'),
        ('September', 'Sep'),
        ('september ', 'Sep'),
        ('Sep.', 'Sep'),
        (9, 'Sep'),
        ('09', 'Sep'),
        (9.0, 'Sep'),
        (1, 'Jan'),
        ('12', 'Dec'),
    ])
    def test_known_spellings(self, value, expected):
        assert normalize_month(value) == expected

    @pytest.mark.parametrize('value', [None, '', 'Foo', 13, 0, 9.5, True, float('nan')])
    def test_unknown_values(self, value):
        assert normalize_month(value) is None


class TestPredicates:

    def test_client_is_exact_and_case_sensitive(self, jul_criteria):
        assert match_client(make_metric_row(client='Alorica'), jul_criteria)
        assert not match_client(make_metric_row(client='alorica'), jul_criteria)
        assert not match_client(make_metric_row(client=' Alorica'), jul_criteria)
        assert not match_client(make_metric_row(client=None), jul_criteria)

    def test_organization_ignores_case_and_padding(self, jul_criteria):
        assert match_organization(make_metric_row(organization='  uhc '), jul_criteria)
        assert not match_organization(make_metric_row(organization='UHC East'), jul_criteria)
        assert not match_organization(make_metric_row(organization=None), jul_criteria)

    def test_metric_matches_standardized_field(self, jul_criteria):
        assert match_metric(make_metric_row(metric_name='nps', metric_label=None), jul_criteria)

    def test_metric_falls_back_to_free_text_field(self, jul_criteria):
        row = make_metric_row(metric_name=None, metric_label=' NPS ')
        assert match_metric(row, jul_criteria)

    def test_metric_matches_free_text_when_standardized_differs(self, jul_criteria):
        row = make_metric_row(metric_name='Chat NPS', metric_label='NPS')
        assert match_metric(row, jul_criteria)

    def test_metric_rejects_when_neither_field_matches(self, jul_criteria):
        row = make_metric_row(metric_name='AHT', metric_label='Average Handle Time')
        assert not match_metric(row, jul_criteria)

    def test_month_exact_code(self, jul_criteria):
        assert match_month(make_metric_row(month='Jul'), jul_criteria)

    def test_month_normalization_fallback(self):
        criteria = MatchCriteria.for_window(['Alorica'], 'UHC', 'NPS', ['Jul', 'Aug', 'Sep'], 2025)
        assert match_month(make_coaching_row(month='September'), criteria)
        assert match_month(make_coaching_row(month=8), criteria)
        assert not match_month(make_coaching_row(month='June'), criteria)

    def test_month_missing(self, jul_criteria):
        assert not match_month(make_metric_row(month=None), jul_criteria)

    def test_year_numeric_equality(self, jul_criteria):
        assert match_year(make_metric_row(year=2025), jul_criteria)
        assert match_year(make_metric_row(year='2025'), jul_criteria)
        assert not match_year(make_metric_row(year=2024), jul_criteria)
        assert not match_year(make_metric_row(year='twenty'), jul_criteria)
        assert not match_year(make_metric_row(year=None), jul_criteria)


class TestMetricMatchPolicy:

    def test_custom_policy_with_single_field(self, jul_criteria):
        policy = MetricMatchPolicy(fields=('metric_name',))
        row = make_metric_row(metric_name=None, metric_label='NPS')
        assert not match_metric(row, jul_criteria, policy)
        assert match_metric(row, jul_criteria, DEFAULT_METRIC_POLICY)

    def test_values_in_policy_order(self):
        row = make_metric_row(metric_name='NPS', metric_label=' Chat NPS ')
        assert DEFAULT_METRIC_POLICY.values(row) == ['NPS', 'Chat NPS']

    def test_values_skip_blank_fields(self):
        row = make_metric_row(metric_name='', metric_label=None)
        assert DEFAULT_METRIC_POLICY.values(row) == []


class TestEvaluateRow:

    def test_all_dimensions_evaluated(self, jul_criteria):
        row = make_metric_row(client='Other', month='Jun')
        results = evaluate_row(row, jul_criteria)

        assert results == {
            MatchDimension.CLIENT: False,
            MatchDimension.ORGANIZATION: True,
            MatchDimension.METRIC: True,
            MatchDimension.MONTH: False,
            MatchDimension.YEAR: True,
        }
        assert not row_matches(row, jul_criteria)

    def test_row_matches_when_all_hold(self, jul_criteria):
        assert row_matches(make_metric_row(), jul_criteria)


class TestFilterRecords:

    def test_filters_and_preserves_order(self, jul_criteria):
        first = make_metric_row(program='A')
        second = make_metric_row(program='B', month='July')
        rows = [first, make_metric_row(month='Jun'), second]

        outcome = filter_records(rows, jul_criteria)

        assert outcome.rows == [first, second]

    def test_counts_per_dimension(self, jul_criteria, sample_metric_rows):
        outcome = filter_records(sample_metric_rows, jul_criteria)
        counts = outcome.counts

        assert counts.months == ['Jul']
        assert counts.total_rows == 6
        assert counts.client == 5
        assert counts.organization == 6
        assert counts.metric == 5
        assert counts.month == 5
        assert counts.year == 5
        assert counts.matched == 2

    def test_none_is_empty(self, jul_criteria):
        outcome = filter_records(None, jul_criteria)

        assert outcome.rows == []
        assert outcome.counts.total_rows == 0
        assert outcome.counts.matched == 0

    def test_input_not_modified(self, jul_criteria, sample_metric_rows):
        before = list(sample_metric_rows)
        filter_records(sample_metric_rows, jul_criteria)
        assert sample_metric_rows == before
