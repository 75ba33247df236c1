"""
Tests for the POST /snapshot endpoint handler.

The handler is called directly with a mock Settings object; record fetching
and snapshot storage are patched where the router module uses them.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from brand_snapshot.api.snapshot import build_comparison_request, create_snapshot
from brand_snapshot.models.enums import ComparisonType
from brand_snapshot.models.schemas import SnapshotRequest, SnapshotResponse
from brand_snapshot.services.periods import InvalidComparisonRequestError
from brand_snapshot.services.records import RecordFetchError


def month_body(**overrides) -> SnapshotRequest:
    values = {
        'clients': ['Alorica'],
        'organization': 'UHC',
        'metric_name': 'NPS',
        'year': 2025,
        'comparison_type': 'month',
        'current_month': 'Jul',
        'previous_month': 'Jun',
    }
    values.update(overrides)
    return SnapshotRequest(**values)


class TestBuildComparisonRequest:

    def test_month_selectors(self):
        request = build_comparison_request(month_body())

        assert request.comparison_type == ComparisonType.MONTH
        assert request.current_selector == 'Jul'
        assert request.previous_selector == 'Jun'

    def test_quarter_selectors(self):
        body = month_body(comparison_type='quarter', current_quarter='Q3', previous_quarter='Q2')
        request = build_comparison_request(body)

        assert request.comparison_type == ComparisonType.QUARTER
        assert request.current_selector == 'Q3'
        assert request.previous_selector == 'Q2'

    def test_quarter_mode_ignores_month_fields(self):
        body = month_body(comparison_type='quarter')
        with pytest.raises(InvalidComparisonRequestError, match='current_quarter'):
            build_comparison_request(body)

    def test_unknown_selector(self):
        with pytest.raises(InvalidComparisonRequestError):
            build_comparison_request(month_body(current_month='Julember'))


class TestSnapshotRequestValidation:

    def test_empty_clients_rejected(self):
        with pytest.raises(ValidationError):
            month_body(clients=[])

    def test_unknown_comparison_type_rejected(self):
        with pytest.raises(ValidationError):
            month_body(comparison_type='week')

    def test_selectors_are_trimmed(self):
        assert month_body(current_month=' Jul ').current_month == 'Jul'
        assert month_body(organization=' UHC ').organization == 'UHC'

    def test_clients_are_not_trimmed(self):
        body = month_body(clients=[' Alorica ', 'TTEC'])
        assert body.clients == [' Alorica ', 'TTEC']

        request = build_comparison_request(body)
        assert request.clients == [' Alorica ', 'TTEC']

    def test_blank_organization_rejected(self):
        with pytest.raises(ValidationError):
            month_body(organization='   ')


class TestCreateSnapshot:

    @pytest.mark.asyncio
    async def test_returns_snapshot_and_id(self, mock_settings, sample_metric_rows, sample_coaching_rows):
        with patch('brand_snapshot.api.snapshot.fetch_record_sets',
                   new=AsyncMock(return_value=(sample_metric_rows, sample_coaching_rows))) as mock_fetch, \
             patch('brand_snapshot.api.snapshot.persist_snapshot',
                   new=AsyncMock(return_value=17)) as mock_persist:
            response = await create_snapshot(month_body(), mock_settings)

        assert isinstance(response, SnapshotResponse)
        assert response.snapshot_id == 17
        assert response.diagnostics is None
        assert response.snapshot.snapshot_metadata.comparison.percent_change_display == '2.60%'
        assert response.snapshot.coaching_activity.current.total_coaching_sessions == 7
        mock_fetch.assert_awaited_once_with('UHC', 2025)
        mock_persist.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_diagnostics_on_request(self, mock_settings, sample_metric_rows):
        with patch('brand_snapshot.api.snapshot.fetch_record_sets',
                   new=AsyncMock(return_value=(sample_metric_rows, []))), \
             patch('brand_snapshot.api.snapshot.persist_snapshot', new=AsyncMock(return_value=None)):
            response = await create_snapshot(month_body(include_diagnostics=True), mock_settings)

        assert response.diagnostics is not None
        assert response.diagnostics.metrics.current.matched == 2
        assert response.snapshot_id is None

    @pytest.mark.asyncio
    async def test_storage_disabled(self, mock_settings):
        mock_settings.persist_snapshots = False

        with patch('brand_snapshot.api.snapshot.fetch_record_sets',
                   new=AsyncMock(return_value=([], []))), \
             patch('brand_snapshot.api.snapshot.persist_snapshot', new=AsyncMock()) as mock_persist:
            response = await create_snapshot(month_body(), mock_settings)

        assert response.snapshot_id is None
        mock_persist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_settings_limits_are_applied(self, mock_settings, sample_coaching_rows):
        mock_settings.top_behaviors_limit = 1

        with patch('brand_snapshot.api.snapshot.fetch_record_sets',
                   new=AsyncMock(return_value=([], sample_coaching_rows))), \
             patch('brand_snapshot.api.snapshot.persist_snapshot', new=AsyncMock(return_value=None)):
            response = await create_snapshot(month_body(), mock_settings)

        assert len(response.snapshot.coaching_activity.current.top_behaviors) == 1

    @pytest.mark.asyncio
    async def test_bad_selector_returns_400_without_fetching(self, mock_settings):
        with patch('brand_snapshot.api.snapshot.fetch_record_sets', new=AsyncMock()) as mock_fetch:
            with pytest.raises(HTTPException) as exc_info:
                await create_snapshot(month_body(current_month='Q3'), mock_settings)

        assert exc_info.value.status_code == 400
        mock_fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_quarter_selectors_return_400(self, mock_settings):
        body = month_body(comparison_type='quarter', current_quarter='Q3')
        with pytest.raises(HTTPException) as exc_info:
            await create_snapshot(body, mock_settings)

        assert exc_info.value.status_code == 400
        assert 'previous_quarter' in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_fetch_failure_returns_500(self, mock_settings):
        with patch('brand_snapshot.api.snapshot.fetch_record_sets',
                   new=AsyncMock(side_effect=RecordFetchError('Failed to fetch monthly metrics: timeout'))):
            with pytest.raises(HTTPException) as exc_info:
                await create_snapshot(month_body(), mock_settings)

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail.startswith('Snapshot generation failed')
