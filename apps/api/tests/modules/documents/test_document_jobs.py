"""
Tests for the staging sweep job.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.modules.documents.jobs import sweep_stale_staging_buffers

JOBS = "app.modules.documents.jobs"


class TestSweepStaleStagingBuffers:
    @pytest.mark.asyncio
    async def test_skipped_without_redis(self):
        with (
            patch(f"{JOBS}.redis_module") as mock_redis_module,
            patch(f"{JOBS}.sweep_stale_buffers", new=AsyncMock()) as mock_sweep,
        ):
            mock_redis_module.redis_client = None

            result = await sweep_stale_staging_buffers()

            assert result["skipped"] is True
            mock_sweep.assert_not_called()

    @pytest.mark.asyncio
    async def test_reports_discarded_count(self):
        client = MagicMock()

        with (
            patch(f"{JOBS}.redis_module") as mock_redis_module,
            patch(f"{JOBS}.sweep_stale_buffers", new=AsyncMock(return_value=3)) as mock_sweep,
        ):
            mock_redis_module.redis_client = client

            result = await sweep_stale_staging_buffers()

            assert result["discarded"] == 3
            assert result["skipped"] is False
            mock_sweep.assert_called_once_with(client)
