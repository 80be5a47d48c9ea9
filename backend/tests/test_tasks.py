"""Tests for arq enqueue helpers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from installment_automation.tasks import (
    enqueue_installment_automation,
    enqueue_job_health_check,
    enqueue_task,
    get_redis_pool,
)


class TestTasks:
    @pytest.mark.asyncio
    async def test_get_redis_pool(self):
        mock_pool = MagicMock()

        with patch(
            "installment_automation.tasks.create_pool", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = mock_pool

            result = await get_redis_pool()

        assert result == mock_pool
        mock_create.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_task_closes_pool(self):
        mock_job = MagicMock()
        mock_pool = MagicMock()
        mock_pool.enqueue_job = AsyncMock(return_value=mock_job)
        mock_pool.close = AsyncMock()

        with patch(
            "installment_automation.tasks.get_redis_pool", new_callable=AsyncMock
        ) as mock_get_pool:
            mock_get_pool.return_value = mock_pool

            result = await enqueue_task("my_task", "arg1", kwarg1="value1")

        assert result == mock_job
        mock_pool.enqueue_job.assert_called_once_with("my_task", "arg1", kwarg1="value1")
        mock_pool.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_task_closes_pool_on_error(self):
        mock_pool = MagicMock()
        mock_pool.enqueue_job = AsyncMock(side_effect=ConnectionError("Redis down"))
        mock_pool.close = AsyncMock()

        with patch(
            "installment_automation.tasks.get_redis_pool", new_callable=AsyncMock
        ) as mock_get_pool:
            mock_get_pool.return_value = mock_pool

            with pytest.raises(ConnectionError, match="Redis down"):
                await enqueue_task("failing_task")

        mock_pool.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_installment_automation(self):
        with patch(
            "installment_automation.tasks.enqueue_task", new_callable=AsyncMock
        ) as mock_enqueue:
            await enqueue_installment_automation()

        mock_enqueue.assert_called_once_with("run_installment_automation_task")

    @pytest.mark.asyncio
    async def test_enqueue_job_health_check(self):
        with patch(
            "installment_automation.tasks.enqueue_task", new_callable=AsyncMock
        ) as mock_enqueue:
            await enqueue_job_health_check()

        mock_enqueue.assert_called_once_with("check_job_health_task")
