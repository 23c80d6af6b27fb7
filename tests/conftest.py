"""テスト共通のフィクスチャ."""

from datetime import datetime, timezone

import pytest

from rankwatch.datasource import DataSourceError

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FakeSource:
    """呼び出しを記録するインメモリ DataSource."""

    def __init__(self, rows=None, current=None, fail_points=False, fail_current=False,
                 points_error=None):
        self.rows = rows or []
        self.current = current or {}
        self.fail_points = fail_points
        self.fail_current = fail_current
        self.points_error = points_error
        self.points_calls = []
        self.current_calls = []

    async def fetch_points(self, project_id, since, keywords=None):
        self.points_calls.append((project_id, since, keywords))
        if self.fail_points:
            raise DataSourceError("connection refused")
        if self.points_error is not None:
            raise self.points_error
        return [r for r in self.rows if r["recorded_at"] is None or r["recorded_at"] >= since.isoformat()]

    async def fetch_current_position(self, project_id, keyword):
        self.current_calls.append((project_id, keyword))
        if self.fail_current:
            raise DataSourceError("timeout")
        return self.current.get(keyword)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_source():
    return FakeSource
