"""models モジュールのユニットテスト."""

import pytest

from rankwatch.models import Period, PointMetadata, RankingPoint, check_period_definition


class TestPeriod:
    """Period のテスト."""

    def test_from_code(self):
        assert Period.from_code("7d") is Period.LAST_7_DAYS
        assert Period.from_code("16m") is Period.LAST_16_MONTHS

    def test_legacy_alias(self):
        assert Period.from_code("24h") is Period.TODAY

    def test_unknown_code(self):
        with pytest.raises(ValueError):
            Period.from_code("2y")

    def test_longest(self):
        assert Period.longest() is Period.LAST_16_MONTHS
        assert Period.longest().days == 480

    def test_thresholds_grow_with_period(self):
        periods = sorted(Period, key=lambda p: p.days)
        min_points = [p.min_points for p in periods]

        assert periods[0] is Period.TODAY
        assert Period.TODAY.min_points == 0
        assert min_points == sorted(min_points)


class TestRankingPoint:
    """RankingPoint.from_row のテスト."""

    def test_full_row(self):
        point = RankingPoint.from_row({
            "keyword": "seo tools",
            "position": 3,
            "recorded_at": "2026-10-01T00:00:00+00:00",
            "change_from_previous": -1,
            "metadata": {"data_source": "manual", "ctr": 0.12},
        })

        assert point.keyword == "seo tools"
        assert point.position == 3
        assert point.date == "2026-10-01T00:00:00+00:00"
        assert point.change == -1
        assert point.metadata == PointMetadata(data_source="manual", ctr=0.12)

    def test_sparse_row(self):
        point = RankingPoint.from_row({"keyword": "seo tools"})

        assert point.date is None
        assert point.position is None
        assert point.change == 0
        assert point.metadata == PointMetadata()


class TestCheckPeriodDefinition:
    """check_period_definition のテスト."""

    def test_valid(self):
        check_period_definition("7d", 7, 3)
        check_period_definition("today", 1, 0)

    def test_non_positive_days(self):
        with pytest.raises(ValueError, match="日数"):
            check_period_definition("0d", 0, 0)

    def test_negative_min_points(self):
        with pytest.raises(ValueError, match="最低ポイント数"):
            check_period_definition("7d", 7, -1)


class TestPointMetadata:
    """PointMetadata.from_dict のテスト."""

    def test_list_metadata(self):
        assert PointMetadata.from_dict(["gsc"]) == PointMetadata()

    def test_string_metadata(self):
        assert PointMetadata.from_dict("search_console") == PointMetadata()

    def test_none_metadata(self):
        assert PointMetadata.from_dict(None) == PointMetadata()

    def test_current_only_flag(self):
        metadata = PointMetadata.from_dict({"is_current_only": True, "unknown": 1})
        assert metadata.is_current_only is True
