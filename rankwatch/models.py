"""データモデル定義."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


logger = logging.getLogger(__name__)


def check_period_definition(code: str, days: int, min_points: int) -> None:
    """期間定義を検証する. Period のメンバー生成時に呼ばれる."""
    if days <= 0:
        raise ValueError(f"期間の日数が不正です: {code}={days}")
    if min_points < 0:
        raise ValueError(f"最低ポイント数が不正です: {code}={min_points}")


class Period(Enum):
    """レポート期間.

    各メンバーは (コード, 日数, 期間内の最低ポイント数) を持つ。
    最低ポイント数は GSC の実際の取得頻度 (デイリーではない) に合わせている。
    """

    TODAY = ("today", 1, 0)  # 当日はリアルタイム取得のため履歴不要
    LAST_7_DAYS = ("7d", 7, 3)
    LAST_28_DAYS = ("28d", 28, 10)
    LAST_90_DAYS = ("90d", 90, 30)
    LAST_180_DAYS = ("180d", 180, 60)
    LAST_365_DAYS = ("365d", 365, 120)
    LAST_16_MONTHS = ("16m", 480, 160)  # 約 16 ヶ月

    def __init__(self, code: str, days: int, min_points: int) -> None:
        check_period_definition(code, days, min_points)
        self.code = code
        self.days = days
        self.min_points = min_points

    @classmethod
    def from_code(cls, code: str) -> Period:
        """期間コード ("7d" など) から Period を返す."""
        code = _PERIOD_ALIASES.get(code, code)
        for period in cls:
            if period.code == code:
                return period
        raise ValueError(f"不明な期間コード: {code}")

    @classmethod
    def longest(cls) -> Period:
        return max(cls, key=lambda p: p.days)


# 旧 UI で使われていた期間コード
_PERIOD_ALIASES = {"24h": "today"}


class RelevanceReason(Enum):
    """関連性判定の理由."""

    CURRENT_PERIOD = "current_period"
    ESTABLISHED = "established"
    RECENT_ACTIVITY = "recent_activity"
    STRONG_HISTORY = "strong_history"
    INSUFFICIENT_DATA = "insufficient_data"


class MaturityStatus(Enum):
    """履歴の成熟度."""

    BUILDING = "building"
    CONSOLIDATING = "consolidating"
    COMPLETE = "complete"


@dataclass
class PointMetadata:
    """順位ポイントの付帯情報 (ranking_history.metadata)."""

    data_source: str | None = None  # "search_console" / "serpapi" / "manual" / "simulated" / "current"
    impressions: int | None = None
    clicks: int | None = None
    ctr: float | None = None
    is_current_only: bool = False  # 現在順位のみから合成したポイント

    @classmethod
    def from_dict(cls, data) -> PointMetadata:
        # jsonb なので配列・文字列も入りうる
        if not isinstance(data, dict):
            if data:
                logger.warning("metadata が dict ではないため無視: %r", data)
            data = {}
        return cls(
            data_source=data.get("data_source"),
            impressions=data.get("impressions"),
            clicks=data.get("clicks"),
            ctr=data.get("ctr"),
            is_current_only=bool(data.get("is_current_only", False)),
        )


@dataclass
class RankingPoint:
    """あるキーワードのある時点の順位."""

    keyword: str
    date: str | None  # ISO 8601 (不正値・欠損は判定時にスキップ)
    position: int | None  # None = 圏外
    change: int = 0  # 前回からの差分。不明なら 0
    metadata: PointMetadata = field(default_factory=PointMetadata)

    @classmethod
    def from_row(cls, row: dict) -> RankingPoint:
        """DataSource が返す行から生成する."""
        return cls(
            keyword=row["keyword"],
            date=row.get("recorded_at"),
            position=row.get("position"),
            change=row.get("change_from_previous") or 0,
            metadata=PointMetadata.from_dict(row.get("metadata")),
        )


@dataclass
class HistoryResult:
    """fetch_ranking_history の結果. success を確認してから data を使うこと."""

    success: bool
    data: dict[str, list[RankingPoint]] = field(default_factory=dict)
    error: str | None = None


@dataclass(frozen=True)
class HistoryMaturity:
    """履歴がどの程度蓄積されているか."""

    status: MaturityStatus
    days_of_data: int
    total_data_points: int


@dataclass(frozen=True)
class KeywordRelevance:
    """キーワード × 期間ごとの関連性判定結果 (呼び出しごとに再計算)."""

    keyword: str
    period: Period
    data_points: int  # 有効な日付を持つポイント数
    first_date: datetime | None
    last_date: datetime | None
    days_since_first_collection: int
    days_since_last_collection: int
    is_relevant: bool
    reason: RelevanceReason
    data_points_in_period: int
    expected_points: int
    data_coverage: int  # 0-100
    days_span: int
    # hash 対象外 (dict は hash 不可)
    has_relevance_for: dict[Period, bool] = field(default_factory=dict, hash=False)
