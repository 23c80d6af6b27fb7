"""順位履歴の取得・集計モジュール.

処理フロー:
  1. 基準日 (now - days, 0 時) 以降の順位を DataSource から取得
  2. キーワード単位でグルーピング
  3. 履歴が 1 件もないキーワードは現在順位から 1 ポイントを合成
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone

from rankwatch.config import (
    DEFAULT_HISTORY_DAYS,
    MATURITY_COMPLETE_DAYS,
    MATURITY_CONSOLIDATING_DAYS,
)
from rankwatch.datasource import DataSource, DataSourceError
from rankwatch.models import (
    HistoryMaturity,
    HistoryResult,
    MaturityStatus,
    PointMetadata,
    RankingPoint,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 60 * 60 * 24


def parse_point_date(value) -> datetime | None:
    """ISO 8601 文字列を UTC の datetime に変換する.

    タイムゾーンなしの値は UTC とみなす。欠損・不正値は None。
    """
    if isinstance(value, datetime):
        parsed = value
    elif not value or not isinstance(value, str):
        return None
    else:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def start_of_day(dt: datetime) -> datetime:
    """UTC の 0 時に切り捨てる."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


async def fetch_ranking_history(
    source: DataSource,
    project_id: str,
    keywords: list[str] | None = None,
    days: int = DEFAULT_HISTORY_DAYS,
    *,
    now: datetime | None = None,
    log: logging.Logger | None = None,
) -> HistoryResult:
    """プロジェクトの順位履歴をキーワード別に取得する.

    Args:
        source: 取得元
        project_id: プロジェクト ID
        keywords: 対象キーワード。None または空なら全キーワード
        days: 何日前まで遡るか
        now: 基準時刻 (省略時は現在時刻)
        log: ロガー (省略時はモジュールロガー)

    Returns:
        HistoryResult。取得失敗時は例外を送出せず success=False を返す。
    """
    log = log or logger
    now = now or datetime.now(timezone.utc)
    since = start_of_day(now - timedelta(days=days))
    wanted = set(keywords) if keywords else None

    try:
        rows = await source.fetch_points(project_id, since, keywords or None)

        grouped: dict[str, list[RankingPoint]] = {}
        for row in rows:
            keyword = row.get("keyword")
            if not keyword:
                log.warning("keyword のない履歴行をスキップ: %s", row)
                continue
            if wanted is not None and keyword not in wanted:
                continue
            grouped.setdefault(keyword, []).append(RankingPoint.from_row(row))

        # 履歴なし → 現在順位のみで 1 ポイント
        for keyword in keywords or []:
            if grouped.get(keyword):
                continue
            position = await source.fetch_current_position(project_id, keyword)
            if position is None:
                continue
            grouped[keyword] = [
                RankingPoint(
                    keyword=keyword,
                    date=now.isoformat(),
                    position=position,
                    change=0,
                    metadata=PointMetadata(data_source="current", is_current_only=True),
                )
            ]
            log.info("現在順位のみ: keyword=%s, position=%s", keyword, position)
    except DataSourceError as e:
        log.error("順位履歴の取得に失敗: project=%s, error=%s", project_id, e)
        return HistoryResult(success=False, error=str(e))
    except Exception as e:
        # 想定外の失敗もダッシュボード全体を止めないよう結果に変換する
        log.exception("順位履歴の取得中に予期しないエラー: project=%s", project_id)
        return HistoryResult(success=False, error=str(e) or type(e).__name__)

    log.info(
        "順位履歴取得: project=%s, keywords=%d, points=%d, since=%s",
        project_id, len(grouped), sum(len(p) for p in grouped.values()), since.date(),
    )
    return HistoryResult(success=True, data=grouped)


def calculate_days_span(points: list[RankingPoint]) -> int:
    """最初と最後のポイントの間隔 (日, 切り上げ). 空なら 0."""
    dates = [d for d in (parse_point_date(p.date) for p in points) if d is not None]
    if not dates:
        return 0
    return math.ceil((max(dates) - min(dates)).total_seconds() / SECONDS_PER_DAY)


def get_history_maturity(data_points: int, days_span: int) -> HistoryMaturity:
    """蓄積日数から履歴の成熟度を判定する."""
    if days_span == 0 or data_points == 0:
        return HistoryMaturity(MaturityStatus.BUILDING, days_of_data=0, total_data_points=0)
    if days_span < MATURITY_CONSOLIDATING_DAYS:
        status = MaturityStatus.BUILDING
    elif days_span < MATURITY_COMPLETE_DAYS:
        status = MaturityStatus.CONSOLIDATING
    else:
        status = MaturityStatus.COMPLETE
    return HistoryMaturity(status, days_of_data=days_span, total_data_points=data_points)


def find_current_only_keywords(data: dict[str, list[RankingPoint]]) -> list[str]:
    """現在順位のみ (履歴なし) のキーワード."""
    return [
        keyword
        for keyword, points in data.items()
        if len(points) == 1 and points[0].metadata.is_current_only
    ]


def find_missing_keywords(
    keywords: list[str], data: dict[str, list[RankingPoint]]
) -> list[str]:
    """ポイントが 1 件もないキーワード."""
    return [keyword for keyword in keywords if not data.get(keyword)]
