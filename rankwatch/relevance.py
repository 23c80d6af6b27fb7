"""キーワード関連性の判定モジュール.

レポート期間に対して、キーワードに信頼できるだけの履歴があるかを判定する。
判定ルール (上から順に評価し、最初に一致したものを採用):
  a. 期間内のポイント数が最低ポイント数の MIN_COVERAGE_PERCENTAGE% 以上
  b. 履歴 50 件以上かつ初回取得から 90 日以上
  c. 履歴 10 件以上かつ最終取得から 30 日以内
  d. 履歴 100 件以上
  e. 最終取得から 7 日以内
期間が短いと長期追跡キーワードでも a を満たせないため、b〜e で救済する。
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from rankwatch.config import (
    ESTABLISHED_MIN_AGE_DAYS,
    ESTABLISHED_MIN_POINTS,
    MIN_COVERAGE_PERCENTAGE,
    RECENT_MAX_DAYS,
    RECENT_MIN_POINTS,
    STRONG_HISTORY_MIN_POINTS,
    VERY_RECENT_MAX_DAYS,
)
from rankwatch.datasource import DataSource
from rankwatch.history import (
    SECONDS_PER_DAY,
    fetch_ranking_history,
    parse_point_date,
    start_of_day,
)
from rankwatch.models import KeywordRelevance, Period, RankingPoint, RelevanceReason

logger = logging.getLogger(__name__)


def _days_since(dt: datetime, now: datetime) -> int:
    return math.floor((now - dt).total_seconds() / SECONDS_PER_DAY)


def _points_in_period(dates: list[datetime], period: Period, today: datetime) -> int:
    cutoff = today.timestamp() - period.days * SECONDS_PER_DAY
    return sum(1 for d in dates if start_of_day(d).timestamp() >= cutoff)


def _covers_period(points_in_period: int, period: Period) -> bool:
    if period.min_points == 0:
        return True
    return points_in_period * 100 >= MIN_COVERAGE_PERCENTAGE * period.min_points


def _classify(
    covers_period: bool,
    total: int,
    days_since_first: int,
    days_since_last: int,
) -> tuple[bool, RelevanceReason]:
    if covers_period:
        return True, RelevanceReason.CURRENT_PERIOD
    if total >= ESTABLISHED_MIN_POINTS and days_since_first >= ESTABLISHED_MIN_AGE_DAYS:
        return True, RelevanceReason.ESTABLISHED
    if total >= RECENT_MIN_POINTS and days_since_last <= RECENT_MAX_DAYS:
        return True, RelevanceReason.RECENT_ACTIVITY
    if total >= STRONG_HISTORY_MIN_POINTS:
        return True, RelevanceReason.STRONG_HISTORY
    if total > 0 and days_since_last <= VERY_RECENT_MAX_DAYS:
        return True, RelevanceReason.RECENT_ACTIVITY
    return False, RelevanceReason.CURRENT_PERIOD


def _insufficient(keyword: str, period: Period) -> KeywordRelevance:
    return KeywordRelevance(
        keyword=keyword,
        period=period,
        data_points=0,
        first_date=None,
        last_date=None,
        days_since_first_collection=0,
        days_since_last_collection=0,
        is_relevant=False,
        reason=RelevanceReason.INSUFFICIENT_DATA,
        data_points_in_period=0,
        expected_points=period.min_points,
        data_coverage=0,
        days_span=0,
        has_relevance_for={p: False for p in Period},
    )


def evaluate_keyword_relevance(
    keyword: str,
    points: list[RankingPoint],
    period: Period,
    now: datetime,
    log: logging.Logger | None = None,
) -> KeywordRelevance:
    """1 キーワードの関連性を判定する (副作用なし. ログのみ)."""
    log = log or logger

    dates: list[datetime] = []
    for point in points:
        parsed = parse_point_date(point.date)
        if parsed is None:
            log.warning("日付が不正なポイントをスキップ: keyword=%s, date=%r", keyword, point.date)
            continue
        dates.append(parsed)

    if not dates:
        return _insufficient(keyword, period)

    dates.sort()
    first_date, last_date = dates[0], dates[-1]
    days_since_first = _days_since(first_date, now)
    days_since_last = _days_since(last_date, now)
    total = len(dates)

    today = start_of_day(now)
    has_relevance_for = {
        p: _covers_period(_points_in_period(dates, p, today), p) for p in Period
    }
    in_period = _points_in_period(dates, period, today)
    coverage = (
        min(100, round(in_period / period.min_points * 100)) if period.min_points > 0 else 0
    )

    is_relevant, reason = _classify(
        has_relevance_for[period], total, days_since_first, days_since_last
    )

    log.debug(
        "[%s] period=%s, points=%d, in_period=%d/%d, last=%d 日前, relevant=%s (%s)",
        keyword, period.code, total, in_period, period.min_points,
        days_since_last, is_relevant, reason.value,
    )

    return KeywordRelevance(
        keyword=keyword,
        period=period,
        data_points=total,
        first_date=first_date,
        last_date=last_date,
        days_since_first_collection=days_since_first,
        days_since_last_collection=days_since_last,
        is_relevant=is_relevant,
        reason=reason,
        data_points_in_period=in_period,
        expected_points=period.min_points,
        data_coverage=coverage,
        days_span=math.ceil((last_date - first_date).total_seconds() / SECONDS_PER_DAY),
        has_relevance_for=has_relevance_for,
    )


async def calculate_keyword_relevance(
    source: DataSource,
    project_id: str,
    keywords: list[str],
    period: Period,
    *,
    now: datetime | None = None,
    log: logging.Logger | None = None,
) -> dict[str, KeywordRelevance]:
    """複数キーワードの関連性を判定する.

    全期間の判定に使えるよう、履歴は最長期間分を 1 回だけ取得する。
    取得に失敗した場合は空の dict を返す (filter_relevant_keywords は全件残す)。
    """
    log = log or logger
    if not project_id or not keywords:
        return {}

    now = now or datetime.now(timezone.utc)
    log.info(
        "関連性判定 開始: project=%s, keywords=%d, period=%s",
        project_id, len(keywords), period.code,
    )

    result = await fetch_ranking_history(
        source, project_id, keywords, Period.longest().days, now=now, log=log
    )
    if not result.success:
        log.warning("履歴を取得できないため関連性判定をスキップ: %s", result.error)
        return {}

    relevance_map: dict[str, KeywordRelevance] = {}
    for keyword in keywords:
        relevance_map[keyword] = evaluate_keyword_relevance(
            keyword, result.data.get(keyword, []), period, now, log
        )

    relevant = sum(1 for r in relevance_map.values() if r.is_relevant)
    log.info("関連性判定 完了: 関連あり %d / %d", relevant, len(relevance_map))
    return relevance_map


def filter_relevant_keywords(
    keywords: list[str], relevance_map: dict[str, KeywordRelevance]
) -> list[str]:
    """関連なしと判定されたキーワードを除外する. 判定がないキーワードは残す."""
    return [
        keyword
        for keyword in keywords
        if keyword not in relevance_map or relevance_map[keyword].is_relevant is not False
    ]


def removed_keywords(
    keywords: list[str], relevance_map: dict[str, KeywordRelevance]
) -> list[str]:
    """filter_relevant_keywords で除外されるキーワード."""
    kept = set(filter_relevant_keywords(keywords, relevance_map))
    return [keyword for keyword in keywords if keyword not in kept]
