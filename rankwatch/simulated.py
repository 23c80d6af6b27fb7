"""デモ・テスト環境用のシミュレーション DataSource.

実データには一切アクセスしない。
順位 = 基準順位 + なめらかなトレンド + 上下限付きノイズ。
基準順位とノイズはキーワード文字列と日付から決まるため、同じ入力なら同じ系列になる。
"""

from __future__ import annotations

import logging
import math
import random
import zlib
from datetime import datetime, timedelta, timezone

from rankwatch.config import (
    SIMULATED_NOISE,
    SIMULATED_POSITION_MAX,
    SIMULATED_POSITION_MIN,
    SIMULATED_TREND_AMPLITUDE,
    SIMULATED_TREND_PERIOD_DAYS,
)

logger = logging.getLogger(__name__)

DEMO_KEYWORDS = [
    "seo tools",
    "rank tracker",
    "seo audit",
    "long tail keywords",
    "competitor analysis",
]


def _base_position(keyword: str) -> int:
    span = SIMULATED_POSITION_MAX - SIMULATED_POSITION_MIN + 1
    return SIMULATED_POSITION_MIN + zlib.crc32(keyword.encode("utf-8")) % span


def simulated_position(keyword: str, at: datetime) -> int:
    """keyword の at 時点 (日単位) のシミュレーション順位."""
    day = at.date().toordinal()
    phase = (zlib.crc32(keyword.encode("utf-8")) % 360) * math.pi / 180
    trend = SIMULATED_TREND_AMPLITUDE * math.sin(
        2 * math.pi * day / SIMULATED_TREND_PERIOD_DAYS + phase
    )
    noise = random.Random(f"{keyword}:{day}").randint(-SIMULATED_NOISE, SIMULATED_NOISE)
    position = round(_base_position(keyword) + trend) + noise
    return max(SIMULATED_POSITION_MIN, min(SIMULATED_POSITION_MAX, position))


class SimulatedDataSource:
    """1 日 1 ポイントの合成履歴を返す DataSource."""

    def __init__(self, keywords: list[str] | None = None, now: datetime | None = None) -> None:
        self.keywords = list(keywords) if keywords is not None else list(DEMO_KEYWORDS)
        self._now = now

    def _current_time(self) -> datetime:
        return self._now or datetime.now(timezone.utc)

    async def fetch_points(
        self,
        project_id: str,
        since: datetime,
        keywords: list[str] | None = None,
    ) -> list[dict]:
        now = self._current_time()
        targets = keywords or self.keywords
        days = (now - since).days

        rows: list[dict] = []
        for offset in range(days, -1, -1):
            at = now - timedelta(days=offset)
            if at < since:
                continue
            for keyword in targets:
                position = simulated_position(keyword, at)
                previous = simulated_position(keyword, at - timedelta(days=1))
                rows.append({
                    "keyword": keyword,
                    "position": position,
                    "recorded_at": at.isoformat(),
                    "change_from_previous": previous - position,
                    "metadata": {"data_source": "simulated"},
                })

        logger.info(
            "シミュレーションデータ生成: project=%s, keywords=%d, rows=%d",
            project_id, len(targets), len(rows),
        )
        return rows

    async def fetch_current_position(self, project_id: str, keyword: str) -> int | None:
        return simulated_position(keyword, self._current_time())

    async def get_project_keywords(self, project_id: str) -> list[str]:
        return list(self.keywords)

    async def aclose(self) -> None:
        """閉じるリソースはない."""
