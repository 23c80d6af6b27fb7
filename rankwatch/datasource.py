"""順位データ取得元のプロトコル."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class DataSourceError(Exception):
    """データ取得 (通信・クエリ) の失敗."""


class DataSource(Protocol):
    """順位履歴の取得元.

    実装: db.SupabaseDataSource (本番), simulated.SimulatedDataSource (デモ・テスト)
    """

    async def fetch_points(
        self,
        project_id: str,
        since: datetime,
        keywords: list[str] | None = None,
    ) -> list[dict]:
        """since 以降の順位履歴を recorded_at 昇順で返す.

        Returns:
            [
                {
                    "keyword": str,
                    "position": int | None,
                    "recorded_at": str,  # ISO 8601
                    "change_from_previous": int | None,
                    "metadata": dict | None,
                },
                ...
            ]

        Raises:
            DataSourceError: 取得に失敗した場合
        """
        ...

    async def fetch_current_position(self, project_id: str, keyword: str) -> int | None:
        """キーワードの現在順位を返す. 未登録・圏外は None."""
        ...
