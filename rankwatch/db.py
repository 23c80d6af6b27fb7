"""Supabase データベース操作モジュール.

順位履歴は ranking_history、キーワードと現在順位は keyword_rankings に保存されている。
ranking_history.keyword_ranking_id → keyword_rankings.id で結合する。
"""

from __future__ import annotations

import logging
from datetime import datetime

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from rankwatch.config import SUPABASE_SCHEMA, SUPABASE_SECRET_KEY, SUPABASE_URL
from rankwatch.datasource import DataSourceError

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Supabase の接続設定が不足している."""


async def create_supabase_client() -> AsyncClient:
    """環境変数の設定から非同期クライアントを生成する."""
    if not SUPABASE_URL or not SUPABASE_SECRET_KEY:
        raise ConfigError("SUPABASE_URL / SUPABASE_SECRET_KEY が設定されていません")
    return await acreate_client(SUPABASE_URL, SUPABASE_SECRET_KEY)


class SupabaseDataSource:
    """Supabase から順位履歴を取得する DataSource."""

    def __init__(self, client: AsyncClient, schema: str = SUPABASE_SCHEMA) -> None:
        # schema() は呼ぶたびに PostgREST クライアントを作るので 1 つだけ保持する
        self._db = client.schema(schema)

    def _table(self, name: str):
        """設定スキーマのテーブルを参照する."""
        return self._db.table(name)

    async def aclose(self) -> None:
        """PostgREST クライアントの HTTP セッションを閉じる."""
        await self._db.aclose()

    async def _execute(self, query, what: str) -> list[dict]:
        try:
            resp = await query.execute()
        except (APIError, httpx.HTTPError) as e:
            logger.error("%s の取得に失敗: %s", what, e)
            raise DataSourceError(f"{what} の取得に失敗しました: {e}") from e
        return resp.data or []

    async def fetch_points(
        self,
        project_id: str,
        since: datetime,
        keywords: list[str] | None = None,
    ) -> list[dict]:
        """ranking_history から since 以降の順位を取得する (recorded_at 昇順)."""
        query = (
            self._table("ranking_history")
            .select(
                "id, position, recorded_at, change_from_previous, metadata, "
                "keyword_rankings!inner(keyword, project_id)"
            )
            .eq("keyword_rankings.project_id", project_id)
            .gte("recorded_at", since.isoformat())
        )
        if keywords:
            query = query.in_("keyword_rankings.keyword", keywords)
        query = query.order("recorded_at")

        data = await self._execute(query, "ranking_history")

        results = []
        for row in data:
            ranking = row.get("keyword_rankings", {}) or {}
            results.append({
                "keyword": ranking.get("keyword"),
                "position": row.get("position"),
                "recorded_at": row.get("recorded_at"),
                "change_from_previous": row.get("change_from_previous"),
                "metadata": row.get("metadata"),
            })

        logger.debug("ranking_history から %d 件取得 (project=%s)", len(results), project_id)
        return results

    async def fetch_current_position(self, project_id: str, keyword: str) -> int | None:
        """keyword_rankings.current_position を返す."""
        query = (
            self._table("keyword_rankings")
            .select("current_position")
            .eq("project_id", project_id)
            .eq("keyword", keyword)
            .limit(1)
        )
        data = await self._execute(query, "keyword_rankings")
        if not data:
            return None
        return data[0].get("current_position")

    async def get_project_keywords(self, project_id: str) -> list[str]:
        """プロジェクトに登録済みのキーワード一覧を返す (重複除去・名前順)."""
        query = (
            self._table("keyword_rankings")
            .select("keyword")
            .eq("project_id", project_id)
            .order("keyword")
        )
        data = await self._execute(query, "keyword_rankings")
        return list(dict.fromkeys(row["keyword"] for row in data if row.get("keyword")))
