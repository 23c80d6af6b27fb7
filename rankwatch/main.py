"""キーワード関連性レポート — メインエントリーポイント.

処理フロー:
  1. DataSource を選択 (Supabase or シミュレーション)
  2. プロジェクトのキーワード一覧を取得
  3. 指定期間に対する関連性を判定
  4. キーワードごとの判定理由・履歴の成熟度をログ出力
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from datetime import datetime

from rankwatch.config import LOG_DIR
from rankwatch.db import SupabaseDataSource, create_supabase_client
from rankwatch.history import get_history_maturity
from rankwatch.models import Period
from rankwatch.relevance import (
    calculate_keyword_relevance,
    filter_relevant_keywords,
    removed_keywords,
)
from rankwatch.simulated import SimulatedDataSource


def setup_logging() -> None:
    """ロギングの初期設定."""
    LOG_DIR.mkdir(exist_ok=True)
    log_file = LOG_DIR / f"rankwatch_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="キーワード関連性レポート")
    parser.add_argument("project_id", help="プロジェクト ID")
    parser.add_argument(
        "--period",
        type=Period.from_code,
        default=Period.LAST_28_DAYS,
        help="レポート期間 (today, 7d, 28d, 90d, 180d, 365d, 16m)",
    )
    parser.add_argument(
        "--keyword",
        action="append",
        dest="keywords",
        help="対象キーワード (複数指定可). 省略時はプロジェクトの全キーワード",
    )
    parser.add_argument(
        "--simulated",
        action="store_true",
        help="実データを使わずシミュレーションデータで実行する",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> list[str]:
    """メイン処理. 関連ありと判定されたキーワードを返す."""
    logger = logging.getLogger(__name__)
    logger.info("=== 関連性レポート 開始 ===")
    start_time = time.time()

    # 1. DataSource の選択
    if args.simulated:
        logger.warning("シミュレーションモード: 実データは使用しません")
        source = SimulatedDataSource(keywords=args.keywords)
    else:
        source = SupabaseDataSource(await create_supabase_client())

    try:
        # 2. キーワード一覧
        keywords = args.keywords or await source.get_project_keywords(args.project_id)
        if not keywords:
            logger.warning("登録済みのキーワードがありません。終了します。")
            return []

        logger.info("対象キーワード: %d 件, 期間: %s", len(keywords), args.period.code)

        # 3. 関連性判定
        relevance_map = await calculate_keyword_relevance(
            source, args.project_id, keywords, args.period
        )
    finally:
        await source.aclose()

    # 4. 結果出力
    for keyword in keywords:
        relevance = relevance_map.get(keyword)
        if relevance is None:
            logger.info("  %s → 判定なし", keyword)
            continue
        maturity = get_history_maturity(relevance.data_points, relevance.days_span)
        logger.info(
            "  %s → %s (%s) 期間内 %d/%d 件, 履歴 %d 件 / %d 日 [%s]",
            keyword,
            "関連あり" if relevance.is_relevant else "関連なし",
            relevance.reason.value,
            relevance.data_points_in_period,
            relevance.expected_points,
            relevance.data_points,
            relevance.days_span,
            maturity.status.value,
        )

    kept = filter_relevant_keywords(keywords, relevance_map)
    removed = removed_keywords(keywords, relevance_map)
    if removed:
        logger.info("データ不足で除外: %s", ", ".join(removed))

    elapsed = time.time() - start_time
    logger.info("=== 関連性レポート 完了 ===")
    logger.info("関連あり: %d 件, 除外: %d 件, 所要時間: %.1f 秒", len(kept), len(removed), elapsed)
    return kept


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging()
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
