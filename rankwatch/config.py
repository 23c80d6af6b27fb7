"""設定モジュール — 環境変数・定数定義."""

import os
from pathlib import Path

from dotenv import load_dotenv

# .env はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- Supabase ---
# クライアント生成時に検証する (db.create_supabase_client)
SUPABASE_URL: str = os.environ.get("SUPABASE_URL", "")
SUPABASE_SECRET_KEY: str = os.environ.get("SUPABASE_SECRET_KEY", "")
SUPABASE_SCHEMA: str = os.environ.get("SUPABASE_SCHEMA", "public")

# --- 履歴取得 ---
DEFAULT_HISTORY_DAYS = 30

# --- 関連性判定 ---
# 期間内の最低ポイント数に対するカバー率 (GSC はデイリーではないため 50%)
MIN_COVERAGE_PERCENTAGE = 50

# 長期間追跡されているキーワード
ESTABLISHED_MIN_POINTS = 50
ESTABLISHED_MIN_AGE_DAYS = 90

# 直近に更新があるキーワード
RECENT_MIN_POINTS = 10
RECENT_MAX_DAYS = 30

# 履歴量だけで関連ありとみなす
STRONG_HISTORY_MIN_POINTS = 100

# 1 件でも 1 週間以内に取得されていれば関連あり
VERY_RECENT_MAX_DAYS = 7

# --- 履歴の成熟度 ---
MATURITY_CONSOLIDATING_DAYS = 7
MATURITY_COMPLETE_DAYS = 30

# --- シミュレーションデータ ---
SIMULATED_POSITION_MIN = 1
SIMULATED_POSITION_MAX = 100
SIMULATED_TREND_AMPLITUDE = 8.0  # 順位
SIMULATED_TREND_PERIOD_DAYS = 45
SIMULATED_NOISE = 3  # ±順位

# --- ログ ---
LOG_DIR = _PROJECT_ROOT / "logs"
