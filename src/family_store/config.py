"""設定ファイルの読み込みと設定値の管理。

TOML 形式の設定ファイルを読み込み、AppConfig として返す。
設定ファイルが存在しない場合はデフォルト値を使用する。
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from family_store.models import FamilyStoreError

MATCH_EXACT = "exact"
MATCH_SUBSTRING = "substring"
UNKNOWN_LAST = "last"
UNKNOWN_FIRST = "first"
AGE_ASCENDING = "ascending"
AGE_DESCENDING = "descending"


class ConfigError(FamilyStoreError):
    """設定ファイル読み込み時のエラー。"""


@dataclass
class SearchConfig:
    """名前検索の方式。"""

    match: str = MATCH_EXACT       # 完全一致 / 部分一致
    case_sensitive: bool = False


@dataclass
class SortConfig:
    """並び替えの方針。"""

    unknown_dates: str = UNKNOWN_LAST    # 誕生日不明の人物を末尾 / 先頭に置く
    age_order: str = AGE_ASCENDING


@dataclass
class AppConfig:
    """アプリケーション全体の設定。"""

    search: SearchConfig = field(default_factory=SearchConfig)
    sort: SortConfig = field(default_factory=SortConfig)


# ---------------------------------------------------------------------------
# バリデーション
# ---------------------------------------------------------------------------

_CHOICES: dict[str, tuple[str, ...]] = {
    "search.match": (MATCH_EXACT, MATCH_SUBSTRING),
    "sort.unknown_dates": (UNKNOWN_LAST, UNKNOWN_FIRST),
    "sort.age_order": (AGE_ASCENDING, AGE_DESCENDING),
}


def _validate_choice(value: object, key: str) -> str:
    choices = _CHOICES[key]
    if not isinstance(value, str) or value not in choices:
        raise ConfigError(
            f"設定エラー: {key} は {' / '.join(choices)} のいずれかで指定してください"
        )
    return value


def _build_search(data: dict[str, object]) -> SearchConfig:
    cfg = SearchConfig()
    if "match" in data:
        cfg.match = _validate_choice(data["match"], "search.match")
    if "case_sensitive" in data:
        val = data["case_sensitive"]
        if not isinstance(val, bool):
            raise ConfigError("設定エラー: search.case_sensitive は true / false で指定してください")
        cfg.case_sensitive = val
    return cfg


def _build_sort(data: dict[str, object]) -> SortConfig:
    cfg = SortConfig()
    for key in ("unknown_dates", "age_order"):
        if key in data:
            setattr(cfg, key, _validate_choice(data[key], f"sort.{key}"))
    return cfg


# ---------------------------------------------------------------------------
# ロード
# ---------------------------------------------------------------------------


def load_config(path: Path | None) -> AppConfig:
    """設定ファイルを読み込んで AppConfig を返す。

    Args:
        path: 設定ファイルのパス。None の場合はカレントディレクトリの
              config.toml を探索し、存在しなければデフォルト値を使用する。

    Returns:
        AppConfig オブジェクト。

    Raises:
        ConfigError: TOML の構文エラー、または設定値が不正な場合
    """
    config_path = path if path is not None else Path("config.toml")

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"設定エラー: {config_path} を読み込めません: {e}") from e

    app_config = AppConfig()

    search = data.get("search")
    if isinstance(search, dict):
        app_config.search = _build_search(search)

    sort = data.get("sort")
    if isinstance(sort, dict):
        app_config.sort = _build_sort(sort)

    return app_config
