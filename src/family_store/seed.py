from __future__ import annotations

import tomllib
from pathlib import Path

from family_store.config import AppConfig
from family_store.dates import parse_date
from family_store.models import FamilyStoreError, Human, Sex
from family_store.store import FamilyTreeStore

REQUIRED_KEYS = {"name", "sex"}
KNOWN_KEYS = REQUIRED_KEYS | {"birth", "death", "father", "mother"}


class SeedError(FamilyStoreError):
    """初期データファイル読み込み時のエラー。"""


def load_seed(path: str | Path, config: AppConfig | None = None) -> FamilyTreeStore:
    """初期データの TOML ファイルを読み込み、人物を登録したストアを返す。

    各人物は [[humans]] テーブルで記述する。father / mother には
    それより前に記述した人物の位置（1始まり）を指定する。
    空のストアに順に追加するため、位置がそのまま ID になる。

    Args:
        path: TOML ファイルのパス
        config: ストアに渡す設定

    Returns:
        FamilyTreeStore オブジェクト

    Raises:
        SeedError: 読み込み・バリデーションエラー
    """
    path = Path(path)
    if not path.exists():
        raise SeedError(f"ファイルが見つかりません: {path}")

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SeedError(f"TOML の構文エラー: {e}") from e

    entries = data.get("humans", [])
    if not isinstance(entries, list):
        raise SeedError("humans は [[humans]] テーブルの配列で記述してください")

    store = FamilyTreeStore(config)
    for i, entry in enumerate(entries, start=1):
        try:
            candidate = _parse_entry(entry, i)
            store.add(candidate)
        except (ValueError, FamilyStoreError) as e:
            raise SeedError(f"{i}番目の人物: {e}") from e
    return store


def _parse_entry(entry: object, position: int) -> Human:
    """1件の [[humans]] テーブルを候補の Human に変換する。"""
    if not isinstance(entry, dict):
        raise ValueError("テーブル形式ではありません")

    missing = REQUIRED_KEYS - entry.keys()
    if missing:
        raise ValueError(f"必須項目が不足しています: {', '.join(sorted(missing))}")
    unknown = entry.keys() - KNOWN_KEYS
    if unknown:
        raise ValueError(f"不明な項目があります: {', '.join(sorted(unknown))}")

    sex_str = str(entry["sex"]).strip().upper()
    try:
        sex = Sex(sex_str)
    except ValueError:
        raise ValueError(f"不正な性別値です: {entry['sex']}")

    human = Human(name=str(entry["name"]), sex=sex)
    if "birth" in entry:
        human.set_birth_date(parse_date(str(entry["birth"])))
    if "death" in entry:
        human.set_death_date(parse_date(str(entry["death"])))
    human.father_id = _parse_reference(entry.get("father"), "father", position)
    human.mother_id = _parse_reference(entry.get("mother"), "mother", position)
    return human


def _parse_reference(value: object, key: str, position: int) -> int | None:
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{key} は人物の位置（整数）で指定してください")
    if not 1 <= value < position:
        raise ValueError(f"{key} にはこの人物より前の位置を指定してください: {value}")
    return value
