from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from family_store.dates import full_years


class Sex(Enum):
    MALE = "M"
    FEMALE = "F"


class FamilyStoreError(Exception):
    """家系図ストアが送出する例外の基底クラス。"""


class InvalidDateOrder(FamilyStoreError, ValueError):
    """死亡日が誕生日より前になる日付の設定。"""

    def __init__(self, birth_date: date, death_date: date) -> None:
        super().__init__(f"死亡日 {death_date} が誕生日 {birth_date} より前です")
        self.birth_date = birth_date
        self.death_date = death_date


def check_date_order(birth_date: date | None, death_date: date | None) -> None:
    if birth_date is not None and death_date is not None and death_date < birth_date:
        raise InvalidDateOrder(birth_date, death_date)


@dataclass
class Human:
    """家系図に登録される一人の人物。

    id はストアへの追加時に採番されるため、候補（未登録）の間は None。
    父母は人物そのものではなく ID で参照し、解決はストアが行う。
    """

    name: str
    sex: Sex
    id: int | None = None
    birth_date: date | None = None
    death_date: date | None = None
    father_id: int | None = None
    mother_id: int | None = None

    def set_birth_date(self, birth_date: date | None) -> None:
        check_date_order(birth_date, self.death_date)
        self.birth_date = birth_date

    def set_death_date(self, death_date: date | None) -> None:
        check_date_order(self.birth_date, death_date)
        self.death_date = death_date

    def set_family_ties(self, father: Human | None, mother: Human | None) -> None:
        """父母を設定する。None は「不明」を表し、既存の参照を消す。

        性別や循環の検証は行わない（ストアの責務）。
        """
        self.father_id = father.id if father is not None else None
        self.mother_id = mother.id if mother is not None else None

    def age(self, today: date | None = None) -> int | None:
        """満年齢。死亡していれば死亡日時点、誕生日が不明なら None。"""
        if self.birth_date is None:
            return None
        end = self.death_date or today or date.today()
        return full_years(self.birth_date, end)
