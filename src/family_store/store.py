from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import replace
from datetime import date
from enum import Enum

from family_store.config import (
    AGE_DESCENDING,
    MATCH_SUBSTRING,
    UNKNOWN_FIRST,
    AppConfig,
)
from family_store.models import FamilyStoreError, Human, Sex, check_date_order

logger = logging.getLogger(__name__)


class ParentRole(Enum):
    FATHER = "father"
    MOTHER = "mother"


_ROLE_SEX = {ParentRole.FATHER: Sex.MALE, ParentRole.MOTHER: Sex.FEMALE}


class ParentError(Enum):
    NOT_FOUND = "not_found"
    SELF_REFERENCE = "self_reference"
    CYCLE = "cycle"
    WRONG_SEX = "wrong_sex"


class InvalidParent(FamilyStoreError):
    """父母の割り当てが関係の整合性に反する。"""

    def __init__(self, role: ParentRole, reason: ParentError, parent_id: int | None) -> None:
        super().__init__(f"{role.value} (ID {parent_id}) を設定できません: {reason.value}")
        self.role = role
        self.reason = reason
        self.parent_id = parent_id


class HumanNotFound(FamilyStoreError, LookupError):
    """更新・削除の対象がストアに存在しない。"""

    def __init__(self, human_id: int | None) -> None:
        super().__init__(f"ID {human_id} の人物は登録されていません")
        self.human_id = human_id


class HumanInUse(FamilyStoreError):
    """他の人物の父母として参照されている人物は削除できない。"""

    def __init__(self, human_id: int, child_ids: list[int]) -> None:
        super().__init__(f"ID {human_id} は {child_ids} の親として参照されています")
        self.human_id = human_id
        self.child_ids = child_ids


class ImmutableField(FamilyStoreError):
    """登録後に変更できない項目（性別）の変更。"""


class DuplicateIdentifier(FamilyStoreError):
    """採番済みの ID が再度払い出された。プログラムの不具合を示す。"""


def _parent_id(role: ParentRole, parent: Human | None) -> int | None:
    """親の ID を取り出す。未登録の候補（ID なし）は存在しない親として扱う。"""
    if parent is None:
        return None
    if parent.id is None:
        raise InvalidParent(role, ParentError.NOT_FOUND, None)
    return parent.id


class IdCounter:
    """単調増加する ID 採番器。

    複数のストアで ID 空間を共有する場合は同じインスタンスを渡す。
    """

    def __init__(self, start: int = 1) -> None:
        self._next = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value


class FamilyTreeStore:
    """人物の集合を保持し、採番・関係の検証・検索・並び替えを行う。

    人物は ID をキーとする辞書（挿入順 = ID 順）で保持する。
    外部に返す Human はすべてコピーであり、変更は update_item / set_parents
    を通してのみ反映される。
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        counter: IdCounter | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.config = config if config is not None else AppConfig()
        self._counter = counter if counter is not None else IdCounter()
        self._today = today
        self._humans: dict[int, Human] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._humans)

    def __contains__(self, human_id: object) -> bool:
        return human_id in self._humans

    # ------------------------------------------------------------------
    # 追加・更新・削除
    # ------------------------------------------------------------------

    def add(self, candidate: Human) -> Human:
        """候補の人物に ID を採番して登録し、登録内容を返す。

        Raises:
            InvalidParent: 父母が存在しない、または性別が合わない場合
            InvalidDateOrder: 死亡日が誕生日より前の場合
            ValueError: 既に ID を持つ人物を渡した場合
        """
        if candidate.id is not None:
            raise ValueError(f"ID {candidate.id} は採番済みです。update_item を使用してください")
        with self._lock:
            check_date_order(candidate.birth_date, candidate.death_date)
            self._validate_parents(candidate, candidate.father_id, candidate.mother_id)

            new_id = self._counter.next_id()
            if new_id in self._humans:
                raise DuplicateIdentifier(f"ID {new_id} は既に使用されています")
            stored = replace(candidate, id=new_id)
            self._humans[new_id] = stored
            logger.debug("人物を追加しました: id=%d name=%r", new_id, stored.name)
            return replace(stored)

    def set_parents(self, human: Human, father: Human | None, mother: Human | None) -> Human:
        """父母を検証して設定する。検証に失敗した場合は何も変更しない。

        Raises:
            HumanNotFound: human が登録されていない場合
            InvalidParent: 父母のいずれかが検証に失敗した場合
        """
        with self._lock:
            stored = self._require(human.id)
            try:
                father_id = _parent_id(ParentRole.FATHER, father)
                mother_id = _parent_id(ParentRole.MOTHER, mother)
                self._validate_parents(stored, father_id, mother_id)
            except InvalidParent as e:
                logger.info("父母の設定を拒否しました: id=%d %s", stored.id, e)
                raise
            stored.set_family_ties(
                self._humans[father_id] if father_id is not None else None,
                self._humans[mother_id] if mother_id is not None else None,
            )
            logger.debug("父母を設定しました: id=%d father=%s mother=%s", stored.id, father_id, mother_id)
            return replace(stored)

    def update_item(self, human: Human) -> Human:
        """呼び出し側で変更した人物の内容を検証し、ストアに反映する。

        検証に失敗した場合は更新全体を拒否し、ストアの内容は変わらない。

        Raises:
            HumanNotFound: human が登録されていない場合
            ImmutableField: 性別が変更されている場合
            InvalidDateOrder: 死亡日が誕生日より前の場合
            InvalidParent: 父母が検証に失敗した場合
        """
        with self._lock:
            stored = self._require(human.id)
            try:
                if human.sex is not stored.sex:
                    raise ImmutableField(f"ID {stored.id} の性別は変更できません")
                check_date_order(human.birth_date, human.death_date)
                self._validate_parents(stored, human.father_id, human.mother_id)
            except FamilyStoreError as e:
                logger.info("更新を拒否しました: id=%d %s", stored.id, e)
                raise
            updated = replace(human)
            self._humans[stored.id] = updated
            logger.debug("人物を更新しました: id=%d", stored.id)
            return replace(updated)

    def remove(self, human: Human) -> Human:
        """人物を削除する。削除した ID は再利用されない。

        Raises:
            HumanNotFound: human が登録されていない場合
            HumanInUse: 他の人物の父母として参照されている場合
        """
        with self._lock:
            stored = self._require(human.id)
            child_ids = [c.id for c in self._children_of(stored.id)]
            if child_ids:
                raise HumanInUse(stored.id, child_ids)  # type: ignore[arg-type]
            del self._humans[stored.id]
            logger.debug("人物を削除しました: id=%d", stored.id)
            return replace(stored)

    # ------------------------------------------------------------------
    # 検索
    # ------------------------------------------------------------------

    def find_by_id(self, human_id: int) -> Human | None:
        with self._lock:
            human = self._humans.get(human_id)
            return replace(human) if human is not None else None

    def find_by_name(self, name: str) -> list[Human]:
        """名前で検索し、一致した人物を登録順に返す。

        一致方式（完全一致 / 部分一致）と大文字小文字の区別は
        config.search に従う。該当者がいなければ空リスト。
        """
        search = self.config.search
        query = name if search.case_sensitive else name.casefold()

        def matches(candidate: str) -> bool:
            if not search.case_sensitive:
                candidate = candidate.casefold()
            if search.match == MATCH_SUBSTRING:
                return query in candidate
            return candidate == query

        with self._lock:
            return [replace(h) for h in self._humans.values() if matches(h.name)]

    def get_family_tree(self) -> list[Human]:
        """登録されている全員を ID 順に返す。"""
        with self._lock:
            return [replace(h) for h in self._humans.values()]

    def get_father(self, human: Human) -> Human | None:
        return self._resolve(human.father_id)

    def get_mother(self, human: Human) -> Human | None:
        return self._resolve(human.mother_id)

    def get_parents(self, human: Human) -> list[Human]:
        """指定された人物の親を父、母の順に返す。"""
        return [p for p in (self.get_father(human), self.get_mother(human)) if p is not None]

    def get_children(self, human: Human) -> list[Human]:
        """指定された人物の子供を登録順に返す。"""
        with self._lock:
            return [replace(c) for c in self._children_of(human.id)]

    # ------------------------------------------------------------------
    # 並び替え
    # ------------------------------------------------------------------

    def sort_by_name(self) -> list[Human]:
        with self._lock:
            humans = [replace(h) for h in self._humans.values()]
        return sorted(humans, key=lambda h: (h.name, h.id))

    def sort_by_birth_date(self) -> list[Human]:
        """誕生日の昇順。誕生日不明の人物は config.sort.unknown_dates に従う。"""
        unknown_rank = 0 if self.config.sort.unknown_dates == UNKNOWN_FIRST else 2
        with self._lock:
            humans = [replace(h) for h in self._humans.values()]
        return sorted(
            humans,
            key=lambda h: (
                1 if h.birth_date is not None else unknown_rank,
                h.birth_date or date.min,
                h.id,
            ),
        )

    def sort_by_age(self) -> list[Human]:
        """満年齢順。年齢は呼び出し時点で計算する。

        死亡している人物は死亡日時点の年齢で比較する。
        誕生日不明の人物は config.sort.unknown_dates に従って
        年齢の分かる全員の後（または前）に置く。
        """
        sort = self.config.sort
        unknown_rank = 0 if sort.unknown_dates == UNKNOWN_FIRST else 2
        sign = -1 if sort.age_order == AGE_DESCENDING else 1
        today = self._today()
        with self._lock:
            humans = [replace(h) for h in self._humans.values()]

        def key(h: Human) -> tuple[int, int, int | None]:
            age = h.age(today)
            if age is None:
                return (unknown_rank, 0, h.id)
            return (1, sign * age, h.id)

        return sorted(humans, key=key)

    # ------------------------------------------------------------------
    # 内部処理
    # ------------------------------------------------------------------

    def _require(self, human_id: int | None) -> Human:
        if human_id is None or human_id not in self._humans:
            raise HumanNotFound(human_id)
        return self._humans[human_id]

    def _resolve(self, human_id: int | None) -> Human | None:
        if human_id is None:
            return None
        return self.find_by_id(human_id)

    def _children_of(self, human_id: int | None) -> list[Human]:
        return [
            h
            for h in self._humans.values()
            if human_id is not None and human_id in (h.father_id, h.mother_id)
        ]

    def _ancestor_ids(self, human_id: int) -> Iterator[int]:
        """human_id から父母を辿って到達できる ID を列挙する（自身は含まない）。"""
        seen: set[int] = set()
        stack = [human_id]
        while stack:
            current = self._humans.get(stack.pop())
            if current is None:
                continue
            for pid in (current.father_id, current.mother_id):
                if pid is not None and pid not in seen:
                    seen.add(pid)
                    yield pid
                    stack.append(pid)

    def _validate_parents(
        self, human: Human, father_id: int | None, mother_id: int | None
    ) -> None:
        """父、母の順に検証する。

        各親について 存在 → 自己参照 → 循環 → 性別 の順に確認し、
        最初に失敗した項目で InvalidParent を送出する。
        """
        for role, parent_id in ((ParentRole.FATHER, father_id), (ParentRole.MOTHER, mother_id)):
            if parent_id is None:
                continue
            parent = self._humans.get(parent_id)
            if parent is None:
                raise InvalidParent(role, ParentError.NOT_FOUND, parent_id)
            if human.id is not None:
                if parent_id == human.id:
                    raise InvalidParent(role, ParentError.SELF_REFERENCE, parent_id)
                if human.id in self._ancestor_ids(parent_id):
                    raise InvalidParent(role, ParentError.CYCLE, parent_id)
            if parent.sex is not _ROLE_SEX[role]:
                raise InvalidParent(role, ParentError.WRONG_SEX, parent_id)
