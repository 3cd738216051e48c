from __future__ import annotations

from datetime import date

import pytest

from family_store.dates import format_date, full_years, parse_date
from family_store.models import Human, InvalidDateOrder, Sex


class TestHumanConstruction:
    def test_candidate_has_no_id(self) -> None:
        human = Human("Alice", Sex.FEMALE)
        assert human.id is None
        assert human.birth_date is None
        assert human.death_date is None
        assert human.father_id is None
        assert human.mother_id is None


class TestDateOrder:
    def test_death_before_birth_rejected(self) -> None:
        human = Human("Alice", Sex.FEMALE)
        human.set_birth_date(date(1990, 1, 1))
        with pytest.raises(InvalidDateOrder):
            human.set_death_date(date(1989, 12, 31))
        assert human.death_date is None

    def test_birth_after_death_rejected(self) -> None:
        """死亡日が先に設定されていても順序を検証する。"""
        human = Human("Bob", Sex.MALE)
        human.set_death_date(date(2000, 5, 1))
        with pytest.raises(InvalidDateOrder):
            human.set_birth_date(date(2001, 1, 1))
        assert human.birth_date is None

    def test_same_day_allowed(self) -> None:
        human = Human("Bob", Sex.MALE)
        human.set_birth_date(date(2000, 5, 1))
        human.set_death_date(date(2000, 5, 1))
        assert human.death_date == date(2000, 5, 1)

    def test_clear_birth_date(self) -> None:
        human = Human("Bob", Sex.MALE, birth_date=date(2000, 5, 1))
        human.set_birth_date(None)
        assert human.birth_date is None

    def test_invalid_date_order_is_value_error(self) -> None:
        human = Human("Bob", Sex.MALE, birth_date=date(2000, 5, 1))
        with pytest.raises(ValueError):
            human.set_death_date(date(1999, 1, 1))


class TestFamilyTies:
    def test_assigns_ids(self) -> None:
        father = Human("Bob", Sex.MALE, id=2)
        mother = Human("Alice", Sex.FEMALE, id=1)
        child = Human("Carol", Sex.FEMALE, id=3)
        child.set_family_ties(father, mother)
        assert child.father_id == 2
        assert child.mother_id == 1

    def test_none_clears(self) -> None:
        child = Human("Carol", Sex.FEMALE, id=3, father_id=2, mother_id=1)
        child.set_family_ties(None, None)
        assert child.father_id is None
        assert child.mother_id is None

    def test_no_validation(self) -> None:
        """性別の検証はストアの責務であり、Human は値をそのまま保持する。"""
        child = Human("Carol", Sex.FEMALE, id=3)
        child.set_family_ties(Human("Alice", Sex.FEMALE, id=1), None)
        assert child.father_id == 1


class TestAge:
    def test_age_alive(self) -> None:
        human = Human("Alice", Sex.FEMALE, birth_date=date(1990, 6, 15))
        assert human.age(date(2020, 6, 14)) == 29
        assert human.age(date(2020, 6, 15)) == 30

    def test_age_at_death(self) -> None:
        human = Human("Alice", Sex.FEMALE, birth_date=date(1900, 1, 1), death_date=date(1950, 1, 1))
        assert human.age(date(2020, 1, 1)) == 50

    def test_age_unknown(self) -> None:
        assert Human("Dan", Sex.MALE).age(date(2020, 1, 1)) is None


class TestDates:
    def test_parse_date(self) -> None:
        assert parse_date("1.1.1990") == date(1990, 1, 1)
        assert parse_date("05.12.2001") == date(2001, 12, 5)

    @pytest.mark.parametrize("text", ["1990-01-01", "1.1.90", "32.1.1990", "", "a.b.cccc"])
    def test_parse_invalid(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_date(text)

    def test_format_date(self) -> None:
        assert format_date(date(1990, 1, 5)) == "5.1.1990"

    def test_full_years_leap_day(self) -> None:
        """2月29日生まれは平年では3月1日に年を取る。"""
        born = date(2000, 2, 29)
        assert full_years(born, date(2001, 2, 28)) == 0
        assert full_years(born, date(2001, 3, 1)) == 1
        assert full_years(born, date(2004, 2, 29)) == 4
