"""暦日付の入出力と年齢計算。

日付は時刻・タイムゾーンを持たない日単位の値として扱い、
テキストとの相互変換には d.M.yyyy 形式のみを用いる。
"""

from __future__ import annotations

from datetime import date

DATE_FORMAT = "d.M.yyyy"


def parse_date(text: str) -> date:
    """d.M.yyyy 形式の文字列を date に変換する。

    日・月のゼロ埋めは任意（"1.1.1990" と "01.01.1990" は同じ日付）。

    Raises:
        ValueError: 形式が不正、または存在しない日付の場合
    """
    parts = text.strip().split(".")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"日付は {DATE_FORMAT} 形式で指定してください: {text!r}")
    day, month, year = (int(p) for p in parts)
    if len(parts[2]) != 4:
        raise ValueError(f"年は4桁で指定してください: {text!r}")
    return date(year, month, day)


def format_date(value: date) -> str:
    return f"{value.day}.{value.month}.{value.year}"


def full_years(start: date, end: date) -> int:
    """start から end までの満年数を返す。

    end の月日が start の月日より前であれば1年少なく数える。
    2月29日生まれは平年では3月1日に年を取る。
    """
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years
