"""
住所フィールド値の正規化ユーティリティ

比較・署名生成のための純粋関数のみを置く（副作用なし）
"""

import re
from typing import Any, Iterable, Optional, Pattern, Tuple

_WHITESPACE_RE = re.compile(r"\s+")
POSTALCODE_RE = re.compile(r"^[0-9]{4}[A-Z]{2}$")


def normalise_value(value: Any) -> str:
    """前後空白除去・連続空白の圧縮・小文字化"""
    if value is None:
        return ""
    return _WHITESPACE_RE.sub(" ", str(value).strip()).lower()


def normalise_postalcode(value: Any) -> str:
    """郵便番号: 空白をすべて除去して大文字化（'1234 ab' -> '1234AB'）"""
    if value is None:
        return ""
    return _WHITESPACE_RE.sub("", str(value)).upper()


def normalise_number(value: Any) -> str:
    """番地: 前後空白のみ除去（'10a' と '10A' は別番地として扱う）"""
    if value is None:
        return ""
    return str(value).strip()


def is_valid_postalcode(value: str, pattern: Optional[Pattern[str]] = None) -> bool:
    """正規化済み郵便番号が4桁+2文字の形か"""
    return bool((pattern or POSTALCODE_RE).match(value or ""))


def query_signature(postalcode: str, number: str) -> str:
    """照会署名: 正規化郵便番号|番地"""
    return f"{normalise_postalcode(postalcode)}|{normalise_number(number)}"


def suggestion_signature(triples: Iterable[Tuple[str, Any, Any]]) -> str:
    """提案署名: (role, current, fetched) を正規化・ソートして連結（順序非依存）"""
    parts = [
        f"{role}:{normalise_value(current)}->{normalise_value(fetched)}"
        for role, current, fetched in triples
    ]
    return "|".join(sorted(parts))
