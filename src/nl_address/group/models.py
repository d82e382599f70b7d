"""
住所グループのデータ構造

フィールドハンドルはダックタイピングで扱う（以下の非同期メソッドを持つ任意のオブジェクト）:
- ``await handle.read() -> str``      現在の表示値
- ``await handle.write(value: str)``  表示値の書き込み
- ``await handle.is_attached() -> bool``  要素がまだ存在するか
"""

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional


class ReconciliationOutcome(Enum):
    """反映結果の種別"""
    NOOP = "noop"
    UPDATED = "updated"
    SUPPRESSED = "suppressed"
    ACCEPTED = "accepted"
    DECLINED = "declined"


@dataclass
class InFlightLookup:
    """実行中の照会（グループ毎に最大1件）"""
    signature: str
    task: Optional["asyncio.Task[Any]"] = None

    def cancel(self) -> None:
        if self.task is not None and not self.task.done():
            self.task.cancel()


@dataclass
class FieldUpdate:
    """空フィールドへの無確認書き込み"""
    role: str
    handle: Any
    value: str


@dataclass
class Suggestion:
    """既存値を上書きする提案（要確認）"""
    role: str
    handle: Any
    current_value: str
    value: str

    def as_triple(self):
        return (self.role, self.current_value, self.value)


@dataclass
class AddressGroup:
    """1つの論理住所を構成するフィールド群と照会状態"""
    id: str
    fields: Dict[str, Any] = field(default_factory=dict)
    debounce_handle: Optional[asyncio.TimerHandle] = None
    in_flight: Optional[InFlightLookup] = None
    last_completed_signature: Optional[str] = None
    last_declined_signature: Optional[str] = None
    applying: bool = False
    # evaluate() の開始毎に加算。読み取り後に自分が最新でなければ破棄する
    eval_seq: int = 0

    @contextmanager
    def applying_section(self) -> Iterator["AddressGroup"]:
        """書き戻し中の再入防止区間（例外時も必ず解除）"""
        self.applying = True
        try:
            yield self
        finally:
            self.applying = False

    def reset_signatures(self) -> None:
        self.last_completed_signature = None
        self.last_declined_signature = None
