"""
上書き確認の問い合わせ

確認コラボレーターは (role, current, fetched) のリストを受け取り bool（または bool の awaitable）を返す呼び出し可能オブジェクト。
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

MESSAGE_HEADER = [
    "De gevonden adresgegevens verschillen van de ingevulde waarden.",
    "Wil je het adres automatisch laten corrigeren met de volgende waarden?",
    "",
]

ACCEPT_ANSWERS = {"y", "yes", "j", "ja"}


def build_confirmation_message(
    suggestions: Iterable[Tuple[str, str, str]], labels: Optional[Dict[str, str]] = None
) -> str:
    labels = labels or {}
    lines = [
        f"{labels.get(role, role)}: \"{current}\" → \"{fetched}\""
        for role, current, fetched in suggestions
    ]
    return "\n".join(MESSAGE_HEADER + lines)


class PolicyConfirmation:
    """固定応答（自動化・ヘッドレス実行用）"""

    def __init__(self, accept: bool):
        self.accept = accept

    def __call__(self, suggestions: List[Tuple[str, str, str]]) -> bool:
        logger.debug(f"Auto-{'accepting' if self.accept else 'declining'} {len(suggestions)} suggestion(s)")
        return self.accept


class ConsoleConfirmation:
    """端末で確認する（入力待ちはスレッドに逃がしイベントループを塞がない）

    スレッド内の input() は取り消せないため、呼び出し側がキャンセルされても読み取りは残る。
    残った読み取りは次の確認で再利用し、標準入力を読むスレッドは常に最大1つにする。
    """

    def __init__(self, labels: Optional[Dict[str, str]] = None, input_func=input, output_func=print):
        self.labels = labels
        self.input_func = input_func
        self.output_func = output_func
        self._pending_read: Optional["asyncio.Future[str]"] = None

    async def __call__(self, suggestions: List[Tuple[str, str, str]]) -> bool:
        self.output_func(build_confirmation_message(suggestions, self.labels))
        if self._pending_read is None or self._pending_read.done():
            self._pending_read = asyncio.ensure_future(asyncio.to_thread(self.input_func, "[j/N] "))
        else:
            logger.debug("Reusing pending console read for new confirmation")
        # shield: 呼び出し側のキャンセルで読み取り自体は捨てない
        answer = await asyncio.shield(self._pending_read)
        self._pending_read = None
        return (answer or "").strip().lower() in ACCEPT_ANSWERS


def confirmation_for_policy(policy: str, labels: Optional[Dict[str, str]] = None):
    """confirm_policy 設定から確認コラボレーターを生成"""
    policy = (policy or "ask").strip().lower()
    if policy == "accept":
        return PolicyConfirmation(True)
    if policy == "decline":
        return PolicyConfirmation(False)
    if policy == "ask":
        return ConsoleConfirmation(labels)
    raise ValueError(f"Unknown confirm policy: {policy}")
