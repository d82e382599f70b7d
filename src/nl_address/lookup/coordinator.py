"""
住所照会コーディネーター

照会要否の判定、照会署名による重複排除、古い照会のキャンセル（最新優先）を担当する。
グループ毎に実行中の照会は常に最大1件。
"""

import asyncio
import logging
import re
from typing import Any, Callable, Optional, Tuple

from ..group.models import AddressGroup, InFlightLookup
from ..group.registry import GroupRegistry
from ..utils.config_loader import BinderSettings, LookupSettings
from ..utils.error_classifier import ErrorClassifier
from ..utils.normalizer import (
    is_valid_postalcode,
    normalise_number,
    normalise_postalcode,
    query_signature,
)

logger = logging.getLogger(__name__)


class LookupCoordinator:
    """照会の発行・重複排除・差し替えを管理する"""

    def __init__(
        self,
        registry: GroupRegistry,
        transport: Any,
        engine: Any,
        diagnostics: Callable[[str], None],
        lookup_settings: Optional[LookupSettings] = None,
        binder_settings: Optional[BinderSettings] = None,
    ):
        self.registry = registry
        self.transport = transport
        self.engine = engine
        self.diagnostics = diagnostics
        self.lookup_settings = lookup_settings or LookupSettings()
        self.binder_settings = binder_settings or BinderSettings()
        self._postalcode_re = re.compile(self.lookup_settings.postalcode_pattern)

    async def evaluate(self, group_id: str) -> Optional["asyncio.Task[Any]"]:
        """照会が必要なら発行する

        未入力・郵便番号の形式不正・重複照会はエラーではなく、何もせず None を返す。

        Returns:
            発行した照会タスク（発行しなかった場合は None）
        """
        group = self.registry.get(group_id)
        if group is None or group.applying:
            return None

        group.eval_seq += 1
        seq = group.eval_seq

        postal_handle = group.fields.get("postalcode")
        number_handle = group.fields.get("number")
        if postal_handle is None or number_handle is None:
            return None

        values = await self._read_required(group, postal_handle, number_handle)
        if group.eval_seq != seq:
            # 読み取り中に新しい評価が始まった。古い値で照会を差し替えない
            logger.debug(f"Stale evaluation dropped for group {group.id}")
            return None
        if values is None:
            return None

        postalcode = normalise_postalcode(values[0])
        number = normalise_number(values[1])
        if not postalcode or not number:
            if self.binder_settings.reset_signatures_on_clear:
                group.reset_signatures()
            return None

        if not is_valid_postalcode(postalcode, self._postalcode_re):
            return None

        # 読み取り中に書き戻しが始まった場合
        if group.applying:
            return None

        signature = query_signature(postalcode, number)

        if group.in_flight is not None and group.in_flight.signature == signature:
            return None

        if group.last_completed_signature == signature:
            return None

        return self._start_lookup(group, signature, postalcode, number)

    def cancel_all(self) -> None:
        """全グループの実行中照会をキャンセル（終了処理用）"""
        for group in self.registry:
            if group.in_flight is not None:
                group.in_flight.cancel()
                group.in_flight = None

    async def _read_required(
        self, group: AddressGroup, postal_handle: Any, number_handle: Any
    ) -> Optional[Tuple[str, str]]:
        try:
            if not await postal_handle.is_attached() or not await number_handle.is_attached():
                return None
            return (await postal_handle.read(), await number_handle.read())
        except Exception as e:
            # 要素の消失・ページ遷移中など。次の入力で再評価される
            logger.debug(f"Could not read required fields for group {group.id}: {e}")
            return None

    def _start_lookup(
        self, group: AddressGroup, signature: str, postalcode: str, number: str
    ) -> "asyncio.Task[Any]":
        previous = group.in_flight
        lookup = InFlightLookup(signature=signature)
        if previous is not None:
            previous.cancel()
            logger.debug(f"Superseded in-flight lookup for group {group.id}")

        group.in_flight = lookup
        lookup.task = asyncio.ensure_future(self._run_lookup(group, lookup, postalcode, number))
        logger.debug(f"Lookup started for group {group.id}")
        return lookup.task

    async def _run_lookup(self, group: AddressGroup, lookup: InFlightLookup, postalcode: str, number: str) -> Any:
        try:
            try:
                data = await self.transport.fetch(postalcode, number)
            except asyncio.CancelledError:
                logger.debug(f"Lookup cancelled for group {group.id}")
                raise
            except Exception as e:
                detail = ErrorClassifier.classify_detail(e)
                self.diagnostics(
                    f"NLAddress lookup error for group \"{group.id}\" [{detail['code']}]: {e}"
                )
                return None

            group.last_completed_signature = lookup.signature
            try:
                return await self.engine.apply(group.id, data)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.diagnostics(
                    f"NLAddress could not apply address data to group \"{group.id}\": {type(e).__name__}: {e}"
                )
                return None
        finally:
            # 後続の照会に差し替え済みなら触らない
            if group.in_flight is lookup:
                group.in_flight = None
