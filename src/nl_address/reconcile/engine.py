"""
取得結果の反映エンジン

空フィールドは無確認で埋め、値が異なる既存フィールドは確認を経て上書きする。
一度断られた提案セット（署名が同一）は再度確認しない。
"""

import inspect
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..group.models import AddressGroup, FieldUpdate, ReconciliationOutcome, Suggestion
from ..group.registry import GroupRegistry
from ..utils.config_loader import ROLES, SchemaSettings
from ..utils.normalizer import normalise_value, suggestion_signature

logger = logging.getLogger(__name__)


def resolve_fetched_value(
    role: str,
    data: Mapping[str, Any],
    source_keys: Mapping[str, Sequence[str]],
    default_country: Optional[str] = None,
) -> Optional[str]:
    """役割に対応する取得値を解決する（取得キーは先勝ち、空値はスキップ）"""
    for key in source_keys.get(role, ()):
        value = data.get(key)
        if value:
            return str(value)
    if role == "country" and default_country:
        return default_country
    return None


class ReconciliationEngine:
    """取得データと現在値の突き合わせ・書き戻しを担当するクラス"""

    def __init__(
        self,
        registry: GroupRegistry,
        confirm: Callable[[List[Tuple[str, str, str]]], Any],
        schema: Optional[SchemaSettings] = None,
    ):
        self.registry = registry
        self.confirm = confirm
        self.schema = schema or SchemaSettings()

    async def plan(self, group: AddressGroup, data: Mapping[str, Any]) -> Tuple[List[FieldUpdate], List[Suggestion]]:
        """無確認更新と確認要の提案に振り分ける"""
        updates: List[FieldUpdate] = []
        suggestions: List[Suggestion] = []

        for role in ROLES:
            handle = group.fields.get(role)
            if handle is None or not await handle.is_attached():
                continue

            fetched = resolve_fetched_value(role, data, self.schema.source_keys, self.schema.default_country)
            if not fetched:
                continue

            current = await handle.read()
            if not normalise_value(current):
                updates.append(FieldUpdate(role=role, handle=handle, value=fetched))
                continue

            if normalise_value(current) == normalise_value(fetched):
                continue

            suggestions.append(Suggestion(role=role, handle=handle, current_value=current, value=fetched))

        return updates, suggestions

    async def apply(self, group_id: str, data: Dict[str, Any]) -> ReconciliationOutcome:
        group = self.registry.get(group_id)
        if group is None:
            return ReconciliationOutcome.NOOP

        updates, suggestions = await self.plan(group, data)
        if not updates and not suggestions:
            return ReconciliationOutcome.NOOP

        with group.applying_section():
            for update in updates:
                await self._write(group, update.role, update.handle, update.value)

            if not suggestions:
                logger.info(f"Address fields filled for group {group.id}: {', '.join(u.role for u in updates)}")
                return ReconciliationOutcome.UPDATED

            triples = [s.as_triple() for s in suggestions]
            signature = suggestion_signature(triples)
            if group.last_declined_signature == signature:
                logger.debug(f"Suggestion already declined for group {group.id}, not asking again")
                return ReconciliationOutcome.SUPPRESSED

            accepted = self.confirm(triples)
            if inspect.isawaitable(accepted):
                accepted = await accepted

            if accepted:
                for suggestion in suggestions:
                    await self._write(group, suggestion.role, suggestion.handle, suggestion.value)
                group.last_declined_signature = None
                logger.info(f"Address suggestion accepted for group {group.id}")
                return ReconciliationOutcome.ACCEPTED

            group.last_declined_signature = signature
            logger.info(f"Address suggestion declined for group {group.id}")
            return ReconciliationOutcome.DECLINED

    async def _write(self, group: AddressGroup, role: str, handle: Any, value: str) -> None:
        if not await handle.is_attached():
            logger.debug(f"Skipping '{role}' in group {group.id}: field no longer attached")
            return
        await handle.write(value)
