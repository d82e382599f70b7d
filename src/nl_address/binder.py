"""
住所バインダー

フィールド登録・入力イベントを受け取り、デバウンス → 照会 → 反映 の流れを組み立てる。
ブラウザ非依存（フィールドハンドル・トランスポート・確認は外部から注入）。
"""

from typing import Any, Callable, List, Optional

from .group.registry import GroupRegistry
from .lookup.coordinator import LookupCoordinator
from .lookup.scheduler import TriggerScheduler
from .reconcile.engine import ReconciliationEngine
from .reconcile.prompt import confirmation_for_policy
from .utils.config_loader import AddressBinderSettings
from .utils.secure_logger import get_secure_logger

logger = get_secure_logger(__name__)


class AddressBinder:
    """住所グループ同期の入口"""

    def __init__(
        self,
        transport: Any,
        confirm: Optional[Callable[..., Any]] = None,
        diagnostics: Optional[Callable[[str], None]] = None,
        settings: Optional[AddressBinderSettings] = None,
    ):
        self.settings = settings or AddressBinderSettings()
        schema = self.settings.schema

        if confirm is None:
            confirm = confirmation_for_policy(self.settings.binder.confirm_policy, schema.labels)
        self.diagnostics = diagnostics or logger.warning

        self.registry = GroupRegistry(schema.required_roles)
        self.engine = ReconciliationEngine(self.registry, confirm, schema)
        self.coordinator = LookupCoordinator(
            self.registry,
            transport,
            self.engine,
            self.diagnostics,
            self.settings.lookup,
            self.settings.binder,
        )
        self.scheduler = TriggerScheduler(
            self.registry, self.coordinator.evaluate, self.settings.binder.debounce_ms
        )

    def register_field(self, group_id: str, role: str, handle: Any) -> bool:
        """発見したフィールドを登録し、新規なら評価を予約する"""
        if not self.registry.register_field(group_id, role, handle):
            return False
        self.scheduler.schedule(group_id)
        return True

    def notify_edit(self, group_id: str) -> None:
        """入力イベント（書き戻し中のグループは無視）"""
        group = self.registry.get(group_id)
        if group is None or group.applying:
            return
        self.scheduler.schedule(group_id)

    def report_missing_required(self) -> List[str]:
        """必須フィールドが欠けているグループを診断出力する"""
        reported: List[str] = []
        for group in self.registry:
            missing = self.registry.missing_required(group)
            if not missing:
                continue
            attributes = ", ".join(self.settings.schema.attribute_for(role) for role in missing)
            self.diagnostics(f"NLAddress: group \"{group.id}\" is missing required elements: {attributes}")
            reported.append(group.id)
        return reported

    async def close(self) -> None:
        """保留中タイマー・実行中照会を止める"""
        for group in self.registry:
            self.scheduler.cancel(group.id)
        self.coordinator.cancel_all()
        await self.scheduler.drain()
