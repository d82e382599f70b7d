"""
住所グループレジストリ

グループIDをキーに状態レコードを保持する。グループは初出時に遅延生成され、
プロセス終了まで破棄しない。
"""

import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .models import AddressGroup
from ..utils.config_loader import ROLES

logger = logging.getLogger(__name__)


class GroupRegistry:
    """グループ状態の生成・参照を担当するクラス"""

    def __init__(self, required_roles: Sequence[str] = ("postalcode", "number")):
        self.required_roles: List[str] = list(required_roles)
        self._groups: Dict[str, AddressGroup] = {}

    def get(self, group_id: str) -> Optional[AddressGroup]:
        return self._groups.get(group_id)

    def get_or_create(self, group_id: str) -> AddressGroup:
        group = self._groups.get(group_id)
        if group is None:
            group = AddressGroup(id=group_id)
            self._groups[group_id] = group
            logger.debug(f"Address group created: {group_id}")
        return group

    def register_field(self, group_id: str, role: str, handle: Any) -> bool:
        """フィールドを登録する

        Returns:
            bool: 新しいハンドルが割り当てられた場合 True（同一ハンドルの再登録・未知の役割は False）
        """
        if not group_id or role not in ROLES:
            return False

        group = self.get_or_create(group_id)
        if group.fields.get(role) == handle:
            return False

        if role in group.fields:
            logger.debug(f"Replacing '{role}' field handle in group {group_id}")
        group.fields[role] = handle
        return True

    def missing_required(self, group: AddressGroup) -> List[str]:
        return [role for role in self.required_roles if group.fields.get(role) is None]

    def __iter__(self) -> Iterator[AddressGroup]:
        return iter(list(self._groups.values()))

    def __len__(self) -> int:
        return len(self._groups)

    def __contains__(self, group_id: object) -> bool:
        return group_id in self._groups
