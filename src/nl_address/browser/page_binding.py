"""
ページ上の住所フィールド発見とイベント連携

マーカー属性（data-nladdressjs-*）を持つ要素を走査してバインダーへ登録し、
keyup と DOM 追加を公開バインディング経由で Python 側へ通知する。
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from playwright.async_api import Page

from .field_handle import LocatorFieldHandle
from ..binder import AddressBinder
from ..utils.config_loader import SchemaSettings

logger = logging.getLogger(__name__)

KEYUP_BINDING = "__nladdressKeyup"
RESCAN_BINDING = "__nladdressRescan"
HANDLE_ATTRIBUTE = "data-nladdress-handle"

_INIT_SCRIPT_TEMPLATE = """
(() => {
  if (window.__nladdressInstalled) { return; }
  window.__nladdressInstalled = true;
  const groupAttr = %(group_attr)s;
  const roleAttrs = %(role_attrs)s;
  const isTagged = (el) => el instanceof Element
    && el.hasAttribute(groupAttr)
    && roleAttrs.some((attr) => el.hasAttribute(attr));
  document.addEventListener('keyup', (event) => {
    const el = event.target;
    if (isTagged(el) && typeof window.%(keyup)s === 'function') {
      window.%(keyup)s(el.getAttribute(groupAttr));
    }
  }, true);
  const observe = () => {
    new MutationObserver((mutations) => {
      if (mutations.some((m) => m.addedNodes.length > 0) && typeof window.%(rescan)s === 'function') {
        window.%(rescan)s();
      }
    }).observe(document.documentElement, { childList: true, subtree: true });
  };
  if (document.documentElement) { observe(); } else { document.addEventListener('DOMContentLoaded', observe, { once: true }); }
})();
"""

SCAN_SCRIPT = """
({ groupAttr, roleAttrs, handleAttr }) => {
  const selector = Object.values(roleAttrs).map((attr) => `[${attr}]`).join(', ');
  const found = [];
  window.__nladdressSeq = window.__nladdressSeq || 0;
  // element -> key. cloneNode/innerHTML copies carry the attribute but are not in the map
  window.__nladdressKeys = window.__nladdressKeys || new WeakMap();
  const keys = window.__nladdressKeys;
  document.querySelectorAll(selector).forEach((el) => {
    const groupId = el.getAttribute(groupAttr);
    if (!groupId) { return; }
    const role = Object.keys(roleAttrs).find((r) => el.hasAttribute(roleAttrs[r]));
    if (!role) { return; }
    let key = el.getAttribute(handleAttr);
    if (!key || keys.get(el) !== key) {
      window.__nladdressSeq += 1;
      key = String(window.__nladdressSeq);
      el.setAttribute(handleAttr, key);
      keys.set(el, key);
    }
    found.push({ groupId, role, key });
  });
  return found;
}
"""


def build_init_script(schema: SchemaSettings) -> str:
    return _INIT_SCRIPT_TEMPLATE % {
        "group_attr": json.dumps(schema.group_attribute),
        "role_attrs": json.dumps(list(schema.role_attributes.values())),
        "keyup": KEYUP_BINDING,
        "rescan": RESCAN_BINDING,
    }


class PageAddressBinding:
    """1ページ分の要素発見・イベント中継を担当するクラス"""

    def __init__(self, page: Page, binder: AddressBinder, rescan_delay_ms: int = 50):
        self.page = page
        self.binder = binder
        self.schema = binder.settings.schema
        self.rescan_delay_ms = rescan_delay_ms
        self._rescan_task: Optional["asyncio.Task[Any]"] = None

    async def attach(self) -> int:
        """バインディング公開・スクリプト注入・初回走査を行う

        Returns:
            int: 初回走査で登録したフィールド数
        """
        await self.page.expose_binding(KEYUP_BINDING, self._on_keyup)
        await self.page.expose_binding(RESCAN_BINDING, self._on_rescan)

        script = build_init_script(self.schema)
        # 以降の遷移先と、現在のドキュメントの両方に適用
        await self.page.add_init_script(script)
        await self.page.evaluate(script)

        registered = await self.scan()
        logger.info(f"Address binding attached: {registered} field(s) in {len(self.binder.registry)} group(s)")
        self.binder.report_missing_required()
        return registered

    async def scan(self) -> int:
        """マーカー属性付き要素を走査して未登録のものを登録する"""
        found: List[Dict[str, str]] = await self.page.evaluate(
            SCAN_SCRIPT,
            {
                "groupAttr": self.schema.group_attribute,
                "roleAttrs": self.schema.role_attributes,
                "handleAttr": HANDLE_ATTRIBUTE,
            },
        )
        registered = 0
        seen_keys = set()
        for item in found or []:
            key = str(item.get("key", ""))
            if not key:
                continue
            if key in seen_keys:
                # 同じキーを持つ要素が複数あるとロケーターが一意に定まらない
                logger.warning(f"Duplicate field handle key {key!r} in group {item.get('groupId')!r}, element skipped")
                continue
            seen_keys.add(key)
            handle = LocatorFieldHandle(self.page.locator(f'[{HANDLE_ATTRIBUTE}="{key}"]'), key)
            if self.binder.register_field(str(item.get("groupId", "")), str(item.get("role", "")), handle):
                registered += 1
        return registered

    def _on_keyup(self, source: Dict[str, Any], group_id: str) -> None:
        if isinstance(group_id, str) and group_id:
            self.binder.notify_edit(group_id)

    def _on_rescan(self, source: Dict[str, Any]) -> None:
        # 連続したDOM追加は1回の走査にまとめる
        if self._rescan_task is None or self._rescan_task.done():
            self._rescan_task = asyncio.ensure_future(self._rescan_later())

    async def _rescan_later(self) -> None:
        await asyncio.sleep(self.rescan_delay_ms / 1000.0)
        try:
            added = await self.scan()
        except Exception as e:
            # 遷移中・ページクローズ時など。次のDOM変更で再走査される
            logger.debug(f"Rescan skipped: {e}")
            return
        if added:
            logger.info(f"Address binding rescan registered {added} new field(s)")
