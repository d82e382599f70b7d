"""
住所照会トランスポート（Playwright APIRequestContext 経由）

キャンセルは呼び出し側タスクのキャンセルで行う（協調的キャンセル）。
"""

import logging
from typing import Any, Dict

from playwright.async_api import APIRequestContext

from .errors import LookupHTTPError, LookupPayloadError
from ..utils.config_loader import LookupSettings

logger = logging.getLogger(__name__)


def flatten_payload(data: Any) -> Dict[str, str]:
    """応答JSONを str -> str のフラットなマップへ変換（スカラー値のみ、None は除外）"""
    if not isinstance(data, dict):
        raise LookupPayloadError(f"Address lookup returned {type(data).__name__}, expected an object")

    flat: Dict[str, str] = {}
    for key, value in data.items():
        if value is None or isinstance(value, (dict, list)):
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        flat[str(key)] = str(value)
    return flat


class PlaywrightLookupTransport:
    """郵便番号+番地で外部APIを照会する"""

    def __init__(self, request: APIRequestContext, settings: LookupSettings):
        self.request = request
        self.settings = settings

    async def fetch(self, postalcode: str, number: str) -> Dict[str, str]:
        params = {
            self.settings.postalcode_param: postalcode,
            self.settings.number_param: number,
        }
        response = await self.request.get(
            self.settings.endpoint,
            params=params,
            headers={"Accept": "application/json"},
            timeout=self.settings.timeout_ms,
        )
        try:
            if not response.ok:
                raise LookupHTTPError(response.status)
            try:
                data = await response.json()
            except ValueError as e:
                raise LookupPayloadError(f"Address lookup returned invalid JSON: {e}") from e
            return flatten_payload(data)
        finally:
            await response.dispose()
