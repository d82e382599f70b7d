"""
Playwright Locator によるフィールドハンドル
"""
from playwright.async_api import Locator

READ_SCRIPT = "el => ('value' in el) ? (el.value || '') : (el.textContent || '')"
WRITE_SCRIPT = "(el, value) => { if ('value' in el) { el.value = value; } else { el.textContent = value; } }"


class LocatorFieldHandle:
    """要素毎の安定キーで識別するフィールドハンドル

    input/select/textarea は value、それ以外は textContent を読み書きする。
    """

    def __init__(self, locator: Locator, key: str, timeout_ms: int = 2000):
        self.locator = locator
        self.key = key
        self.timeout_ms = timeout_ms

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LocatorFieldHandle) and other.key == self.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"LocatorFieldHandle(key={self.key!r})"

    async def is_attached(self) -> bool:
        # 0件は消失、2件以上はキー重複（読み書きが strict mode で失敗する）
        return await self.locator.count() == 1

    async def read(self) -> str:
        value = await self.locator.evaluate(READ_SCRIPT, timeout=self.timeout_ms)
        return str(value) if value is not None else ""

    async def write(self, value: str) -> None:
        await self.locator.evaluate(WRITE_SCRIPT, str(value), timeout=self.timeout_ms)
