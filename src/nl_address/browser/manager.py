"""
Playwrightブラウザのライフサイクル管理
"""
import logging
import os
from typing import Optional

from playwright.async_api import (
    async_playwright,
    Playwright,
    Browser,
    BrowserContext,
    Page,
    TimeoutError as PlaywrightTimeoutError
)

logger = logging.getLogger(__name__)


def resolve_headless(headless: Optional[bool] = None) -> bool:
    """PLAYWRIGHT_HEADLESS 環境変数 > 引数 > 既定（headless）"""
    env_headless = os.getenv('PLAYWRIGHT_HEADLESS', '').strip().lower()
    if env_headless in ['1', 'true', 'yes']:
        return True
    if env_headless in ['0', 'false', 'no']:
        return False
    return headless if headless is not None else True


class BrowserManager:
    """Playwrightブラウザの起動、ページ作成、終了を管理する"""

    def __init__(self, headless: Optional[bool] = None, page_load_timeout_ms: int = 30000):
        self.headless = headless
        self.page_load_timeout_ms = page_load_timeout_ms

        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None

    async def launch(self) -> bool:
        """Playwrightブラウザを初期化して起動する"""
        try:
            use_headless = resolve_headless(self.headless)
            logger.info(f"Initializing Playwright browser ({'headless' if use_headless else 'GUI'} mode)")
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(headless=use_headless)
            self.context = await self.browser.new_context()
            logger.info("Browser initialized successfully")
            return True
        except Exception as e:
            logger.error(f"Browser initialization failed: {e}")
            await self.close()
            return False

    async def open_page(self, url: str) -> Page:
        """新しいページを作成し、指定URLにアクセスする"""
        if not self.context:
            raise ConnectionError("Browser is not launched. Call launch() first.")

        page = await self.context.new_page()
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.page_load_timeout_ms)
        except PlaywrightTimeoutError:
            logger.error(f"Page load timeout for {url}")
            await page.close()
            raise
        return page

    async def close(self) -> None:
        """コンテキスト → ブラウザ → Playwright の順に閉じる"""
        if self.context:
            try:
                await self.context.close()
            except Exception as e:
                logger.warning(f"Context was already closed: {e}")
            self.context = None
        if self.browser:
            try:
                await self.browser.close()
                logger.info("Browser closed.")
            except Exception as e:
                logger.warning(f"Browser was already closed: {e}")
            self.browser = None
        if self.playwright:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.warning(f"Playwright was already stopped: {e}")
            self.playwright = None
