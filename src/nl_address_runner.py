#!/usr/bin/env python3
"""
NL Address Runner

指定URLのページをブラウザで開き、data-nladdressjs-* マーカー付きの住所フィールドを
郵便番号+番地の照会結果と同期させる。ページが閉じられるまで動作する。

想定起動:
  python src/nl_address_runner.py \
    --url "https://example.test/checkout" \
    [--config-file config/nl_address.json] [--headless auto] [--confirm ask]
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional

from nl_address.binder import AddressBinder
from nl_address.browser.manager import BrowserManager
from nl_address.browser.page_binding import PageAddressBinding
from nl_address.lookup.transport import PlaywrightLookupTransport
from nl_address.reconcile.prompt import confirmation_for_policy
from nl_address.security.log_sanitizer import setup_sanitized_logging
from nl_address.utils.config_loader import AddressBinderSettings, load_settings

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def _parse_headless(value: str) -> Optional[bool]:
    if value == 'true':
        return True
    if value == 'false':
        return False
    return None


async def run(url: str, settings: AddressBinderSettings, headless: Optional[bool]) -> int:
    browser_manager = BrowserManager(headless=headless)
    if not await browser_manager.launch():
        return 1

    binder: Optional[AddressBinder] = None
    try:
        try:
            page = await browser_manager.open_page(url)
        except Exception as e:
            logger.error(f"Could not open page {url}: {e}")
            return 1

        transport = PlaywrightLookupTransport(page.request, settings.lookup)
        confirm = confirmation_for_policy(settings.binder.confirm_policy, settings.schema.labels)
        binder = AddressBinder(transport, confirm=confirm, settings=settings)
        await PageAddressBinding(page, binder).attach()

        # ページが閉じられるまで待機（タイムアウトなし）
        await page.wait_for_event("close", timeout=0)
        logger.info("Page closed, shutting down")
        return 0
    finally:
        if binder is not None:
            await binder.close()
        await browser_manager.close()


def main() -> int:
    p = argparse.ArgumentParser(description='NL Address Runner (postal code lookup binder)')
    p.add_argument('--url', required=True)
    p.add_argument('--config-file', default=None)
    p.add_argument('--headless', choices=['true', 'false', 'auto'], default='auto')
    p.add_argument('--confirm', choices=['ask', 'accept', 'decline'], default=None,
                   help='Override binder.confirm_policy from the config file')
    p.add_argument('--log-level', default=None, help='Overrides NL_ADDRESS_LOG_LEVEL')
    args = p.parse_args()

    level_name = (args.log_level or os.getenv('NL_ADDRESS_LOG_LEVEL') or 'INFO').upper()
    logging.getLogger().setLevel(getattr(logging, level_name, logging.INFO))
    setup_sanitized_logging()

    try:
        settings = load_settings(args.config_file)
    except (ValueError, RuntimeError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    if args.confirm:
        settings.binder.confirm_policy = args.confirm

    try:
        return asyncio.run(run(args.url, settings, _parse_headless(args.headless)))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0


if __name__ == '__main__':
    sys.exit(main())
