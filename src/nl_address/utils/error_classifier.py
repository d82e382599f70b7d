"""
照会エラー分類ユーティリティ

目的:
- 住所照会の失敗を HTTP/ネットワーク/応答形式 などに分類し、診断メッセージに付与する。
- キャンセル（asyncio.CancelledError）は失敗ではないため CANCELLED を返す（診断には出さない）。

方針:
- 型で判定できるもの（LookupHTTPError/LookupPayloadError/TimeoutError）を優先し、
  それ以外は例外メッセージのパターンで判定する（Playwright のエラーは文字列でしか区別できない）。
"""

import asyncio
import json
import re
from typing import Dict, Any, List, Pattern, Tuple

from ..lookup.errors import LookupHTTPError, LookupPayloadError


class ErrorClassifier:
    """照会エラー分類用ユーティリティクラス"""

    # (pattern, code) の優先度順
    MESSAGE_RULES: List[Tuple[Pattern[str], str]] = [
        (re.compile(r'(rate\s*limit|too\s*many\s*requests|\b429\b)', re.IGNORECASE), 'RATE_LIMIT'),
        (re.compile(r'(timeout|timed\s*out|Timeout\s*\d+ms\s*exceeded)', re.IGNORECASE), 'NETWORK_TIMEOUT'),
        (re.compile(r'(ERR_NAME_NOT_RESOLVED|ENOTFOUND|getaddrinfo|DNS\s*lookup\s*failed)', re.IGNORECASE), 'DNS'),
        (re.compile(r'(SSL|TLS|certificate\s*verify\s*failed|ERR_CERT_)', re.IGNORECASE), 'TLS'),
        (re.compile(r'(ECONNRESET|ECONNREFUSED|Connection\s*(reset|refused)|net::ERR_CONNECTION)', re.IGNORECASE), 'CONNECTION'),
        (re.compile(r'(Target\s*(page,\s*context\s*or\s*browser\s*has\s*been\s*)?closed|Request\s*context\s*disposed)', re.IGNORECASE), 'PAGE_CLOSED'),
    ]

    RETRYABLE_CODES = {'HTTP_SERVER', 'RATE_LIMIT', 'NETWORK_TIMEOUT', 'DNS', 'CONNECTION'}

    @classmethod
    def classify(cls, error: BaseException) -> str:
        """例外をエラーコードに分類"""
        if isinstance(error, asyncio.CancelledError):
            return 'CANCELLED'

        if isinstance(error, LookupHTTPError):
            if error.status == 429:
                return 'RATE_LIMIT'
            if 500 <= error.status <= 599:
                return 'HTTP_SERVER'
            return 'HTTP_CLIENT'

        if isinstance(error, (LookupPayloadError, json.JSONDecodeError)):
            return 'PAYLOAD'

        if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
            return 'NETWORK_TIMEOUT'

        message = str(error) or type(error).__name__
        for pattern, code in cls.MESSAGE_RULES:
            if pattern.search(message):
                return code
        return 'UNKNOWN'

    @classmethod
    def classify_detail(cls, error: BaseException) -> Dict[str, Any]:
        """分類コードと再試行可否のヒントを返す"""
        code = cls.classify(error)
        detail: Dict[str, Any] = {
            'code': code,
            'retryable': code in cls.RETRYABLE_CODES,
            'error_type': type(error).__name__,
        }
        if isinstance(error, LookupHTTPError):
            detail['http_status'] = error.status
        return detail
