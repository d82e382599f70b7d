"""
ログサニタイゼーション

住所データ（郵便番号・番地・照会URL）のログ出力を防止し、安全なログ記録を実現する
"""

import re
import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional, Union


class LogSanitizer:
    """ログサニタイゼーションクラス"""

    def __init__(self):
        """初期化"""
        self.sensitive_patterns = [
            # API キー / トークン
            (r'(?i)(api[_-]?key|token|secret|password)\s*[=:]\s*["\']?([a-zA-Z0-9_-]{8,})["\']?', r"\1=***REDACTED***"),

            # URL中のクレデンシャル
            (r"(https?://)[^\s:/@]+:[^\s@]+@", r"\1***:***REDACTED***@"),

            # 照会URLのクエリ（郵便番号・番地を含む）
            (r"(https?://[^\s?#]+)\?[^\s]+", r"\1?***QUERY_REDACTED***"),

            # メールアドレス
            (r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}', r'***EMAIL_REDACTED***'),

            # オランダの郵便番号（1234AB / 1234 AB）と直後の照会署名の番地
            (r"\b[1-9][0-9]{3}\s?[A-Z]{2}\b(\|[^\s\"',]+)?", r"****XX"),

            # JSON中の住所データ
            (r'(?i)("(?:postcode|postalcode|postal_code|huisnummer|housenumber|number|street|straat|city|woonplaats)"\s*:\s*")([^"]+)(")', r"\1***REDACTED***\3"),
        ]

        self._compiled_patterns = [(re.compile(p), repl) for p, repl in self.sensitive_patterns]

        # 辞書のキー名で完全にマスクする項目
        self.mask_completely = frozenset({
            "POSTALCODE", "POSTCODE", "POSTAL_CODE",
            "HOUSENUMBER", "HUISNUMMER",
            "STREET", "STRAAT", "ROADNAME",
            "CITY", "WOONPLAATS", "MUNICIPALITY", "GEMEENTE",
            "EMAIL", "PHONE", "API_KEY", "TOKEN", "SECRET",
        })

    def sanitize_string(self, text: str) -> str:
        """
        文字列から機密情報を除去

        Args:
            text: サニタイズ対象の文字列

        Returns:
            str: サニタイズ済み文字列
        """
        if not isinstance(text, str):
            return str(text)

        if not self._has_sensitive_content(text):
            return text

        sanitized = text
        for compiled_pattern, replacement in self._compiled_patterns:
            sanitized = compiled_pattern.sub(replacement, sanitized)
        return sanitized

    @lru_cache(maxsize=256)
    def _has_sensitive_content(self, text: str) -> bool:
        """高速事前フィルタリング：数字・URL・機密キーワードを含む場合のみ詳細処理"""
        if len(text) < 5:
            return False
        if any(ch.isdigit() for ch in text):
            return True
        text_lower = text.lower()
        return any(keyword in text_lower for keyword in ('http://', 'https://', '@', 'password', 'secret', 'token', 'key'))

    def sanitize_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """辞書から機密情報を除去（住所系のキーは値ごと伏せる）"""
        if not isinstance(data, dict):
            return data
        return {
            key: "***REDACTED***" if str(key).upper() in self.mask_completely else sanitize_value(value, self)
            for key, value in data.items()
        }

    def sanitize_list(self, data: List[Any]) -> List[Any]:
        """リストから機密情報を除去"""
        if not isinstance(data, list):
            return data
        return [sanitize_value(item, self) for item in data]

    def redact_record(self, record: logging.LogRecord) -> logging.LogRecord:
        """引数展開済みメッセージをマスクした LogRecord の複製を返す（元のレコードは変更しない）"""
        redacted = logging.makeLogRecord(record.__dict__)
        try:
            redacted.msg = self.sanitize_string(record.getMessage())
        except (TypeError, ValueError) as e:
            # 書式と引数の不一致。中身は出さずに型だけ残す
            redacted.msg = f"[unformattable log message: {type(e).__name__}]"
        redacted.args = ()
        return redacted


def sanitize_value(value: Any, sanitizer: Optional[LogSanitizer] = None) -> Any:
    sanitizer = sanitizer or global_sanitizer
    if isinstance(value, str):
        return sanitizer.sanitize_string(value)
    if isinstance(value, dict):
        return sanitizer.sanitize_dict(value)
    if isinstance(value, list):
        return sanitizer.sanitize_list(value)
    return value


class SanitizingHandler(logging.Handler):
    """既存ハンドラーの手前でメッセージをマスクするラッパー"""

    def __init__(self, inner: logging.Handler, sanitizer: Optional[LogSanitizer] = None):
        super().__init__(level=inner.level)
        self.handler = inner
        self.sanitizer = sanitizer or global_sanitizer

    def emit(self, record: logging.LogRecord) -> None:
        # handle() 経由で内側ハンドラーのフィルター・ロックをそのまま使う
        self.handler.handle(self.sanitizer.redact_record(record))

    def flush(self) -> None:
        self.handler.flush()

    def close(self) -> None:
        self.handler.close()
        super().close()


def sanitize_for_log(data: Union[str, Dict, List, Any]) -> Union[str, Dict, List, Any]:
    """ログ出力用のデータサニタイゼーション便利関数"""
    return sanitize_value(data, global_sanitizer)


def setup_sanitized_logging(logger_name: Optional[str] = None) -> logging.Logger:
    """指定ロガー（省略時はルート）の全ハンドラーを SanitizingHandler で包む。

    既に包まれているハンドラーはそのまま残すので、何度呼んでも二重にはならない。
    """
    target = logging.getLogger(logger_name)
    target.handlers = [
        h if isinstance(h, SanitizingHandler) else SanitizingHandler(h)
        for h in target.handlers
    ]
    return target


# プロセス共通のサニタイザー
global_sanitizer = LogSanitizer()
