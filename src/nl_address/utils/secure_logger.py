"""
セキュアログ管理
住所データの自動マスキングと安全なログ出力を提供
"""

import json
import logging
from typing import Any, Dict, Optional

from ..security.log_sanitizer import LogSanitizer

_default_logger = logging.getLogger("nl_address")


class SecureLogger:
    """メッセージ・追加データをサニタイズしてから出力するロガー"""

    def __init__(self, logger: logging.Logger, sanitizer: Optional[LogSanitizer] = None):
        self.logger = logger
        self.sanitizer = sanitizer or LogSanitizer()

    def _sanitize_message(self, message: Any) -> str:
        try:
            return self.sanitizer.sanitize_string(str(message))
        except Exception as e:
            # サニタイズに失敗した場合は安全のため全体を伏せる
            return f"[LOG_SANITIZATION_ERROR: {type(e).__name__}]"

    def _log(self, level: int, message: Any, extra: Optional[Dict[str, Any]] = None) -> None:
        sanitized_message = self._sanitize_message(message)
        sanitized_extra = self.sanitizer.sanitize_dict(extra or {})
        if sanitized_extra:
            self.logger.log(level, f"{sanitized_message} | Extra: {json.dumps(sanitized_extra, ensure_ascii=False, default=str)}")
        else:
            self.logger.log(level, sanitized_message)

    def debug(self, message: Any, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, message, extra)

    def info(self, message: Any, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, message, extra)

    def warning(self, message: Any, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.WARNING, message, extra)

    def error(self, message: Any, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.ERROR, message, extra)


def get_secure_logger(name: Optional[str] = None) -> SecureLogger:
    """セキュアロガーのインスタンスを取得"""
    logger = logging.getLogger(name) if name else _default_logger
    return SecureLogger(logger)
