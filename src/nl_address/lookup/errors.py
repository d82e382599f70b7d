"""住所照会の例外定義"""

from typing import Optional


class AddressLookupError(RuntimeError):
    """住所照会の失敗（基底）"""
    pass


class LookupHTTPError(AddressLookupError):
    """2xx 以外の応答"""

    def __init__(self, status: int, message: Optional[str] = None):
        super().__init__(message or f"Address lookup failed: HTTP {status}")
        self.status = status


class LookupPayloadError(AddressLookupError):
    """応答本文がJSONオブジェクトとして解釈できない"""
    pass
