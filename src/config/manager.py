"""設定ファイル読み込みと管理を行うユーティリティモジュール"""

import copy
import json
import os
from typing import Dict, Any, Optional
from pathlib import Path
import logging


DEFAULT_CONFIG: Dict[str, Any] = {
    "binder": {
        "debounce_ms": 250,
        "reset_signatures_on_clear": False,
        "confirm_policy": "ask",
    },
    "lookup": {
        "endpoint": "https://json.api-postcode.nl",
        "postalcode_param": "postcode",
        "number_param": "huisnummer",
        "timeout_ms": 10000,
        "postalcode_pattern": "^[0-9]{4}[A-Z]{2}$",
    },
    "schema": {
        "marker_prefix": "data-nladdressjs",
        "group_attribute": "data-nladdressjs-id",
        "required_roles": ["postalcode", "number"],
        "source_keys": {
            "street": ["street", "roadName"],
            "city": ["city", "municipality"],
            "country": ["country"],
            "postalcode": ["postalCode"],
            "number": ["houseNumber"],
        },
        "default_country": "Nederland",
        "labels": {
            "postalcode": "Postcode",
            "number": "Huisnummer",
            "street": "Straat",
            "city": "Plaats",
            "country": "Land",
        },
    },
}


def _clamp_int(raw: Any, default: int, lower: int, upper: int) -> int:
    try:
        v = int(raw)
    except (TypeError, ValueError):
        v = default
    return max(lower, min(upper, v))


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """設定ファイルの読み込みと管理を行うクラス"""

    CONFIG_FILENAME = "nl_address.json"

    def __init__(self, config_path: Optional[str] = None):
        self.config_dir = Path(__file__).parent.parent.parent / "config"
        env_path = os.getenv("NL_ADDRESS_CONFIG", "").strip()
        if config_path:
            self.config_path = Path(config_path)
        elif env_path:
            self.config_path = Path(env_path)
        else:
            self.config_path = self.config_dir / self.CONFIG_FILENAME
        self._config: Optional[Dict[str, Any]] = None

    def get_config(self) -> Dict[str, Any]:
        """既定値とマージ・正規化済みの設定全体を取得"""
        if self._config is None:
            try:
                loaded = self._load_config(self.config_path)
            except FileNotFoundError as e:
                # 設定ファイルが無くても既定値で動作させる
                logging.getLogger(__name__).warning(f"Config fallback to defaults: {e}")
                loaded = {}
            if not isinstance(loaded, dict):
                raise ValueError(f"設定ファイルの形式が不正です ({self.config_path}): top level must be an object")
            cfg = _merge(DEFAULT_CONFIG, loaded)

            binder = cfg["binder"]
            # 0〜5000ms にクランプ（入力中の体感遅延を抑止）
            binder["debounce_ms"] = _clamp_int(binder.get("debounce_ms"), 250, 0, 5000)
            binder["reset_signatures_on_clear"] = bool(binder.get("reset_signatures_on_clear", False))
            binder["confirm_policy"] = str(binder.get("confirm_policy") or "ask").strip().lower()

            lookup = cfg["lookup"]
            lookup["timeout_ms"] = _clamp_int(lookup.get("timeout_ms"), 10000, 1000, 60000)

            self._config = cfg
        return self._config

    def get_binder_config(self) -> Dict[str, Any]:
        """バインダー（デバウンス/確認ポリシー）設定を取得"""
        return self.get_config()["binder"]

    def get_lookup_config(self) -> Dict[str, Any]:
        """住所照会API設定を取得"""
        return self.get_config()["lookup"]

    def get_schema_config(self) -> Dict[str, Any]:
        """住所スキーマ（役割/マーカー属性/取得キー）設定を取得"""
        return self.get_config()["schema"]

    def _load_config(self, config_path: Path) -> Dict[str, Any]:
        """設定ファイルを読み込み"""
        if not config_path.exists():
            raise FileNotFoundError(f"設定ファイルが見つかりません: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"設定ファイルの形式が不正です ({config_path.name}): {e}")
        except OSError as e:
            raise RuntimeError(f"設定ファイルの読み込みに失敗しました ({config_path.name}): {e}")


# グローバルな設定マネージャーインスタンス
config_manager = ConfigManager()


def get_config() -> Dict[str, Any]:
    """設定全体を取得する便利関数"""
    return config_manager.get_config()


def get_binder_config() -> Dict[str, Any]:
    """バインダー設定を取得する便利関数"""
    return config_manager.get_binder_config()


def get_lookup_config() -> Dict[str, Any]:
    """住所照会API設定を取得する便利関数"""
    return config_manager.get_lookup_config()


def get_schema_config() -> Dict[str, Any]:
    """住所スキーマ設定を取得する便利関数"""
    return config_manager.get_schema_config()


def reload_config(config_path: Optional[str] = None) -> ConfigManager:
    """設定マネージャーを作り直す（テスト・CLI指定パス用）"""
    global config_manager
    config_manager = ConfigManager(config_path)
    return config_manager
