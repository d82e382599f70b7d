"""
設定ローダー
config.manager の辞書設定を型安全な設定オブジェクトへ変換する
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from config.manager import DEFAULT_CONFIG, ConfigManager, get_config


ROLES = ("postalcode", "number", "street", "city", "country")
CONFIRM_POLICIES = ("ask", "accept", "decline")


@dataclass
class BinderSettings:
    """デバウンス・確認ポリシー設定"""
    debounce_ms: int = 250
    reset_signatures_on_clear: bool = False
    confirm_policy: str = "ask"

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


@dataclass
class LookupSettings:
    """住所照会API設定"""
    endpoint: str = "https://json.api-postcode.nl"
    postalcode_param: str = "postcode"
    number_param: str = "huisnummer"
    timeout_ms: int = 10000
    postalcode_pattern: str = "^[0-9]{4}[A-Z]{2}$"


@dataclass
class SchemaSettings:
    """住所スキーマ設定（役割・マーカー属性・取得キー）"""
    marker_prefix: str = "data-nladdressjs"
    group_attribute: str = "data-nladdressjs-id"
    required_roles: List[str] = field(default_factory=lambda: ["postalcode", "number"])
    source_keys: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_CONFIG["schema"]["source_keys"].items()}
    )
    default_country: Optional[str] = "Nederland"
    labels: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CONFIG["schema"]["labels"]))

    def attribute_for(self, role: str) -> str:
        """役割に対応するマーカー属性名"""
        return f"{self.marker_prefix}-{role}"

    @property
    def role_attributes(self) -> Dict[str, str]:
        return {role: self.attribute_for(role) for role in ROLES}


@dataclass
class AddressBinderSettings:
    """全設定統合"""
    binder: BinderSettings = field(default_factory=BinderSettings)
    lookup: LookupSettings = field(default_factory=LookupSettings)
    schema: SchemaSettings = field(default_factory=SchemaSettings)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "AddressBinderSettings":
        """設定辞書からデータクラスを構築"""
        try:
            schema_data = dict(config_data.get("schema", {}))
            if "source_keys" in schema_data:
                schema_data["source_keys"] = {
                    role: list(keys) for role, keys in (schema_data["source_keys"] or {}).items()
                }
            return cls(
                binder=BinderSettings(**config_data.get("binder", {})),
                lookup=LookupSettings(**config_data.get("lookup", {})),
                schema=SchemaSettings(**schema_data),
            )
        except TypeError as e:
            raise ValueError(f"Invalid configuration format: {e}")


def validate_settings(settings: AddressBinderSettings) -> None:
    """設定値の妥当性検証"""
    if settings.binder.debounce_ms < 0:
        raise ValueError("debounce_ms must not be negative")

    if settings.binder.confirm_policy not in CONFIRM_POLICIES:
        raise ValueError(
            f"Unknown confirm_policy '{settings.binder.confirm_policy}' (expected one of {', '.join(CONFIRM_POLICIES)})"
        )

    unknown = [role for role in settings.schema.source_keys if role not in ROLES]
    if unknown:
        raise ValueError(f"Unknown roles in source_keys: {', '.join(unknown)}")

    for role in settings.schema.required_roles:
        if role not in ROLES:
            raise ValueError(f"Required role '{role}' is not part of the address schema")

    if not settings.lookup.endpoint:
        raise ValueError("lookup.endpoint must not be empty")


_settings: Optional[AddressBinderSettings] = None


def load_settings(config_path: Optional[str] = None) -> AddressBinderSettings:
    """設定ファイルから検証済み設定を読み込む（パス指定時はそのファイルを使用）"""
    config_data = ConfigManager(config_path).get_config() if config_path else get_config()
    settings = AddressBinderSettings.from_dict(config_data)
    validate_settings(settings)
    return settings


def get_settings() -> AddressBinderSettings:
    """設定のシングルトンインスタンスを取得"""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reload_settings() -> None:
    """設定を再読み込み"""
    global _settings
    _settings = None
