"""
NL Address バインダー

郵便番号+番地から住所フィールド（通り・市区・国）を補完・同期する。

注意: Playwright に依存するモジュールは遅延インポートにし、
コア（グループ状態・照会調整・反映）は Playwright なしで利用・テストできるようにする。
"""

__all__ = [
    'AddressBinder',
    'AddressBinderSettings',
    'PageAddressBinding',
    'PlaywrightLookupTransport',
]

def __getattr__(name):
    if name == 'AddressBinder':
        from .binder import AddressBinder  # type: ignore
        return AddressBinder
    if name == 'AddressBinderSettings':
        from .utils.config_loader import AddressBinderSettings  # type: ignore
        return AddressBinderSettings
    if name == 'PageAddressBinding':
        from .browser.page_binding import PageAddressBinding  # type: ignore
        return PageAddressBinding
    if name == 'PlaywrightLookupTransport':
        from .lookup.transport import PlaywrightLookupTransport  # type: ignore
        return PlaywrightLookupTransport
    raise AttributeError(name)
