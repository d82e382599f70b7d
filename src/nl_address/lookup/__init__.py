"""照会のデバウンス・調整・トランスポート"""
