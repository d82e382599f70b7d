"""住所グループ状態"""
