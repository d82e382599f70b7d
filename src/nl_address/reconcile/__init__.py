"""取得結果の反映と上書き確認"""
