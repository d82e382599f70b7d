"""設定・正規化・ログ・エラー分類ユーティリティ"""
