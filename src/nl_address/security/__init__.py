"""ログの機密情報マスキング"""
