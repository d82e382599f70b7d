"""ブラウザ側コラボレーター（Playwright）"""
