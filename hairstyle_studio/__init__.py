"""
Hairstyle Studio
写真 + スタイル選択 → 生成画像API でヘアスタイルを試すためのコアパッケージ
"""

__version__ = "0.1.0"
