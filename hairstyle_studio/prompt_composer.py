"""
プロンプト生成
3軸のスタイル選択から、画像生成APIへ送る指示文を組み立てる。
文言と順序（髪型 → ひげ → 髪色）は出力品質に影響するため変更しないこと。
"""

from __future__ import annotations
from typing import Optional

from .styles import DEFAULT, StyleSelection

KEEP_HAIR = "Do not change the hair. Keep the hairstyle exactly as it is."
KEEP_BEARD = "Do not change the beard. Keep the existing beard exactly as it is."
KEEP_HAIRCOLOR = ""

HAIR_TEMPLATE = (
    "Change only the hair to: {}. Keep the person's face, skin, eyes, expression, "
    "and all other features exactly the same. Do not alter anything else."
)
BEARD_TEMPLATE = (
    "Change only the beard to: {}. Keep the face and skin exactly the same. "
    "Do not alter anything else."
)
HAIRCOLOR_TEMPLATE = (
    "Change only the hair color to: {}. Keep the hairstyle, face, skin, eyes, "
    "and expression. Do not alter anything else."
)


def _clause(value: str, template: str, keep: str) -> str:
    return keep if value == DEFAULT else template.format(value)


def hair_clause(hairstyle: str) -> str:
    return _clause(hairstyle, HAIR_TEMPLATE, KEEP_HAIR)


def beard_clause(beardstyle: str) -> str:
    return _clause(beardstyle, BEARD_TEMPLATE, KEEP_BEARD)


def haircolor_clause(haircolor: str) -> str:
    return _clause(haircolor, HAIRCOLOR_TEMPLATE, KEEP_HAIRCOLOR)


def compose_prompt(hairstyle: str = DEFAULT, beardstyle: str = DEFAULT, haircolor: str = DEFAULT) -> str:
    """
    スタイル選択 → プロンプト文字列

    Args:
        hairstyle: 髪型（DEFAULT なら維持）
        beardstyle: ひげ（DEFAULT なら維持）
        haircolor: 髪色（DEFAULT なら空行）

    Returns:
        改行区切りの指示文
    """
    return "\n".join([
        hair_clause(hairstyle),
        beard_clause(beardstyle),
        haircolor_clause(haircolor),
    ])


def compose_from_selection(selection: Optional[StyleSelection]) -> str:
    selection = selection or StyleSelection()
    return compose_prompt(*selection.as_tuple())
