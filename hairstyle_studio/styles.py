"""
スタイル選択肢の定義
ラベルはUI表示用、値はそのままプロンプトへ埋め込まれる
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .errors import UnknownStyleError

DEFAULT = "default"
DEFAULT_LABEL = "No change"

AXES = ("hairstyle", "beardstyle", "haircolor")


@dataclass(frozen=True)
class StyleOption:
    label: str
    value: str
    group: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"label": self.label, "value": self.value, "group": self.group}


HAIRSTYLES: List[StyleOption] = [
    # Men
    StyleOption("Bald", "Bald head, 0–2 mm length, completely shaved, clean and bold appearance;", "Men"),
    StyleOption("Short Fade", "Short fade, top 1–2 inches (25–50 mm), sides 0–1 inch (0–25 mm), sharp and modern look;", "Men"),
    StyleOption("Long Hair", "Long hair, 6–12 inches (150–300 mm), flowing and versatile, rugged look;", "Men"),
    StyleOption("Crew Cut", "Crew cut, top 1–2 inches (25–50 mm), sides 0–1 inch (0–25 mm), classic and clean;", "Men"),
    StyleOption("Undercut", "Undercut, sides 0–1 inch (0–25 mm), top 2–6 inches (50–150 mm), edgy contrast;", "Men"),
    StyleOption("Man Bun", "Man bun, 6–12 inches (150–300 mm), hair pulled back, often with shaved sides, bohemian look;", "Men"),
    StyleOption("Buzz Cut", "Buzz cut, uniform 1.5–12 mm, simple and low-maintenance;", "Men"),
    StyleOption("Pompadour", "Pompadour, top 4–6 inches (100–150 mm), sides 1–2 inches (25–50 mm), voluminous retro style;", "Men"),
    StyleOption("Side Part", "Side part, top 2–4 inches (50–100 mm), neat and formal;", "Men"),
    StyleOption("Quiff", "Quiff, front 3–5 inches (75–125 mm), styled upwards and back, voluminous;", "Men"),
    # Women
    StyleOption("Bob Cut", "Bob Cut, chin-length, straight or slightly wavy, classic and elegant;", "Women"),
    StyleOption("Layered Cut", "Layered Cut, medium length, layered for volume and texture;", "Women"),
    StyleOption("Pixie Cut", "Pixie Cut, short, cropped, chic and edgy;", "Women"),
    StyleOption("Long Waves", "Long Waves, long, soft waves, voluminous and flowing;", "Women"),
    StyleOption("Ponytail", "Ponytail, hair pulled back into high or low ponytail, practical yet stylish;", "Women"),
]

BEARDSTYLES: List[StyleOption] = [
    StyleOption("Clean Shave", "clean shave — Completely smooth face with no facial hair, projecting a fresh, youthful, and formal look; famously sported by actors like Daniel Craig in James Bond appearances."),
    StyleOption("Stubble", "stubble — Short, evenly trimmed facial hair (approx. 2–5 mm), offering a rugged yet neat aesthetic; epitomized by Ryan Gosling's designer stubble."),
    StyleOption("Goatee", (
        "goatee — A precise and distinctive beard style where facial hair is grown only on the chin, "
        "forming a small, concentrated patch that highlights the center of the face. The cheeks, jawline, "
        "and sideburns are completely shaved so the skin is fully visible, leaving no stubble or extended "
        "beard growth. The chin hair is kept short to medium in length, without braids or long strands. "
        "Unlike a circle beard or Van Dyke, the mustache remains either absent or completely disconnected "
        "from the chin beard, leaving a clear gap above the lips and around the corners of the mouth. This "
        "creates a sharp contrast between the visible skin and the deliberate chin hair, emphasizing the jaw "
        "and adding definition to the lower face. Culturally, the goatee is often associated with artistic, "
        "intellectual, and occasionally rebellious personalities, offering a blend of sophistication and "
        "edginess. Iconic example: Johnny Depp, who frequently sports a short disconnected goatee in both his "
        "public appearances and films, most famously in his portrayal of Captain Jack Sparrow in the "
        "'Pirates of the Caribbean' series."
    )),
    StyleOption("Full Beard", "full beard — Thick, dense coverage across jawline, cheeks, and chin, projecting maturity and masculinity; showcased by Jason Momoa with his signature rugged, unkempt full beard."),
    StyleOption("Van Dyke", "van dyke — Pointed chin beard paired with a detached mustache, with cheeks clean-shaven; a bold, artistic look often associated with Johnny Depp."),
    StyleOption("Anchor", "anchor — A stylized beard shaped like an anchor: jawline beard connected to a pointed chin beard and mustache, offering a sharp, modern appearance; famously worn by Robert Downey Jr. as Tony Stark."),
    StyleOption("Circle Beard", "circle beard — Rounded goatee merged with a mustache, forming a neat circle around the mouth; refined style seen on Idris Elba in well-groomed roles."),
    StyleOption("Mutton Chops", "mutton chops — Thick sideburns extending down the cheeks and connecting to a mustache, with chin completely shaved to the skin (no hair); evoking vintage boldness, occasionally seen in retro character portrayals. Example: Micah Bell (RDR2)"),
    StyleOption("Balbo", "balbo — Separated chin beard and mustache without cheek or jaw hair; sharp, precise, and fashion-forward, popularized by Christian Bale in various stylized roles."),
    StyleOption("Extended Goatee", "extended goatee — Wider goatee extending along the jawline with chin beard connected to short side patches; David Beckham has sported this to frame his strong jaw."),
]

HAIRCOLORS: List[StyleOption] = [
    StyleOption("Black", "black, dark and natural"),
    StyleOption("Brown", "brown, medium warm tone"),
    StyleOption("Blonde", "blonde, light and bright"),
    StyleOption("Red", "red, vibrant coppery tone"),
    StyleOption("Gray", "gray, silver and matured look"),
    StyleOption("White", "white, pure white tone"),
    StyleOption("Auburn", "auburn, reddish-brown mix"),
]

CATALOG: Dict[str, List[StyleOption]] = {
    "hairstyle": HAIRSTYLES,
    "beardstyle": BEARDSTYLES,
    "haircolor": HAIRCOLORS,
}


@dataclass(frozen=True)
class StyleSelection:
    """3軸のスタイル選択（各軸とも DEFAULT は「変更なし」）"""
    hairstyle: str = DEFAULT
    beardstyle: str = DEFAULT
    haircolor: str = DEFAULT

    def as_tuple(self) -> Tuple[str, str, str]:
        return (self.hairstyle, self.beardstyle, self.haircolor)

    def to_dict(self) -> Dict[str, str]:
        return {"hairstyle": self.hairstyle, "beardstyle": self.beardstyle, "haircolor": self.haircolor}


def is_known(axis: str, value: str) -> bool:
    if value == DEFAULT:
        return True
    return any(opt.value == value for opt in CATALOG.get(axis, []))


def validate_style(axis: str, value: str) -> str:
    """カタログにない軸・値は UnknownStyleError"""
    if axis not in CATALOG:
        raise UnknownStyleError(f"Unknown style axis: {axis}")
    if not is_known(axis, value):
        raise UnknownStyleError(f"Unknown {axis} option")
    return value


def catalog_as_dict() -> Dict[str, List[Dict[str, str]]]:
    """UI用のカタログ（先頭に「変更なし」を含む）"""
    out = {}
    for axis, options in CATALOG.items():
        out[axis] = [{"label": DEFAULT_LABEL, "value": DEFAULT, "group": ""}]
        out[axis] += [opt.to_dict() for opt in options]
    return out
