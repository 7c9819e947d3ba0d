"""
Gemini レスポンスの正規化
inline_data / mime_type（snake_case）と inlineData / mimeType（camelCase）の
どちらの命名でも受け付け、デシリアライズ直後に共通の形へ変換する。
"""

from __future__ import annotations
import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import NoImageReturnedError

DEFAULT_IMAGE_MIME = "image/png"


@dataclass(frozen=True)
class InlineImage:
    mime_type: str
    data: str  # base64

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass(frozen=True)
class NormalizedPart:
    text: Optional[str] = None
    inline_image: Optional[InlineImage] = None


def _normalize_inline(raw: Any) -> Optional[InlineImage]:
    if not isinstance(raw, dict):
        return None
    data = raw.get("data")
    if not data:
        return None
    if isinstance(data, (bytes, bytearray)):
        data = base64.b64encode(bytes(data)).decode("utf-8")
    mime_type = raw.get("mime_type") or raw.get("mimeType") or DEFAULT_IMAGE_MIME
    return InlineImage(mime_type=mime_type, data=data)


def normalize_part(part: Dict[str, Any]) -> NormalizedPart:
    inline = part.get("inline_data") or part.get("inlineData")
    text = part.get("text")
    return NormalizedPart(text=text if isinstance(text, str) else None, inline_image=_normalize_inline(inline))


def normalize_parts(response: Optional[Dict[str, Any]]) -> List[NormalizedPart]:
    """candidates[*].content.parts[*] を平坦化して正規化"""
    parts: List[NormalizedPart] = []
    if not isinstance(response, dict):
        return parts
    candidates = response.get("candidates")
    if not isinstance(candidates, list):
        return parts
    for cand in candidates:
        content = cand.get("content") if isinstance(cand, dict) else None
        if not isinstance(content, dict):
            continue
        for p in content.get("parts") or []:
            if isinstance(p, dict):
                parts.append(normalize_part(p))
    return parts


def extract_image(response: Optional[Dict[str, Any]]) -> InlineImage:
    """最初の画像パートを返す。無ければ NoImageReturnedError"""
    for part in normalize_parts(response):
        if part.inline_image is not None:
            return part.inline_image
    raise NoImageReturnedError()


def extract_text(response: Optional[Dict[str, Any]]) -> str:
    return "\n".join(p.text for p in normalize_parts(response) if p.text)
