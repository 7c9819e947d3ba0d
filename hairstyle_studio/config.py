# config.py
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Gemini
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
MODEL_GEMINI    = "gemini-2.5-flash-image-preview"

# Supabase (auth + relay function)
RELAY_FUNCTION  = "gemini-function"

# Backends: "relay" | "direct" | "sdk"
IMAGE_BACKEND   = "relay"

# Upload
MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB

# Camera
CAMERA_INDEX  = 0
CAMERA_WIDTH  = 1280
CAMERA_HEIGHT = 720
JPEG_QUALITY  = 80


@dataclass
class Settings:
    gemini_api_key: Optional[str] = None
    gemini_model: str = MODEL_GEMINI
    gemini_api_base: str = GEMINI_API_BASE
    image_backend: str = IMAGE_BACKEND
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    relay_function: str = RELAY_FUNCTION
    camera_index: int = CAMERA_INDEX
    request_timeout: Optional[float] = None
    secret_key: str = "dev"
    max_content_length: int = MAX_CONTENT_LENGTH

    @property
    def supabase_project_ref(self) -> Optional[str]:
        """https://<ref>.supabase.co → <ref>"""
        if not self.supabase_url:
            return None
        host = self.supabase_url.split("://", 1)[-1].split("/", 1)[0]
        return host.split(".", 1)[0] or None


def _env_float(name: str) -> Optional[float]:
    raw = os.environ.get(name)
    if not raw:
        return None
    return float(raw)


def load_settings() -> Settings:
    """環境変数（.env 含む）から設定を読み込む"""
    return Settings(
        gemini_api_key=os.environ.get("GEMINI_API_KEY") or os.environ.get("NEXT_PUBLIC_GEMINI_API_KEY"),
        gemini_model=os.environ.get("GEMINI_MODEL", MODEL_GEMINI),
        gemini_api_base=os.environ.get("GEMINI_API_BASE", GEMINI_API_BASE).rstrip("/"),
        image_backend=os.environ.get("IMAGE_BACKEND", IMAGE_BACKEND).lower(),
        supabase_url=(os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL") or "").rstrip("/") or None,
        supabase_anon_key=os.environ.get("SUPABASE_ANON_KEY") or os.environ.get("NEXT_PUBLIC_SUPABASE_ANON_KEY"),
        relay_function=os.environ.get("RELAY_FUNCTION", RELAY_FUNCTION),
        camera_index=int(os.environ.get("CAMERA_INDEX", CAMERA_INDEX)),
        request_timeout=_env_float("REQUEST_TIMEOUT"),
        secret_key=os.environ.get("SECRET_KEY", "dev"),
        max_content_length=int(os.environ.get("MAX_CONTENT_LENGTH", MAX_CONTENT_LENGTH)),
    )
