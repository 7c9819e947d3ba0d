"""
画像変換バックエンド
- GeminiRestBackend:     Gemini REST API を直接呼ぶ（x-goog-api-key）
- RelayFunctionBackend:  Supabase Edge Function 経由で呼ぶ
- GeminiSdkBackend:      google.generativeai SDK 経由で呼ぶ
いずれも transform(image, prompt) で data-URI を返す。
"""

from __future__ import annotations
import io
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from PIL import Image

from .capture import SelectedImage
from .config import Settings
from .errors import MissingApiKeyError, NoImageReturnedError, TransportError
from .gemini_response import DEFAULT_IMAGE_MIME, extract_image

logger = logging.getLogger(__name__)

RESPONSE_MODALITIES = ["TEXT", "IMAGE"]
RELAY_ERROR_MESSAGE = "Error calling Supabase Edge Function"


class ImageTransformBackend(ABC):
    """写真 + プロンプト → 生成画像（data-URI）"""

    name = "base"

    @abstractmethod
    def transform(self, image: SelectedImage, prompt: str, access_token: Optional[str] = None) -> str:
        ...


def _error_message(resp: requests.Response, fallback: str) -> str:
    """エラーレスポンスから表示用メッセージを取り出す"""
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
        if body.get("message"):
            return str(body["message"])
    return fallback


class GeminiRestBackend(ImageTransformBackend):
    name = "direct"

    def __init__(self, api_key: Optional[str], model: str, api_base: str, timeout: Optional[float] = None):
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    def build_payload(self, image: SelectedImage, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"inline_data": {"mime_type": image.mime_type, "data": image.to_base64()}},
                        {"text": prompt},
                    ],
                }
            ],
            "generationConfig": {"responseModalities": RESPONSE_MODALITIES},
        }

    def transform(self, image: SelectedImage, prompt: str, access_token: Optional[str] = None) -> str:
        if not self.api_key:
            raise MissingApiKeyError()

        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }
        try:
            resp = requests.post(self.endpoint, headers=headers, json=self.build_payload(image, prompt),
                                 timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Gemini request error: {e}")
            raise TransportError(f"API request failed: {e}") from e

        if not resp.ok:
            message = _error_message(resp, f"API request failed with status {resp.status_code}")
            logger.error(f"Gemini non-2xx status={resp.status_code} body={resp.text[:400]}")
            raise TransportError(message, status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError("Invalid JSON response from Gemini API", status=resp.status_code) from e

        return extract_image(data).to_data_uri()


class RelayFunctionBackend(ImageTransformBackend):
    name = "relay"

    def __init__(self, supabase_url: Optional[str], anon_key: Optional[str],
                 function_name: str, timeout: Optional[float] = None):
        self.supabase_url = (supabase_url or "").rstrip("/")
        self.anon_key = anon_key
        self.function_name = function_name
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.supabase_url}/functions/v1/{self.function_name}"

    def transform(self, image: SelectedImage, prompt: str, access_token: Optional[str] = None) -> str:
        if not self.supabase_url or not self.anon_key:
            raise TransportError("Supabase is not configured")

        headers = {
            "Content-Type": "application/json",
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
        }
        body = {
            "base64Image": image.to_base64(),
            "mimeType": image.mime_type,
            "prompt": prompt,
        }
        try:
            resp = requests.post(self.endpoint, headers=headers, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Relay function request error: {e}")
            raise TransportError(f"{RELAY_ERROR_MESSAGE}: {e}") from e

        if not resp.ok:
            logger.error(f"Relay function non-2xx status={resp.status_code} body={resp.text[:400]}")
            raise TransportError(_error_message(resp, RELAY_ERROR_MESSAGE), status=resp.status_code)

        try:
            payload = resp.json()
        except ValueError as e:
            raise TransportError(RELAY_ERROR_MESSAGE, status=resp.status_code) from e

        return self._unwrap(payload)

    @staticmethod
    def _unwrap(payload: Any) -> str:
        """{data, error} エンベロープ・関数本体のどちらでも受け付ける"""
        if not isinstance(payload, dict):
            raise NoImageReturnedError()

        error = payload.get("error")
        if isinstance(error, dict):
            raise TransportError(error.get("message") or RELAY_ERROR_MESSAGE, status=error.get("status"))

        data = payload.get("data") if isinstance(payload.get("data"), dict) else payload
        image = data.get("image")
        if image:
            if not image.startswith("data:"):
                image = f"data:{DEFAULT_IMAGE_MIME};base64,{image}"
            return image

        message = data.get("error") if isinstance(data.get("error"), str) else None
        raise NoImageReturnedError(message or (error if isinstance(error, str) else None))


class GeminiSdkBackend(ImageTransformBackend):
    name = "sdk"

    def __init__(self, api_key: Optional[str], model: str):
        self.api_key = api_key
        self.model_name = model
        self._model = None

    def _get_model(self):
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    def transform(self, image: SelectedImage, prompt: str, access_token: Optional[str] = None) -> str:
        if not self.api_key:
            raise MissingApiKeyError()

        pil_image = Image.open(io.BytesIO(image.data))
        try:
            response = self._get_model().generate_content(
                [pil_image, prompt],
                generation_config={"response_modalities": RESPONSE_MODALITIES},
            )
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"Gemini SDK error: {e}")
            raise TransportError(e.message or str(e), status=e.code) from e
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Gemini SDK error: {e}")
            raise TransportError(str(e)) from e

        return extract_image(response.to_dict()).to_data_uri()


def build_backend(settings: Settings) -> ImageTransformBackend:
    """IMAGE_BACKEND の値でバックエンドを選ぶ"""
    kind = settings.image_backend
    if kind == "direct":
        return GeminiRestBackend(settings.gemini_api_key, settings.gemini_model,
                                 settings.gemini_api_base, settings.request_timeout)
    if kind == "sdk":
        return GeminiSdkBackend(settings.gemini_api_key, settings.gemini_model)
    if kind == "relay":
        return RelayFunctionBackend(settings.supabase_url, settings.supabase_anon_key,
                                    settings.relay_function, settings.request_timeout)
    raise ValueError(f"Unknown IMAGE_BACKEND: {kind}")
