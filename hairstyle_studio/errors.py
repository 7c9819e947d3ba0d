"""
エラー定義
すべてのエラーはユーザー向けメッセージとHTTPステータスを持つ
"""

from typing import Optional


class HairstyleStudioError(Exception):
    """基底エラー（UIにそのまま表示できるメッセージを持つ）"""

    status_code = 500
    default_message = "Unexpected error occurred while generating image."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# --- 入力エラー ---

class MissingPhotoError(HairstyleStudioError):
    status_code = 400
    default_message = "Please upload a photo"


class InvalidImageError(HairstyleStudioError):
    status_code = 400
    default_message = "Please select a valid image file"


class UnknownStyleError(HairstyleStudioError):
    status_code = 400
    default_message = "Unknown style option"


class SubmissionInProgressError(HairstyleStudioError):
    status_code = 409
    default_message = "A submission is already in progress"


# --- カメラエラー ---

class CameraError(HairstyleStudioError):
    status_code = 503
    default_message = "Could not access camera."


class CameraPermissionError(CameraError):
    status_code = 403
    default_message = "Camera permission denied. Please allow camera access and try again."


class CameraNotFoundError(CameraError):
    status_code = 404
    default_message = "No camera found on your device."


class CameraUnsupportedError(CameraError):
    status_code = 501
    default_message = "Camera is not supported by your browser."


class CameraNotReadyError(CameraError):
    status_code = 409
    default_message = "Camera is not ready."


# --- 通信エラー ---

class TransportError(HairstyleStudioError):
    status_code = 502
    default_message = "API request failed"

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class MissingApiKeyError(HairstyleStudioError):
    status_code = 500
    default_message = "Gemini API key is not configured"


# --- レスポンス形式エラー ---

class NoImageReturnedError(HairstyleStudioError):
    status_code = 502
    default_message = "No image returned by Gemini API"


# --- 認証エラー ---

class AuthExchangeError(HairstyleStudioError):
    status_code = 401
    default_message = "Could not exchange code for session"
