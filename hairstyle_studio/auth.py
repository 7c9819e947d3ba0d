"""
Supabase Auth 連携（OAuth コールバックのコード交換）
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .errors import AuthExchangeError

logger = logging.getLogger(__name__)

DEFAULT_NEXT = "/"


def safe_next(next_path: Optional[str]) -> str:
    """
    ログイン後のリダイレクト先を検証する（オープンリダイレクト防止）
    "/" で始まるサイト内パスのみ許可し、"//host" 形式も拒否する
    """
    if not next_path or not next_path.startswith("/"):
        return DEFAULT_NEXT
    if next_path.startswith("//") or next_path.startswith("/\\"):
        return DEFAULT_NEXT
    return next_path


def code_verifier_cookie_name(project_ref: Optional[str]) -> Optional[str]:
    if not project_ref:
        return None
    return f"sb-{project_ref}-auth-token-code-verifier"


@dataclass
class AuthSession:
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user_id: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthSession":
        user = data.get("user") or {}
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
            user_id=user.get("id"),
            email=user.get("email"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_in": self.expires_in,
            "user_id": self.user_id,
            "email": self.email,
        }


class SupabaseAuthClient:
    """Supabase Auth の REST エンドポイントを叩く最小クライアント"""

    def __init__(self, supabase_url: Optional[str], anon_key: Optional[str], timeout: Optional[float] = None):
        self.supabase_url = (supabase_url or "").rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout

    def exchange_code_for_session(self, code: str, code_verifier: Optional[str] = None) -> AuthSession:
        """
        認可コードをセッションに交換する

        Args:
            code: コールバックで受け取った一回限りのコード
            code_verifier: PKCE の code verifier

        Returns:
            AuthSession

        Raises:
            AuthExchangeError: 交換に失敗
        """
        if not self.supabase_url or not self.anon_key:
            raise AuthExchangeError("Supabase is not configured")

        url = f"{self.supabase_url}/auth/v1/token"
        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        body = {"auth_code": code, "code_verifier": code_verifier or ""}
        try:
            resp = requests.post(url, params={"grant_type": "pkce"}, headers=headers, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Auth exchange request error: {e}")
            raise AuthExchangeError(str(e)) from e

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if not resp.ok or "access_token" not in data:
            message = (data.get("error_description") or data.get("msg") or data.get("message")
                       or data.get("error") or f"Auth exchange failed with status {resp.status_code}")
            logger.error(f"Auth exchange failed status={resp.status_code}: {message}")
            raise AuthExchangeError(str(message))

        return AuthSession.from_dict(data)
