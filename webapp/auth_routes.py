"""Auth provider callback routes (authorization-code exchange)."""

from __future__ import annotations

from urllib.parse import quote

from flask import Blueprint, current_app, redirect, render_template, request, session

from hairstyle_studio.auth import SupabaseAuthClient, code_verifier_cookie_name, safe_next
from hairstyle_studio.errors import AuthExchangeError


auth_bp = Blueprint("auth", __name__)

MISSING_CODE_MESSAGE = "Missing code in callback URL"


def _auth_client() -> SupabaseAuthClient:
    client = current_app.extensions.get("auth_client")
    if client is None:
        settings = current_app.extensions["settings"]
        client = SupabaseAuthClient(settings.supabase_url, settings.supabase_anon_key, settings.request_timeout)
        current_app.extensions["auth_client"] = client
    return client


def _error_redirect(message: str):
    return redirect(f"/auth/error?error={quote(message, safe='')}")


@auth_bp.get("/auth/callback")
def auth_callback():
    code = request.args.get("code")
    next_path = safe_next(request.args.get("next"))

    if not code:
        return _error_redirect(MISSING_CODE_MESSAGE)

    settings = current_app.extensions["settings"]
    cookie_name = code_verifier_cookie_name(settings.supabase_project_ref)
    code_verifier = request.cookies.get(cookie_name) if cookie_name else None

    try:
        auth_session = _auth_client().exchange_code_for_session(code, code_verifier)
    except AuthExchangeError as e:
        current_app.logger.error(f"Code exchange failed: {e.message}")
        return _error_redirect(e.message)

    session["auth"] = auth_session.to_dict()
    current_app.logger.info(f"Session established for user {auth_session.user_id}")

    response = redirect(next_path)
    if cookie_name:
        response.delete_cookie(cookie_name)
    return response


@auth_bp.get("/auth/error")
def auth_error():
    return render_template("auth_error.html", error=request.args.get("error", "Unknown error"))
