"""
Google Sign-In

Exchanges an authorization code for tokens and reads the account's
verified email. Account linking is by email: a Google login only works for
a user that already exists.
"""
import logging
from typing import Dict, Any

import requests

from studio_api.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"


class GoogleOAuthError(Exception):
    """Code exchange or profile lookup failed."""


class GoogleOAuthClient:
    """Thin client over Google's OAuth endpoints."""

    def __init__(self, client_id: str, client_secret: str, timeout: float = 10):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout

    def exchange_code(self, code: str, redirect_uri: str) -> Dict[str, Any]:
        if not self.client_id or not self.client_secret:
            raise GoogleOAuthError("Google OAuth not configured")

        token_data = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'code': code,
            'redirect_uri': redirect_uri,
            'grant_type': 'authorization_code'
        }

        try:
            response = requests.post(GOOGLE_TOKEN_URL, data=token_data, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Google token exchange failed: {e}")
            raise GoogleOAuthError("Token exchange failed") from e

        if response.status_code != 200:
            try:
                error = response.json().get('error', 'unknown_error')
            except ValueError:
                error = response.text[:200]
            logger.error(f"Google token exchange failed: {response.status_code} - {error}")
            raise GoogleOAuthError(f"Token exchange failed: {error}")

        tokens = response.json()
        if not tokens.get('access_token'):
            raise GoogleOAuthError("No access token received from Google")
        return tokens

    def get_user_info(self, access_token: str) -> Dict[str, Any]:
        headers = {'Authorization': f'Bearer {access_token}'}
        try:
            response = requests.get(GOOGLE_USERINFO_URL, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to get Google user info: {e}")
            raise GoogleOAuthError("User info lookup failed") from e
        return response.json()

    def fetch_verified_email(self, code: str, redirect_uri: str) -> str:
        """Run the full exchange and return the account's verified email."""
        tokens = self.exchange_code(code, redirect_uri)
        info = self.get_user_info(tokens['access_token'])

        email = info.get('email')
        if not email:
            raise GoogleOAuthError("Google account has no email")
        if info.get('verified_email') is False:
            raise GoogleOAuthError("Google email is not verified")
        return email.strip().lower()


def build_google_client() -> GoogleOAuthClient:
    return GoogleOAuthClient(settings.GOOGLE_CLIENT_ID, settings.GOOGLE_CLIENT_SECRET)
