"""Shared plumbing for the serverless HTTP handlers in api/."""

import json
import os
from http.server import BaseHTTPRequestHandler
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from .config import get_config, get_stats_api_base_url
from .errors import DraftRejection, SwapRejection
from .stats_client import NHLStatsClient
from .store import JsonFileStore

DEFAULT_DATA_DIR = 'data'


def get_store() -> JsonFileStore:
    """Store rooted at ``HOCKEYPOOL_DATA_DIR`` (default ./data)."""
    return JsonFileStore(
        os.environ.get('HOCKEYPOOL_DATA_DIR', DEFAULT_DATA_DIR),
        max_attempts=get_config().transaction_max_attempts,
    )


def get_client() -> NHLStatsClient:
    return NHLStatsClient(get_stats_api_base_url(), timeout=get_config().request_timeout_seconds)


def default_league_id() -> Optional[str]:
    return os.environ.get('DEFAULT_LEAGUE_ID')


def is_authorized(auth_header: Optional[str], secret_env: str = 'CRON_SECRET') -> bool:
    """Check a ``Bearer <token>`` header against a secret; no secret configured means open."""
    secret = os.environ.get(secret_env)
    if not secret:
        return True
    return auth_header == f'Bearer {secret}'


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def rejection_body(rejection: DraftRejection | SwapRejection) -> dict:
    body = {'error': rejection.message, 'code': rejection.code}
    if rejection.details is not None:
        body['details'] = rejection.details
    return body


class JsonHandler(BaseHTTPRequestHandler):
    """Base for the api/ handlers: JSON in and out, CORS, quiet logging."""

    def do_OPTIONS(self):
        """Handle CORS preflight."""
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type, Authorization')
        self.send_header('Content-Length', '0')
        self.end_headers()

    def _query(self) -> dict[str, str]:
        """First value of each query-string parameter."""
        return {key: values[0] for key, values in parse_qs(urlparse(self.path).query).items()}

    def _read_json(self) -> dict:
        """
        Parse the request body.

        Raises:
            json.JSONDecodeError: If the body is not valid JSON
        """
        content_length = int(self.headers.get('Content-Length', 0))
        body = self.rfile.read(content_length)
        return json.loads(body.decode()) if body else {}

    def _authorized(self, secret_env: str = 'CRON_SECRET') -> bool:
        return is_authorized(self.headers.get('Authorization'), secret_env)

    def _send_json(self, status_code: int, data: dict):
        """Send JSON response with CORS headers."""
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type, Authorization')
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def log_message(self, format, *args):
        """Suppress default logging."""
        pass
