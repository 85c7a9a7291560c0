"""
Strava activity client.

Reads per-user access tokens from a JSON file and pulls recent
activities from the Strava API. Token exchange and refresh are handled
by the auth service that writes the token file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .errors import StravaError, Unauthorized

logger = logging.getLogger(__name__)

STRAVA_API_BASE = os.getenv("STRAVA_API_BASE", "https://www.strava.com/api/v3")
TOKENS_FILE = Path(os.getenv("STRAVA_TOKENS_FILE", "data/strava_tokens.json"))
MAX_PER_PAGE = 200
DEFAULT_TIMEOUT = 30


def read_json_file(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text())
    except json.JSONDecodeError:
        logger.warning(f"Token file {path} is not valid JSON")
        return default


def load_access_token(user_id: str, tokens_file: Optional[Path] = None) -> str:
    """
    Look up the Strava access token stored for a user.

    The token file maps user ids to token dicts:
    {"<user_id>": {"access_token": "...", ...}}

    Raises:
        Unauthorized: no usable token is stored for the user
    """
    tokens = read_json_file(tokens_file or TOKENS_FILE, {})
    entry = tokens.get(user_id) if isinstance(tokens, dict) else None
    access_token = entry.get("access_token") if isinstance(entry, dict) else None
    if not access_token:
        raise Unauthorized("Unauthorized")
    return access_token


def fetch_activities(access_token: str, limit: int = 200) -> List[Dict[str, Any]]:
    """
    Fetch the most recent activities for the token's athlete.

    Args:
        access_token: Strava bearer token
        limit: Maximum number of activities to return

    Returns:
        List of activity dicts, newest first

    Raises:
        Unauthorized: Strava rejected the token
        StravaError: any other non-200 response
    """
    per_page = min(limit, MAX_PER_PAGE)
    all_items: List[Dict[str, Any]] = []
    page = 1
    while len(all_items) < limit:
        resp = requests.get(
            f"{STRAVA_API_BASE}/athlete/activities",
            headers={"Authorization": f"Bearer {access_token}"},
            params={"per_page": per_page, "page": page},
            timeout=DEFAULT_TIMEOUT,
        )
        if resp.status_code == 401:
            raise Unauthorized("Unauthorized")
        if resp.status_code != 200:
            raise StravaError(f"Strava request failed ({resp.status_code})")

        batch = resp.json()
        if not isinstance(batch, list):
            break
        all_items.extend(batch)
        if len(batch) < per_page:
            break
        page += 1

    logger.info(f"Fetched {len(all_items[:limit])} activities from Strava")
    return all_items[:limit]


def load_user_activities(user_id: str) -> List[Dict[str, Any]]:
    """Fetch recent activities for a user with their stored token."""
    return fetch_activities(load_access_token(user_id))
