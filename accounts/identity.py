"""
Client for the external identity provider.

The provider owns sign-in; this service only asks it which role claim a
signed-in subject carries, so that a locally edited role cannot grant more
access than the provider issued.
"""
import logging
import time
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from django.core.cache import cache
from requests.exceptions import HTTPError, RequestException

logger = logging.getLogger(__name__)

ROLE_CACHE_KEY = 'identity-role:{subject}'


class IdentityProviderError(Exception):
    """The identity provider could not be reached or returned garbage."""


class IdentityProviderClient:
    """
    Thin wrapper around the provider's user lookup endpoint.
    """

    def __init__(self, api_url: Optional[str] = None, api_key: Optional[str] = None):
        self.api_url = (api_url or settings.IDENTITY_PROVIDER_API_URL or '').rstrip('/')
        self.api_key = api_key or settings.IDENTITY_PROVIDER_API_KEY

    @property
    def enabled(self) -> bool:
        return bool(self.api_url)

    def _make_api_request(self, url: str) -> Dict[str, Any]:
        """
        GET a JSON document with retry and exponential backoff on transient errors.
        """
        headers = {'Accept': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'

        max_retries = settings.MAX_RETRIES
        for attempt in range(max_retries):
            try:
                response = requests.get(url, headers=headers, timeout=10)
                response.raise_for_status()
                return response.json()
            except HTTPError as http_err:
                status_code = http_err.response.status_code if http_err.response is not None else None
                logger.error(f"Identity provider HTTP error: {http_err} - Status: {status_code}")
                if status_code in (429, 502, 503, 504) and attempt < max_retries - 1:
                    self._backoff(attempt)
                    continue
                raise IdentityProviderError(f"Identity provider returned {status_code}") from http_err
            except RequestException as req_err:
                logger.error(f"Identity provider request failed: {req_err}")
                if attempt < max_retries - 1:
                    self._backoff(attempt)
                    continue
                raise IdentityProviderError("Identity provider unreachable") from req_err
            except ValueError as json_err:
                raise IdentityProviderError("Identity provider returned malformed JSON") from json_err

        raise IdentityProviderError(f"Failed to fetch {url} after {max_retries} attempts")

    @staticmethod
    def _backoff(attempt: int):
        sleep_time = settings.RETRY_DELAY_SECONDS * (settings.BACKOFF_FACTOR ** attempt)
        logger.info(f"Retrying identity provider request in {sleep_time:.2f} seconds...")
        time.sleep(sleep_time)

    def get_role(self, subject: str) -> Optional[str]:
        """
        Return the role claim ('admin' or 'driver') for a subject, cached.

        Subjects without an explicit claim default to 'driver', mirroring the
        provider's default for newly registered accounts.
        """
        cache_key = ROLE_CACHE_KEY.format(subject=subject)
        role = cache.get(cache_key)
        if role is not None:
            return role

        payload = self._make_api_request(f"{self.api_url}/users/{subject}")
        metadata = payload.get('public_metadata') or payload.get('publicMetadata') or {}
        role = (metadata.get('role') or 'driver').lower()

        cache.set(cache_key, role, settings.IDENTITY_ROLE_CACHE_SECONDS)
        return role
