"""
Client for the marketplace search API that indexes a wallet's data assets.
"""

from typing import List, Optional

import requests

from .models import UserAsset


DEFAULT_TIMEOUT = 15.0  # seconds


class AssetIndexError(Exception):
    """Exception raised when the asset index cannot be read."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AssetIndexClient:
    """
    Read-only client for `GET /api/user-assets/{wallet}/{chain_id}`.

    Requests are never retried; callers decide how to surface failures.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def _get_url(self, wallet: str, chain_id: int) -> str:
        return f"{self.base_url}/api/user-assets/{wallet}/{chain_id}"

    def get_user_assets(self, wallet: str, chain_id: int) -> List[UserAsset]:
        """
        Fetch the assets indexed for a wallet on a chain.

        Args:
            wallet: Wallet address
            chain_id: Numeric chain ID

        Returns:
            Assets in the order the index returned them; empty when the
            index reports no success or no hits

        Raises:
            AssetIndexError: On transport, HTTP or payload errors
        """
        url = self._get_url(wallet, chain_id)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as e:
            raise AssetIndexError(
                f"Asset index returned {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except ValueError as e:
            raise AssetIndexError("Asset index returned invalid JSON") from e
        except requests.RequestException as e:
            raise AssetIndexError(f"Request failed: {e}") from e

        if not isinstance(data, dict) or not data.get("success"):
            return []

        try:
            return [UserAsset.from_source(hit["_source"]) for hit in data.get("assets") or []]
        except (KeyError, TypeError, AttributeError) as e:
            raise AssetIndexError(f"Malformed asset document: {e}") from e
