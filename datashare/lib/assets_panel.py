"""
Asset panel: loads a wallet's indexed assets and keeps the rendered view.
"""

import logging

from .asset_index import AssetIndexClient, AssetIndexError
from .views import AssetListView, build_asset_list_view

logger = logging.getLogger(__name__)


class AssetsPanel:
    """
    Holds the most recently rendered asset list.

    A failed load is logged and leaves the previous view in place; there is
    no retry and no error banner.
    """

    def __init__(self, index_client: AssetIndexClient):
        self.index_client = index_client
        self.view = AssetListView()

    def load(self, wallet_address: str, chain_id: int) -> AssetListView:
        """
        Fetch and render the assets for a wallet.

        Returns:
            The current view after the load attempt
        """
        if not wallet_address:
            return self.view

        try:
            assets = self.index_client.get_user_assets(wallet_address, chain_id)
        except AssetIndexError as e:
            logger.error("Error fetching assets: %s", e)
            return self.view

        logger.info("Loaded %d asset(s) for %s on chain %d", len(assets), wallet_address, chain_id)
        self.view = build_asset_list_view(assets)
        return self.view
