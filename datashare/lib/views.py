"""
View props and HTML rendering for the asset list and the share dialog.

Builders turn domain records into plain dataclasses carrying everything a
template needs; renderers turn those props into escaped HTML. Event bindings
are expressed as `data-action` attributes rather than inline handlers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Sequence

from markupsafe import Markup

from .models import UserAsset


MARKET_ASSET_URL = "https://market.oceanprotocol.com/asset/{did}"
PLACEHOLDER_IMAGE_URL = "/images/icq-flower.png"

NO_ASSETS_MESSAGE = (
    "No NFTs found for this wallet on the current network. Create your first NFT above!"
)
NO_FRIENDS_MESSAGE = "No friends added yet. Add friends to share your NFT access."


class TxState(Enum):
    WAITING = "waiting"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class TxStatus:
    state: TxState
    message: str


@dataclass(frozen=True)
class ShareTarget:
    """The NFT and datatoken a share action mints against."""

    nft_address: str
    datatoken_address: str


@dataclass
class AssetCard:
    title: str
    preview_image_url: str
    description: str
    author: str
    created_label: str
    nft_address: str
    datatoken_symbol: str
    market_url: str
    share: Optional[ShareTarget] = None  # None when the asset has no datatoken


@dataclass
class AssetListView:
    cards: List[AssetCard] = field(default_factory=list)
    empty_message: Optional[str] = None


@dataclass
class FriendRow:
    address: str
    label: str
    selected: bool = False


@dataclass
class DialogView:
    is_open: bool
    friends: List[FriendRow] = field(default_factory=list)
    confirm_enabled: bool = False
    cancel_enabled: bool = True
    empty_message: Optional[str] = None
    status: Optional[TxStatus] = None

    @property
    def selected_count(self) -> int:
        return sum(1 for row in self.friends if row.selected)


def short_address(address: str) -> str:
    """Abbreviate an address as 0x1234...abcd."""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_created(created: Any) -> str:
    """
    Format an ISO-8601 timestamp as e.g. "Jan 5, 2024, 03:07 PM".

    Unparseable values are returned as their string form.
    """
    try:
        parsed = datetime.fromisoformat(created.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return str(created) if created else ""
    return f"{parsed:%b} {parsed.day}, {parsed.year}, {parsed:%I:%M %p}"


def build_asset_card(asset: UserAsset) -> AssetCard:
    first_datatoken = asset.datatokens[0] if asset.datatokens else None

    return AssetCard(
        title=asset.name,
        preview_image_url=asset.preview_image_url or PLACEHOLDER_IMAGE_URL,
        description=asset.description,
        author=asset.author,
        created_label=format_created(asset.created),
        nft_address=asset.nft_address,
        datatoken_symbol=first_datatoken.symbol if first_datatoken else "",
        market_url=MARKET_ASSET_URL.format(did=asset.did),
        share=(
            ShareTarget(asset.nft_address, first_datatoken.address) if first_datatoken else None
        ),
    )


def build_asset_list_view(assets: Sequence[UserAsset]) -> AssetListView:
    """One card per asset in order, or the empty-state message when there are none."""
    if not assets:
        return AssetListView(cards=[], empty_message=NO_ASSETS_MESSAGE)
    return AssetListView(cards=[build_asset_card(asset) for asset in assets])


def render_asset_card_html(card: AssetCard) -> Markup:
    if card.share is not None:
        share_button = Markup(
            '<button class="share-btn" data-action="share" data-nft="{}" '
            'data-datatoken="{}">Share Access</button>'
        ).format(card.share.nft_address, card.share.datatoken_address)
    else:
        share_button = Markup("")

    return Markup(
        '<div class="asset-card window">'
        '<div class="title-bar"><div class="title-bar-text">{title}</div></div>'
        '<div class="window-body">'
        '<div class="asset-preview">'
        '<img src="{image}" alt="NFT Preview" class="asset-image"></div>'
        "<p><strong>Description:</strong> {description}</p>"
        "<p><strong>Author:</strong> {author}</p>"
        "<p><strong>Created:</strong> {created}</p>"
        "<p><strong>NFT Address:</strong> {nft}</p>"
        "<p><strong>Datatoken:</strong> {symbol}</p>"
        '<div class="button-bar">{share_button}'
        '<a class="market-btn" href="{market_url}" target="_blank" rel="noopener">'
        "View in Ocean Market</a></div>"
        "</div></div>"
    ).format(
        title=card.title,
        image=card.preview_image_url,
        description=card.description,
        author=card.author,
        created=card.created_label,
        nft=card.nft_address,
        symbol=card.datatoken_symbol,
        share_button=share_button,
        market_url=card.market_url,
    )


def render_asset_list_html(view: AssetListView) -> Markup:
    if view.empty_message is not None:
        body = Markup('<div class="no-assets-message">{}</div>').format(view.empty_message)
    else:
        body = Markup("").join(render_asset_card_html(card) for card in view.cards)
    return Markup('<div id="userAssets">{}</div>').format(body)


def render_dialog_html(view: DialogView) -> Markup:
    """Render the share dialog and its overlay; empty markup when the dialog is closed."""
    if not view.is_open:
        return Markup("")

    if view.friends:
        rows = Markup("").join(
            Markup(
                '<div class="share-friend-item{}" data-action="select-friend" '
                'data-address="{}">{}</div>'
            ).format(" selected" if row.selected else "", row.address, row.label)
            for row in view.friends
        )
    else:
        rows = Markup("<p>{}</p>").format(view.empty_message or NO_FRIENDS_MESSAGE)

    if view.status is not None:
        status = Markup(
            '<div class="transaction-status"><div id="mintStatus" class="tx-status">'
            '<span class="tx-label">Sharing Access:</span>'
            '<span class="tx-state {}">{}</span></div></div>'
        ).format(view.status.state.value, view.status.message)
    else:
        status = Markup("")

    return Markup(
        '<div class="overlay"></div>'
        '<div class="share-dialog window">'
        '<div class="title-bar"><div class="title-bar-text">Share NFT Access</div>'
        '<div class="title-bar-controls">'
        '<button aria-label="Close" data-action="close"{cancel_disabled}></button></div></div>'
        '<div class="window-body">'
        "<p>Select a friend to share access with:</p>"
        '<div class="share-dialog-content" id="shareFriendsList">{rows}</div>'
        '<div class="dialog-buttons">'
        '<button class="btn" data-action="close"{cancel_disabled}>Cancel</button>'
        '<button class="btn" id="shareButton" data-action="confirm"{confirm_disabled}>'
        "Share</button></div>{status}</div></div>"
    ).format(
        rows=rows,
        status=status,
        cancel_disabled=Markup("") if view.cancel_enabled else Markup(" disabled"),
        confirm_disabled=Markup("") if view.confirm_enabled else Markup(" disabled"),
    )
