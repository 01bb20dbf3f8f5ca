"""
Share-access dialog: pick a peer and mint them one datatoken.

The dialog owns an explicit, immutable ShareState value and moves it through

    IDLE -> DIALOG_OPEN -> FRIEND_SELECTED -> SUBMITTING -> IDLE (success)
                                                        -> FRIEND_SELECTED (error)

Every transition is pushed to subscribed listeners as a DialogView.
"""

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Tuple

from eth_utils import to_checksum_address

from .abi import MINT
from .address_book import AddressBook
from .rpc_client import RpcClient, RpcError
from .views import (
    NO_FRIENDS_MESSAGE,
    DialogView,
    FriendRow,
    ShareTarget,
    TxState,
    TxStatus,
    short_address,
)

logger = logging.getLogger(__name__)

# One whole token at 18 decimals
ONE_TOKEN = 10**18
# Seconds the success status stays visible before the dialog closes
SUCCESS_CLOSE_DELAY = 2.0

WAITING_MESSAGE = "Waiting for approval..."
SUCCESS_MESSAGE = "Access shared successfully!"


class ShareStep(Enum):
    IDLE = "idle"
    DIALOG_OPEN = "dialog-open"
    FRIEND_SELECTED = "friend-selected"
    SUBMITTING = "submitting"


@dataclass(frozen=True)
class ShareState:
    step: ShareStep = ShareStep.IDLE
    target: Optional[ShareTarget] = None
    friends: Tuple[str, ...] = ()
    selected_friend: Optional[str] = None
    status: Optional[TxStatus] = None


IDLE_STATE = ShareState()


class ShareDialogError(Exception):
    """Raised for a transition the share flow does not allow."""

    pass


class ShareDialog:
    """
    Share flow for a single NFT/datatoken pair at a time.

    Minting is delegated to the connected node's wallet via eth_sendTransaction;
    this class never holds keys.
    """

    def __init__(
        self,
        client: RpcClient,
        address_book: AddressBook,
        wallet_address: str,
        success_close_delay: float = SUCCESS_CLOSE_DELAY,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.client = client
        self.address_book = address_book
        self.wallet_address = wallet_address
        self.success_close_delay = success_close_delay
        self._sleep = sleep or time.sleep
        self.state = IDLE_STATE
        self._listeners: List[Callable[[DialogView], None]] = []

    def subscribe(self, listener: Callable[[DialogView], None]) -> None:
        """Register a callable that receives the view after every transition."""
        self._listeners.append(listener)

    def _transition(self, state: ShareState) -> None:
        self.state = state
        view = self.view()
        for listener in self._listeners:
            listener(view)

    def open(self, nft_address: str, datatoken_address: str) -> None:
        """
        Open the dialog for an NFT and its datatoken.

        Raises:
            ShareDialogError: If a dialog is already open
        """
        if self.state.step is not ShareStep.IDLE:
            raise ShareDialogError("A share dialog is already open")

        self._transition(
            ShareState(
                step=ShareStep.DIALOG_OPEN,
                target=ShareTarget(nft_address, datatoken_address),
                friends=self.address_book.friends,
            )
        )

    def select_friend(self, address: str) -> None:
        """
        Select the single share recipient, replacing any previous selection.

        Raises:
            ValueError: If the address is not in the dialog's friend list
        """
        if self.state.step not in (ShareStep.DIALOG_OPEN, ShareStep.FRIEND_SELECTED):
            return

        match = next(
            (friend for friend in self.state.friends if friend.lower() == address.lower()),
            None,
        )
        if match is None:
            raise ValueError(f"{address} is not in the friend list")

        self._transition(
            replace(self.state, step=ShareStep.FRIEND_SELECTED, selected_friend=match)
        )

    def close(self) -> None:
        """Close the dialog and clear the share selection; safe when nothing is open."""
        if self.state == IDLE_STATE:
            return
        self._transition(IDLE_STATE)

    def confirm(self) -> Optional[TxStatus]:
        """
        Mint one datatoken to the selected friend.

        Returns:
            The final status, or None when there was nothing to submit
        """
        if self.state.step is not ShareStep.FRIEND_SELECTED or self.state.target is None:
            return None

        friend = self.state.selected_friend
        target = self.state.target

        try:
            self._transition(
                replace(
                    self.state,
                    step=ShareStep.SUBMITTING,
                    status=TxStatus(TxState.WAITING, WAITING_MESSAGE),
                )
            )
            tx_hash = self.client.send_transaction(
                from_address=self.wallet_address,
                to=target.datatoken_address,
                data=MINT.encode_call(to_checksum_address(friend), ONE_TOKEN),
            )
        except Exception as e:
            logger.error("Error sharing NFT access: %s", e)
            status = TxStatus(TxState.ERROR, f"Error: {e}")
            self._transition(replace(self.state, step=ShareStep.FRIEND_SELECTED, status=status))
            # Expected failures end in the error status; anything else still propagates
            if not isinstance(e, (RpcError, ValueError)):
                raise
            return status

        logger.info("Minted access to %s for %s in %s", target.datatoken_address, friend, tx_hash)
        status = TxStatus(TxState.SUCCESS, SUCCESS_MESSAGE)
        try:
            self._transition(replace(self.state, status=status))
            self._sleep(self.success_close_delay)
        finally:
            self.close()
        return status

    def view(self) -> DialogView:
        """Props for rendering the dialog in its current state."""
        state = self.state
        if state.step is ShareStep.IDLE:
            return DialogView(is_open=False)

        return DialogView(
            is_open=True,
            friends=[
                FriendRow(
                    address=friend,
                    label=short_address(friend),
                    selected=friend == state.selected_friend,
                )
                for friend in state.friends
            ],
            confirm_enabled=bool(state.friends),
            cancel_enabled=state.step is not ShareStep.SUBMITTING,
            empty_message=None if state.friends else NO_FRIENDS_MESSAGE,
            status=state.status,
        )
