"""
Unit tests for the CLI modules.

Tests follow the Given/When/Then pattern for clarity.
"""

from unittest.mock import patch

import pytest
import responses

from datashare import share_access, show_datatoken_holdings, show_user_assets
from datashare.lib.abi import GET_ERC721_ADDRESS, NAME, SYMBOL
from datashare.show_datatoken_holdings import validate_wallet


TOKEN = "0xaaaa000000000000000000000000000000000001"
NFT = "0x4444444444444444444444444444444444444444"


class TestValidateWallet:
    """Tests for validate_wallet function."""

    def test_accepts_checksummed_address(self, sample_wallet_address):
        assert validate_wallet(sample_wallet_address) == sample_wallet_address

    def test_strips_whitespace(self, sample_wallet_address):
        assert validate_wallet(f"  {sample_wallet_address}\n") == sample_wallet_address

    def test_raises_error_for_invalid_address(self):
        with pytest.raises(ValueError, match="Invalid wallet address: 0x123"):
            validate_wallet("0x123")


class TestShowDatatokenHoldings:
    """Tests for the holdings CLI."""

    def test_invalid_wallet_exits_with_error(self, rpc_url, capsys):
        # When
        code = show_datatoken_holdings.main(["--rpc-url", rpc_url, "--wallet", "nope"])

        # Then
        assert code == 1
        assert "Invalid wallet address" in capsys.readouterr().err

    def test_zero_workers_is_rejected_by_the_parser(self, rpc_url, sample_wallet_address, capsys):
        # When
        with pytest.raises(SystemExit) as exc_info:
            show_datatoken_holdings.main(
                ["--rpc-url", rpc_url, "--wallet", sample_wallet_address, "--max-workers", "0"]
            )

        # Then
        assert exc_info.value.code == 2
        assert "must be at least 1" in capsys.readouterr().err

    def test_scan_writes_csv_to_stdout(self, fake_chain, rpc_url, sample_wallet_address, capsys):
        """
        Given a wallet that received one datatoken
        When running the CLI without --output
        Then the CSV has a header and one row, and the count is logged
        """
        # Given
        fake_chain.returns(TOKEN, NAME, "Data Token A")
        fake_chain.returns(TOKEN, SYMBOL, "DTA")
        fake_chain.returns(TOKEN, GET_ERC721_ADDRESS, NFT)
        fake_chain.add_transfer(TOKEN, NFT, sample_wallet_address, block=15000)

        # When
        code = show_datatoken_holdings.main(
            ["--rpc-url", rpc_url, "--wallet", sample_wallet_address, "--max-workers", "2"]
        )

        # Then
        captured = capsys.readouterr()
        assert code == 0
        lines = captured.out.strip().splitlines()
        assert len(lines) == 2
        assert lines[1].startswith(TOKEN)
        assert "Found 1 tokens" in captured.err


class TestShowUserAssets:
    """Tests for the asset page CLI."""

    def test_renders_page_with_explicit_chain_id(self, index_url, sample_wallet_address, capsys):
        # Given
        with responses.RequestsMock() as rsps:
            rsps.add(
                responses.GET,
                f"{index_url}/api/user-assets/{sample_wallet_address}/137",
                json={"success": True, "assets": []},
            )

            # When
            code = show_user_assets.main(
                [
                    "--index-url",
                    index_url,
                    "--chain-id",
                    "137",
                    "--wallet",
                    sample_wallet_address,
                ]
            )

        # Then
        captured = capsys.readouterr()
        assert code == 0
        assert "No NFTs found for this wallet" in captured.out

    def test_reads_chain_id_from_node(self, fake_chain, rpc_url, index_url, sample_wallet_address, capsys):
        # Given
        fake_chain.chain_id = 23295
        fake_chain.mock.add(
            responses.GET,
            f"{index_url}/api/user-assets/{sample_wallet_address}/23295",
            json={"success": True, "assets": []},
        )

        # When
        code = show_user_assets.main(
            ["--index-url", index_url, "--rpc-url", rpc_url, "--wallet", sample_wallet_address]
        )

        # Then
        assert code == 0
        assert "chain 23295" in capsys.readouterr().err


class TestShareAccess:
    """Tests for the share CLI."""

    def test_shares_with_friend_from_file(
        self, fake_chain, rpc_url, tmp_path, sample_friends, sample_wallet_address
    ):
        # Given
        friends_file = tmp_path / "friends.txt"
        friends_file.write_text("\n".join(sample_friends))
        args = [
            "--rpc-url",
            rpc_url,
            "--wallet",
            sample_wallet_address,
            "--nft",
            NFT,
            "--datatoken",
            TOKEN,
            "--friends-file",
            str(friends_file),
            "--friend",
            sample_friends[0],
        ]

        # When
        with patch("datashare.lib.share_dialog.time.sleep") as sleep:
            code = share_access.main(args)

        # Then
        assert code == 0
        assert len(fake_chain.sent_transactions) == 1
        sleep.assert_called_once_with(2.0)

    def test_unknown_friend_exits_with_error(
        self, fake_chain, rpc_url, tmp_path, sample_friends, sample_wallet_address
    ):
        # Given
        friends_file = tmp_path / "friends.txt"
        friends_file.write_text(sample_friends[0])

        # When
        code = share_access.main(
            [
                "--rpc-url",
                rpc_url,
                "--wallet",
                sample_wallet_address,
                "--nft",
                NFT,
                "--datatoken",
                TOKEN,
                "--friends-file",
                str(friends_file),
                "--friend",
                sample_friends[1],
            ]
        )

        # Then
        assert code == 1
        assert fake_chain.sent_transactions == []
