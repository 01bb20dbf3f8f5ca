"""
Peer address book used as the source of share recipients.
"""

import json
from pathlib import Path
from typing import Iterable, Tuple


class AddressBook:
    """Ordered, read-only list of peer wallet addresses, unique case-insensitively."""

    def __init__(self, addresses: Iterable[str] = ()):
        seen = set()
        unique = []
        for address in addresses:
            address = address.strip()
            if address and address.lower() not in seen:
                seen.add(address.lower())
                unique.append(address)
        self._addresses = tuple(unique)

    @property
    def friends(self) -> Tuple[str, ...]:
        return self._addresses

    def __len__(self) -> int:
        return len(self._addresses)

    @classmethod
    def from_file(cls, path: str) -> "AddressBook":
        """
        Load addresses from a file.

        Accepts either a JSON array of strings or one address per line;
        blank lines and lines starting with '#' are ignored.
        """
        text = Path(path).read_text(encoding="utf-8")
        if text.lstrip().startswith("["):
            entries = json.loads(text)
            if not all(isinstance(entry, str) for entry in entries):
                raise ValueError(f"Address book {path} must be a list of strings")
            return cls(entries)
        return cls(line for line in text.splitlines() if not line.strip().startswith("#"))
