"""Address-keyed balance maps.

- Callers mix lowercased and checksummed addresses, so every key
  is normalised to the checksum form before it touches a map

- Unseen addresses read as zero, so ledgers do not need to
  pre-register benefactors

- Writes can be journaled and rolled back, see :py:meth:`AddressLedger.begin_journal`
"""

from typing import Iterable, Iterator

from eth_typing import HexAddress
from web3 import Web3

from alignment_vault.errors import InvalidBenefactor

#: Journal marker for keys that did not exist before a write
_MISSING = object()


def normalise_address(address: HexAddress | str) -> HexAddress:
    """Validate and checksum an address.

    :raise InvalidBenefactor:
        If the value is not a 20 byte hex address
    """
    if not isinstance(address, str) or not Web3.is_address(address):
        raise InvalidBenefactor(f"Not an Ethereum address: {address!r}")
    return Web3.to_checksum_address(address)


class AddressLedger(dict):
    """A dictionary of integer balances keyed by checksummed address.

    - Reading a missing key returns ``0`` and does not insert it

    - Keys keep insertion order, which is the order benefactors were first seen
    """

    def __init__(self, data: dict | Iterable | None = None):
        super().__init__()
        self._journal: list | None = None
        if data:
            self.update(data)

    def __getitem__(self, key) -> int:
        return super().get(normalise_address(key), 0)

    def __setitem__(self, key, value: int):
        assert isinstance(value, int), f"Ledger values must be int, got {value!r}"
        assert value >= 0, f"Negative balance {value} for {key}"
        key = normalise_address(key)
        if self._journal is not None:
            self._journal.append((key, super().get(key, _MISSING), None))
        super().__setitem__(key, value)

    def __delitem__(self, key):
        key = normalise_address(key)
        previous = super().__getitem__(key)
        if self._journal is not None:
            self._journal.append((key, previous, list(self).index(key)))
        super().__delitem__(key)

    def __contains__(self, key) -> bool:
        try:
            return super().__contains__(normalise_address(key))
        except InvalidBenefactor:
            return False

    def get(self, key, default=0) -> int:
        return super().get(normalise_address(key), default)

    def update(self, other=None, **kwargs):
        if other is not None:
            for k, v in other.items() if isinstance(other, dict) else other:
                self[k] = v
        for k, v in kwargs.items():
            self[k] = v

    def add(self, key, amount: int) -> int:
        """Increase a balance and return the new value."""
        value = self[key] + amount
        self[key] = value
        return value

    def nonzero(self) -> Iterator[tuple[HexAddress, int]]:
        """Iterate over entries with a positive balance."""
        for address, value in self.items():
            if value:
                yield address, value

    def total(self) -> int:
        return sum(self.values())

    def begin_journal(self) -> int:
        """Start recording writes, or continue an open journal.

        :return:
            Mark to pass to :py:meth:`rollback`
        """
        if self._journal is None:
            self._journal = []
        return len(self._journal)

    def rollback(self, mark: int):
        """Undo every write made after ``mark``."""
        assert self._journal is not None, "No journal open"
        while len(self._journal) > mark:
            key, previous, position = self._journal.pop()
            if position is not None:
                # Deleted key goes back to its original place
                items = list(self.items())
                items.insert(position, (key, previous))
                super().clear()
                for k, v in items:
                    super().__setitem__(k, v)
            elif previous is _MISSING:
                super().__delitem__(key)
            else:
                super().__setitem__(key, previous)

    def end_journal(self):
        """Stop recording and forget the undo history."""
        self._journal = None
