import logging
from typing import Optional

from .client_base import ChainClient
from .common import Identity
from .errors import IdentityError

VALID_MNEMONIC_WORD_COUNTS = (12, 15, 18, 21, 24)


def check_mnemonic(mnemonic: str) -> None:
    words = mnemonic.split()
    if len(words) not in VALID_MNEMONIC_WORD_COUNTS:
        raise IdentityError(
            f"A mnemonic has 12, 15, 18, 21 or 24 words, this one has {len(words)}"
        )
    if not all(word.isalpha() and word.islower() for word in words):
        raise IdentityError("A mnemonic consists of lower case words only")


class IdentityProvisioner:
    """
    Provides the one signing identity used for the whole run.

    Derived from `mnemonic` when given, otherwise a fresh random key is
    generated by the chain client binding.
    """

    def __init__(self, client: ChainClient, mnemonic: Optional[str] = None):
        self.client = client
        self.mnemonic = mnemonic
        self._identity = None

    def provision(self) -> Identity:
        if self._identity is not None:
            return self._identity

        if self.mnemonic is not None:
            check_mnemonic(self.mnemonic)
            mnemonic = " ".join(self.mnemonic.split())
        else:
            mnemonic = None

        identity = self.client.derive_identity(mnemonic)
        if not identity.address:
            raise IdentityError("The wallet did not produce an address")

        logging.info(f"Initialized client with wallet address: {identity.address}")
        self._identity = identity
        return identity
