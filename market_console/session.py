from dataclasses import dataclass

from .backend import BackendClient
from .wallet.provider import WalletProvider


@dataclass
class ConsoleSession:
    """Collaborators and identity shared by the steps of one creation attempt.

    ``captured_account`` is the wallet account seen by the publish pre-flight;
    later steps compare against it instead of trusting a fresh read.
    """

    backend: BackendClient
    wallet: WalletProvider | None = None
    captured_account: str | None = None

    @classmethod
    def from_settings(cls, wallet: WalletProvider | None = None) -> "ConsoleSession":
        return cls(backend=BackendClient(), wallet=wallet)

    def fresh(self) -> "ConsoleSession":
        return ConsoleSession(backend=self.backend, wallet=self.wallet)
