from typing import Any, Protocol, runtime_checkable

# EIP-1193 code a wallet reports when the user declines a request.
USER_REJECTED_CODE = 4001


class WalletRpcError(Exception):
    def __init__(self, code: int | None, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def user_rejected(self) -> bool:
        return self.code == USER_REJECTED_CODE

    def __repr__(self) -> str:
        return f"WalletRpcError(code={self.code!r}, message={self.message!r})"


@runtime_checkable
class WalletProvider(Protocol):
    """The wallet capability the creation workflow relies on.

    ``accounts`` mirrors ``eth_accounts``: an empty list means no account is
    authorized. ``send_transaction`` signs and broadcasts the descriptor and
    returns the transaction hash, or raises ``WalletRpcError``.
    """

    async def accounts(self) -> list[str]: ...

    async def send_transaction(self, transaction: dict[str, Any]) -> str: ...
