import inspect
import logging
from typing import Any, Awaitable, Callable

from eth_account import Account
from web3 import AsyncWeb3, Web3

from ..settings import settings
from .provider import USER_REJECTED_CODE, WalletRpcError

logger = logging.getLogger(__name__)

ApprovalCallback = Callable[[dict[str, Any]], bool | Awaitable[bool]]

_QUANTITY_FIELDS = ("value", "gas", "gasPrice", "maxFeePerGas", "maxPriorityFeePerGas", "nonce", "chainId")


class Web3WalletProvider:
    """Wallet provider backed by a JSON-RPC node.

    With a private key the transaction is signed locally and sent raw;
    without one the node's own unlocked accounts sign via
    ``eth_sendTransaction``. ``approve`` stands in for the wallet's
    confirmation dialog and may be sync or async: a False answer is reported
    as a user rejection.
    """

    def __init__(
        self,
        rpc_url: str | None = None,
        private_key: str | None = None,
        *,
        approve: ApprovalCallback | None = None,
        default_chain_id: int | None = None,
        w3: AsyncWeb3 | None = None,
    ) -> None:
        rpc_url = rpc_url or settings.WALLET_RPC_URL
        if w3 is None:
            if not rpc_url:
                raise ValueError("WALLET_RPC_URL is not configured")
            w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self.w3 = w3
        private_key = private_key if private_key is not None else settings.WALLET_PRIVATE_KEY
        self._account = Account.from_key(private_key) if private_key else None
        self._approve = approve
        self._default_chain_id = default_chain_id or settings.DEFAULT_CHAIN_ID

    async def accounts(self) -> list[str]:
        if self._account is not None:
            return [self._account.address]
        try:
            return [str(address) for address in await self.w3.eth.accounts]
        except Exception as exc:
            raise rpc_error_from_exception(exc) from exc

    async def send_transaction(self, transaction: dict[str, Any]) -> str:
        accounts = await self.accounts()
        if not accounts:
            raise WalletRpcError(4100, "No authorized account")
        try:
            tx = normalize_transaction(transaction, accounts[0], self._default_chain_id)
            await self._confirm(tx)
            if self._account is not None:
                if "nonce" not in tx:
                    tx["nonce"] = await self.w3.eth.get_transaction_count(self._account.address, "pending")
                if "gasPrice" not in tx and "maxFeePerGas" not in tx:
                    tx["gasPrice"] = await self.w3.eth.gas_price
                if "gas" not in tx:
                    tx["gas"] = await self.w3.eth.estimate_gas(tx)
                signed = self._account.sign_transaction(tx)
                tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
            else:
                tx_hash = await self.w3.eth.send_transaction(tx)
        except WalletRpcError:
            raise
        except Exception as exc:
            raise rpc_error_from_exception(exc) from exc

        return Web3.to_hex(tx_hash)

    async def _confirm(self, tx: dict[str, Any]) -> None:
        if self._approve is None:
            return
        approved = self._approve(tx)
        if inspect.isawaitable(approved):
            approved = await approved
        if not approved:
            logger.info("wallet_transaction_declined to=%s", tx.get("to"))
            raise WalletRpcError(USER_REJECTED_CODE, "User rejected the request.")


def normalize_transaction(
    transaction: dict[str, Any],
    sender: str,
    default_chain_id: int,
) -> dict[str, Any]:
    """Turn a backend-prepared descriptor into web3 transaction params."""
    tx = {key: value for key, value in transaction.items() if value is not None}
    if "gasLimit" in tx:
        gas_limit = tx.pop("gasLimit")
        tx.setdefault("gas", gas_limit)
    for field in _QUANTITY_FIELDS:
        if field in tx:
            tx[field] = _to_int(tx[field])
    tx.setdefault("chainId", default_chain_id)
    tx.setdefault("value", 0)
    tx["from"] = Web3.to_checksum_address(sender)
    if tx.get("to"):
        tx["to"] = Web3.to_checksum_address(tx["to"])
    return tx


def rpc_error_from_exception(exc: Exception) -> WalletRpcError:
    """Extract the JSON-RPC ``{code, message}`` a web3 failure carries."""
    error: Any = None
    rpc_response = getattr(exc, "rpc_response", None)
    if isinstance(rpc_response, dict):
        error = rpc_response.get("error")
    if error is None and exc.args and isinstance(exc.args[0], dict):
        error = exc.args[0]
    if isinstance(error, dict):
        code = error.get("code")
        message = error.get("message") or str(exc)
        return WalletRpcError(code if isinstance(code, int) else None, str(message))
    code = getattr(exc, "code", None)
    return WalletRpcError(code if isinstance(code, int) else None, str(exc) or type(exc).__name__)


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, dict) and "hex" in value:
        # ethers BigNumber serialised as {"type": "BigNumber", "hex": "0x..."}
        return int(value["hex"], 16)
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text or 0)
