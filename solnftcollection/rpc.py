import base64
import time
from itertools import count
from typing import Optional

import requests
from loguru import logger
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from solnftcollection import config
from solnftcollection.exceptions import (
    ConfirmationTimeoutError,
    RPCError,
    TransactionError,
)

COMMITMENT = "confirmed"
CONFIRMED_STATUSES = ("confirmed", "finalized")


class SolanaRPC:
    def __init__(
        self,
        endpoint: str,
        commitment: str = COMMITMENT,
        timeout: float = config.HTTP_TIMEOUT,
    ):
        """
        Constructor
        :param endpoint: JSON-RPC URL of the cluster, e.g. "https://api.devnet.solana.com"
        :param commitment: commitment level used for reads and confirmations
        :param timeout: seconds to wait for each HTTP request
        """
        self.endpoint = endpoint
        self.commitment = commitment
        self.timeout = timeout
        self.session = requests.Session()
        self._request_ids = count(1)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.session.close()

    def _request(self, method: str, params: list = None):
        """
        Makes a JSON-RPC call to the cluster.
        :param method: RPC method name, e.g. "getBalance"
        :param params: positional parameters of the method
        :return: content of the "result" field
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params or [],
        }
        logger.debug(f"RPC request {method}")
        response = self.session.post(self.endpoint, json=payload, timeout=self.timeout)
        response.raise_for_status()
        body = response.json()
        if "error" in body:
            error = body["error"]
            logger.error(f"RPC {method} returned error: {error.get('message')}")
            raise RPCError(
                method, error.get("code", 0), error.get("message", ""), error.get("data")
            )
        return body["result"]

    def get_balance(self, pubkey: Pubkey) -> int:
        result = self._request(
            "getBalance", [str(pubkey), {"commitment": self.commitment}]
        )
        return result["value"]

    def request_airdrop(self, pubkey: Pubkey, lamports: int) -> str:
        return self._request(
            "requestAirdrop", [str(pubkey), lamports, {"commitment": self.commitment}]
        )

    def get_latest_blockhash(self) -> dict:
        """
        :return: dict with "blockhash" and "lastValidBlockHeight"
        """
        result = self._request(
            "getLatestBlockhash", [{"commitment": self.commitment}]
        )
        return result["value"]

    def get_block_height(self) -> int:
        return self._request("getBlockHeight", [{"commitment": self.commitment}])

    def get_account_info(self, pubkey: Pubkey) -> Optional[dict]:
        """
        :param pubkey: account address
        :return: None if the account doesn't exist, otherwise dict with "data" (bytes),
                 "owner" (Pubkey), "lamports" and "executable"
        """
        result = self._request(
            "getAccountInfo",
            [str(pubkey), {"encoding": "base64", "commitment": self.commitment}],
        )
        value = result["value"]
        if value is None:
            return None
        return {
            "data": base64.b64decode(value["data"][0]),
            "owner": Pubkey.from_string(value["owner"]),
            "lamports": value["lamports"],
            "executable": value["executable"],
        }

    def get_signature_status(self, signature: str) -> Optional[dict]:
        result = self._request("getSignatureStatuses", [[signature]])
        return result["value"][0]

    def send_transaction(self, transaction: VersionedTransaction) -> str:
        """
        Sends signed transaction with preflight checks.
        :param transaction: signed VersionedTransaction
        :return: transaction signature (base58)
        """
        encoded = base64.b64encode(bytes(transaction)).decode("ascii")
        try:
            return self._request(
                "sendTransaction",
                [
                    encoded,
                    {"encoding": "base64", "preflightCommitment": self.commitment},
                ],
            )
        except RPCError as e:
            logs = []
            if isinstance(e.data, dict):
                logs = e.data.get("logs") or []
            for line in logs:
                logger.debug(line)
            raise TransactionError(e.message, logs=logs) from e

    def confirm_transaction(
        self,
        signature: str,
        last_valid_block_height: int = None,
        timeout: float = config.CONFIRM_TIMEOUT,
        poll_interval: float = config.CONFIRM_POLL_INTERVAL,
    ) -> dict:
        """
        Polls signature status until the transaction reaches the client commitment.
        :param signature: transaction signature
        :param last_valid_block_height: if given, gives up once the blockhash expires
        :param timeout: how many seconds to wait in total
        :param poll_interval: seconds between polls
        :return: the final signature status
        """
        logger.debug(f"Waiting for confirmation of {signature}...")
        deadline = time.monotonic() + timeout
        while True:
            status = self.get_signature_status(signature)
            if status is not None:
                if status.get("err") is not None:
                    raise TransactionError(
                        f"Transaction {signature} failed: {status['err']}",
                        signature=signature,
                    )
                if status.get("confirmationStatus") in CONFIRMED_STATUSES:
                    logger.debug(f"Transaction {signature} is {status['confirmationStatus']}")
                    return status
            if (
                last_valid_block_height is not None
                and self.get_block_height() > last_valid_block_height
            ):
                raise TransactionError(
                    f"Blockhash expired before {signature} was confirmed",
                    signature=signature,
                )
            if time.monotonic() >= deadline:
                raise ConfirmationTimeoutError(
                    f"Transaction {signature} not confirmed after {timeout} seconds"
                )
            time.sleep(poll_interval)
