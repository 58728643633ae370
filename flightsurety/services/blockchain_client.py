"""
Blockchain client for oracle agents talking to a deployed FlightSuretyApp contract.
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import ContractLogicError
from web3.middleware import geth_poa_middleware

from flightsurety.errors import ConsensusError, FundingError
from flightsurety.events import Event, EventType
from flightsurety.logger.oracleLogger import OracleLogger
from flightsurety.services.abis import FlightSuretyAppABI, FlightSuretyDataABI
from flightsurety.services.core.config import NetworkConfig, settings


class ContractBackend:
    """Oracle backend over web3.

    Event cursors are block numbers: :meth:`read_requests` returns every
    ``OracleRequest`` log from the cursor block up to the latest block and the
    next block to read from.
    """

    def __init__(
        self,
        network: NetworkConfig,
        logger: OracleLogger,
        w3: Optional[Web3] = None,
        private_keys: Iterable[str] = (),
        gas: int = settings.gas,
    ) -> None:
        """Initialize blockchain client with a Web3 connection."""
        self.network = network
        self.logger = logger
        self.gas = gas
        self.w3: Optional[Web3] = w3
        self.app_contract = None
        self.data_contract = None
        self._signers: Dict[str, LocalAccount] = {}
        for key in private_keys:
            account = Account.from_key(key)
            self._signers[account.address] = account
        self._initialize_connection()

    def _initialize_connection(self) -> None:
        """Initialize Web3 connection and contract handles."""
        if self.w3 is None:
            self.w3 = Web3(Web3.HTTPProvider(self.network.url))
            # PoA middleware for dev chains with extra data in headers
            self.w3.middleware_onion.inject(geth_poa_middleware, layer=0)

        if not self.w3.is_connected():
            raise ConnectionError(f"Failed to connect to {self.network.url}")
        self.logger.info(f"Connected to {self.network.url}")

        if not self.network.app_address:
            raise ValueError("App contract address is not configured")
        self.app_contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(self.network.app_address),
            abi=FlightSuretyAppABI,
        )
        self.logger.info(f"FlightSuretyApp contract at {self.network.app_address}")

        if self.network.data_address:
            self.data_contract = self.w3.eth.contract(
                address=Web3.to_checksum_address(self.network.data_address),
                abi=FlightSuretyDataABI,
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def accounts(self) -> List[str]:
        """Accounts usable as oracles: local signers plus node-managed accounts."""
        return list(self._signers) + [a for a in self.w3.eth.accounts if a not in self._signers]

    def registration_fee(self) -> int:
        return int(self.app_contract.functions.REGISTRATION_FEE().call())

    def _send(self, function: Any, sender: str, value: int = 0) -> Any:
        """Send a contract transaction and wait for its receipt."""
        sender = Web3.to_checksum_address(sender)
        params = {"from": sender, "value": value, "gas": self.gas}
        signer = self._signers.get(sender)
        if signer is not None:
            params["nonce"] = self.w3.eth.get_transaction_count(sender)
            tx = function.build_transaction(params)
            signed = signer.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed.rawTransaction)
        else:
            tx_hash = function.transact(params)
        return self.w3.eth.wait_for_transaction_receipt(tx_hash)

    # ------------------------------------------------------------------
    # Oracle backend protocol
    # ------------------------------------------------------------------

    def register_oracle(self, oracle: str, fee: int) -> None:
        try:
            self._send(self.app_contract.functions.registerOracle(), oracle, value=fee)
        except ContractLogicError as e:
            raise FundingError(f"registerOracle reverted for {oracle}: {e}") from e

    def get_my_indexes(self, oracle: str) -> Tuple[int, ...]:
        result = self.app_contract.functions.getMyIndexes().call({"from": Web3.to_checksum_address(oracle)})
        return tuple(int(i) for i in result)

    def submit_oracle_response(
        self,
        index: int,
        airline: str,
        flight: str,
        timestamp: int,
        status_code: int,
        oracle: str,
    ) -> None:
        function = self.app_contract.functions.submitOracleResponse(
            index, Web3.to_checksum_address(airline), flight, timestamp, status_code
        )
        try:
            self._send(function, oracle)
        except ContractLogicError as e:
            raise ConsensusError(f"submitOracleResponse reverted: {e}") from e

    def read_requests(self, cursor: int) -> Tuple[List[Event], int]:
        latest = self.w3.eth.block_number
        if cursor > latest:
            return [], cursor

        event_filter = self.app_contract.events.OracleRequest.create_filter(
            fromBlock=cursor,
            toBlock=latest,
        )
        events = []
        for entry in event_filter.get_all_entries():
            args = dict(entry.args)
            events.append(
                Event(
                    event_type=EventType.ORACLE_REQUEST,
                    args={
                        "index": int(args["index"]),
                        "airline": args["airline"],
                        "flight": args["flight"],
                        "timestamp": int(args["timestamp"]),
                        "block_number": entry.blockNumber,
                        "transaction_hash": entry.transactionHash.hex(),
                    },
                    offset=entry.blockNumber,
                )
            )
        return events, latest + 1

    def health_check(self) -> Dict[str, Any]:
        """Check blockchain connection health and both contract switches."""
        health_status = {
            "connected": False,
            "chain_id": None,
            "latest_block": None,
            "app_operational": None,
            "data_operational": None,
            "error": None,
        }

        try:
            if self.w3 and self.w3.is_connected():
                health_status["connected"] = True
                health_status["chain_id"] = self.w3.eth.chain_id
                health_status["latest_block"] = self.w3.eth.block_number
                health_status["app_operational"] = bool(self.app_contract.functions.isOperational().call())
                if self.data_contract is not None:
                    health_status["data_operational"] = bool(self.data_contract.functions.isOperational().call())
        except Exception as e:
            health_status["error"] = str(e)
            self.logger.error(f"Blockchain health check failed: {e}")

        return health_status


__all__ = ["ContractBackend"]
