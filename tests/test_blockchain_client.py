"""Tests for the web3 contract backend, against a mocked Web3 instance."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest
from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError

from flightsurety.errors import ConsensusError, FundingError
from flightsurety.events import EventType
from flightsurety.logger.oracleLogger import OracleLogger
from flightsurety.services.abis import FlightSuretyAppABI, FlightSuretyDataABI
from flightsurety.services.blockchain_client import ContractBackend
from flightsurety.services.core.config import NetworkConfig

if TYPE_CHECKING:  # pragma: no cover - typing-only imports
    from pytest_mock.plugin import MockerFixture

APP_ADDRESS = "0x" + "1" * 40
DATA_ADDRESS = "0x" + "2" * 40
ORACLE = "0x" + "3" * 40
AIRLINE = "0x" + "4" * 40


@pytest.fixture
def w3(mocker: "MockerFixture") -> MagicMock:
    mock = mocker.MagicMock()
    mock.is_connected.return_value = True
    mock.eth.accounts = [ORACLE]
    return mock


@pytest.fixture
def backend(w3: MagicMock) -> ContractBackend:
    network = NetworkConfig(url="http://localhost:8545", app_address=APP_ADDRESS, data_address=DATA_ADDRESS)
    return ContractBackend(network, OracleLogger("test"), w3=w3)


def test_abis_define_the_oracle_interface() -> None:
    app_names = {entry.get("name") for entry in FlightSuretyAppABI}
    assert {"registerOracle", "getMyIndexes", "submitOracleResponse", "OracleRequest"} <= app_names
    data_names = {entry.get("name") for entry in FlightSuretyDataABI}
    assert "isOperational" in data_names


def test_binds_both_contracts(backend: ContractBackend, w3: MagicMock) -> None:
    addresses = [call.kwargs["address"] for call in w3.eth.contract.call_args_list]
    assert addresses == [Web3.to_checksum_address(APP_ADDRESS), Web3.to_checksum_address(DATA_ADDRESS)]
    assert backend.data_contract is not None


def test_connection_failure(w3: MagicMock) -> None:
    w3.is_connected.return_value = False
    with pytest.raises(ConnectionError):
        ContractBackend(NetworkConfig(url="http://down:8545", app_address=APP_ADDRESS), OracleLogger("test"), w3=w3)


def test_app_address_is_required(w3: MagicMock) -> None:
    with pytest.raises(ValueError):
        ContractBackend(NetworkConfig(url="http://localhost:8545"), OracleLogger("test"), w3=w3)


def test_registration_fee_and_indexes(backend: ContractBackend) -> None:
    functions = backend.app_contract.functions
    functions.REGISTRATION_FEE.return_value.call.return_value = 10 ** 18
    functions.getMyIndexes.return_value.call.return_value = [4, 0, 7]

    assert backend.registration_fee() == 10 ** 18
    assert backend.get_my_indexes(ORACLE) == (4, 0, 7)
    functions.getMyIndexes.return_value.call.assert_called_once_with({"from": Web3.to_checksum_address(ORACLE)})


def test_register_oracle_sends_fee(backend: ContractBackend, w3: MagicMock) -> None:
    function = backend.app_contract.functions.registerOracle.return_value
    function.transact.return_value = b"\x01"

    backend.register_oracle(ORACLE, 10 ** 18)

    params = function.transact.call_args.args[0]
    assert params["value"] == 10 ** 18
    assert params["from"] == Web3.to_checksum_address(ORACLE)
    w3.eth.wait_for_transaction_receipt.assert_called_once_with(b"\x01")


def test_register_oracle_revert_is_a_funding_error(backend: ContractBackend) -> None:
    function = backend.app_contract.functions.registerOracle.return_value
    function.transact.side_effect = ContractLogicError("Registration fee is required")
    with pytest.raises(FundingError):
        backend.register_oracle(ORACLE, 1)


def test_submit_response_revert_is_a_consensus_error(backend: ContractBackend) -> None:
    function = backend.app_contract.functions.submitOracleResponse.return_value
    function.transact.side_effect = ContractLogicError("Index does not match oracle request")
    with pytest.raises(ConsensusError):
        backend.submit_oracle_response(3, AIRLINE, "ND1309", 1, 20, ORACLE)

    backend.app_contract.functions.submitOracleResponse.assert_called_once_with(
        3, Web3.to_checksum_address(AIRLINE), "ND1309", 1, 20
    )


def test_read_requests_from_block_cursor(backend: ContractBackend, w3: MagicMock, mocker: "MockerFixture") -> None:
    w3.eth.block_number = 12
    entry = mocker.MagicMock()
    entry.args = {"index": 5, "airline": AIRLINE, "flight": "ND1309", "timestamp": 1}
    entry.blockNumber = 11
    entry.transactionHash.hex.return_value = "0xabc"
    create_filter = backend.app_contract.events.OracleRequest.create_filter
    create_filter.return_value.get_all_entries.return_value = [entry]

    events, cursor = backend.read_requests(10)

    create_filter.assert_called_once_with(fromBlock=10, toBlock=12)
    assert cursor == 13
    assert len(events) == 1
    assert events[0].event_type is EventType.ORACLE_REQUEST
    assert events[0].args["index"] == 5
    assert events[0].args["flight"] == "ND1309"
    assert events[0].offset == 11


def test_read_requests_ahead_of_chain(backend: ContractBackend, w3: MagicMock) -> None:
    w3.eth.block_number = 5
    assert backend.read_requests(6) == ([], 6)


def test_accounts_prefer_local_signers(w3: MagicMock) -> None:
    key = "0x" + "11" * 32
    signer = Account.from_key(key)
    backend = ContractBackend(
        NetworkConfig(url="http://localhost:8545", app_address=APP_ADDRESS),
        OracleLogger("test"),
        w3=w3,
        private_keys=[key],
    )
    assert backend.accounts() == [signer.address, ORACLE]


def test_health_check(backend: ContractBackend, w3: MagicMock, mocker: "MockerFixture") -> None:
    w3.eth.chain_id = 1337
    w3.eth.block_number = 42
    backend.app_contract = mocker.MagicMock()
    backend.app_contract.functions.isOperational.return_value.call.return_value = True
    backend.data_contract = mocker.MagicMock()
    backend.data_contract.functions.isOperational.return_value.call.return_value = False

    health = backend.health_check()

    assert health["connected"] is True
    assert health["chain_id"] == 1337
    assert health["latest_block"] == 42
    assert health["app_operational"] is True
    assert health["data_operational"] is False
    assert health["error"] is None


def test_health_check_without_data_contract(w3: MagicMock) -> None:
    network = NetworkConfig(url="http://localhost:8545", app_address=APP_ADDRESS)
    backend = ContractBackend(network, OracleLogger("test"), w3=w3)
    assert backend.data_contract is None

    health = backend.health_check()

    assert health["connected"] is True
    assert health["data_operational"] is None


def test_health_check_reports_errors(backend: ContractBackend, w3: MagicMock) -> None:
    w3.is_connected.side_effect = RuntimeError("node went away")

    health = backend.health_check()

    assert health["connected"] is False
    assert health["error"] == "node went away"
