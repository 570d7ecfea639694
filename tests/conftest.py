import pytest

from chain_gateway.app import create_app
from chain_gateway.chain.cosmos import CosmosAdapter
from chain_gateway.chain.evm import EvmAdapter
from chain_gateway.chain.transport import HttpTransport
from chain_gateway.config import Config

EVM_RPC_URL = "https://evm.example.org"
COSMOS_RPC_URL = "https://cosmos.example.org"


@pytest.fixture()
def test_config():
    return Config(
        evm_rpc_url=EVM_RPC_URL + "/",
        cosmos_rpc_url=COSMOS_RPC_URL + "/",
    )


@pytest.fixture()
def evm_adapter():
    return EvmAdapter(HttpTransport(EVM_RPC_URL))


@pytest.fixture()
def cosmos_adapter():
    return CosmosAdapter(HttpTransport(COSMOS_RPC_URL))


@pytest.fixture()
def app(test_config):
    app = create_app(config=test_config)
    app.config["TESTING"] = True
    return app


@pytest.fixture()
def client(app):
    return app.test_client()
