"""Flask application exposing block and transaction lookups."""

from __future__ import annotations

import json
import logging
import os
import re
import time

from flask import Flask, Response, jsonify, request

from chain_gateway.chain.cosmos import CosmosAdapter
from chain_gateway.chain.errors import ErrorKind, RPCError
from chain_gateway.chain.evm import EvmAdapter
from chain_gateway.chain.transport import HttpTransport
from chain_gateway.config import Config, load_config

logger = logging.getLogger(__name__)
request_logger = logging.getLogger("chain_gateway.requests")

HEIGHT_RE = re.compile(r"^[0-9]{1,20}$")
# EVM hashes: 0x followed by 64 hex chars
EVM_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
# Cosmos hashes: prefix optional, any case
COSMOS_HASH_RE = re.compile(r"^(0x)?[0-9a-f]{64}$", re.IGNORECASE)

QUERY_PREFIXES = ("/evm/", "/cosmos/")

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.BAD_GATEWAY: 502,
}


def _is_query(path: str) -> bool:
    return path.startswith(QUERY_PREFIXES)


def _error_response(e: RPCError) -> tuple[Response, int]:
    return jsonify({"error": str(e)}), STATUS_BY_KIND[e.kind]


def _parse_height(raw: str) -> int | None:
    if not HEIGHT_RE.match(raw):
        return None
    return int(raw)


def _configure_request_log_file(app: Flask, log_path: str) -> None:
    """Attach a file handler to the request logger if a log path is set."""
    if not log_path:
        return

    app.config["REQUEST_LOG_PATH"] = log_path
    os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)

    target = os.path.abspath(log_path)
    for existing in request_logger.handlers:
        if (
            isinstance(existing, logging.FileHandler)
            and existing.baseFilename == target
        ):
            return

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    request_logger.addHandler(handler)
    request_logger.setLevel(logging.INFO)
    logger.info("Request logging enabled: %s", log_path)


def _setup_request_logging(app: Flask) -> None:
    """Log every chain query as structured JSON."""

    @app.before_request
    def _start_timer() -> None:
        if _is_query(request.path):
            request.environ["_req_start"] = time.monotonic()

    @app.after_request
    def _log_query(response: Response) -> Response:
        if not _is_query(request.path):
            return response

        start = request.environ.get("_req_start")
        duration_ms = (
            round((time.monotonic() - start) * 1000) if start else None
        )
        entry: dict[str, object] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "path": request.path,
            "chain": request.path.split("/")[1],
            "status": response.status_code,
            "duration_ms": duration_ms,
            "user_agent": request.headers.get("User-Agent", ""),
        }
        request_logger.info(json.dumps(entry, separators=(",", ":")))
        return response


def create_app(
    config: Config | None = None,
    *,
    evm: EvmAdapter | None = None,
    cosmos: CosmosAdapter | None = None,
) -> Flask:
    """Flask application factory.

    Pass a Config object for testing; defaults to loading from environment.
    Adapters may be injected directly; otherwise they are built from config.
    """
    if config is None:
        config = load_config()

    if evm is None:
        evm = EvmAdapter(HttpTransport(config.evm_rpc_url, config.rpc_timeout))
    if cosmos is None:
        cosmos = CosmosAdapter(
            HttpTransport(config.cosmos_rpc_url, config.rpc_timeout)
        )

    app = Flask(__name__)
    app.config["CHAIN_GATEWAY_CONFIG"] = config

    _setup_request_logging(app)
    _configure_request_log_file(app, config.request_log_path)

    @app.errorhandler(RPCError)
    def rpc_error(e: RPCError):
        return _error_response(e)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/evm/block/<height>")
    def evm_block(height: str):
        parsed = _parse_height(height)
        if parsed is None:
            return jsonify({"error": f"Invalid block height: {height}"}), 422
        return jsonify(evm.get_block_by_height(parsed).to_dict())

    @app.route("/evm/transactions/<tx_hash>")
    def evm_transaction(tx_hash: str):
        if not EVM_HASH_RE.match(tx_hash):
            return (
                jsonify({
                    "error": "Hash must be a valid 64-character hex string "
                    "starting with 0x",
                }),
                422,
            )
        return jsonify(evm.get_transaction_by_hash(tx_hash).to_dict())

    @app.route("/cosmos/block/<height>")
    def cosmos_block(height: str):
        parsed = _parse_height(height)
        if parsed is None:
            return jsonify({"error": f"Invalid block height: {height}"}), 422
        return jsonify(cosmos.get_block_by_height(parsed).to_dict())

    @app.route("/cosmos/transactions/<tx_hash>")
    def cosmos_transaction(tx_hash: str):
        if not COSMOS_HASH_RE.match(tx_hash):
            return (
                jsonify({"error": "Hash must be a valid 64-character hex string"}),
                422,
            )
        return jsonify(cosmos.get_transaction_by_hash(tx_hash).to_dict())

    @app.route("/stats")
    def stats():
        """Basic analytics from the request log."""
        log_path = app.config.get("REQUEST_LOG_PATH", "")
        if not log_path:
            return jsonify({"error": "logging not configured"}), 501

        if not os.path.exists(log_path):
            return jsonify({
                "total_requests": 0,
                "error_requests": 0,
                "by_chain": {},
                "recent": [],
            })

        total = 0
        by_chain: dict[str, int] = {}
        errors = 0
        recent: list[dict[str, object]] = []
        with open(log_path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue
                total += 1
                chain = str(entry.get("chain", ""))
                by_chain[chain] = by_chain.get(chain, 0) + 1
                if int(entry.get("status", 0)) >= 400:
                    errors += 1
                recent.append(entry)

        return jsonify({
            "total_requests": total,
            "error_requests": errors,
            "by_chain": by_chain,
            "recent": recent[-20:],
        })

    return app


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config()
    app = create_app(config)
    app.run(host="0.0.0.0", port=config.port)
