from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Tuple

from flask import Flask, jsonify, request

from tripnode.core.exceptions import PayloadValidationError
from tripnode.core.schemas import (
    BatchTransactionRequest,
    CriticalProcessRequest,
    TransactionRequest,
    parse_payload,
)
from tripnode.network.models import BroadcastResult, utc_timestamp

if TYPE_CHECKING:
    from tripnode.node import ClientNode

logger = logging.getLogger(__name__)

SERVICE_NAME = "TripCode Client Node"


def error_response(
    message: str,
    status: int = 400,
    code: str = "bad_request",
    details: Optional[dict[str, Any]] = None,
) -> Tuple[Any, int]:
    body: dict[str, Any] = {"success": False, "error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status


def _broadcast_body(message: str, result: BroadcastResult) -> dict[str, Any]:
    return {
        "message": message,
        "results": [outcome.to_dict() for outcome in result],
        "successCount": result.success_count,
        "totalValidators": result.total,
    }


def _query_body(key: str, value: str, result: BroadcastResult) -> dict[str, Any]:
    return {
        key: value,
        "results": [outcome.to_dict() for outcome in result],
        "respondingValidators": result.success_count,
        "totalQueried": result.total,
    }


def register_core_routes(app: Flask) -> None:
    @app.route("/ping", methods=["GET"])
    def ping() -> Any:
        """Liveness endpoint for peers and load balancers."""
        return jsonify({"status": "OK", "timestamp": utc_timestamp(), "service": SERVICE_NAME})


def register_p2p_routes(app: Flask, node: "ClientNode") -> None:
    """Expose the seed node connection."""
    connection = node.connection

    @app.route("/p2p/status", methods=["GET"])
    def p2p_status() -> Any:
        return jsonify(connection.status())

    @app.route("/p2p/nodes", methods=["GET"])
    def p2p_nodes() -> Any:
        return jsonify(connection.known_nodes())

    @app.route("/p2p/active-nodes", methods=["GET"])
    def p2p_active_nodes() -> Any:
        return jsonify(connection.active_nodes())


def register_validator_routes(app: Flask, node: "ClientNode") -> None:
    """Expose the validator directory and broadcast operations."""
    gateway = node.gateway

    @app.errorhandler(PayloadValidationError)
    def handle_invalid_payload(exc: PayloadValidationError) -> Tuple[Any, int]:
        logger.info(
            "Rejected payload on %s: %s",
            request.path,
            exc.message,
            extra={"event": "api.invalid_payload", "endpoint": request.path},
        )
        return error_response(exc.message, status=400, code="validation_error", details=exc.details)

    @app.route("/validators", methods=["GET"])
    def list_validators() -> Any:
        validators = gateway.validators()
        return jsonify(
            {
                "validators": [peer.to_dict() for peer in validators],
                "total": len(validators),
                "active": sum(1 for peer in validators if peer.is_responding),
            }
        )

    @app.route("/validators/active", methods=["GET"])
    def list_active_validators() -> Any:
        validators = gateway.active_validators()
        return jsonify({"validators": [peer.to_dict() for peer in validators], "count": len(validators)})

    @app.route("/validators/refresh", methods=["POST"])
    def refresh_validators() -> Any:
        """Reload validators from the seed node.

        ``success`` is false when the seed node could not be reached; in
        that case the previously cached validators are kept.
        """
        ok, validators = gateway.refresh_validators()
        return jsonify(
            {
                "message": "Validator nodes refreshed" if ok else "Validator refresh failed",
                "success": ok,
                "validators": [peer.to_dict() for peer in validators],
                "total": len(validators),
            }
        )

    @app.route("/validators/ping/<path:address>", methods=["GET"])
    def ping_validator(address: str) -> Any:
        responding = gateway.ping_validator(address)
        return jsonify({"address": address, "responding": responding, "timestamp": utc_timestamp()})

    @app.route("/validators/transaction", methods=["POST"])
    def send_transaction() -> Any:
        transaction = parse_payload(TransactionRequest, request.get_json(silent=True))
        result = gateway.send_transaction(transaction)
        return jsonify(_broadcast_body("Transaction sent to validators", result))

    @app.route("/validators/transaction/batch", methods=["POST"])
    def send_batch() -> Any:
        batch = parse_payload(BatchTransactionRequest, request.get_json(silent=True))
        result = gateway.send_batch(batch)
        return jsonify(
            _broadcast_body(f"Batch of {len(batch.transactions)} transactions sent to validators", result)
        )

    @app.route("/validators/critical", methods=["POST"])
    def send_critical() -> Any:
        critical = parse_payload(CriticalProcessRequest, request.get_json(silent=True))
        result = gateway.send_critical_process(critical)
        return jsonify(_broadcast_body("Critical process sent to validators", result))

    @app.route("/validators/blockchain/status", methods=["GET"])
    def blockchain_status() -> Any:
        chain = request.args.get("chain", "tx")
        try:
            result = gateway.blockchain_status(chain)
        except ValueError as exc:
            return error_response(str(exc), code="invalid_chain")
        return jsonify(_query_body("chain", chain, result))

    @app.route("/validators/mempool/status", methods=["GET"])
    def mempool_status() -> Any:
        pool = request.args.get("pool", "tx")
        try:
            result = gateway.mempool_status(pool)
        except ValueError as exc:
            return error_response(str(exc), code="invalid_pool")
        return jsonify(_query_body("pool", pool, result))
