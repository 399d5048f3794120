"""
HTTP API of the client node.

Usage:
    from tripnode.api import create_app

    app = create_app(node)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import Flask

from tripnode.api.routes import register_core_routes, register_p2p_routes, register_validator_routes

if TYPE_CHECKING:
    from tripnode.node import ClientNode


def create_app(node: "ClientNode") -> Flask:
    app = Flask(__name__)
    app.json.sort_keys = False
    app.extensions["tripnode"] = node

    register_core_routes(app)
    register_p2p_routes(app, node)
    register_validator_routes(app, node)
    return app


__all__ = ["create_app"]
