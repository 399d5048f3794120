"""
TripCode Client Node

A peer node for the TripCode network that keeps itself registered with a
seed node and broadcasts transactions, batches and critical processes to the
validator peers the seed node knows about.

Main Components:
- ConnectionManager: seed node registration, ping and bounded reconnection
- PeerDirectory: cached validator list with periodic health checks
- BroadcastEngine: concurrent fan-out to validators with per-peer outcomes
- API: Flask endpoints exposing status and broadcast operations
"""

__version__ = "0.1.0"
__author__ = "TripCode Development Team"

__all__ = []
