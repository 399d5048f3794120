"""Command line entry points for the client node."""
