"""
Bookstore Test Suite.

This package contains:
- unit/: Unit tests (no network)
- integration/: In-process gRPC server and client on an ephemeral port
"""
