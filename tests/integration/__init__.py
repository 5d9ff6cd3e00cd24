"""Integration tests for the inventory client.

These tests combine the real ArticleRepository, LocalSnapshotStore,
StateManager and SyncEngine against a fake inventory server and a
temporary directory. They bridge the gap between isolated unit tests and
manual runs against a live API.

Test Coverage:
- Offline work persisted across CLI processes and pushed on reconnect
- Snapshot fallback when the server is unreachable
- Integrity check of the local snapshot
- Conflict detection between two clients

Run only these tests with:
    pytest tests/integration -m integration
"""
