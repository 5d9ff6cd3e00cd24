"""Application configuration model."""

from dataclasses import dataclass

DEFAULT_API_URL = "https://localhost:5001/api/article"


@dataclass
class AppConfig:
    """Settings shared by the repository, the sync engine and the CLI.

    Built once at startup by ConfigLoader and passed explicitly to the
    components that need it.

    Attributes:
        api_url: Base URL of the article collection endpoint
        request_timeout: Timeout in seconds for regular API requests
        probe_timeout: Connect/read timeout in seconds for the connectivity probe
        verify_tls: Verify server TLS certificates
        auto_save: Write the local snapshot after fetches and offline edits
        snapshot_path: Path of the integrity-checked local snapshot
        state_path: Path of the session state file
        row_height: Table row height (cosmetic)
        stripe_color: Alternating row color (cosmetic)
        debug: Enable debug logging
    """
    api_url: str = DEFAULT_API_URL
    request_timeout: float = 30.0
    probe_timeout: float = 5.0
    verify_tls: bool = True
    auto_save: bool = True
    snapshot_path: str = ".inventory-sync/articles.json"
    state_path: str = ".inventory-sync/state.yaml"
    row_height: int = 25
    stripe_color: str = "#F0F0F0"
    debug: bool = False
