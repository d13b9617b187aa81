import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.7",
}

COMMON_API_ENDPOINTS = ("/api/status", "/api/health", "/api/version", "/graphql")

# -------------------- Settings --------------------


@dataclass
class Settings:
    page_timeout: float = 15.0
    asset_timeout: float = 10.0
    probe_timeout: float = 5.0

    batch_size: int = 10
    max_asset_bytes: int = 10 * 1024 * 1024
    max_page_bytes: int = 50_000_000
    max_url_length: int = 2000
    retries: int = 2

    # Payload probing
    max_probes: int = 5
    scan_script_literals: bool = True

    # Background runs
    max_extractions: int = 4

    # Result store
    store_backend: str = "memory"  # memory | dbm
    store_path: Optional[str] = None

    # Session
    user_agent: Optional[str] = None
    extra_headers: List[str] = field(default_factory=list)  # "Name: value"

    def headers(self) -> Dict[str, str]:
        h = dict(DEFAULT_HEADERS)
        if self.user_agent:
            h["User-Agent"] = self.user_agent
        return h


# -------------------- Config loader --------------------


def load_config_file(path: str) -> Dict[str, Union[str, int, float, bool, List[str]]]:
    p = Path(path)
    suf = p.suffix.lower()
    if suf in {".toml", ".tml"}:
        with open(p, "rb") as f:
            return tomllib.load(f) or {}
    elif suf in {".yaml", ".yml"}:
        import yaml

        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise RuntimeError("Top-level YAML must be a mapping")
            return data
    else:
        raise RuntimeError("Unsupported config format. Use .toml or .yaml")
