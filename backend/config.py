import os
from pydantic_settings import BaseSettings


def _parse_cors_origins() -> list[str] | None:
    """Parse CORS_ORIGINS env var as comma-separated string or JSON list."""
    raw = os.environ.get("CORS_ORIGINS")
    if not raw:
        return None
    if raw.startswith("["):
        import json
        return json.loads(raw)
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseSettings):
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]
    debug: bool = False

    # Embedding collaborator
    embed_provider: str = "sentence_transformers"  # "sentence_transformers" | "hash"
    embedding_model: str = "BAAI/bge-base-en-v1.5"
    embedding_dim: int = 768  # only used by the hash provider

    # Candidate store and static scoring tables
    candidate_store_path: str = ""  # JSON fixture; empty store when unset
    proximity_tables_path: str = ""  # falls back to data/proximity_tables.yaml

    # Reranking
    weight_career: float = 0.4
    weight_institution: float = 0.4
    weight_organization: float = 0.2
    request_timeout_seconds: float = 30.0

    # Result cache
    cache_max_entries: int = 256
    cache_ttl_seconds: float = 300.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "protected_namespaces": ("settings_",)}


_cors_override = _parse_cors_origins()
settings = Settings(**{"cors_origins": _cors_override} if _cors_override else {})
