"""
Runtime configuration for Green Loan Evaluation.

Everything is read from environment variables with safe defaults. Leaving
GREENLOAN_API_KEY unset keeps the whole pipeline local and deterministic.
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_CHAT_URL = 'https://api.deepseek.com/v1/chat/completions'
DEFAULT_EMBEDDING_URL = 'https://api.deepseek.com/v1/embeddings'


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    chat_url: str = DEFAULT_CHAT_URL
    embedding_url: str = DEFAULT_EMBEDDING_URL
    model: str = 'deepseek-chat'
    embedding_model: str = 'deepseek-embedding'
    timeout: float = 15.0
    embedding_timeout: float = 10.0
    remote_embeddings: bool = False
    cache_size: int = 256

    @property
    def narrative_enabled(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> 'Settings':
        api_key = os.environ.get('GREENLOAN_API_KEY') or os.environ.get('DEEPSEEK_API_KEY') or None
        return cls(
            api_key=api_key,
            chat_url=os.environ.get('GREENLOAN_CHAT_URL', DEFAULT_CHAT_URL),
            embedding_url=os.environ.get('GREENLOAN_EMBEDDING_URL', DEFAULT_EMBEDDING_URL),
            model=os.environ.get('GREENLOAN_MODEL', 'deepseek-chat'),
            embedding_model=os.environ.get('GREENLOAN_EMBEDDING_MODEL', 'deepseek-embedding'),
            timeout=float(os.environ.get('GREENLOAN_TIMEOUT', 15)),
            embedding_timeout=float(os.environ.get('GREENLOAN_EMBEDDING_TIMEOUT', 10)),
            remote_embeddings=_env_bool('GREENLOAN_REMOTE_EMBEDDINGS'),
            cache_size=int(os.environ.get('GREENLOAN_CACHE_SIZE', 256)),
        )
