"""
Configuration management for the memory engine and application settings.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

SETTINGS_KEY = 'qdrant-memory'


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_optional_float(name: str) -> Optional[float]:
    value = os.getenv(name, '').strip()
    return float(value) if value else None


@dataclass
class MemorySettings:
    """User-editable memory settings shared by every component.

    One instance is owned by the SettingsManager and handed to each component by reference,
    so updates are visible everywhere without re-wiring.
    """
    enabled: bool = True
    qdrant_url: str = 'http://localhost:6333'
    collection_name: str = 'sillytavern_memories'
    qdrant_api_key: str = ''
    openai_api_key: str = ''
    embeddings_url: str = 'https://api.openai.com/v1/embeddings'
    embedding_model: str = 'text-embedding-3-large'
    bedrock_region: str = 'us-east-1'
    memory_limit: int = 5
    score_threshold: float = 0.3
    memory_position: int = 2
    debug_mode: bool = False
    per_character_collections: bool = True
    auto_save_memories: bool = True
    save_user_messages: bool = True
    save_character_messages: bool = True
    min_message_length: int = 10
    request_timeout: Optional[float] = None  # None: no explicit timeout

    @classmethod
    def keys(cls):
        return [f.name for f in fields(cls)]


@dataclass
class MCPConfig:
    """Configuration for MCP interface."""
    transport: str
    host: str
    port: int


@dataclass
class AppConfig:
    """Main application configuration."""
    environment: str
    log_level: str
    settings_path: Path
    memory: MemorySettings = field(default_factory=MemorySettings)
    mcp: Optional[MCPConfig] = None


def load_memory_settings() -> MemorySettings:
    """Build default memory settings from environment variables."""
    return MemorySettings(enabled=_env_bool('MEMORY_ENABLED', 'true'),
                          qdrant_url=os.getenv('QDRANT_URL', 'http://localhost:6333'),
                          collection_name=os.getenv('QDRANT_COLLECTION', 'sillytavern_memories'),
                          qdrant_api_key=os.getenv('QDRANT_API_KEY', ''),
                          openai_api_key=os.getenv('OPENAI_API_KEY', ''),
                          embeddings_url=os.getenv('OPENAI_EMBEDDINGS_URL', 'https://api.openai.com/v1/embeddings'),
                          embedding_model=os.getenv('EMBEDDING_MODEL', 'text-embedding-3-large'),
                          bedrock_region=os.getenv('BEDROCK_EMBED_AWS_REGION', 'us-east-1'),
                          memory_limit=int(os.getenv('MEMORY_LIMIT', '5')),
                          score_threshold=float(os.getenv('SCORE_THRESHOLD', '0.3')),
                          memory_position=int(os.getenv('MEMORY_POSITION', '2')),
                          debug_mode=_env_bool('MEMORY_DEBUG', 'false'),
                          per_character_collections=_env_bool('PER_CHARACTER_COLLECTIONS', 'true'),
                          auto_save_memories=_env_bool('AUTO_SAVE_MEMORIES', 'true'),
                          save_user_messages=_env_bool('SAVE_USER_MESSAGES', 'true'),
                          save_character_messages=_env_bool('SAVE_CHARACTER_MESSAGES', 'true'),
                          min_message_length=int(os.getenv('MIN_MESSAGE_LENGTH', '10')),
                          request_timeout=_env_optional_float('REQUEST_TIMEOUT'))


def load_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    environment = os.getenv('ENVIRONMENT', 'development')

    settings_path = Path(os.getenv('MEMORY_SETTINGS_PATH', str(Path.home() / '.qdrant-memory' / 'settings.json')))

    # MCP configuration
    mcp_config = MCPConfig(transport=os.getenv('MCP_TRANSPORT', 'sse'),
                           host=os.getenv('MCP_HOST', '127.0.0.1'),
                           port=int(os.getenv('MCP_PORT', '8000')))

    return AppConfig(environment=environment,
                     log_level=os.getenv('LOG_LEVEL', 'INFO'),
                     settings_path=settings_path,
                     memory=load_memory_settings(),
                     mcp=mcp_config)


# Global configuration instance
config = load_config()
