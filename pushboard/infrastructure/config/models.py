"""
Configuration models and data structures.

This module defines the configuration models used throughout the application,
providing type safety and validation for configuration values.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List


@dataclass
class ServerConfig:
    """HTTP and push server configuration."""
    host: str = "0.0.0.0"
    port: int = 8000
    prefix: str = ""
    force_wss: bool = False


@dataclass
class TextConfig:
    """Text snippet configuration."""
    limit: int = 4096


@dataclass
class FileConfig:
    """File upload configuration."""
    storage_directory: str = "uploads"
    expire: int = 3600
    chunk: int = 2 * 1024 * 1024
    limit: int = 256 * 1024 * 1024
    thumbnail_max_size: int = 32 * 1024 * 1024
    stale_upload_timeout: float = 3600.0
    sweep_interval: float = 60.0


@dataclass
class BoardConfig:
    """Live board configuration."""
    history: int = 10
    outbox_size: int = 256


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_directory: str = "logs"
    max_file_size: str = "10 MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = False


@dataclass
class SecurityConfig:
    """Security configuration."""
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    name: str = "Pushboard"
    version: str = "0.1.0"
    debug: bool = False
    environment: str = "production"

    server: ServerConfig = field(default_factory=ServerConfig)
    text: TextConfig = field(default_factory=TextConfig)
    file: FileConfig = field(default_factory=FileConfig)
    board: BoardConfig = field(default_factory=BoardConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)

    config_file_path: Any = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_ports()
        self._validate_limits()
        self._validate_prefix()

    def _validate_ports(self) -> None:
        if not (1 <= self.server.port <= 65535):
            raise ValueError(
                f"Server port must be between 1 and 65535, got {self.server.port}")

    def _validate_limits(self) -> None:
        positives = [
            ("Text limit", self.text.limit),
            ("File expire", self.file.expire),
            ("File chunk size", self.file.chunk),
            ("Board outbox size", self.board.outbox_size),
        ]
        for name, value in positives:
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        non_negatives = [
            ("File limit", self.file.limit),
            ("Thumbnail max size", self.file.thumbnail_max_size),
            ("Stale upload timeout", self.file.stale_upload_timeout),
            ("Sweep interval", self.file.sweep_interval),
            ("Board history", self.board.history),
        ]
        for name, value in non_negatives:
            if value < 0:
                raise ValueError(f"{name} cannot be negative, got {value}")

    def _validate_prefix(self) -> None:
        prefix = self.server.prefix
        if prefix and (not prefix.startswith("/") or prefix.endswith("/")):
            raise ValueError(
                f"Server prefix must start with '/' and not end with '/', got {prefix!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        return cls(
            name=data.get('name', 'Pushboard'),
            version=data.get('version', '0.1.0'),
            debug=data.get('debug', False),
            environment=data.get('environment', 'production'),
            server=ServerConfig(**data.get('server', {})),
            text=TextConfig(**data.get('text', {})),
            file=FileConfig(**data.get('file', {})),
            board=BoardConfig(**data.get('board', {})),
            logging=LoggingConfig(**data.get('logging', {})),
            security=SecurityConfig(**data.get('security', {})),
            config_file_path=data.get('config_file_path'),
        )
