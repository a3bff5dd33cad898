"""
Segmenter configuration.

ParserConfig holds the per-instance knobs of one incremental parser.
SegmenterSettings loads process-wide defaults from the environment
(prefix ``SEGMENTER_``) and builds parser configs and streaming handlers.
"""

from typing import Optional, TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from .streaming.streaming_handler import StreamingHandler


# Abandon manifest recognition once this many chars arrive without balancing
MANIFEST_MAX_CHARS = 10_000  # 10KB

# Wrapper key used by the app-generation prompt: {"dependencies": {...}}
DEFAULT_MANIFEST_KEY = "dependencies"


class ParserConfig(BaseModel):
    """Per-response parser configuration."""
    manifest_enabled: bool = Field(True, description="Look for a leading dependency manifest")
    manifest_key: Optional[str] = Field(
        DEFAULT_MANIFEST_KEY,
        description="Unwrap {key: {...}} objects to the inner mapping; None disables unwrapping",
    )
    manifest_prefix: str = Field(
        "",
        description="Text seeded ahead of the stream by the caller (e.g. '{\"dependencies\":')",
    )
    manifest_max_chars: int = Field(
        MANIFEST_MAX_CHARS,
        gt=0,
        description="Give up on the manifest after this many unbalanced chars",
    )


class SegmenterSettings(BaseSettings):
    """Application defaults loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="SEGMENTER_", env_file=".env", extra="ignore")

    manifest_enabled: bool = True
    manifest_key: Optional[str] = DEFAULT_MANIFEST_KEY
    manifest_prefix: str = ""
    manifest_max_chars: int = MANIFEST_MAX_CHARS

    # Transport timeouts in seconds
    stream_timeout: float = 30.0
    chunk_timeout: float = 5.0
    max_duration: float = 120.0

    def parser_config(self) -> ParserConfig:
        return ParserConfig(
            manifest_enabled=self.manifest_enabled,
            manifest_key=self.manifest_key,
            manifest_prefix=self.manifest_prefix,
            manifest_max_chars=self.manifest_max_chars,
        )

    def streaming_handler(self) -> "StreamingHandler":
        from .streaming.streaming_handler import StreamingHandler

        return StreamingHandler(
            stream_timeout=self.stream_timeout,
            chunk_timeout=self.chunk_timeout,
            max_duration=self.max_duration,
        )
