"""
Unified configuration management with Pydantic validation.
Loads and validates the report renderer's environment variables.
"""

from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from pydantic import Field, field_validator, ValidationError
from pydantic_settings import BaseSettings

# Load environment variables
load_dotenv()


class Config(BaseSettings):
    """Report renderer configuration with validation."""

    # ========================
    # Logging Configuration
    # ========================
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="LOG_DIR")
    log_to_file: bool = Field(default=False, alias="LOG_TO_FILE")

    # ========================
    # File Storage Configuration
    # ========================
    report_dir: str = Field(default="reports", alias="REPORT_DIR")
    content_root: str = Field(default=".", alias="CONTENT_ROOT")

    # ========================
    # Image Configuration
    # ========================
    image_fetch_timeout: float = Field(default=15.0, alias="IMAGE_FETCH_TIMEOUT")
    image_max_bytes: int = Field(default=20 * 1024 * 1024, alias="IMAGE_MAX_BYTES")
    image_oversample: float = Field(default=2.0, alias="IMAGE_OVERSAMPLE")

    # ========================
    # Document Configuration
    # ========================
    logo_path: Optional[str] = Field(default=None, alias="LOGO_PATH")
    recommendations_file: Optional[str] = Field(default=None, alias="RECOMMENDATIONS_FILE")
    page_numbers: bool = Field(default=True, alias="PAGE_NUMBERS")

    # ========================
    # Validators
    # ========================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("image_fetch_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate image fetch timeout."""
        if v <= 0:
            raise ValueError("IMAGE_FETCH_TIMEOUT must be positive")
        return v

    @field_validator("image_max_bytes")
    @classmethod
    def validate_max_bytes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("IMAGE_MAX_BYTES must be positive")
        return v

    @field_validator("image_oversample")
    @classmethod
    def validate_oversample(cls, v: float) -> float:
        """Embedded images are never stored below their placed size."""
        if v < 1:
            raise ValueError("IMAGE_OVERSAMPLE must be at least 1")
        return v

    # ========================
    # Helper Properties
    # ========================

    @property
    def logo_file(self) -> Optional[Path]:
        """Get logo path if configured and present on disk."""
        if not self.logo_path:
            return None
        path = Path(self.logo_path)
        return path if path.is_file() else None

    def get_report_dir(self) -> Path:
        """Get report directory as Path object."""
        path = Path(self.report_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_log_dir(self) -> Path:
        """Get log directory as Path object."""
        path = Path(self.log_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_content_root(self) -> Path:
        """Get root directory for content:// and file:// image references."""
        return Path(self.content_root).resolve()

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


def get_config() -> Config:
    """
    Load and validate configuration.
    Exits if configuration is invalid.
    """
    try:
        return Config()

    except ValidationError as e:
        print("\n❌ Configuration Error:")
        print("=" * 60)
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            print(f"\n Field: {field}")
            print(f"  Error: {error['msg']}")
            if "input" in error:
                print(f"  Value: {error['input']}")
        print("\n" + "=" * 60)
        print("\nPlease check your .env file and fix the errors above.\n")
        raise SystemExit(1)


# Global configuration instance
config = get_config()


def get_log_file() -> Optional[Path]:
    """Log file path when file logging is enabled."""
    if not config.log_to_file:
        return None
    return config.get_log_dir() / "structurescan.log"
