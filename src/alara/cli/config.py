"""
CLI Configuration
"""

import os
from typing import Optional


class CLIConfig:
    """Configuration for CLI commands"""

    # Machine mode: plain data output, no rich formatting
    _machine_mode: Optional[bool] = None

    @classmethod
    def set_machine_mode(cls, enabled: bool) -> None:
        cls._machine_mode = enabled

    @classmethod
    def is_machine_mode(cls) -> bool:
        """Explicit setting first, then the ALARA_MACHINE_MODE env var. Human mode by default."""
        if cls._machine_mode is not None:
            return cls._machine_mode
        return os.getenv("ALARA_MACHINE_MODE", "").lower() in ("1", "true", "yes")

    @classmethod
    def reset(cls) -> None:
        cls._machine_mode = None
