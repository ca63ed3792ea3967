"""Engine configuration."""

import os
from dataclasses import dataclass

# Accepted range for the B-Tree / B+Tree minimum degree
MIN_DEGREE_LOWER = 2
MIN_DEGREE_UPPER = 100

DEFAULT_MIN_DEGREE = 3


@dataclass
class EngineConfig:
    """Configuration shared by the tree engines."""

    # Multiway trees
    min_degree: int = DEFAULT_MIN_DEGREE

    # Attach a cloned tree to every step of a mutating call
    record_snapshots: bool = True

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create config from environment variables."""
        return cls(
            min_degree=int(os.environ.get("TRACE_TREES_MIN_DEGREE", str(DEFAULT_MIN_DEGREE))),
            record_snapshots=os.environ.get("TRACE_TREES_RECORD_SNAPSHOTS", "true").lower() != "false",
            log_level=os.environ.get("TRACE_TREES_LOG_LEVEL", "INFO"),
        )
