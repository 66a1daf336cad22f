"""Manager and engine configuration.

Configuration is an explicit value handed to `Manager`; nothing here is
process-global, so tests can vary it freely.

Values can be taken from the environment with `ManagerConfig.from_env()`:
- HASHDETECT_DATA_FILE   dataset path (required)
- HASHDETECT_PROPERTIES  comma-separated property tokens (optional)
"""
from __future__ import annotations

import dataclasses
import enum
import os
import typing as t
from pathlib import Path

from .errors import Operation, PreconditionError
from .identifiers import Custom, PropertyIdentifier, PropertyName, token_of

DATA_FILE_ENV = "HASHDETECT_DATA_FILE"
PROPERTIES_ENV = "HASHDETECT_PROPERTIES"

MAX_PROPERTY_NAMES = 256
DEFAULT_VALUE_BUFFER_SIZE = 128
DEFAULT_VALUE_SEPARATOR = ", "


class PerformanceProfile(enum.Enum):
    """Engine preset configurations, by exported symbol suffix."""

    HIGH_PERFORMANCE = "HighPerformance"
    IN_MEMORY = "InMemory"
    LOW_MEMORY = "LowMemory"
    BALANCED = "Balanced"
    BALANCED_TEMP = "BalancedTemp"
    DEFAULT = "Default"

    @property
    def symbol(self) -> str:
        return f"fiftyoneDegreesHash{self.value}Config"


@dataclasses.dataclass(frozen=True)
class EngineConfig:
    profile: PerformanceProfile = PerformanceProfile.HIGH_PERFORMANCE
    # None keeps the preset's own value
    concurrency: t.Optional[int] = None
    uses_upper_prefixed_headers: t.Optional[bool] = None
    update_matched_user_agent: t.Optional[bool] = None
    results_capacity: int = 1
    overrides_capacity: int = 0
    value_buffer_size: int = DEFAULT_VALUE_BUFFER_SIZE
    value_separator: str = DEFAULT_VALUE_SEPARATOR

    def __post_init__(self):
        if self.value_buffer_size < 1:
            raise PreconditionError(Operation.INIT_MANAGER, "value_buffer_size must be at least 1")
        if self.results_capacity < 1:
            raise PreconditionError(Operation.INIT_MANAGER, "results_capacity must be at least 1")
        if self.overrides_capacity < 0:
            raise PreconditionError(Operation.INIT_MANAGER, "overrides_capacity must not be negative")
        if self.concurrency is not None and self.concurrency < 1:
            raise PreconditionError(Operation.INIT_MANAGER, "concurrency must be at least 1")


@dataclasses.dataclass(frozen=True)
class ManagerConfig:
    data_file_path: Path
    property_names: t.Optional[t.Tuple[PropertyIdentifier, ...]] = None
    engine: EngineConfig = dataclasses.field(default_factory=EngineConfig)

    def __post_init__(self):
        object.__setattr__(self, "data_file_path", Path(self.data_file_path))
        if self.property_names is not None:
            names = self.property_names
            if isinstance(names, (str, PropertyName, Custom)):
                names = (names,)
            names = tuple(names)
            if len(names) > MAX_PROPERTY_NAMES:
                raise PreconditionError(
                    Operation.INIT_MANAGER,
                    f"at most {MAX_PROPERTY_NAMES} property names may be requested, got {len(names)}",
                )
            object.__setattr__(self, "property_names", names)

    def property_tokens(self) -> t.Optional[t.List[str]]:
        """Requested tokens, or None when every property is wanted."""
        if not self.property_names:
            return None
        return [token_of(p) for p in self.property_names]

    @classmethod
    def from_env(cls, engine: t.Optional[EngineConfig] = None) -> "ManagerConfig":
        path = os.getenv(DATA_FILE_ENV)
        if not path:
            raise PreconditionError(Operation.READ_DATA_FILE, f"{DATA_FILE_ENV} is not set")
        raw = os.getenv(PROPERTIES_ENV, "")
        tokens = [p.strip() for p in raw.split(",") if p.strip()]
        names = tuple(PropertyName.from_token(p) for p in tokens) or None
        return cls(data_file_path=Path(path), property_names=names, engine=engine or EngineConfig())
