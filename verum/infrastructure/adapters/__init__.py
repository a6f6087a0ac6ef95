"""Production adapters for the Verum ports."""

from verum.infrastructure.adapters.json_publish_state_repository import (
    JsonFilePublishStateRepository,
)
from verum.infrastructure.adapters.static_fee_oracle import StaticFeeOracle
from verum.infrastructure.adapters.system_time_authority import SystemTimeAuthority

__all__: list[str] = [
    "JsonFilePublishStateRepository",
    "StaticFeeOracle",
    "SystemTimeAuthority",
]
