from .config import DriverConfig, driver_config

__all__ = [
    "DriverConfig",
    "driver_config",
]
