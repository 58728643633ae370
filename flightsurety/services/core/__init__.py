"""
Core configuration for FlightSurety services.
"""

from .config import ETHER, NetworkConfig, Settings, get_settings, load_network_config, settings

__all__ = ["ETHER", "NetworkConfig", "Settings", "get_settings", "load_network_config", "settings"]
