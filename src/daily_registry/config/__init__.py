from .settings import Settings, configure_logging, refresh_settings

__all__ = ["Settings", "configure_logging", "refresh_settings"]
