"""Process incident-response data models and a lightweight YARA-style rule scanner."""

__version__ = "0.1.0"
__all__ = ["models", "yara_rules", "yara_cache", "yara_scanner", "yara_engine"]