from .config_repo import AppConfig, ConfigRepo, parse_record

__all__ = ["AppConfig", "ConfigRepo", "parse_record"]
