from .config_manager import ConfigManager, load_engine_config

__all__ = ['ConfigManager', 'load_engine_config']
