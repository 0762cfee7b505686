from .loader import load_config, resolve_config_path
from .model import CodecTextEncoder, ConnectionConfig

__all__ = ["CodecTextEncoder", "ConnectionConfig", "load_config", "resolve_config_path"]
