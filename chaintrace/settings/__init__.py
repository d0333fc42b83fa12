from ._config import ChainTraceConfig
from ._config import config


__all__ = ["ChainTraceConfig", "config"]
