"""
yeectl: LAN control client for Yeelight-style smart bulbs.

Speaks the line-delimited JSON command protocol over a persistent TCP
connection, one command in flight at a time.
"""

__version__ = "0.1.0"

from yeectl.config import Config, BulbConfig, load_config
from yeectl.protocol.errors import BulbError
from yeectl.protocol.messages import Effect, Method, Response
from yeectl.session import BulbSession

__all__ = [
    "__version__",
    "Config",
    "BulbConfig",
    "load_config",
    "BulbSession",
    "BulbError",
    "Effect",
    "Method",
    "Response",
]
