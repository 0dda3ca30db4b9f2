"""
curlfetch - Asynchronous HTTP fetches delegated to the curl command-line tool.

Usage:
    from curlfetch import CurlHttpClient, CurlFetchConfig

    client = CurlHttpClient(CurlFetchConfig(default_timeout=10))

    def on_done(arg, result):
        print(arg, result.status_code, result.message)

    client.get("https://example.com", handler=on_done, arg="example").join()
"""

__version__ = "1.0.0"

from .core import CurlHttpClient, FetchHandle, FetchOperation, fetch_blocking
from .logging_config import setup_logging
from .models import (
    ByteSize,
    CurlFetchConfig,
    FetchError,
    FetchRequest,
    FetchResult,
    LimitsConfig,
    OperationState,
    ToolConfig,
)
from .tool import locate

__all__ = [
    "__version__",
    # Core
    "CurlHttpClient",
    "FetchHandle",
    "FetchOperation",
    "fetch_blocking",
    "locate",
    # Config
    "ByteSize",
    "CurlFetchConfig",
    "LimitsConfig",
    "ToolConfig",
    # Results
    "FetchError",
    "FetchRequest",
    "FetchResult",
    "OperationState",
    # Logging
    "setup_logging",
]
