"""bgforge_mls - language intelligence for Fallout SSL and WeiDU scripts.

Provides completion, hover, signature help and compiler diagnostics backed by
a tiered symbol index that is updated incrementally as files change.
"""

__version__ = "0.1.0"
