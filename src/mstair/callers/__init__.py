"""
package: mstair.callers
"""

# <AUTOGEN_INIT>
from mstair.callers import (
    base,
    filters,
    frames,
    xlogging,
)


__all__ = [
    "base",
    "filters",
    "frames",
    "xlogging",
]
# </AUTOGEN_INIT>

__version__ = "0.1.0"
