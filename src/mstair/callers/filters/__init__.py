"""
package: mstair.callers.filters
"""

# <AUTOGEN_INIT>
from mstair.callers.filters import (
    filter_backtrace,
)


__all__ = [
    "filter_backtrace",
]
# </AUTOGEN_INIT>
