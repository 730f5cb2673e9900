"""
package: mstair.callers.base
"""

# <AUTOGEN_INIT>
from mstair.callers.base import (
    config,
)


__all__ = [
    "config",
]
# </AUTOGEN_INIT>
