"""
package: mstair.callers.frames
"""

# <AUTOGEN_INIT>
from mstair.callers.frames import (
    frame_analyzer,
)


__all__ = [
    "frame_analyzer",
]
# </AUTOGEN_INIT>
