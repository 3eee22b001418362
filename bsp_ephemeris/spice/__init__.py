"""
SPICE Kernel Package
====================

Reading of SPK (BSP) binary kernels and SPICE text kernels, NAIF body and
frame tables, and state computation from the loaded segments.
"""

from .errors      import SpiceError
from .kernel_pool import KernelPool, KernelHandle
from .bodies      import BodyTable, get_body_table
from .frames      import FrameTable, get_frame_table
from .text_kernel import TextKernelPool
from .spk_reader  import SpkReader
from .spk_writer  import SpkWriter

__all__ = [
  'SpiceError',
  'KernelPool', 'KernelHandle',
  'BodyTable', 'get_body_table',
  'FrameTable', 'get_frame_table',
  'TextKernelPool',
  'SpkReader',
  'SpkWriter',
]
