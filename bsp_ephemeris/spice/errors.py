"""
SPICE Kernel Errors
===================

Exceptions raised while reading kernels and computing states. All of them
derive from SpiceError so callers can catch the whole family at once.
"""


class SpiceError(Exception):
  """
  Base class for every error raised by the kernel machinery.
  """


class KernelFileError(SpiceError, OSError):
  """
  Kernel file missing, unreadable, or closed.
  """


class MalformedKernelError(SpiceError, ValueError):
  """
  Kernel content violates the DAF/SPK layout.
  """


class UnsupportedFormatError(SpiceError):
  """
  Kernel architecture, binary format, or SPK data type not supported.
  """


class NoKernelsLoadedError(SpiceError):
  """
  A segment search was requested while the pool holds no kernel.
  """


class UnknownBodyError(SpiceError, LookupError):
  """
  Body name that cannot be translated to a NAIF integer code.
  """


class UnknownFrameError(SpiceError, LookupError):
  """
  Reference frame name or code that is not recognized.
  """


class FrameTransformationError(SpiceError):
  """
  Two frames must be combined but at least one of them is not inertial.
  """
  def __init__(
    self,
    from_frame : int,
    to_frame   : int,
  ):
    super().__init__(
      f"Cannot transform between frames {from_frame} and {to_frame}: "
      f"only inertial frames (1-21) can be combined"
    )
    self.from_frame = from_frame
    self.to_frame   = to_frame


class InsufficientEphemerisDataError(SpiceError):
  """
  No chain of loaded segments links target and observer at the epoch.
  """


class EpochOutOfRangeError(SpiceError, ValueError):
  """
  Epoch outside the coverage of the segment being evaluated.
  """


class BodyNotAvailableError(SpiceError, LookupError):
  """
  Body requested from the loader is absent from every loaded BSP file.
  """


class TextKernelError(SpiceError, ValueError):
  """
  Text kernel syntax error, or inconsistent kernel variables.
  """
