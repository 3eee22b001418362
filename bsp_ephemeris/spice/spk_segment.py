"""
SPK Segments
============

Segment descriptors of SPK files and evaluation of the Chebyshev data types.

SPK descriptor (ND=2, NI=6):
----------------------------
  doubles  : start_et, end_et
  integers : target, center, frame, data_type, start_address, end_address

Supported data types:
---------------------
  Type 2 : Chebyshev position coefficients, velocity by differentiation
  Type 3 : Chebyshev position and velocity coefficients

  Both types store fixed-length records followed by a trailer
    INIT, INTLEN, RSIZE, N
  where each record is
    MID, RADIUS, coefficients of component 1, ..., coefficients of component k
"""
import numpy as np

from dataclasses import dataclass

from bsp_ephemeris.spice.daf       import DafFile, DafSummary
from bsp_ephemeris.spice.chebyshev import chebyshev_value, chebyshev_value_and_derivative
from bsp_ephemeris.spice.errors    import EpochOutOfRangeError, MalformedKernelError, UnsupportedFormatError


SPK_ND = 2
SPK_NI = 6

# Number of Chebyshev coefficient sets per record, by SPK data type
CHEBYSHEV_COMPONENTS = {
  2 : 3,
  3 : 6,
}
TRAILER_WORDS = 4


@dataclass(frozen=True)
class SpkSegment:
  """
  Descriptor of one SPK segment.

  Attributes
    handle : int
      Identifier of the kernel that owns the segment
    target, center, frame : int
      NAIF codes of the body, the center of motion and the reference frame
    data_type : int
      SPK data type
    start_et, end_et : float
      Coverage interval, TDB seconds past J2000
    start_address, end_address : int
      1-based double word addresses of the segment data
    name : str
      Segment identifier
    index : int
      Position of the segment in its file (0-based, file order)
  """
  handle        : int
  target        : int
  center        : int
  frame         : int
  data_type     : int
  start_et      : float
  end_et        : float
  start_address : int
  end_address   : int
  name          : str = ''
  index         : int = 0

  @classmethod
  def from_summary(
    cls,
    handle  : int,
    summary : DafSummary,
    index   : int = 0,
  ) -> 'SpkSegment':
    if len(summary.doubles) < SPK_ND or len(summary.integers) < SPK_NI:
      raise MalformedKernelError(
        f"Summary '{summary.name}' does not hold an SPK descriptor"
      )
    start_et, end_et = summary.doubles[:SPK_ND]
    target, center, frame, data_type, start_address, end_address = summary.integers[:SPK_NI]
    return cls(
      handle        = handle,
      target        = target,
      center        = center,
      frame         = frame,
      data_type     = data_type,
      start_et      = start_et,
      end_et        = end_et,
      start_address = start_address,
      end_address   = end_address,
      name          = summary.name,
      index         = index,
    )

  @property
  def is_valid(self) -> bool:
    return self.start_et <= self.end_et

  @property
  def size(self) -> int:
    return self.end_address - self.start_address + 1

  def covers(
    self,
    et : float,
  ) -> bool:
    return self.start_et <= et <= self.end_et


class ChebyshevSegmentData:
  """
  Chebyshev records of a type 2 or type 3 segment.

  The trailer is read once; records are read from the file on demand.

  Methods
    record_index(et)
      Index of the record covering an epoch
    coefficients(record_index)
      (MID, RADIUS, coefficient array) of a record
    evaluate(et)
      State (km, km/s) of the target relative to the center
  """
  def __init__(
    self,
    daf     : DafFile,
    segment : SpkSegment,
  ):
    if segment.data_type not in CHEBYSHEV_COMPONENTS:
      raise UnsupportedFormatError(
        f"SPK data type {segment.data_type} of segment '{segment.name}' is not supported "
        f"(supported types: {sorted(CHEBYSHEV_COMPONENTS)})"
      )
    if segment.size < TRAILER_WORDS:
      raise MalformedKernelError(
        f"Segment '{segment.name}' is too small ({segment.size} words) to hold its trailer"
      )

    self.daf        = daf
    self.segment    = segment
    self.components = CHEBYSHEV_COMPONENTS[segment.data_type]

    trailer = daf.read_array(segment.end_address - TRAILER_WORDS + 1, segment.end_address)
    self.init            = float(trailer[0])
    self.interval_length = float(trailer[1])
    self.record_size     = int(trailer[2])
    self.n_records       = int(trailer[3])

    self._validate()
    self.degree = (self.record_size - 2) // self.components - 1

  def _validate(self) -> None:
    name = self.segment.name
    if self.interval_length <= 0.0:
      raise MalformedKernelError(
        f"Segment '{name}' has a non-positive interval length {self.interval_length}"
      )
    if self.n_records < 1:
      raise MalformedKernelError(f"Segment '{name}' holds no records")
    coefficient_words = self.record_size - 2
    if coefficient_words < self.components or coefficient_words % self.components != 0:
      raise MalformedKernelError(
        f"Record size {self.record_size} of segment '{name}' is inconsistent "
        f"with SPK type {self.segment.data_type}"
      )
    expected_size = self.record_size * self.n_records + TRAILER_WORDS
    if expected_size != self.segment.size:
      raise MalformedKernelError(
        f"Segment '{name}' spans {self.segment.size} words but its trailer "
        f"describes {expected_size}"
      )

  def record_index(
    self,
    et : float,
  ) -> int:
    index = int((et - self.init) // self.interval_length)
    return min(max(index, 0), self.n_records - 1)

  def coefficients(
    self,
    record_index : int,
  ) -> tuple[float, float, np.ndarray]:
    """
    Read one record.

    Input:
    ------
      record_index : int
        0-based record number.

    Output:
    -------
      mid : float
        Midpoint of the record interval [s past J2000].
      radius : float
        Half-length of the record interval [s].
      coefficients : np.ndarray
        Shape (components, degree+1).
    """
    start  = self.segment.start_address + record_index * self.record_size
    record = self.daf.read_array(start, start + self.record_size - 1)
    mid, radius = float(record[0]), float(record[1])
    if radius <= 0.0:
      raise MalformedKernelError(
        f"Record {record_index} of segment '{self.segment.name}' has radius {radius}"
      )
    return mid, radius, record[2:].reshape(self.components, self.degree + 1)

  def evaluate(
    self,
    et : float,
  ) -> np.ndarray:
    """
    State of the segment target relative to its center.

    Input:
    ------
      et : float
        Epoch, TDB seconds past J2000.

    Output:
    -------
      state : np.ndarray (6,)
        Position [km] and velocity [km/s] in the segment frame.
    """
    if not self.segment.covers(et):
      raise EpochOutOfRangeError(
        f"Epoch {et} is outside segment '{self.segment.name}' coverage "
        f"[{self.segment.start_et}, {self.segment.end_et}]"
      )

    mid, radius, coefficients = self.coefficients(self.record_index(et))
    s = (et - mid) / radius

    state = np.empty(6)
    if self.segment.data_type == 2:
      position, derivative = chebyshev_value_and_derivative(coefficients, s, strict=False)
      state[0:3] = position
      state[3:6] = derivative / radius
    else:
      state[:] = chebyshev_value(coefficients, s, strict=False)
    return state
