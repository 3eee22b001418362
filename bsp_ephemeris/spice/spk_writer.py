"""
SPK Writer
==========

Writer of SPK files holding Chebyshev (type 2 and type 3) segments.

File layout:
------------
  record 1                  : file record
  records 2 .. 1+NC         : comment area (NC may be zero)
  summary / name records    : one pair per 25 segments, chained by NEXT/PREV
  data records              : segment records and trailers, contiguous
"""
import numpy as np

from dataclasses import dataclass
from pathlib     import Path
from typing      import Callable, Optional, Union

from bsp_ephemeris.spice.chebyshev   import chebyshev_fit
from bsp_ephemeris.spice.daf         import (
  BINARY_FORMATS, COMMENT_CHARS, DOUBLES_PER_RECORD, END_OF_COMMENTS,
  FTP_OFFSET, FTP_STRING, MAX_SUMMARY_WORDS, RECORD_BYTES, pack_summary, summary_size,
)
from bsp_ephemeris.spice.spk_segment import CHEBYSHEV_COMPONENTS, SPK_ND, SPK_NI


INTERNAL_NAME_CHARS  = 60
SEGMENT_ID_CHARS     = 8 * summary_size(SPK_ND, SPK_NI)
SUMMARIES_PER_RECORD = MAX_SUMMARY_WORDS // summary_size(SPK_ND, SPK_NI)


@dataclass
class _PendingSegment:
  target     : int
  center     : int
  frame      : int
  data_type  : int
  start_et   : float
  end_et     : float
  segment_id : str
  data       : np.ndarray


def fit_chebyshev_segment(
  func      : Callable[[np.ndarray], np.ndarray],
  init      : float,
  intlen    : float,
  n_records : int,
  degree    : int,
  data_type : int = 2,
) -> np.ndarray:
  """
  Chebyshev coefficients of a state function over consecutive intervals.

  Input:
  ------
    func : callable
      Maps an array of n epochs [s past J2000] to states, shape (n, 6), in
      km and km/s.
    init : float
      Start epoch of the first interval.
    intlen : float
      Interval length [s].
    n_records : int
      Number of intervals.
    degree : int
      Polynomial degree.
    data_type : int
      2 to fit positions only, 3 to fit positions and velocities.

  Output:
  -------
    coefficients : np.ndarray
      Shape (n_records, components, degree+1).
  """
  if data_type not in CHEBYSHEV_COMPONENTS:
    raise ValueError(f"SPK data type must be one of {sorted(CHEBYSHEV_COMPONENTS)}, got {data_type}")
  components = CHEBYSHEV_COMPONENTS[data_type]
  radius     = intlen / 2.0

  coefficients = np.empty((n_records, components, degree + 1))
  for i in range(n_records):
    mid = init + (i + 0.5) * intlen
    coefficients[i] = chebyshev_fit(
      lambda s: np.asarray(func(mid + s * radius), dtype=float)[:, :components],
      degree,
    )
  return coefficients


class SpkWriter:
  """
  Build an SPK file segment by segment and write it in one pass.

  Methods
    add_chebyshev_segment(...)
      Queue a type 2 or type 3 segment from its coefficients
    write()
      Write the file
  """
  def __init__(
    self,
    path          : Union[str, Path],
    internal_name : str = 'SPK FILE',
    byte_order    : str = '<',
    comments      : str = '',
  ):
    if byte_order not in BINARY_FORMATS.values():
      raise ValueError(f"Byte order must be '<' or '>', got '{byte_order}'")
    self.path          = Path(path)
    self.internal_name = internal_name[:INTERNAL_NAME_CHARS]
    self.byte_order    = byte_order
    self.comments      = comments
    self._segments     = []

  def __enter__(self) -> 'SpkWriter':
    return self

  def __exit__(self, exc_type, exc_value, traceback) -> None:
    if exc_type is None:
      self.write()

  @property
  def n_segments(self) -> int:
    return len(self._segments)

  def add_chebyshev_segment(
    self,
    target       : int,
    center       : int,
    frame        : int,
    data_type    : int,
    init         : float,
    intlen       : float,
    coefficients : np.ndarray,
    start_et     : Optional[float] = None,
    end_et       : Optional[float] = None,
    segment_id   : str = '',
  ) -> None:
    """
    Queue a Chebyshev segment.

    Input:
    ------
      target, center, frame : int
        NAIF codes of the body, its center of motion and the frame.
      data_type : int
        2 (position coefficients) or 3 (position and velocity coefficients).
      init : float
        Start epoch of the first record [s past J2000].
      intlen : float
        Length of each record interval [s].
      coefficients : np.ndarray
        Shape (n_records, components, degree+1), in km (and km/s).
      start_et, end_et : float
        Coverage written in the descriptor. Defaults to the span of the records.
      segment_id : str
        Segment name, at most 40 characters.
    """
    if data_type not in CHEBYSHEV_COMPONENTS:
      raise ValueError(f"SPK data type must be one of {sorted(CHEBYSHEV_COMPONENTS)}, got {data_type}")
    if intlen <= 0.0:
      raise ValueError(f"Interval length must be positive, got {intlen}")
    if len(segment_id) > SEGMENT_ID_CHARS:
      raise ValueError(f"Segment id '{segment_id}' exceeds {SEGMENT_ID_CHARS} characters")

    coefficients = np.asarray(coefficients, dtype=float)
    components   = CHEBYSHEV_COMPONENTS[data_type]
    if coefficients.ndim != 3 or coefficients.shape[1] != components or coefficients.shape[0] < 1:
      raise ValueError(
        f"Coefficients must have shape (n_records, {components}, degree+1), got {coefficients.shape}"
      )

    n_records, _, n_coefficients = coefficients.shape
    radius      = intlen / 2.0
    record_size = 2 + components * n_coefficients

    records = np.empty((n_records, record_size))
    records[:, 0] = init + (np.arange(n_records) + 0.5) * intlen
    records[:, 1] = radius
    records[:, 2:] = coefficients.reshape(n_records, -1)
    trailer = np.array([init, intlen, record_size, n_records], dtype=float)

    self._segments.append(_PendingSegment(
      target     = int(target),
      center     = int(center),
      frame      = int(frame),
      data_type  = int(data_type),
      start_et   = float(init if start_et is None else start_et),
      end_et     = float(init + n_records * intlen if end_et is None else end_et),
      segment_id = segment_id,
      data       = np.concatenate([records.ravel(), trailer]),
    ))

  def _comment_records(self) -> list[bytes]:
    if not self.comments:
      return []
    text   = self.comments.replace('\n', '\x00') + END_OF_COMMENTS
    chunks = [text[i:i + COMMENT_CHARS] for i in range(0, len(text), COMMENT_CHARS)]
    return [chunk.encode('ascii', errors='replace').ljust(RECORD_BYTES, b' ') for chunk in chunks]

  def _file_record(
    self,
    forward  : int,
    backward : int,
    free     : int,
  ) -> bytes:
    int_type      = f'{self.byte_order}i4'
    binary_format = next(name for name, order in BINARY_FORMATS.items() if order == self.byte_order)

    record = bytearray(RECORD_BYTES)
    record[0:8]   = b'DAF/SPK '
    record[8:16]  = np.array([SPK_ND, SPK_NI], dtype=int_type).tobytes()
    record[16:76] = self.internal_name.encode('ascii', errors='replace').ljust(INTERNAL_NAME_CHARS)
    record[76:88] = np.array([forward, backward, free], dtype=int_type).tobytes()
    record[88:96] = binary_format.encode('ascii')
    record[FTP_OFFSET:FTP_OFFSET + len(FTP_STRING)] = FTP_STRING
    return bytes(record)

  def write(self) -> Path:
    """
    Write the queued segments to the file.

    Output:
    -------
      path : Path
        Path of the written file.
    """
    double_type = f'{self.byte_order}f8'
    comments    = self._comment_records()
    n_summary_records = max(1, -(-len(self._segments) // SUMMARIES_PER_RECORD))

    first_summary = 2 + len(comments)
    first_data    = first_summary + 2 * n_summary_records
    address       = (first_data - 1) * DOUBLES_PER_RECORD + 1

    # Data addresses
    descriptors = []
    for segment in self._segments:
      start_address = address
      end_address   = address + segment.data.size - 1
      descriptors.append((start_address, end_address))
      address = end_address + 1
    free = address

    summary_records = []
    for k in range(n_summary_records):
      chunk      = range(k * SUMMARIES_PER_RECORD, min((k + 1) * SUMMARIES_PER_RECORD, len(self._segments)))
      record_num = first_summary + 2 * k
      next_num   = record_num + 2 if k < n_summary_records - 1 else 0
      prev_num   = record_num - 2 if k > 0 else 0

      summary_record = np.array([next_num, prev_num, len(chunk)], dtype=double_type).tobytes()
      name_record    = b''
      for i in chunk:
        segment = self._segments[i]
        summary_record += pack_summary(
          (segment.start_et, segment.end_et),
          (segment.target, segment.center, segment.frame, segment.data_type) + descriptors[i],
          self.byte_order,
        )
        name_record += segment.segment_id.encode('ascii', errors='replace').ljust(SEGMENT_ID_CHARS)
      summary_records.append(summary_record.ljust(RECORD_BYTES, b'\x00'))
      summary_records.append(name_record.ljust(RECORD_BYTES, b' '))

    data = b''.join(segment.data.astype(double_type).tobytes() for segment in self._segments)
    if len(data) % RECORD_BYTES:
      data += b'\x00' * (RECORD_BYTES - len(data) % RECORD_BYTES)

    last_summary = first_summary + 2 * (n_summary_records - 1)
    self.path.parent.mkdir(parents=True, exist_ok=True)
    with open(self.path, 'wb') as f:
      f.write(self._file_record(first_summary, last_summary, free))
      for record in comments + summary_records:
        f.write(record)
      f.write(data)
    return self.path
