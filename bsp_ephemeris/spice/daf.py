"""
DAF Binary Container
====================

Reader for the Double precision Array File (DAF) format underlying SPICE
binary kernels such as SPK/BSP files.

Layout:
-------
  A DAF is a sequence of 1024-byte records.
    record 1                 : file record (ID word, ND, NI, pointers, format)
    records 2 .. FWARD-1     : comment area
    summary record           : NEXT, PREV, NSUM, then NSUM packed summaries
    name record              : record following each summary record
    remaining records        : array data addressed by 1-based double words

  Each packed summary holds ND doubles followed by NI 32-bit integers packed
  two per double, for a size of ND + (NI+1)//2 double words.
"""
import numpy as np

from dataclasses import dataclass
from pathlib     import Path
from typing      import Iterator, Union

from bsp_ephemeris.spice.errors import KernelFileError, MalformedKernelError, UnsupportedFormatError


RECORD_BYTES       = 1024
DOUBLES_PER_RECORD = 128
COMMENT_CHARS      = 1000     # characters used per comment record
CONTROL_WORDS      = 3        # NEXT, PREV, NSUM at the start of a summary record
MAX_SUMMARY_WORDS  = 125      # summary words available after the control words
END_OF_COMMENTS    = '\x04'

LEGACY_ID_WORD = 'NAIF/DAF'
FTP_STRING     = b'FTPSTR:\r:\n:\r\n:\r\x00:\x81:\x10\xce:ENDFTP'
FTP_OFFSET     = 699

BINARY_FORMATS = {
  'LTL-IEEE' : '<',
  'BIG-IEEE' : '>',
}


def summary_size(
  nd : int,
  ni : int,
) -> int:
  """
  Size of a packed summary in double words.
  """
  return nd + (ni + 1) // 2


def unpack_summary(
  packed     : Union[bytes, np.ndarray],
  nd         : int,
  ni         : int,
  byte_order : str = '<',
) -> tuple[tuple[float, ...], tuple[int, ...]]:
  """
  Split a packed summary into its double and integer components.

  Input:
  ------
    packed : bytes | np.ndarray
      Raw summary bytes, or the summary as an array of doubles in the
      file byte order.
    nd : int
      Number of double precision components.
    ni : int
      Number of integer components.
    byte_order : str
      '<' for little-endian files, '>' for big-endian files.

  Output:
  -------
    doubles : tuple[float, ...]
      The ND double precision components.
    integers : tuple[int, ...]
      The NI integer components.
  """
  raw = packed.tobytes() if isinstance(packed, np.ndarray) else bytes(packed)
  if len(raw) < nd * 8 + ni * 4:
    raise MalformedKernelError(
      f"Packed summary of {len(raw)} bytes is too short for ND={nd}, NI={ni}"
    )
  doubles  = np.frombuffer(raw, dtype=f'{byte_order}f8', count=nd)
  integers = np.frombuffer(raw, dtype=f'{byte_order}i4', count=ni, offset=nd * 8)
  return tuple(float(d) for d in doubles), tuple(int(i) for i in integers)


def pack_summary(
  doubles    : tuple,
  integers   : tuple,
  byte_order : str = '<',
) -> bytes:
  """
  Pack double and integer components into summary bytes (inverse of unpack_summary).
  """
  raw = np.asarray(doubles, dtype=f'{byte_order}f8').tobytes()
  raw += np.asarray(integers, dtype=f'{byte_order}i4').tobytes()
  if len(integers) % 2:
    raw += b'\x00' * 4
  return raw


@dataclass(frozen=True)
class DafSummary:
  """
  One array summary of a DAF, with the name stored alongside it.
  """
  doubles  : tuple
  integers : tuple
  name     : str
  record   : int
  slot     : int


class DafFile:
  """
  Read-only access to a DAF file.

  Methods
    open()
      Open the file and parse its file record
    close()
      Close the underlying file
    summaries()
      Iterate over array summaries, first array first
    summaries_backward()
      Iterate over array summaries, last array first
    read_array(start_address, end_address)
      Read a range of double words
    read_comments()
      Return the comment area as text
  """
  def __init__(
    self,
    filepath : Union[str, Path],
  ):
    self.filepath      = Path(filepath)
    self.id_word       = ''
    self.architecture  = ''
    self.nd            = 0
    self.ni            = 0
    self.internal_name = ''
    self.forward       = 0
    self.backward      = 0
    self.free          = 0
    self.binary_format = ''
    self.byte_order    = '<'
    self.n_records     = 0
    self._file         = None

  def __repr__(self) -> str:
    state = 'open' if self.is_open else 'closed'
    return f"DafFile('{self.filepath}', {state})"

  def __enter__(self) -> 'DafFile':
    if not self.is_open:
      self.open()
    return self

  def __exit__(self, exc_type, exc_value, traceback) -> None:
    self.close()

  @property
  def is_open(self) -> bool:
    return self._file is not None

  @property
  def summary_size(self) -> int:
    return summary_size(self.nd, self.ni)

  @property
  def name_size(self) -> int:
    return 8 * self.summary_size

  @property
  def summaries_per_record(self) -> int:
    return MAX_SUMMARY_WORDS // self.summary_size

  def open(self) -> 'DafFile':
    """
    Open the file and parse its file record.

    Output:
    -------
      self : DafFile
        The opened file, for chaining.
    """
    if self.is_open:
      return self
    if not self.filepath.is_file():
      raise KernelFileError(f"Kernel file not found: {self.filepath}")
    try:
      self._file = open(self.filepath, 'rb')
    except OSError as error:
      raise KernelFileError(f"Kernel file cannot be read: {self.filepath}") from error

    try:
      size_bytes     = self.filepath.stat().st_size
      self.n_records = -(-size_bytes // RECORD_BYTES)
      self._read_file_record()
    except Exception:
      self.close()
      raise
    return self

  def close(self) -> None:
    if self._file is not None:
      self._file.close()
      self._file = None

  def read_record(
    self,
    record_number : int,
  ) -> bytes:
    """
    Read one 1024-byte record (1-based record number).
    """
    if self._file is None:
      raise KernelFileError(f"Kernel file is closed: {self.filepath}")
    if record_number < 1:
      raise MalformedKernelError(f"Invalid record number {record_number} in {self.filepath}")

    self._file.seek((record_number - 1) * RECORD_BYTES)
    data = self._file.read(RECORD_BYTES)
    if len(data) < RECORD_BYTES:
      # The last record of a DAF may be short when written without padding
      if record_number == 1 or len(data) == 0:
        raise MalformedKernelError(
          f"Record {record_number} of {self.filepath} is truncated ({len(data)} bytes)"
        )
      data = data.ljust(RECORD_BYTES, b'\x00')
    return data

  def _read_file_record(self) -> None:
    data = self.read_record(1)

    self.id_word = data[0:8].decode('ascii', errors='replace')
    if self.id_word.startswith('DAF/'):
      self.architecture = self.id_word[4:].strip()
    elif self.id_word == LEGACY_ID_WORD:
      self.architecture = ''
    else:
      raise UnsupportedFormatError(
        f"File {self.filepath} is not a DAF (ID word '{self.id_word.strip()}')"
      )

    # Byte order
    locfmt = data[88:96].decode('ascii', errors='replace').strip('\x00 ')
    if locfmt in BINARY_FORMATS:
      self.binary_format = locfmt
      self.byte_order    = BINARY_FORMATS[locfmt]
    elif locfmt == '' or self.id_word == LEGACY_ID_WORD:
      self.byte_order    = self._detect_byte_order(data)
      self.binary_format = 'LTL-IEEE' if self.byte_order == '<' else 'BIG-IEEE'
    else:
      raise UnsupportedFormatError(
        f"Unsupported binary file format '{locfmt}' in {self.filepath}"
      )

    int_type = f'{self.byte_order}i4'
    self.nd, self.ni = (int(v) for v in np.frombuffer(data, dtype=int_type, count=2, offset=8))
    self.internal_name = data[16:76].decode('ascii', errors='replace').strip('\x00 ')
    self.forward, self.backward, self.free = (
      int(v) for v in np.frombuffer(data, dtype=int_type, count=3, offset=76)
    )

    if not self._is_plausible_format(self.nd, self.ni):
      raise MalformedKernelError(
        f"Invalid summary format ND={self.nd}, NI={self.ni} in {self.filepath}"
      )

    # Legacy files carry no architecture; ND=2, NI=6 is the SPK layout
    if self.architecture == '' and (self.nd, self.ni) == (2, 6):
      self.architecture = 'SPK'

    ftp = data[FTP_OFFSET:FTP_OFFSET + len(FTP_STRING)]
    if ftp.startswith(b'FTPSTR:') and ftp != FTP_STRING:
      raise MalformedKernelError(
        f"FTP validation string mismatch in {self.filepath}: "
        f"the file was likely corrupted by an ASCII mode transfer"
      )

    for label, pointer in (('forward', self.forward), ('backward', self.backward)):
      if pointer < 2 or pointer > self.n_records:
        raise MalformedKernelError(
          f"Invalid {label} summary record pointer {pointer} in {self.filepath} "
          f"({self.n_records} records)"
        )

  @staticmethod
  def _is_plausible_format(
    nd : int,
    ni : int,
  ) -> bool:
    return 0 <= nd <= 124 and 2 <= ni <= 250 and summary_size(nd, ni) <= MAX_SUMMARY_WORDS

  def _detect_byte_order(
    self,
    data : bytes,
  ) -> str:
    for byte_order in ('<', '>'):
      nd, ni = np.frombuffer(data, dtype=f'{byte_order}i4', count=2, offset=8)
      if self._is_plausible_format(int(nd), int(ni)):
        return byte_order
    raise UnsupportedFormatError(f"Cannot determine the byte order of {self.filepath}")

  def _read_summary_record(
    self,
    record_number : int,
  ) -> tuple[bytes, int, int, int]:
    data    = self.read_record(record_number)
    control = np.frombuffer(data, dtype=f'{self.byte_order}f8', count=CONTROL_WORDS)
    next_record, prev_record, n_summaries = (int(v) for v in control)
    if n_summaries < 0 or n_summaries > self.summaries_per_record:
      raise MalformedKernelError(
        f"Summary record {record_number} of {self.filepath} claims {n_summaries} summaries"
      )
    return data, next_record, prev_record, n_summaries

  def _build_summary(
    self,
    data          : bytes,
    names         : bytes,
    record_number : int,
    slot          : int,
  ) -> DafSummary:
    words  = self.summary_size
    offset = (CONTROL_WORDS + slot * words) * 8
    doubles, integers = unpack_summary(
      data[offset:offset + words * 8], self.nd, self.ni, self.byte_order,
    )
    name_offset = slot * self.name_size
    name = names[name_offset:name_offset + self.name_size].decode('ascii', errors='replace')
    return DafSummary(
      doubles  = doubles,
      integers = integers,
      name     = name.rstrip('\x00 '),
      record   = record_number,
      slot     = slot,
    )

  def _walk(
    self,
    first_record : int,
    forward      : bool,
  ) -> Iterator[DafSummary]:
    record_number = first_record
    visited       = set()
    while record_number != 0:
      if record_number in visited:
        raise MalformedKernelError(
          f"Summary record chain of {self.filepath} loops at record {record_number}"
        )
      if record_number < 2 or record_number > self.n_records:
        raise MalformedKernelError(
          f"Summary record pointer {record_number} out of range in {self.filepath}"
        )
      visited.add(record_number)

      data, next_record, prev_record, n_summaries = self._read_summary_record(record_number)
      if n_summaries > 0:
        names = self.read_record(record_number + 1)
        slots = range(n_summaries) if forward else range(n_summaries - 1, -1, -1)
        for slot in slots:
          yield self._build_summary(data, names, record_number, slot)

      record_number = next_record if forward else prev_record

  def summaries(self) -> Iterator[DafSummary]:
    """
    Iterate over the array summaries in file order (forward search).
    """
    return self._walk(self.forward, forward=True)

  def summaries_backward(self) -> Iterator[DafSummary]:
    """
    Iterate over the array summaries from the last array to the first (backward search).
    """
    return self._walk(self.backward, forward=False)

  def read_array(
    self,
    start_address : int,
    end_address   : int,
  ) -> np.ndarray:
    """
    Read the double words between two 1-based addresses, inclusive.

    Input:
    ------
      start_address : int
        Address of the first double word.
      end_address : int
        Address of the last double word.

    Output:
    -------
      values : np.ndarray
        Float64 array in native byte order.
    """
    if self._file is None:
      raise KernelFileError(f"Kernel file is closed: {self.filepath}")
    if start_address < 1 or end_address < start_address:
      raise MalformedKernelError(
        f"Invalid array address range [{start_address}, {end_address}] in {self.filepath}"
      )

    count = end_address - start_address + 1
    self._file.seek((start_address - 1) * 8)
    data = self._file.read(count * 8)
    if len(data) < count * 8:
      raise MalformedKernelError(
        f"Array [{start_address}, {end_address}] extends past the end of {self.filepath}"
      )
    return np.frombuffer(data, dtype=f'{self.byte_order}f8').astype(np.float64)

  def read_comments(self) -> str:
    """
    Return the comment area of the file as text.
    """
    chunks = []
    for record_number in range(2, self.forward):
      chunk = self.read_record(record_number)[:COMMENT_CHARS].decode('ascii', errors='replace')
      end   = chunk.find(END_OF_COMMENTS)
      if end >= 0:
        chunks.append(chunk[:end])
        break
      chunks.append(chunk)
    return ''.join(chunks).replace('\x00', '\n')


def read_file_record(
  filepath : Union[str, Path],
) -> dict:
  """
  Read the file record of a DAF without keeping the file open.

  Input:
  ------
    filepath : str | Path
      Path to the DAF file.

  Output:
  -------
    file_record : dict
      ID word, architecture, ND, NI, internal name, pointers and format.
  """
  with DafFile(filepath) as daf:
    return {
      'id_word'       : daf.id_word,
      'architecture'  : daf.architecture,
      'nd'            : daf.nd,
      'ni'            : daf.ni,
      'internal_name' : daf.internal_name,
      'forward'       : daf.forward,
      'backward'      : daf.backward,
      'free'          : daf.free,
      'binary_format' : daf.binary_format,
    }
