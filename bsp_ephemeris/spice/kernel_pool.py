"""
Kernel Pool
===========

Load, unload and reference counting of SPK kernel files, and the segment
index used to find the segment that provides data for a body at an epoch.

Search priority:
----------------
  1. Files loaded later take precedence over files loaded earlier.
  2. Inside a file, segments stored later take precedence.
  3. Segments whose start epoch is after their end epoch are ignored.

  The answer of a search is cached per body together with the open window
  (lower, upper) over which it is guaranteed to stay the answer. The cache is
  dropped whenever a file is loaded or unloaded.
"""
import numpy as np

from dataclasses import dataclass, field
from pathlib     import Path
from typing      import Optional, Union

from bsp_ephemeris.spice.daf         import DafFile
from bsp_ephemeris.spice.errors      import KernelFileError, NoKernelsLoadedError, UnsupportedFormatError
from bsp_ephemeris.spice.spk_segment import ChebyshevSegmentData, SpkSegment


@dataclass
class KernelHandle:
  """
  One loaded kernel file.

  Attributes
    handle : int
      Identifier assigned when the file was first loaded
    path : Path
      Resolved path of the file
    daf : DafFile
      Open DAF reader
    reference_count : int
      Number of outstanding loads
    load_number : int
      Search priority, larger is searched first
    segments : tuple[SpkSegment, ...]
      Segments of the file, in file order
  """
  handle          : int
  path            : Path
  daf             : DafFile
  reference_count : int = 1
  load_number     : int = 0
  segments        : tuple = field(default_factory=tuple)

  @property
  def is_open(self) -> bool:
    return self.daf.is_open


@dataclass
class _SearchCache:
  segment : SpkSegment
  lower   : float
  upper   : float


def _resolve_path(
  path : Union[str, Path],
) -> Path:
  return Path(path).expanduser().resolve()


def _read_segments(
  daf    : DafFile,
  handle : int = 0,
) -> tuple:
  if daf.architecture != 'SPK':
    raise UnsupportedFormatError(
      f"File {daf.filepath} is a DAF/{daf.architecture or '?'} file, not an SPK file"
    )
  return tuple(
    SpkSegment.from_summary(handle, summary, index)
    for index, summary in enumerate(daf.summaries())
  )


class KernelPool:
  """
  Set of loaded SPK files and the index of their segments.

  Methods
    load(path)
      Load a file, or raise its priority if it is already loaded
    unload(path_or_handle)
      Release one load of a file
    clear()
      Close and forget every file
    search_segment(body, et)
      Highest priority segment covering an epoch
    segments(body)
      All segments, highest priority first
    evaluate(segment, et)
      State of a segment target relative to its center
  """
  def __init__(self):
    self._kernels      = {}  # handle -> KernelHandle
    self._next_handle  = 1
    self._next_load    = 1
    self._search_cache = {}  # body -> _SearchCache
    self._data_cache   = {}  # SpkSegment -> ChebyshevSegmentData

  def __len__(self) -> int:
    return len(self._kernels)

  def __contains__(
    self,
    path : Union[str, Path],
  ) -> bool:
    return self.is_loaded(path)

  def __enter__(self) -> 'KernelPool':
    return self

  def __exit__(self, exc_type, exc_value, traceback) -> None:
    self.clear()

  def __repr__(self) -> str:
    return f"KernelPool({len(self._kernels)} kernel(s))"

  @property
  def handles(self) -> list[KernelHandle]:
    """
    Loaded kernels, highest search priority first.
    """
    return sorted(self._kernels.values(), key=lambda k: k.load_number, reverse=True)

  def find(
    self,
    path_or_handle : Union[str, Path, int, KernelHandle],
  ) -> Optional[KernelHandle]:
    if isinstance(path_or_handle, KernelHandle):
      return self._kernels.get(path_or_handle.handle)
    if isinstance(path_or_handle, (int, np.integer)):
      return self._kernels.get(int(path_or_handle))
    path = _resolve_path(path_or_handle)
    for kernel in self._kernels.values():
      if kernel.path == path:
        return kernel
    return None

  def is_loaded(
    self,
    path : Union[str, Path],
  ) -> bool:
    return self.find(path) is not None

  def load(
    self,
    path : Union[str, Path],
  ) -> KernelHandle:
    """
    Load an SPK file.

    Input:
    ------
      path : str | Path
        Path to the SPK (BSP) file.

    Output:
    -------
      kernel : KernelHandle
        Handle of the loaded file. Loading a file again returns the same
        handle with its reference count incremented and its priority raised.
    """
    kernel = self.find(path)
    if kernel is not None:
      kernel.reference_count += 1
      kernel.load_number      = self._take_load_number()
      self._search_cache.clear()
      return kernel

    daf = DafFile(_resolve_path(path)).open()
    try:
      handle   = self._next_handle
      segments = _read_segments(daf, handle)
    except Exception:
      daf.close()
      raise

    self._next_handle += 1
    kernel = KernelHandle(
      handle      = handle,
      path        = daf.filepath,
      daf         = daf,
      load_number = self._take_load_number(),
      segments    = segments,
    )
    self._kernels[handle] = kernel
    self._search_cache.clear()
    return kernel

  def _take_load_number(self) -> int:
    load_number      = self._next_load
    self._next_load += 1
    return load_number

  def unload(
    self,
    path_or_handle : Union[str, Path, int, KernelHandle],
  ) -> None:
    """
    Release one load of a file. The file is closed and its segments leave the
    index when its reference count reaches zero. Unknown files are ignored.
    """
    kernel = self.find(path_or_handle)
    if kernel is None:
      return

    kernel.reference_count -= 1
    if kernel.reference_count > 0:
      return

    kernel.daf.close()
    del self._kernels[kernel.handle]
    self._data_cache = {
      segment: data for segment, data in self._data_cache.items()
      if segment.handle != kernel.handle
    }
    self._search_cache.clear()

  def clear(self) -> None:
    for kernel in self._kernels.values():
      kernel.daf.close()
    self._kernels.clear()
    self._search_cache.clear()
    self._data_cache.clear()

  def segments(
    self,
    body : Optional[int] = None,
  ) -> list[SpkSegment]:
    """
    Segments of every loaded file in search order, optionally for one body.
    """
    ordered = []
    for kernel in self.handles:
      for segment in reversed(kernel.segments):
        if body is None or segment.target == body:
          ordered.append(segment)
    return ordered

  def search_segment(
    self,
    body : int,
    et   : float,
  ) -> Optional[SpkSegment]:
    """
    Find the segment providing data for a body at an epoch.

    Input:
    ------
      body : int
        NAIF code of the target body.
      et : float
        Epoch, TDB seconds past J2000.

    Output:
    -------
      segment : SpkSegment | None
        Highest priority valid segment covering the epoch, None if no
        segment covers it.
    """
    if not self._kernels:
      raise NoKernelsLoadedError("No SPK file is loaded")

    cached = self._search_cache.get(body)
    if cached is not None:
      if cached.lower < et < cached.upper:
        return cached.segment
      del self._search_cache[body]

    # Window bounded by the higher priority segments that do not cover et
    lower, upper = -np.inf, np.inf
    for segment in self.segments(body):
      if not segment.is_valid:
        continue
      if segment.covers(et):
        self._search_cache[body] = _SearchCache(
          segment = segment,
          lower   = max(lower, segment.start_et),
          upper   = min(upper, segment.end_et),
        )
        return segment
      if segment.end_et < et:
        lower = max(lower, segment.end_et)
      else:
        upper = min(upper, segment.start_et)
    return None

  def segment_data(
    self,
    segment : SpkSegment,
  ) -> ChebyshevSegmentData:
    data = self._data_cache.get(segment)
    if data is None:
      kernel = self._kernels.get(segment.handle)
      if kernel is None:
        raise KernelFileError(
          f"Segment '{segment.name}' belongs to a kernel that is no longer loaded"
        )
      data = ChebyshevSegmentData(kernel.daf, segment)
      self._data_cache[segment] = data
    return data

  def evaluate(
    self,
    segment : SpkSegment,
    et      : float,
  ) -> np.ndarray:
    """
    State (km, km/s) of a segment target relative to its center, in the
    segment frame.
    """
    return self.segment_data(segment).evaluate(et)

  @staticmethod
  def spk_objects(
    path : Union[str, Path],
  ) -> set[int]:
    """
    NAIF codes of the targets present in an SPK file. The file need not be loaded.
    """
    with DafFile(path) as daf:
      return {segment.target for segment in _read_segments(daf)}

  @staticmethod
  def spk_coverage(
    path : Union[str, Path],
    body : int,
  ) -> list[tuple[float, float]]:
    """
    Coverage of a body in an SPK file.

    Input:
    ------
      path : str | Path
        Path to the SPK file.
      body : int
        NAIF code of the target body.

    Output:
    -------
      windows : list[tuple[float, float]]
        Sorted, merged (start, end) intervals, TDB seconds past J2000.
    """
    with DafFile(path) as daf:
      intervals = sorted(
        (segment.start_et, segment.end_et)
        for segment in _read_segments(daf)
        if segment.target == body and segment.is_valid
      )

    windows = []
    for start, end in intervals:
      if windows and start <= windows[-1][1]:
        windows[-1] = (windows[-1][0], max(windows[-1][1], end))
      else:
        windows.append((start, end))
    return windows
