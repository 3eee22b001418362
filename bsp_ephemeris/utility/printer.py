import numpy as np

from pathlib import Path
from typing  import Optional, Union

from bsp_ephemeris.model.time_converter import et_to_utc
from bsp_ephemeris.spice.bodies         import BodyTable
from bsp_ephemeris.spice.daf            import DafFile
from bsp_ephemeris.spice.frames         import FrameTable
from bsp_ephemeris.spice.kernel_pool    import KernelHandle, KernelPool
from bsp_ephemeris.utility.time_helper  import format_time_offset


def format_et(
  et : float,
) -> str:
  """
  Epoch written as UTC with its ET value, e.g. '2000-01-01 11:58:55.816000 UTC (0.000000 ET)'.
  """
  try:
    utc_str = f"{et_to_utc(et)} UTC"
  except (ValueError, OverflowError):
    utc_str = "(outside UTC range)"
  return f"{utc_str} ({et:.6f} ET)"


def print_kernel_comments(
  filepath  : Union[str, Path],
  max_lines : int = 20,
) -> None:
  """
  Print the first lines of the comment area of a kernel.
  """
  with DafFile(filepath) as daf:
    comments = daf.read_comments()

  lines = [line.rstrip() for line in comments.splitlines()]
  while lines and not lines[-1]:
    lines.pop()
  print(f"    Comments : {len(lines)} line(s)")
  for line in lines[:max_lines]:
    print(f"      | {line}")
  if len(lines) > max_lines:
    print(f"      | ... ({len(lines) - max_lines} more)")


def print_segment_table(
  kernel : KernelHandle,
  bodies : BodyTable,
  frames : FrameTable,
) -> None:
  """
  Print one row per segment of a kernel: target, center, frame, type and coverage.
  """
  headers = ['#', 'Target', 'Center', 'Frame', 'Type', 'Start (ET)', 'End (ET)', 'Name']
  rows    = []
  for segment in kernel.segments:
    rows.append([
      str(segment.index),
      bodies.describe(segment.target),
      bodies.describe(segment.center),
      frames.id_to_name(segment.frame) or str(segment.frame),
      str(segment.data_type),
      f"{segment.start_et:.3f}",
      f"{segment.end_et:.3f}",
      segment.name,
    ])

  min_spacing = 3
  col_widths  = [
    max([len(headers[i])] + [len(row[i]) for row in rows]) + min_spacing
    for i in range(len(headers))
  ]

  print(f"    Segments : {len(rows)}")
  print("      " + "".join(h.ljust(col_widths[i]) for i, h in enumerate(headers)))
  print("      " + "".join(("-" * (col_widths[i] - min_spacing)).ljust(col_widths[i]) for i in range(len(headers))))
  for row in rows:
    print("      " + "".join(row[i].ljust(col_widths[i]) for i in range(len(row))))


def print_kernel_summary(
  kernel : KernelHandle,
  bodies : BodyTable,
  frames : FrameTable,
) -> None:
  """
  Print the summary of a loaded SPK file: file record, comments, segments
  and the coverage of each body.

  Input:
  ------
    kernel : KernelHandle
      Loaded kernel.
    bodies : BodyTable
      Table used to name the bodies.
    frames : FrameTable
      Table used to name the frames.
  """
  daf = kernel.daf
  print(f"\nKernel Summary : {kernel.path.name}")
  print(f"    Path          : {kernel.path}")
  print(f"    Internal Name : {daf.internal_name}")
  print(f"    Format        : DAF/{daf.architecture} {daf.binary_format} (ND={daf.nd}, NI={daf.ni})")
  print_kernel_comments(kernel.path)
  print_segment_table(kernel, bodies, frames)

  print("    Coverage")
  for body in sorted(KernelPool.spk_objects(kernel.path)):
    print(f"      {bodies.describe(body)}")
    for start_et, end_et in KernelPool.spk_coverage(kernel.path, body):
      print(f"        Start    : {format_et(start_et)}")
      print(f"        End      : {format_et(end_et)}")
      print(f"        Duration : {format_time_offset(end_et - start_et)}")


def print_state_table(
  epochs      : np.ndarray,
  states      : np.ndarray,
  light_times : np.ndarray,
  target      : str,
  observer    : str,
  frame       : str,
  max_rows    : Optional[int] = None,
) -> None:
  """
  Print the states of a target relative to an observer.

  Input:
  ------
    epochs : np.ndarray (n,)
      Epochs [s past J2000].
    states : np.ndarray (n, 6)
      Position [km] and velocity [km/s].
    light_times : np.ndarray (n,)
      One-way light time [s].
    target, observer, frame : str
      Labels of the table.
    max_rows : int | None
      Print at most this many rows, evenly spread. All rows when None.
  """
  print("\nStates")
  print(f"  Target   : {target}")
  print(f"  Observer : {observer}")
  print(f"  Frame    : {frame}")
  print(f"  Epochs   : {len(epochs)}")

  indices = np.arange(len(epochs))
  if max_rows is not None and len(epochs) > max_rows:
    indices = np.unique(np.linspace(0, len(epochs) - 1, max_rows).round().astype(int))

  for i in indices:
    pos_vec = states[i, 0:3]
    vel_vec = states[i, 3:6]
    print(f"  Epoch : {format_et(epochs[i])}")
    print(f"    Position   : {pos_vec[0]:>19.12e}  {pos_vec[1]:>19.12e}  {pos_vec[2]:>19.12e} km")
    print(f"    Velocity   : {vel_vec[0]:>19.12e}  {vel_vec[1]:>19.12e}  {vel_vec[2]:>19.12e} km/s")
    print(f"    Light Time : {light_times[i]:>19.12e} s")
