import re
import yaml
from pathlib import Path
from typing  import Optional, Union


DATA_FOLDERPATH = Path(__file__).parent.parent / 'data'


def load_data_table(
  filename : str,
) -> dict:
  """
  Load a static table from a YAML file of the package data folder.

  Input:
  ------
    filename : str
      Name of the YAML file in bsp_ephemeris/data.

  Output:
  -------
    table : dict
      Content of the YAML file.
  """
  table_path = DATA_FOLDERPATH / filename

  if not table_path.exists():
    raise FileNotFoundError(f"Data table not found: {table_path}")

  with open(table_path, 'r') as f:
    return yaml.safe_load(f)


def find_kernel_files(
  folderpath      : Union[str, Path],
  supported_names : str = r'.*\.bsp$',
) -> list[Path]:
  """
  List the kernel files of a folder whose names match a pattern.

  Input:
  ------
    folderpath : str | Path
      Folder to scan (not recursive).
    supported_names : str
      Regular expression the file name must match (case-insensitive).

  Output:
  -------
    filepaths : list[Path]
      Matching files sorted by name.
  """
  folderpath = Path(folderpath).expanduser()
  if not folderpath.is_dir():
    raise FileNotFoundError(f"Kernel folder not found: {folderpath}")

  pattern = re.compile(supported_names, re.IGNORECASE)
  return sorted(
    filepath for filepath in folderpath.iterdir()
    if filepath.is_file() and pattern.match(filepath.name)
  )


def resolve_kernel_paths(
  kernel_filepaths   : Optional[list] = None,
  kernels_folderpath : Optional[Union[str, Path]] = None,
) -> list[Path]:
  """
  Combine explicit kernel files and the .bsp files of a folder, without duplicates.
  """
  filepaths = [Path(filepath).expanduser() for filepath in (kernel_filepaths or [])]
  if kernels_folderpath is not None:
    filepaths += find_kernel_files(kernels_folderpath)

  unique_filepaths = []
  for filepath in filepaths:
    if filepath.resolve() not in [f.resolve() for f in unique_filepaths]:
      unique_filepaths.append(filepath)
  return unique_filepaths
