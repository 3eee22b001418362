"""
Logger Utility
==============

Duplicates the terminal output of a run (stdout and stderr) into a log file.
"""
import sys

from pathlib import Path
from typing  import Optional, TextIO, Union


class TeeStream:
  """
  A stream that writes to a terminal stream and to a shared log file.
  """
  def __init__(
    self,
    stream   : TextIO,
    log_file : TextIO,
  ):
    self.terminal = stream
    self.log_file = log_file

  def write(self, message: str) -> int:
    self.terminal.write(message)
    self.log_file.write(message)
    self.log_file.flush()
    return len(message)

  def flush(self) -> None:
    self.terminal.flush()
    self.log_file.flush()

  def isatty(self) -> bool:
    return False


class LoggerContext:
  """
  Context to hold logger state for cleanup.
  """
  def __init__(
    self,
    log_file        : TextIO,
    original_stdout : TextIO,
    original_stderr : TextIO,
  ):
    self.log_file        = log_file
    self.original_stdout = original_stdout
    self.original_stderr = original_stderr


def start_logging(
  log_filepath : Union[str, Path],
  append       : bool = False,
) -> LoggerContext:
  """
  Start logging terminal output (stdout and stderr) to a file.

  Input:
  ------
    log_filepath : str | Path
      Path to the log file. Missing parent folders are created.
    append : bool
      Append to an existing log instead of overwriting it.

  Output:
  -------
    context : LoggerContext
      Context object for cleanup.
  """
  log_filepath = Path(log_filepath).expanduser()
  log_filepath.parent.mkdir(parents=True, exist_ok=True)
  log_file = open(log_filepath, 'a' if append else 'w', encoding='utf-8')

  context = LoggerContext(
    log_file,
    sys.stdout,
    sys.stderr,
  )

  # Both streams share one file handle so their lines stay in order
  sys.stdout = TeeStream(context.original_stdout, log_file)
  sys.stderr = TeeStream(context.original_stderr, log_file)
  return context


def stop_logging(
  context : Optional[LoggerContext],
) -> None:
  """
  Stop logging and restore original stdout/stderr.

  Input:
  ------
    context : LoggerContext | None
      Context object from start_logging. None is ignored.
  """
  if context is None:
    return

  sys.stdout = context.original_stdout
  sys.stderr = context.original_stderr
  context.log_file.close()
