"""Deterministic output file naming."""

from dataclasses import dataclass
from typing import Tuple

DEFAULT_EXTENSION = ".pdf"


@dataclass(frozen=True)
class OutputNaming:
    """Rules used to turn an input file name into an output path."""

    directory: str = ""
    prefix: str = ""
    suffix: str = ""
    extension: str = DEFAULT_EXTENSION
    # Append ``extension`` even when the input name does not carry it.
    assume_extension: bool = False


def split_extension(file_name: str, extension: str = DEFAULT_EXTENSION) -> Tuple[str, str]:
    """
    Split a recognised extension off a file name.

    The extension is matched case-insensitively, the returned tail keeps the
    case used in ``file_name``.

    Args:
        file_name: Base name of the input file
        extension: Extension to recognise, e.g. ``.pdf``

    Returns:
        Tuple of (base name, extension), extension empty if not recognised
    """
    if extension and file_name.lower().endswith(extension.lower()):
        cut = len(file_name) - len(extension)
        return file_name[:cut], file_name[cut:]
    return file_name, ""


def build_output_path(input_name: str, naming: OutputNaming) -> str:
    """
    Build the output path for an input file.

    The result is ``directory + prefix + base + suffix + extension`` with no
    separator added; ``naming.directory`` has to carry its own trailing
    separator.

    Args:
        input_name: Base name (no directory) of the input file
        naming: Output naming rules

    Returns:
        Output file path
    """
    base, extension = split_extension(input_name, naming.extension)
    if not extension and naming.assume_extension:
        extension = naming.extension
    return f"{naming.directory}{naming.prefix}{base}{naming.suffix}{extension}"
