"""
Scriptloom File Utilities

JSON/text file operations with error handling and atomic writes.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple, Union

from scriptloom.core.exceptions import ScriptloomError

PathLike = Union[str, Path]


def read_json(path: PathLike, encoding: str = 'utf-8') -> Dict[str, Any]:
    """
    Read and parse a JSON file.

    Args:
        path: Path to JSON file
        encoding: File encoding (default: utf-8)

    Returns:
        Parsed JSON data

    Raises:
        ScriptloomError: If file cannot be read or parsed
    """
    path = Path(path)
    if not path.exists():
        raise ScriptloomError(f"File not found: {path}")

    try:
        with open(path, 'r', encoding=encoding) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ScriptloomError(f"Invalid JSON in {path}: {e}")
    except OSError as e:
        raise ScriptloomError(f"Failed to read {path}: {e}")


def read_text(path: PathLike, encoding: str = 'utf-8') -> str:
    """Read a text file, raising ScriptloomError on failure."""
    path = Path(path)
    if not path.exists():
        raise ScriptloomError(f"File not found: {path}")
    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise ScriptloomError(f"Failed to read {path}: {e}")


def ensure_directory(path: PathLike) -> Path:
    """Create a directory (and parents) if needed."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def temp_path_for(path: PathLike) -> Path:
    path = Path(path)
    return path.with_name(path.name + '.tmp')


def _dump(data: Any, indent: int, ensure_ascii: bool) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=ensure_ascii) + "\n"


def write_json(
    path: PathLike,
    data: Any,
    encoding: str = 'utf-8',
    indent: int = 2,
    ensure_ascii: bool = False
) -> None:
    """
    Atomically write data to a JSON file.

    The document is written to ``<path>.tmp`` and renamed into place, so a
    failure never leaves a partial file behind.

    Args:
        path: Path to JSON file
        data: Data to write
        encoding: File encoding (default: utf-8)
        indent: JSON indentation (default: 2)
        ensure_ascii: If False, allow non-ASCII characters
    """
    write_json_many([(path, data)], encoding=encoding, indent=indent, ensure_ascii=ensure_ascii)


def write_json_many(
    documents: Iterable[Tuple[PathLike, Any]],
    encoding: str = 'utf-8',
    indent: int = 2,
    ensure_ascii: bool = False
) -> List[Path]:
    """
    Write several JSON documents, renaming only after every temp file is written.

    Returns:
        Final paths, in input order
    """
    staged: List[Tuple[Path, Path]] = []
    try:
        for path, data in documents:
            path = Path(path)
            ensure_directory(path.parent)
            tmp = temp_path_for(path)
            staged.append((tmp, path))
            with open(tmp, 'w', encoding=encoding) as f:
                f.write(_dump(data, indent, ensure_ascii))
        for tmp, path in staged:
            os.replace(tmp, path)
    except (OSError, TypeError, ValueError) as e:
        for tmp, _ in staged:
            if tmp.exists():
                tmp.unlink()
        raise ScriptloomError(f"Failed to write {', '.join(str(p) for _, p in staged)}: {e}")

    return [path for _, path in staged]
