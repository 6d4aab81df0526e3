"""Shared plumbing for the command line tools: JSON in, one JSON object out."""

import io
import json
import sys
from pathlib import Path
from typing import Any, Dict, NoReturn

# Force UTF-8 encoding for stdout/stderr to handle Unicode characters on Windows
if sys.platform == 'win32':
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')


def read_text(value: str) -> str:
    """Accept inline JSON, a file path, or '-' for stdin"""
    if value == '-':
        return sys.stdin.read()
    stripped = value.lstrip()
    if stripped.startswith(('{', '[')):
        return value
    return Path(value).read_text(encoding='utf-8')


def read_json(value: str) -> Any:
    return json.loads(read_text(value))


def log(verbose: bool, message: str):
    if verbose:
        print(message, file=sys.stderr)


def succeed(output: Dict[str, Any]) -> NoReturn:
    print(json.dumps(output))
    sys.exit(0)


def fail(error: Exception, **extra: Any) -> NoReturn:
    output = {
        'success': False,
        'error': str(error),
        'error_type': type(error).__name__,
    }
    output.update(extra)
    # Errors go to stdout as JSON so callers can parse them
    print(json.dumps(output))
    sys.exit(1)
