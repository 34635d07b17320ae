"""
Safe KEY=value config file parser.

Values are read literally; nothing is expanded or executed. Values that
look like shell substitutions are rejected so a config file can never be
mistaken for something meant to be sourced.
"""

import re
from pathlib import Path

# Shell constructs that have no business in a gitpane config value
FORBIDDEN_PATTERNS = [
    re.compile(r'`'),
    re.compile(r'\$\('),
    re.compile(r'\$\{'),
    re.compile(r';'),
    re.compile(r'&&'),
    re.compile(r'\|'),
]

KEY_PATTERN = re.compile(r'^[A-Z][A-Z0-9_]*$')


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def parse_env(text: str, source: str = "<string>") -> dict[str, str]:
    """
    Parse KEY=value lines.

    Blank lines and lines starting with '#' are skipped. A leading
    "export " is tolerated.

    Raises:
        ValueError: malformed line, bad key, or forbidden pattern
    """
    values = {}
    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        if line.startswith('export '):
            line = line[len('export '):].lstrip()

        key, sep, value = line.partition('=')
        if not sep:
            raise ValueError(f"{source}:{lineno}: expected KEY=value")

        key = key.strip()
        if not KEY_PATTERN.match(key):
            raise ValueError(f"{source}:{lineno}: invalid key '{key}'")

        value = _unquote(value.strip())
        if any(p.search(value) for p in FORBIDDEN_PATTERNS):
            raise ValueError(f"{source}:{lineno}: forbidden pattern in value for {key}")

        values[key] = value

    return values


def load_env(filepath: Path | str) -> dict[str, str]:
    """
    Parse an env file.

    Raises:
        FileNotFoundError: if the file doesn't exist
        ValueError: see parse_env
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    return parse_env(path.read_text(), source=str(path))
