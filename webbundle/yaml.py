"""YAML/JSON loader for release configuration files.

Loads ``release.yaml`` / ``release.json`` and validates the result against a
JSON Schema before it reaches the pydantic models.

Usage:
    from webbundle.yaml import load, loads, dumps, validate

    # Load from file (format detected from extension)
    data = load(Path('release.yaml'))

    # Load with schema validation
    data = load_and_validate(Path('release.yaml'), RELEASE_SCHEMA)

    # Dump back to text
    text = dumps(data, format='yaml')

Environment variables:
    WEBBUNDLE_SKIP_SCHEMA_VALIDATION: If set, skip schema validation
"""

from pathlib import Path
from typing import Any, Dict, IO, List, Optional, Union
import json
import os

import jsonschema
import yaml

from webbundle.errors import ConfigError


def _skip_validation() -> bool:
    return bool(os.environ.get('WEBBUNDLE_SKIP_SCHEMA_VALIDATION'))


def _detect_format(path: Union[str, Path]) -> str:
    """Detect file format from extension."""
    suffix = Path(path).suffix.lower()
    if suffix == '.json':
        return 'json'
    return 'yaml'


def load(
    source: Union[str, Path, IO[str]],
    format: Optional[str] = None,
) -> Any:
    """Load data from a file path or file-like object.

    Args:
        source: File path (str or Path) or file-like object
        format: 'yaml', 'json', or None to auto-detect from extension

    Returns:
        Parsed data (usually dict)

    Raises:
        ConfigError: If the file can't be read or parsed
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if format is None:
            format = _detect_format(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return _parse(f.read(), format, path)
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}", path=path) from e

    if format is None:
        name = getattr(source, 'name', None)
        format = _detect_format(name) if name else 'yaml'
    return _parse(source.read(), format)


def loads(content: str, format: str = 'yaml') -> Any:
    """Load data from a string.

    Args:
        content: String content to parse
        format: 'yaml' or 'json'
    """
    return _parse(content, format)


def _parse(content: str, format: str, path: Optional[Path] = None) -> Any:
    where = path or 'config'
    try:
        if format == 'yaml':
            return yaml.safe_load(content)
        return json.loads(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {where}: {e}", path=path) from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {where}: {e}", path=path) from e


def dumps(data: Any, format: str = 'yaml', **kwargs: Any) -> str:
    """Dump data to a string.

    Args:
        data: Data to serialize
        format: 'yaml' or 'json'
        **kwargs: Additional arguments passed to yaml.safe_dump or json.dumps
    """
    if format == 'yaml':
        kwargs.setdefault('default_flow_style', False)
        kwargs.setdefault('allow_unicode', True)
        kwargs.setdefault('sort_keys', False)
        return yaml.safe_dump(data, **kwargs)
    kwargs.setdefault('indent', 2)
    kwargs.setdefault('ensure_ascii', False)
    return json.dumps(data, **kwargs)


# =============================================================================
# Schema Validation
# =============================================================================

def validate(
    data: Any,
    schema: Dict,
    raise_on_error: bool = True,
    path: Optional[Path] = None,
) -> Optional[List[str]]:
    """Validate data against a JSON schema.

    Args:
        data: Data to validate
        schema: Schema dict
        raise_on_error: If True, raise ConfigError on failure
        path: Source file, used in the error message

    Returns:
        None if valid, or list of error messages if raise_on_error=False

    Raises:
        ConfigError: If validation fails and raise_on_error=True
    """
    if _skip_validation():
        return None

    validator = jsonschema.Draft7Validator(schema)
    errors = []
    for err in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        location = '.'.join(str(p) for p in err.path)
        errors.append(f"{location}: {err.message}" if location else err.message)

    if not errors:
        return None
    if raise_on_error:
        raise ConfigError(
            f"Schema validation failed for {path or 'config'}: {errors[0]}",
            errors=errors,
            path=path,
        )
    return errors


def load_and_validate(
    source: Union[str, Path],
    schema: Dict,
    format: Optional[str] = None,
) -> Any:
    """Load data and validate against schema in one step.

    An empty file loads as an empty mapping.

    Raises:
        ConfigError: If loading or validation fails
    """
    path = Path(source)
    data = load(path, format=format)
    if data is None:
        data = {}
    validate(data, schema, path=path)
    return data
