"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

T = TypeVar('T')

# Looked up by class name along the exception's MRO, most specific first
EXIT_CODES = {
    # Something the caller asked for does not exist
    "FileNotFoundInLayer": 1,
    "EntryNotFound": 1,
    "ArchitectureNotFound": 1,
    "OciNotFound": 1,
    # Malformed input or content
    "InvalidReference": 2,
    "ManifestDecodeError": 2,
    "LayerReadError": 2,
    "MissingField": 2,
    "MalformedTagEntry": 2,
    "OciUnsupportedMediaType": 2,
    "ValueError": 2,
    # Registry or network failure
    "OciError": 3,
    # Credentials
    "CredentialError": 4,
    "OciAuthError": 4,
}

FALLBACK_EXIT_CODE = 3


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    - 0: Success
    - 1: Not found (file in layer, tag entry, architecture, registry object)
    - 2: Validation error (reference, manifest, layer content, fields)
    - 3: Registry/network error, or unknown error
    - 4: Credential error (pull secret or registry auth)

    Args:
        exc: Exception to map

    Returns:
        Exit code, with 3 as fallback for unknown exceptions
    """
    for cls in type(exc).__mro__:
        code = EXIT_CODES.get(cls.__name__)
        if code is not None:
            return code
    return FALLBACK_EXIT_CODE


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, printing the error message to stderr.

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except typer.Exit:
        raise
    except Exception as e:
        from .printers import print_error
        print_error(e)
        raise typer.Exit(code=exit_code_for(e)) from e
