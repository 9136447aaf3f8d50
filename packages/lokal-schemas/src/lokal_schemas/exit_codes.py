"""CLI exit code taxonomy and error-to-exit-code registry.

Exit code ranges:
- 0: Success
- 10-19: Client/input errors (config)
- 20-29: Domain/processing errors (translation run, source, artifact)
- 99: Unexpected runtime errors
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """CLI exit codes by failure category."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    TRANSLATION_FAILED = 20
    SOURCE_ERROR = 21
    ARTIFACT_ERROR = 23
    RUNTIME_ERROR = 99


# Domain error codes are qualified with a domain prefix
# (e.g. "source.not_found"); CLI-level codes are stored without one.
ERROR_CODE_TO_EXIT_CODE: dict[str, ExitCode] = {
    "config_error": ExitCode.CONFIG_ERROR,
    "runtime_error": ExitCode.RUNTIME_ERROR,
    "translation_failed": ExitCode.TRANSLATION_FAILED,
    "orchestration.unknown_language": ExitCode.CONFIG_ERROR,
    "orchestration.invalid_state": ExitCode.TRANSLATION_FAILED,
    "orchestration.success_ratio_below_threshold": ExitCode.TRANSLATION_FAILED,
    "source.not_found": ExitCode.SOURCE_ERROR,
    "source.parse_error": ExitCode.SOURCE_ERROR,
    "source.transport_error": ExitCode.SOURCE_ERROR,
    "artifact.parse_error": ExitCode.ARTIFACT_ERROR,
    "artifact.io_error": ExitCode.ARTIFACT_ERROR,
}


def resolve_exit_code(error_code: str, *, domain: str | None = None) -> ExitCode:
    """Resolve an error code string to its ExitCode.

    Args:
        error_code: The error code string (e.g. "config_error", "not_found").
        domain: Optional domain prefix (e.g. "source", "artifact"). When
            provided, ``"{domain}.{error_code}"`` is tried first.

    Returns:
        The matching ExitCode, or RUNTIME_ERROR if no mapping is found.
    """
    if domain:
        qualified = f"{domain}.{error_code}"
        if qualified in ERROR_CODE_TO_EXIT_CODE:
            return ERROR_CODE_TO_EXIT_CODE[qualified]
    if error_code in ERROR_CODE_TO_EXIT_CODE:
        return ERROR_CODE_TO_EXIT_CODE[error_code]
    if "." in error_code:
        return ERROR_CODE_TO_EXIT_CODE.get(
            error_code.split(".", 1)[1], ExitCode.RUNTIME_ERROR
        )
    return ExitCode.RUNTIME_ERROR
