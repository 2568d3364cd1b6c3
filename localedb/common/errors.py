"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class SourceError(PipelineError):
    """Raised when a source the whole build depends on cannot be read."""

    error_code = "SOURCE_UNREADABLE"


class StageError(PipelineError):
    """Raised for stage failures that stop the current command."""

    error_code = "STAGE_ERROR"
