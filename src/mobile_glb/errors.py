"""Exceptions raised by the optimization pipeline."""


class OptimizeError(Exception):
    """Base class for pipeline failures."""


class InputNotFoundError(OptimizeError):
    """The resolved input path does not point to a file."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Input file not found: {path}")
        self.path = path


class LoadError(OptimizeError):
    """The input could not be parsed into a scene document."""


class TransformError(OptimizeError):
    """A pipeline stage failed; carries the stage name."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(message)
        self.stage = stage


class WriteError(OptimizeError):
    """Serializing or persisting the output failed."""


class CodecUnavailableError(OptimizeError):
    """The geometry codec backend could not be initialized."""


class CodecError(OptimizeError):
    """The geometry codec backend reported a failure."""
