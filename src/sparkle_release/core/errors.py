"""Exception hierarchy for the release pipeline.

Core functions raise these; ``ReleasePipeline`` catches them at its boundary
and turns them into status messages.
"""


class ReleaseError(Exception):
    """Base class for every failure the pipeline knows how to report."""


class InvalidBundleError(ReleaseError):
    pass


class ConfigurationError(ReleaseError):
    pass


class ToolNotFoundError(ConfigurationError):
    pass


class MetadataError(ReleaseError):
    pass


class CommandError(ReleaseError):
    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Command failed: {stderr.strip() or f'exit status {returncode}'}")


class SignatureParseError(ReleaseError):
    def __init__(self, message: str, output: str = ""):
        self.output = output
        super().__init__(message)


class InvalidTransitionError(ReleaseError):
    pass
