"""Build collaborators: toolchain invocation and binary diffs."""

from .bindiff import BinaryDiffer, ExternalDiffTool
from .errors import BuildFailed, DiffToolError, OutputMissing, ToolchainError
from .invoker import BuildInvoker, BuildOutput, FlutterBuildInvoker, read_pubspec_version

__all__ = [
    "BinaryDiffer",
    "BuildFailed",
    "BuildInvoker",
    "BuildOutput",
    "DiffToolError",
    "ExternalDiffTool",
    "FlutterBuildInvoker",
    "OutputMissing",
    "ToolchainError",
    "read_pubspec_version",
]
