"""Exception hierarchy.

Each request-level failure carries the process exit code the CLI reports
for it. Soft failures (unresolved calls, unparsable files) are never raised;
they are logged and skipped where they occur.
"""


class CallChainError(Exception):
    """Base class for request-level failures."""

    exit_code = 100


class InvalidArgumentsError(CallChainError):
    """A request argument is malformed or points nowhere."""

    exit_code = 1


class ConfigError(InvalidArgumentsError):
    """The configuration file is unreadable or has invalid values."""


class NoSourceFilesError(CallChainError):
    """The source root contains no analyzable files."""

    exit_code = 2

    def __init__(self, root):
        super().__init__(f"No Java files found in {root}")
        self.root = root


class TargetNotFoundError(CallChainError):
    """No method declaration in the class contains the requested line."""

    exit_code = 3

    def __init__(self, class_name: str, line: int):
        super().__init__(f"No method found in class {class_name} containing line {line}")
        self.class_name = class_name
        self.line = line


class UnresolvedTargetError(CallChainError):
    """The target declaration was found but has no canonical signature."""

    exit_code = 4

    def __init__(self, declaration: str, reason: str):
        super().__init__(f"Unable to resolve target method {declaration}: {reason}")
        self.declaration = declaration
        self.reason = reason
