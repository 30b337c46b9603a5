"""urltool.errors
Every failure urltool reports. The CLI prints str(err) after "*** ".
"""

from typing import Self


class URLToolError(Exception):
    """Base class. Subclasses set `label`, which prefixes the message."""

    label: str = "Error"

    def __init__(self: Self, detail: str) -> None:
        super().__init__(detail)
        self.detail: str = detail

    def __str__(self: Self) -> str:
        return f"{self.label}: {self.detail}"


class URLSyntaxError(URLToolError, ValueError):
    label = "Syntax error"


class InvalidArgument(URLToolError, ValueError):
    label = "Invalid argument"


class NoPath(InvalidArgument):
    pass


class UnbalancedArguments(InvalidArgument):
    pass


class MissingAuthority(URLToolError, ValueError):
    label = "Missing authority"


class InvalidScheme(URLToolError, ValueError):
    label = "Invalid scheme"


class InvalidHost(URLToolError, ValueError):
    label = "Invalid host"


class IOFailure(URLToolError, OSError):
    label = "I/O failure"


class TemplateError(URLToolError):
    label = "Template error"
