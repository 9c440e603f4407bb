"""Exception types raised by the tool compilation pipeline."""


class OpenAPIToolsError(Exception):
    pass


class SpecDirectoryError(OpenAPIToolsError):
    """The OpenAPI spec directory is missing or cannot be read. Fatal at startup."""


class SpecParseError(OpenAPIToolsError):
    """A single spec file could not be parsed into a document."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse OpenAPI file {path}: {reason}")


class ToolNotFoundError(OpenAPIToolsError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class InvalidArgumentsError(OpenAPIToolsError):
    """Caller-supplied tool arguments are unusable (bad JSON, not an object, missing path value)."""
