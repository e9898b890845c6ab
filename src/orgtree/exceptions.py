"""Custom exceptions for orgtree."""


class OrgContractError(TypeError):
    """Raised when the exporter is handed a tree it cannot recognize.

    Parsing never raises for user input; malformed Org text degrades to plain
    text instead. This exception therefore always signals a programming error
    in the caller that built or edited the tree.

    Attributes:
        node: The offending object
        message: Human-readable error message
    """

    def __init__(self, node: object, message: str = "Cannot export node"):
        """Initialize OrgContractError.

        Args:
            node: The offending object
            message: Human-readable error message
        """
        self.node = node
        self.message = message
        super().__init__(f"{message}: {node!r}")


class ConfigError(ValueError):
    """Raised when an orgtree configuration file cannot be loaded."""
