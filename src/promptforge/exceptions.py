"""promptforge exceptions."""

from pathlib import Path


class PromptForgeError(Exception):
    """Base exception for promptforge errors."""


# =============================================================================
# Template Exceptions
# =============================================================================


class TemplateError(PromptForgeError):
    """Base exception for template rendering errors."""


class MissingVariableError(TemplateError, KeyError):
    """Raised when interpolation references an unbound variable.

    Attributes:
        variable: The name of the variable that was not bound.
    """

    def __init__(self, message: str, *, variable: str) -> None:
        """Initialize with error message and variable context.

        Args:
            message: Human-readable error message.
            variable: The unbound variable name.
        """
        super().__init__(message)
        self.variable: str = variable

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0])


class NotIterableError(TemplateError, TypeError):
    """Raised when a loop source is not a list.

    Attributes:
        variable: The loop array variable name.
    """

    def __init__(self, message: str, *, variable: str) -> None:
        """Initialize with error message and variable context."""
        super().__init__(message)
        self.variable: str = variable


class UnknownFunctionError(TemplateError):
    """Raised when a template calls a function that is not registered.

    Attributes:
        function: The function name that could not be resolved.
    """

    def __init__(self, message: str, *, function: str) -> None:
        """Initialize with error message and function context."""
        super().__init__(message)
        self.function: str = function


class TemplateSyntaxError(TemplateError, ValueError):
    """Raised when template markers are malformed or unbalanced.

    Attributes:
        position: Offset in the template source where the problem was found.
    """

    def __init__(self, message: str, *, position: int | None = None) -> None:
        """Initialize with error message and source position."""
        super().__init__(message)
        self.position: int | None = position


class ExpressionError(TemplateError):
    """Raised when a condition expression is invalid or cannot be evaluated."""

    def __init__(
        self,
        message: str,
        *,
        expression: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and expression context."""
        super().__init__(message)
        self.expression: str = expression
        self.cause: Exception | None = cause


# =============================================================================
# Inheritance Exceptions
# =============================================================================


class InheritanceError(PromptForgeError):
    """Base exception for template inheritance errors."""


class BaseTemplateNotFoundError(InheritanceError, KeyError):
    """Raised when a child references an unregistered base template.

    Attributes:
        base_name: The name of the missing base template.
    """

    def __init__(self, message: str, *, base_name: str) -> None:
        """Initialize with error message and base template context."""
        super().__init__(message)
        self.base_name: str = base_name

    def __str__(self) -> str:
        return str(self.args[0])


class AmbiguousBaseBlockWarning(UserWarning):
    """Issued when a block override names a block absent from the base."""


# =============================================================================
# Composition Exceptions
# =============================================================================


class CompositionError(PromptForgeError):
    """Base exception for template composition errors."""


class NoApplicableTemplateError(CompositionError):
    """Raised when no registered template matches the composition context.

    Attributes:
        template_count: Number of templates that were considered.
        rule_count: Number of rules that were evaluated.
    """

    def __init__(
        self,
        message: str,
        *,
        template_count: int = 0,
        rule_count: int = 0,
    ) -> None:
        """Initialize with error message and registry context."""
        super().__init__(message)
        self.template_count: int = template_count
        self.rule_count: int = rule_count


class TemplateNotFoundError(CompositionError, KeyError):
    """Raised when a composer is asked for an unregistered template.

    Attributes:
        template_name: The name that was looked up.
    """

    def __init__(self, message: str, *, template_name: str) -> None:
        """Initialize with error message and template context."""
        super().__init__(message)
        self.template_name: str = template_name

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidRuleError(CompositionError):
    """Raised when a composition rule definition fails validation.

    Attributes:
        rule_name: Name of the rule, when one could be read.
        errors: Individual validation messages.
    """

    def __init__(
        self,
        message: str,
        *,
        rule_name: str | None = None,
        errors: list[str] | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.rule_name: str | None = rule_name
        self.errors: list[str] = errors if errors is not None else []


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(PromptForgeError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration values fail validation.

    Attributes:
        source: Description of where the invalid values came from.
        errors: Individual validation messages.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        errors: list[str] | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.source: str | None = source
        self.errors: list[str] = errors if errors is not None else []
