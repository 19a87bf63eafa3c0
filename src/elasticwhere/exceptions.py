"""Custom exceptions for the elasticwhere compiler.

Every error raised while compiling a where-tree or an options map derives from
`ElasticWhereError`. None of them are recovered inside the compiler: they are
meant to reach the caller of the request builders unchanged.
"""

from typing import Any, Dict


# Base exception
class ElasticWhereError(Exception):
    """Base exception for all elasticwhere errors.

    Attributes:
        message: Error message
        details: Additional error context as key-value pairs
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        """Initialize exception with message and additional details.

        Args:
            message: Human-readable error message
            **kwargs: Additional context (e.g., field, operator, option)
        """
        self.message = message
        self.details: Dict[str, Any] = kwargs
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.details:
            return self.message

        details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        if self.message:
            return f"{self.message} ({details_str})"
        return details_str

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# Where-tree compilation exceptions
class QueryCompileError(ElasticWhereError):
    """Raised when a where-tree cannot be compiled into a query document."""


class UnsupportedOperatorError(QueryCompileError):
    """Raised when a condition uses an operator outside the supported set.

    Example:
        >>> raise UnsupportedOperatorError("Invalid operator provided for condition", operator="eq", field="age")
    """


class MalformedConditionError(QueryCompileError):
    """Raised when a condition or tree node is missing required structure.

    Example:
        >>> raise MalformedConditionError("between requires two values", field="age", operator="between")
    """


# Parameter exceptions
class ParameterError(ElasticWhereError):
    """Raised when request parameters are invalid."""


class UnrecognizedOptionError(ParameterError):
    """Raised when an options map contains an unknown key.

    Example:
        >>> raise UnrecognizedOptionError("Unexpected option", option="offset")
    """


class InvalidOptionError(ParameterError):
    """Raised when a known option carries a value of the wrong shape.

    Example:
        >>> raise InvalidOptionError("Invalid option value", option="limit", value="ten")
    """


class MissingKeywordFieldError(ParameterError):
    """Raised when `exact` targets a field with no keyword mapping.

    Example:
        >>> raise MissingKeywordFieldError("Field is not a keyword field", field="title", operator="exact")
    """


# Configuration exceptions
class ConfigurationError(ElasticWhereError):
    """Raised when compiler configuration is invalid or missing."""


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration input cannot be used.

    Example:
        >>> raise InvalidConfigError("Index mapping has no properties", index="books")
    """
