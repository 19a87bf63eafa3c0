"""Base compiler interface.

Defines the abstract contract all query-document compilers follow.
"""

from abc import ABC, abstractmethod
from typing import Any

from ...logger import Logger
from ..context import CompileContext

__all__ = ("BaseCompiler",)


class BaseCompiler(ABC):
    """Abstract base class for query-document compilers.

    Compilers are stateless; everything scoped to one request lives on the
    `CompileContext` passed to `compile`, so a single instance can be shared.
    """

    def __init__(self) -> None:
        self.logger = Logger(self.__class__.__name__)

    @abstractmethod
    def compile(self, node: Any, context: CompileContext, *args: Any, **kwargs: Any) -> Any:
        """Convert `node` into its query-document representation."""
        raise NotImplementedError
