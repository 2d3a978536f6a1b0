"""Fluent builder base class for method chaining."""

from typing import Generic, TypeVar

T = TypeVar("T")


class FluentBuilder(Generic[T]):
    """
    Base class for fluent builders that return self for method chaining.

    Example usage:
        class StepBuilder(FluentBuilder["StepBuilder"]):
            def __init__(self):
                super().__init__()
                self._command = []

            def command(self, *argv: str) -> "StepBuilder":
                self._check_not_built()
                self._command = list(argv)
                return self

            def build(self) -> StepSettings:
                self._mark_built()
                return StepSettings(command=self._command)
    """

    def __init__(self) -> None:
        self._built = False

    def _check_not_built(self) -> None:
        """Raise an error if build() has already been called."""
        if self._built:
            raise RuntimeError("Builder has already been used to build an object")

    def _mark_built(self) -> None:
        """Mark this builder as having been used."""
        self._built = True
