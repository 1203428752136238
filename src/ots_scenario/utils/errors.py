"""Exception hierarchy shared across the typed value layer."""
from __future__ import annotations

from typing import Sequence


class ScenarioError(Exception):
    """Base class for all scenario value failures."""


class CodecError(ScenarioError):
    """Lexical or numeric failure while converting attribute text."""


class UnknownUnitError(CodecError):
    def __init__(self, suffix: str, dimension: str) -> None:
        super().__init__(f"unknown unit {suffix!r} for dimension {dimension}")
        self.suffix = suffix
        self.dimension = dimension


class DomainViolationError(CodecError):
    def __init__(self, predicate: object, value: float) -> None:
        super().__init__(f"value {value!r} violates domain {predicate}")
        self.predicate = predicate
        self.value = value


class MalformedNumberError(CodecError):
    pass


class UnknownTokenError(CodecError):
    pass


class SchemaError(ScenarioError):
    """Structural or referential failure in an assembled record."""


class MultipleChoiceAlternativesError(SchemaError):
    def __init__(self, group: str, tags: Sequence[str]) -> None:
        super().__init__(f"choice {group} accepts one alternative, got: {', '.join(tags)}")
        self.group = group
        self.tags = tuple(tags)


class MissingRequiredChoiceError(SchemaError):
    def __init__(self, group: str) -> None:
        super().__init__(f"choice {group} requires one alternative, none given")
        self.group = group


class UnknownAlternativeError(SchemaError):
    pass


class InvalidExpressionSyntaxError(SchemaError):
    def __init__(self, expression: str) -> None:
        super().__init__(f"expression must be non-empty and contain no '{{' or '}}': {expression!r}")
        self.expression = expression


class UnknownParentError(SchemaError):
    def __init__(self, gtu_type: str, parent: str) -> None:
        super().__init__(f"markov state {gtu_type} refers to undefined parent {parent}")
        self.gtu_type = gtu_type
        self.parent = parent


class ParentCycleError(SchemaError):
    def __init__(self, path: Sequence[str]) -> None:
        super().__init__(f"markov parent cycle: {' -> '.join(path)}")
        self.path = tuple(path)


class DuplicateStateError(SchemaError):
    def __init__(self, gtu_type: str) -> None:
        super().__init__(f"markov state {gtu_type} already defined")
        self.gtu_type = gtu_type


class CorrelationRangeError(SchemaError):
    def __init__(self, gtu_type: str, correlation: float, reason: str) -> None:
        super().__init__(f"markov state {gtu_type}: correlation {correlation!r} {reason}")
        self.gtu_type = gtu_type
        self.correlation = correlation


class MissingAttributeError(SchemaError):
    pass


class DefaultsFileNotFound(ScenarioError):
    pass


class SchemaValidationError(ScenarioError):
    pass


class SemanticValidationError(ScenarioError):
    def __init__(self, message: str, findings: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.findings = list(findings)
