"""Consumer-level semantic checks over assembled records.

Nothing here runs implicitly: record construction accepts what the schema
accepts, and a consumer that wants stricter guarantees calls these checks.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Set

from ..domain.distributions import DistributionSpec, LogNormalTrunc, NormalTrunc, Triangular, Uniform
from ..domain.markov import MarkovTable
from ..domain.parameters import Correlation, ParameterTable, TypedParameter
from ..utils.errors import CorrelationRangeError, SchemaError, SemanticValidationError
from ..utils.logging import get_logger

LOG = get_logger()


def distribution_ordering_errors(spec: DistributionSpec, label: str = "") -> List[str]:
    where = f" {label}" if label else ""
    shape = spec.shape
    errors: List[str] = []
    if isinstance(shape, Triangular) and not (shape.min <= shape.mode <= shape.max):
        errors.append(
            f"[VAL] E301 Triangular requires Min <= Mode <= Max:{where} min={shape.min} mode={shape.mode} max={shape.max}"
        )
    elif isinstance(shape, Uniform) and not shape.min <= shape.max:
        errors.append(f"[VAL] E302 Uniform requires Min <= Max:{where} min={shape.min} max={shape.max}")
    elif isinstance(shape, (NormalTrunc, LogNormalTrunc)) and not shape.min <= shape.max:
        errors.append(f"[VAL] E303 {shape.TAG} requires Min <= Max:{where} min={shape.min} max={shape.max}")
    return errors


def validate_distribution_ordering(specs: Iterable[DistributionSpec]) -> None:
    errors: List[str] = []
    for idx, spec in enumerate(specs):
        errors.extend(distribution_ordering_errors(spec, f"index={idx}"))
    _report(errors, [])


def _distribution_of(param: TypedParameter) -> Optional[DistributionSpec]:
    value = param.value
    inner = getattr(value, "distribution", value)
    return inner if isinstance(inner, DistributionSpec) else None


def validate_parameters(table: ParameterTable, *, allow_duplicates: bool = True) -> None:
    """Check ordering, duplicate ids and correlation references of ``table``.

    Correlations must name parameters declared before them; duplicate ids are
    reported as W401 warnings, or as E401 errors when ``allow_duplicates`` is off.
    """
    errors: List[str] = []
    warnings: List[str] = []

    for dup in table.duplicate_ids():
        msg = f"{table.name}: duplicate parameter id={dup} (last declaration wins)"
        if allow_duplicates:
            warnings.append(f"[VAL] W401 {msg}")
        else:
            errors.append(f"[VAL] E401 {msg}")

    declared: Set[str] = set()
    for idx, entry in enumerate(table.entries):
        if isinstance(entry, TypedParameter):
            declared.add(entry.id)
            spec = _distribution_of(entry)
            if spec is not None:
                errors.extend(distribution_ordering_errors(spec, f"{table.name} id={entry.id}"))
            continue
        errors.extend(_correlation_errors(entry, declared, idx, table.name))

    _report(errors, warnings)


def _correlation_errors(corr: Correlation, declared: Set[str], idx: int, name: str) -> List[str]:
    errors: List[str] = []
    refs = [("First", corr.first), ("Then", corr.then)]
    for role, ref in refs:
        if ref is None:
            continue
        if ref.id not in declared:
            errors.append(
                f"[VAL] E402 correlation {role} refers to undeclared parameter: {name} index={idx} id={ref.id}"
            )
    if corr.first is not None and corr.first.id == corr.then.id:
        errors.append(f"[VAL] E403 correlation First and Then are the same parameter: {name} index={idx} id={corr.then.id}")
    return errors


def validate_markov(table: MarkovTable) -> None:
    errors: List[str] = []
    try:
        table.validate()
    except CorrelationRangeError as exc:
        errors.append(f"[VAL] E502 {exc}")
    except SchemaError as exc:
        errors.append(f"[VAL] E501 {exc}")
    _report(errors, [])


def _report(errors: List[str], warnings: List[str]) -> None:
    for msg in warnings:
        LOG.warning(msg)
    if errors:
        for msg in errors:
            LOG.error(msg)
        raise SemanticValidationError(f"semantic validation failed with {len(errors)} error(s)", errors)
