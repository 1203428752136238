"""Probability distribution specifications.

``DistributionSpec`` is the continuous family (``ConstantDistType`` in the
scenario schema): fourteen mutually exclusive shapes, each with per-field
domain checks. ``DiscreteDistributionSpec`` is the integer family used by
``IntegerDist`` parameters. Cross-field ordering (``min <= mode <= max`` and
friends) is not checked here; :mod:`ots_scenario.checks.semantics` offers it
as a separate consumer-level check.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, Generic, Mapping, Optional, Tuple, Type, TypeVar

from ..codec.lexical import (
    format_double,
    parse_double,
    parse_integer,
)
from ..codec.predicates import ANY, FRACTION, POSITIVE, POSITIVE_INCLUSIVE, Predicate
from ..codec.units import Unit
from ..utils.errors import MissingAttributeError, SchemaError, UnknownAlternativeError
from .choice import Choice, ChoiceBuilder


@dataclass(frozen=True)
class Attr:
    """Binding of one XML attribute to one dataclass field."""

    xml: str
    field: str
    predicate: Predicate = ANY
    integer: bool = False

    def parse(self, text: str) -> Any:
        if self.integer:
            return parse_integer(text, self.predicate)
        return parse_double(text, self.predicate)

    def format(self, value: Any) -> str:
        return str(value) if self.integer else format_double(value)


class Shape:
    """Base for a single distribution shape; subclasses are frozen dataclasses."""

    TAG: ClassVar[str]
    ATTRS: ClassVar[Tuple[Attr, ...]]

    def __post_init__(self) -> None:
        for attr in self.ATTRS:
            attr.predicate.check(getattr(self, attr.field))

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, str]):
        values: Dict[str, Any] = {}
        for attr in cls.ATTRS:
            raw = attributes.get(attr.xml)
            if raw is None:
                raise MissingAttributeError(f"required attribute {attr.xml} on {cls.TAG} is missing")
            values[attr.field] = attr.parse(raw)
        return cls(**values)

    def to_attributes(self) -> Dict[str, str]:
        return {attr.xml: attr.format(getattr(self, attr.field)) for attr in self.ATTRS}

    def params(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}  # type: ignore[arg-type]


# --- continuous shapes ---------------------------------------------------------


@dataclass(frozen=True)
class Constant(Shape):
    TAG = "Constant"
    ATTRS = (Attr("C", "c"),)
    c: float


@dataclass(frozen=True)
class Exponential(Shape):
    TAG = "Exponential"
    ATTRS = (Attr("Lambda", "lambda_", POSITIVE),)
    lambda_: float


@dataclass(frozen=True)
class Triangular(Shape):
    TAG = "Triangular"
    ATTRS = (Attr("Min", "min"), Attr("Mode", "mode"), Attr("Max", "max"))
    min: float
    mode: float
    max: float


@dataclass(frozen=True)
class Normal(Shape):
    TAG = "Normal"
    ATTRS = (Attr("Mu", "mu"), Attr("Sigma", "sigma", POSITIVE_INCLUSIVE))
    mu: float
    sigma: float


@dataclass(frozen=True)
class NormalTrunc(Shape):
    TAG = "NormalTrunc"
    ATTRS = (
        Attr("Mu", "mu"),
        Attr("Sigma", "sigma", POSITIVE_INCLUSIVE),
        Attr("Min", "min"),
        Attr("Max", "max"),
    )
    mu: float
    sigma: float
    min: float
    max: float


@dataclass(frozen=True)
class Beta(Shape):
    TAG = "Beta"
    ATTRS = (Attr("Alpha1", "alpha1", POSITIVE), Attr("Alpha2", "alpha2", POSITIVE))
    alpha1: float
    alpha2: float


@dataclass(frozen=True)
class Erlang(Shape):
    TAG = "Erlang"
    ATTRS = (Attr("Mean", "mean"), Attr("K", "k", POSITIVE, integer=True))
    mean: float
    k: int


@dataclass(frozen=True)
class Gamma(Shape):
    TAG = "Gamma"
    ATTRS = (Attr("Alpha", "alpha"), Attr("Beta", "beta"))
    alpha: float
    beta: float


@dataclass(frozen=True)
class LogNormal(Shape):
    TAG = "LogNormal"
    ATTRS = (Attr("Mu", "mu"), Attr("Sigma", "sigma", POSITIVE))
    mu: float
    sigma: float


@dataclass(frozen=True)
class LogNormalTrunc(Shape):
    TAG = "LogNormalTrunc"
    ATTRS = (
        Attr("Mu", "mu"),
        Attr("Sigma", "sigma", POSITIVE),
        Attr("Min", "min"),
        Attr("Max", "max"),
    )
    mu: float
    sigma: float
    min: float
    max: float


@dataclass(frozen=True)
class Pearson5(Shape):
    TAG = "Pearson5"
    ATTRS = (Attr("Alpha", "alpha", POSITIVE), Attr("Beta", "beta", POSITIVE))
    alpha: float
    beta: float


@dataclass(frozen=True)
class Pearson6(Shape):
    TAG = "Pearson6"
    ATTRS = (
        Attr("Alpha1", "alpha1", POSITIVE),
        Attr("Alpha2", "alpha2", POSITIVE),
        Attr("Beta", "beta", POSITIVE),
    )
    alpha1: float
    alpha2: float
    beta: float


@dataclass(frozen=True)
class Uniform(Shape):
    TAG = "Uniform"
    ATTRS = (Attr("Min", "min"), Attr("Max", "max"))
    min: float
    max: float


@dataclass(frozen=True)
class Weibull(Shape):
    TAG = "Weibull"
    ATTRS = (Attr("Alpha", "alpha", POSITIVE), Attr("Beta", "beta", POSITIVE))
    alpha: float
    beta: float


CONTINUOUS_SHAPES: Dict[str, Type[Shape]] = {
    cls.TAG: cls
    for cls in (
        Constant,
        Exponential,
        Triangular,
        Normal,
        NormalTrunc,
        Beta,
        Erlang,
        Gamma,
        LogNormal,
        LogNormalTrunc,
        Pearson5,
        Pearson6,
        Uniform,
        Weibull,
    )
}


# --- discrete shapes -----------------------------------------------------------


@dataclass(frozen=True)
class DiscreteConstant(Shape):
    TAG = "Constant"
    ATTRS = (Attr("C", "c", integer=True),)
    c: int


@dataclass(frozen=True)
class BernoulliI(Shape):
    TAG = "BernoulliI"
    ATTRS = (Attr("P", "p", FRACTION),)
    p: float


@dataclass(frozen=True)
class Binomial(Shape):
    TAG = "Binomial"
    ATTRS = (Attr("N", "n", POSITIVE, integer=True), Attr("P", "p", FRACTION))
    n: int
    p: float


@dataclass(frozen=True)
class DiscreteUniform(Shape):
    TAG = "Uniform"
    ATTRS = (Attr("Min", "min", integer=True), Attr("Max", "max", integer=True))
    min: int
    max: int


@dataclass(frozen=True)
class Geometric(Shape):
    TAG = "Geometric"
    ATTRS = (Attr("P", "p", FRACTION),)
    p: float


@dataclass(frozen=True)
class NegBinomial(Shape):
    TAG = "NegBinomial"
    ATTRS = (Attr("N", "n", POSITIVE, integer=True), Attr("P", "p", FRACTION))
    n: int
    p: float


@dataclass(frozen=True)
class Poisson(Shape):
    TAG = "Poisson"
    ATTRS = (Attr("Lambda", "lambda_", POSITIVE),)
    lambda_: float


DISCRETE_SHAPES: Dict[str, Type[Shape]] = {
    cls.TAG: cls
    for cls in (
        DiscreteConstant,
        BernoulliI,
        Binomial,
        DiscreteUniform,
        Geometric,
        NegBinomial,
        Poisson,
    )
}

RANDOM_STREAM_TAG = "RandomStream"


# --- specifications ------------------------------------------------------------

S = TypeVar("S", bound="_SpecBase")


@dataclass(frozen=True)
class _SpecBase:
    GROUP: ClassVar[str]
    SHAPES: ClassVar[Dict[str, Type[Shape]]]

    choice: Choice[Shape]
    random_stream: Optional[str] = None

    def __post_init__(self) -> None:
        expected = self.SHAPES.get(self.choice.tag)
        if expected is None or not isinstance(self.choice.value, expected):
            raise SchemaError(
                f"{self.GROUP}: alternative {self.choice.tag} does not hold a {self.choice.tag} shape"
            )

    @property
    def tag(self) -> str:
        return self.choice.tag

    @property
    def shape(self) -> Shape:
        return self.choice.value

    def active_variant(self) -> str:
        return self.choice.active_variant()

    @classmethod
    def of(cls: Type[S], shape: Shape, random_stream: Optional[str] = None) -> S:
        return cls.builder().set(shape).random_stream(random_stream).build()

    @classmethod
    def builder(cls: Type[S]) -> "DistributionBuilder[S]":
        return DistributionBuilder(cls)


@dataclass(frozen=True)
class DistributionSpec(_SpecBase):
    GROUP = "ConstantDistType"
    SHAPES = CONTINUOUS_SHAPES


@dataclass(frozen=True)
class DiscreteDistributionSpec(_SpecBase):
    GROUP = "DiscreteDistType"
    SHAPES = DISCRETE_SHAPES


class DistributionBuilder(Generic[S]):
    """Collects shape alternatives and the optional random stream reference."""

    def __init__(self, spec_cls: Type[S]) -> None:
        self._spec_cls = spec_cls
        self._choice: ChoiceBuilder[Shape] = ChoiceBuilder(spec_cls.GROUP, tuple(spec_cls.SHAPES))
        self._random_stream: Optional[str] = None

    def set(self, shape: Shape) -> "DistributionBuilder[S]":
        self._choice.set(shape.TAG, shape)
        return self

    def set_attributes(self, tag: str, attributes: Mapping[str, str]) -> "DistributionBuilder[S]":
        shape_cls = self._spec_cls.SHAPES.get(tag)
        if shape_cls is None:
            raise UnknownAlternativeError(
                f"{tag!r} is not an alternative of choice {self._spec_cls.GROUP} "
                f"(expected one of: {', '.join(self._spec_cls.SHAPES)})"
            )
        self._choice.set(tag, shape_cls.from_attributes(attributes))
        return self

    def random_stream(self, ref: Optional[str]) -> "DistributionBuilder[S]":
        self._random_stream = ref
        return self

    def build(self) -> S:
        choice = self._choice.build_required()
        return self._spec_cls(choice=choice, random_stream=self._random_stream)


@dataclass(frozen=True)
class UnitDistribution:
    """A continuous distribution whose parameters are expressed in ``unit``."""

    distribution: DistributionSpec
    unit: Unit


__all__ = [
    "Attr",
    "Shape",
    "Constant",
    "Exponential",
    "Triangular",
    "Normal",
    "NormalTrunc",
    "Beta",
    "Erlang",
    "Gamma",
    "LogNormal",
    "LogNormalTrunc",
    "Pearson5",
    "Pearson6",
    "Uniform",
    "Weibull",
    "DiscreteConstant",
    "BernoulliI",
    "Binomial",
    "DiscreteUniform",
    "Geometric",
    "NegBinomial",
    "Poisson",
    "CONTINUOUS_SHAPES",
    "DISCRETE_SHAPES",
    "RANDOM_STREAM_TAG",
    "DistributionSpec",
    "DiscreteDistributionSpec",
    "DistributionBuilder",
    "UnitDistribution",
]
