"""Typed value layer for traffic scenario documents."""
from __future__ import annotations

from .codec.lexical import format_quantity, parse_enum, parse_quantity, resolve_attribute
from .codec.units import Dimension, Quantity, Unit
from .domain.choice import Choice, ChoiceBuilder, ChoiceSequence, Identified
from .domain.distributions import DiscreteDistributionSpec, DistributionSpec, UnitDistribution
from .domain.markov import LaneBias, LaneBiases, MarkovTable
from .domain.model import Model
from .domain.network import Link, LinkBuilder
from .domain.od import OdOptions, OdOptionsItem
from .domain.parameters import Correlation, ParameterKind, ParameterTable, ParamRef
from .parser.defaults import DeclaredDefaults
from .utils.errors import CodecError, ScenarioError, SchemaError
from .utils.logging import configure_logger, get_logger

__all__ = [
    "parse_quantity",
    "format_quantity",
    "parse_enum",
    "resolve_attribute",
    "Dimension",
    "Quantity",
    "Unit",
    "Choice",
    "ChoiceBuilder",
    "ChoiceSequence",
    "Identified",
    "DistributionSpec",
    "DiscreteDistributionSpec",
    "UnitDistribution",
    "ParameterKind",
    "ParameterTable",
    "ParamRef",
    "Correlation",
    "MarkovTable",
    "LaneBias",
    "LaneBiases",
    "Link",
    "LinkBuilder",
    "OdOptions",
    "OdOptionsItem",
    "Model",
    "DeclaredDefaults",
    "ScenarioError",
    "CodecError",
    "SchemaError",
    "configure_logger",
    "get_logger",
]
