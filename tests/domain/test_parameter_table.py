from __future__ import annotations

import logging

import pytest

from ots_scenario.codec.units import Dimension, unit_for
from ots_scenario.domain.distributions import (
    BernoulliI,
    DiscreteDistributionSpec,
    DistributionSpec,
    Normal,
    UnitDistribution,
)
from ots_scenario.domain.parameters import (
    Correlation,
    ParameterKind,
    ParameterTable,
    ParamRef,
    TypedParameter,
)
from ots_scenario.utils.errors import (
    DomainViolationError,
    InvalidExpressionSyntaxError,
    SchemaError,
    UnknownUnitError,
)


def test_kind_metadata():
    assert ParameterKind.LENGTH_DIST.is_distribution
    assert ParameterKind.LENGTH_DIST.dimension is Dimension.LENGTH
    assert ParameterKind.LENGTH_DIST.unit_attribute == "LengthUnit"
    assert ParameterKind.LINEAR_DENSITY_DIST.unit_attribute == "LinearDensityUnit"
    assert ParameterKind.DOUBLE_DIST.unit_attribute is None
    assert ParameterKind.FRACTION.dimension is None


def test_scalar_parameters_are_parsed_through_codec():
    table = ParameterTable()
    table.add_parameter("tMax", ParameterKind.DURATION, "1.2 s")
    table.add_parameter("fSpeed", ParameterKind.FRACTION, "0.9")
    table.add_parameter("lc", ParameterKind.BOOLEAN, "true")
    table.add_parameter("model", ParameterKind.CLASS, "org.example.Idm")

    assert table.get("tMax").value.si == pytest.approx(1.2)
    assert table.get("fSpeed").value == 0.9
    assert table.get("lc").value is True
    assert [p.id for p in table.parameters] == ["tMax", "fSpeed", "lc", "model"]


def test_scalar_parameter_domain_and_unit_errors():
    table = ParameterTable()
    with pytest.raises(DomainViolationError):
        table.add_parameter("f", ParameterKind.FRACTION, "1.5")
    with pytest.raises(UnknownUnitError):
        table.add_parameter("a", ParameterKind.ACCELERATION, "1.0 m/s")
    assert len(table) == 0


def test_distribution_parameter_wraps_unit():
    table = ParameterTable()
    spec = DistributionSpec.of(Normal(4.0, 0.5))
    param = table.add_distribution("length", ParameterKind.LENGTH_DIST, spec, unit_for(Dimension.LENGTH, "m"))
    assert param.value == UnitDistribution(spec, unit_for(Dimension.LENGTH, "m"))


def test_distribution_parameter_checks_kind_family_and_unit():
    table = ParameterTable()
    spec = DistributionSpec.of(Normal(4.0, 0.5))
    with pytest.raises(SchemaError):
        table.add_distribution("x", ParameterKind.LENGTH, spec)
    with pytest.raises(SchemaError):
        table.add_distribution("x", ParameterKind.LENGTH_DIST, spec, unit_for(Dimension.SPEED, "m/s"))
    with pytest.raises(SchemaError):
        table.add_distribution("x", ParameterKind.INTEGER_DIST, spec)
    with pytest.raises(SchemaError):
        table.add_parameter("x", ParameterKind.DOUBLE_DIST, "1.0")

    discrete = DiscreteDistributionSpec.of(BernoulliI(0.5))
    param = table.add_distribution("n", ParameterKind.INTEGER_DIST, discrete)
    assert param.value is discrete
    assert table.add_distribution("d", ParameterKind.DOUBLE_DIST, spec).value is spec


def test_correlation_guard():
    table = ParameterTable()
    with pytest.raises(InvalidExpressionSyntaxError):
        table.add_correlation(ParamRef("a"), ParamRef("b"), "{x}")
    with pytest.raises(InvalidExpressionSyntaxError):
        table.add_correlation(None, ParamRef("b"), "")
    corr = table.add_correlation(None, ParamRef("b", ParameterKind.LENGTH), "x*2")
    assert corr == Correlation(None, ParamRef("b", ParameterKind.LENGTH), "x*2")
    assert table.correlations == [corr]


def test_param_ref_rejects_non_correlatable_kind():
    with pytest.raises(SchemaError):
        ParamRef("b", ParameterKind.BOOLEAN)
    with pytest.raises(SchemaError):
        ParamRef("")


def test_entries_keep_document_order():
    table = ParameterTable()
    table.add_parameter("a", ParameterKind.DOUBLE, "1")
    corr = table.add_correlation(ParamRef("a"), ParamRef("b"), "x")
    table.add_parameter("b", ParameterKind.DOUBLE, "2")
    kinds = [type(entry) for entry in table.entries]
    assert kinds == [TypedParameter, Correlation, TypedParameter]
    assert table.entries[1] is corr


def test_duplicate_ids_last_write_wins(caplog):
    table = ParameterTable()
    table.add_parameter("a", ParameterKind.DOUBLE, "1")
    table.add_parameter("a", ParameterKind.DOUBLE, "2")
    assert table.duplicate_ids() == ["a"]
    with caplog.at_level(logging.WARNING, logger="ots_scenario"):
        resolved = table.resolve()
    assert resolved["a"].value == 2.0
    assert table.get("a").value == 2.0
    assert "parameter a shadows" in caplog.text


def test_input_parameters_reject_distributions_and_correlations():
    table = ParameterTable.input_parameters()
    assert table.name == "InputParameters"
    table.add_parameter("seed", ParameterKind.INTEGER, "7")
    with pytest.raises(SchemaError):
        table.add_distribution("d", ParameterKind.DOUBLE_DIST, DistributionSpec.of(Normal(0.0, 1.0)))
    with pytest.raises(SchemaError):
        table.add_correlation(None, ParamRef("seed"), "x")
