from __future__ import annotations

import pytest

from ots_scenario.domain.choice import Choice, ChoiceBuilder, ChoiceSequence, Identified
from ots_scenario.utils.errors import (
    MissingRequiredChoiceError,
    MultipleChoiceAlternativesError,
    SchemaError,
    UnknownAlternativeError,
)

ALTERNATIVES = ("Straight", "Arc", "Polyline")


def test_builder_yields_single_alternative():
    choice = ChoiceBuilder("Geometry", ALTERNATIVES).set("Arc", 10.0).build()
    assert choice == Choice("Geometry", "Arc", 10.0)
    assert choice.active_variant() == "Arc"
    assert choice.is_("Arc")
    assert not choice.is_("Straight")


def test_builder_rejects_two_alternatives():
    builder = ChoiceBuilder("Geometry", ALTERNATIVES).set("Straight", None).set("Arc", 10.0)
    with pytest.raises(MultipleChoiceAlternativesError) as exc_info:
        builder.build()
    assert exc_info.value.tags == ("Straight", "Arc")


def test_builder_rejects_same_alternative_twice():
    builder = ChoiceBuilder("Geometry", ALTERNATIVES).set("Arc", 1.0).set("Arc", 2.0)
    with pytest.raises(MultipleChoiceAlternativesError):
        builder.build()


def test_required_choice_must_be_set():
    with pytest.raises(MissingRequiredChoiceError) as exc_info:
        ChoiceBuilder("Geometry", ALTERNATIVES).build()
    assert exc_info.value.group == "Geometry"


def test_optional_choice_builds_none():
    builder = ChoiceBuilder("Flattener", ("NumSegments",), required=False)
    assert builder.is_empty()
    assert builder.build() is None


def test_build_required_rejects_empty_optional_group():
    builder = ChoiceBuilder("Flattener", ("NumSegments",), required=False)
    with pytest.raises(MissingRequiredChoiceError):
        builder.build_required()
    assert builder.set("NumSegments", 8).build_required() == Choice("Flattener", "NumSegments", 8)


def test_unknown_alternative_is_schema_error():
    with pytest.raises(UnknownAlternativeError):
        ChoiceBuilder("Geometry", ALTERNATIVES).set("Spline", None)
    assert issubclass(UnknownAlternativeError, SchemaError)


def test_sequence_keeps_document_order():
    seq = ChoiceSequence("RoadLayout", ("Stripe", "Lane"))
    seq.append("Stripe", "s1")
    seq.append("Lane", "l1")
    seq.append("Stripe", "s2")
    assert seq.tags() == ["Stripe", "Lane", "Stripe"]
    assert seq.of("Stripe") == ["s1", "s2"]
    assert len(seq) == 3
    assert seq[1].value == "l1"
    assert [entry.value for entry in seq] == ["s1", "l1", "s2"]


def test_sequence_rejects_unknown_tag():
    seq = ChoiceSequence("RoadLayout", ("Stripe", "Lane"))
    with pytest.raises(UnknownAlternativeError):
        seq.append("Curb", None)


def test_identified_composes_id():
    record = Identified("layout1", {"lanes": 2})
    assert record.id == "layout1"
    assert record.inner == {"lanes": 2}
