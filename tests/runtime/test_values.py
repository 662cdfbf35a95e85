"""Тесты модели значений."""

import pytest

from stencil.runtime.values import (
    Absent, Scalar, Sequence, Structure, ValueKind, to_value,
)


class TestValueKinds:

    def test_kinds(self):
        assert Scalar("x").get_kind() == ValueKind.SCALAR
        assert Sequence(()).get_kind() == ValueKind.SEQUENCE
        assert Structure({}).get_kind() == ValueKind.STRUCTURE
        assert Absent.get_kind() == ValueKind.ABSENT

    def test_scalar_rejects_composites(self):
        with pytest.raises(TypeError, match="Scalar data must be"):
            Scalar([1, 2])

    def test_absent_is_singleton(self):
        assert type(Absent)() is Absent
        assert repr(Absent) == "Absent"


class TestTruthiness:
    """Истинность значений для {{ if }}."""

    @pytest.mark.parametrize("value", [
        Absent,
        Scalar(False),
        Sequence(()),
        Structure({}),
    ])
    def test_falsy(self, value):
        assert not value.is_truthy()

    @pytest.mark.parametrize("value", [
        Scalar(True),
        Scalar(0),
        Scalar(""),
        Scalar(0.0),
        Sequence((Absent,)),
        Structure({"a": Absent}),
    ])
    def test_truthy(self, value):
        """0 и пустая строка истинны: ложны только Absent, False и пустые коллекции."""
        assert value.is_truthy()


class TestToValue:

    def test_plain_data(self):
        value = to_value({"user": {"name": "Ann", "tags": ["a", "b"]}, "n": 3, "none": None})

        assert value.get_kind() == ValueKind.STRUCTURE
        user = value.get("user")
        assert user.get("name") == Scalar("Ann")
        assert user.get("tags") == Sequence((Scalar("a"), Scalar("b")))
        assert value.get("n") == Scalar(3)
        assert value.get("none") is Absent

    def test_value_passthrough(self):
        seq = Sequence((Scalar(1),))

        assert to_value(seq) is seq

    def test_keys_become_strings(self):
        value = to_value({1: "one"})

        assert value.get("1") == Scalar("one")

    def test_tuple_becomes_sequence(self):
        assert to_value((1, 2)) == Sequence((Scalar(1), Scalar(2)))

    def test_unsupported_type(self):
        with pytest.raises(TypeError, match="Cannot convert object to a template value"):
            to_value(object())

    def test_round_trip_to_python(self):
        data = {"a": [1, "x", True], "b": {"c": 1.5}}

        assert to_value(data).to_python() == data

    def test_structure_preserves_field_order(self):
        value = to_value({"z": 1, "a": 2, "m": 3})

        assert list(value.fields) == ["z", "a", "m"]

    def test_structure_copies_fields(self):
        fields = {"a": Scalar(1)}
        value = Structure(fields)
        fields["b"] = Scalar(2)

        assert value.get("b") is None
        assert len(value) == 1

    def test_sequence_accepts_list(self):
        value = Sequence([Scalar(1), Scalar(2)])

        assert value.items == (Scalar(1), Scalar(2))
        assert value.get(1) == Scalar(2)
        assert value.get(2) is None
        assert value.get(-1) is None


class TestValueValidation:
    """Составные значения принимают только значения модели."""

    def test_sequence_rejects_plain_items(self):
        with pytest.raises(TypeError, match="Sequence items must be Value, got int"):
            Sequence([1, 2])

    def test_structure_rejects_plain_fields(self):
        with pytest.raises(TypeError, match="Structure field 'a' must be Value, got str"):
            Structure({"a": "text"})

    def test_structure_rejects_non_string_names(self):
        with pytest.raises(TypeError, match="Structure field names must be str"):
            Structure({1: Scalar(1)})

    def test_absent_is_valid_child(self):
        assert Sequence([Absent]).get(0) is Absent
        assert Structure({"a": Absent}).get("a") is Absent


class TestScalarEquality:
    """Равенство скаляров учитывает тип данных."""

    def test_bool_differs_from_int(self):
        assert Scalar(True) != Scalar(1)
        assert Scalar(False) != Scalar(0)

    def test_float_differs_from_int(self):
        assert Scalar(1.0) != Scalar(1)

    def test_same_type_equal(self):
        assert Scalar(1) == Scalar(1)
        assert Scalar("a") == Scalar("a")
        assert hash(Scalar(True)) == hash(Scalar(True))

    def test_distinct_in_sets(self):
        assert len({Scalar(True), Scalar(1), Scalar(1.0)}) == 3

    def test_composites_compare_by_kind(self):
        assert to_value([True]) != to_value([1])
        assert to_value({"a": 1}) == Structure({"a": Scalar(1)})
