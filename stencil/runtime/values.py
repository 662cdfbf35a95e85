"""
Модель значений, доступных шаблону.

Значение это закрытое размеченное объединение из четырех вариантов:
Scalar, Sequence, Structure и Absent. Рендерер и резолвер путей
разбирают варианты по ValueKind, а не по типам прикладных объектов.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

ScalarData = Union[str, int, float, bool]


class ValueKind(Enum):
    """Варианты значения."""
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    STRUCTURE = "structure"
    ABSENT = "absent"


class Value(ABC):
    """Базовый абстрактный класс для всех значений."""

    @abstractmethod
    def get_kind(self) -> ValueKind:
        """Возвращает вариант значения."""
        pass

    @abstractmethod
    def is_truthy(self) -> bool:
        """
        Истинность значения для {{ if }}.

        Ложны: Absent, булево False, пустые Sequence и Structure.
        Все остальное истинно, включая 0 и пустую строку.
        """
        pass

    @abstractmethod
    def to_python(self) -> Any:
        """Преобразует значение обратно в обычные данные Python."""
        pass


@dataclass(frozen=True, eq=False)
class Scalar(Value):
    """
    Скалярное значение: строка, число или булево.

    Равенство учитывает тип данных: Scalar(True) не равен Scalar(1),
    а Scalar(1.0) не равен Scalar(1).
    """
    data: ScalarData

    def __post_init__(self):
        if not isinstance(self.data, (str, int, float, bool)):
            raise TypeError(f"Scalar data must be str, int, float or bool, got {type(self.data).__name__}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Scalar):
            return NotImplemented
        return type(self.data) is type(other.data) and self.data == other.data

    def __hash__(self) -> int:
        return hash((type(self.data), self.data))

    def get_kind(self) -> ValueKind:
        return ValueKind.SCALAR

    def is_truthy(self) -> bool:
        return self.data is not False

    def to_python(self) -> Any:
        return self.data


@dataclass(frozen=True)
class Sequence(Value):
    """Упорядоченный список значений."""
    items: Tuple[Value, ...] = ()

    def __post_init__(self):
        items = tuple(self.items)
        for item in items:
            if not isinstance(item, Value):
                raise TypeError(f"Sequence items must be Value, got {type(item).__name__}")
        object.__setattr__(self, "items", items)

    def get_kind(self) -> ValueKind:
        return ValueKind.SEQUENCE

    def is_truthy(self) -> bool:
        return bool(self.items)

    def to_python(self) -> Any:
        return [item.to_python() for item in self.items]

    def get(self, index: int) -> Optional[Value]:
        """Элемент по неотрицательному индексу или None."""
        if 0 <= index < len(self.items):
            return self.items[index]
        return None

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Structure(Value):
    """Отображение имен полей в значения. Порядок полей сохраняется."""
    fields: Mapping[str, Value] = field(default_factory=dict)

    def __post_init__(self):
        # Собственная копия, чтобы внешний словарь не менял значение
        fields = dict(self.fields)
        for name, item in fields.items():
            if not isinstance(name, str):
                raise TypeError(f"Structure field names must be str, got {type(name).__name__}")
            if not isinstance(item, Value):
                raise TypeError(f"Structure field '{name}' must be Value, got {type(item).__name__}")
        object.__setattr__(self, "fields", fields)

    def __hash__(self) -> int:
        return hash(tuple(self.fields.items()))

    def get_kind(self) -> ValueKind:
        return ValueKind.STRUCTURE

    def is_truthy(self) -> bool:
        return bool(self.fields)

    def to_python(self) -> Any:
        return {name: value.to_python() for name, value in self.fields.items()}

    def get(self, name: str) -> Optional[Value]:
        """Значение поля или None, если поля нет."""
        return self.fields.get(name)

    def __len__(self) -> int:
        return len(self.fields)


class _AbsentType(Value):
    """
    Явный маркер отсутствующего значения.

    Отличается от пустой строки и пустых коллекций.
    """

    _instance: Optional["_AbsentType"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def get_kind(self) -> ValueKind:
        return ValueKind.ABSENT

    def is_truthy(self) -> bool:
        return False

    def to_python(self) -> Any:
        return None

    def __repr__(self) -> str:
        return "Absent"

    def __reduce__(self):
        return (_AbsentType, ())


Absent = _AbsentType()


def to_value(obj: Any) -> Value:
    """
    Преобразует обычные данные Python в модель значений.

    - Value возвращается как есть
    - None -> Absent
    - str, int, float, bool -> Scalar
    - Mapping -> Structure (ключи приводятся к str)
    - list и tuple -> Sequence

    Raises:
        TypeError: Для объектов, которые нельзя представить значением
    """
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return Absent
    if isinstance(obj, (str, int, float, bool)):
        return Scalar(obj)
    if isinstance(obj, Mapping):
        fields: Dict[str, Value] = {str(key): to_value(item) for key, item in obj.items()}
        return Structure(fields)
    if isinstance(obj, (list, tuple)):
        return Sequence(tuple(to_value(item) for item in obj))
    raise TypeError(f"Cannot convert {type(obj).__name__} to a template value")


__all__ = [
    "ValueKind",
    "Value",
    "Scalar",
    "Sequence",
    "Structure",
    "Absent",
    "to_value",
]
