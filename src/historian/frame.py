"""Column-oriented data frames returned by the historian engine.

A ``Frame`` is an ordered list of named ``Field`` columns whose cells are
dynamically typed.  Callers look columns up by name and read cells through
``Frame.typed_at``, which checks the cell's type at read time instead of
trusting a declared column type.

The JSON codec follows the Grafana data frame shape::

    {"schema": {"name": "...", "fields": [{"name": "Time", "type": "time"}, ...]},
     "data": {"values": [[...], [...]], "nanos": [[...], null]}}

Time columns travel as epoch milliseconds, with an optional per-cell
``nanos`` remainder, and decode into ``Timestamp`` cells that keep the full
nanosecond value.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

T = TypeVar("T")

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

_TIME_TYPE = "time"


class CellTypeError(TypeError):
    """A cell does not hold a value of the expected type."""

    def __init__(self, field_name: str, row: int, expected: type, actual: object) -> None:
        super().__init__(
            f"field {field_name!r} row {row}: expected {expected.__name__}, got {type(actual).__name__}"
        )
        self.field_name = field_name
        self.row = row


class FrameDecodeError(ValueError):
    """A JSON payload is not a valid data frame."""


@dataclass(frozen=True, order=True)
class Timestamp:
    """An instant with nanosecond precision; the cell type of time columns."""

    ns: int  # nanoseconds since the Unix epoch

    @classmethod
    def from_datetime(cls, value: datetime) -> "Timestamp":
        return cls(unix_nanoseconds(value))


@dataclass
class Field:
    """A named column of dynamically typed values."""

    name: str
    values: list[Any] = field(default_factory=list)
    type: str = ""  # wire type hint ("time", "string", "number", ...); informational only

    def __len__(self) -> int:
        return len(self.values)


@dataclass
class Frame:
    """An ordered set of equally long columns."""

    name: str = ""
    fields: list[Field] = field(default_factory=list)

    def rows(self) -> int:
        """Number of rows, taken from the first column (0 when there are none)."""
        if not self.fields:
            return 0
        return len(self.fields[0])

    def field_by_name(self, name: str) -> tuple[Field | None, int]:
        """Return the first column named ``name`` and its index, or ``(None, -1)``."""
        for idx, column in enumerate(self.fields):
            if column.name == name:
                return column, idx
        return None, -1

    def at(self, field_index: int, row: int) -> Any:
        """Return the raw cell at ``(field_index, row)``."""
        return self.fields[field_index].values[row]

    def typed_at(self, field_index: int, row: int, expected: type[T]) -> T:
        """Return the cell at ``(field_index, row)`` if it is an instance of ``expected``.

        Raises ``CellTypeError`` otherwise, including for a short column.
        ``bool`` cells never satisfy a non-bool type such as ``int``.
        """
        column = self.fields[field_index]
        cell = column.values[row] if row < len(column.values) else None
        if not isinstance(cell, expected) or (isinstance(cell, bool) and expected is not bool):
            raise CellTypeError(column.name, row, expected, cell)
        return cell


# --- Time conversion ---


def unix_nanoseconds(value: datetime) -> int:
    """Exact nanoseconds since the epoch; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return ((value - EPOCH) // timedelta(microseconds=1)) * 1000


def _from_epoch_millis(millis: int | float, nanos: int = 0) -> Timestamp:
    whole = millis * 1_000_000 if isinstance(millis, int) else round(millis * 1_000_000)
    return Timestamp(whole + nanos)


def _to_epoch_millis(value: Timestamp | datetime) -> tuple[int, int]:
    if isinstance(value, datetime):
        value = Timestamp.from_datetime(value)
    return value.ns // 1_000_000, value.ns % 1_000_000


# --- JSON codec ---


def frame_from_json(payload: object) -> Frame:
    """Decode a Grafana data frame JSON object into a ``Frame``."""
    if not isinstance(payload, dict):
        raise FrameDecodeError(f"data frame must be an object, got {type(payload).__name__}")

    schema = payload.get("schema") or {}
    data = payload.get("data") or {}
    if not isinstance(schema, dict) or not isinstance(data, dict):
        raise FrameDecodeError("data frame schema and data must be objects")

    schema_fields = schema.get("fields") or []
    values = data.get("values") or []
    nanos = data.get("nanos") or []
    if not isinstance(schema_fields, list) or not isinstance(values, list):
        raise FrameDecodeError("data frame fields and values must be arrays")
    if values and len(values) != len(schema_fields):
        raise FrameDecodeError(
            f"data frame has {len(schema_fields)} fields but {len(values)} value columns"
        )

    fields: list[Field] = []
    for idx, field_schema in enumerate(schema_fields):
        if not isinstance(field_schema, dict):
            raise FrameDecodeError(f"field {idx} schema must be an object")
        name = str(field_schema.get("name", ""))
        wire_type = str(field_schema.get("type", ""))
        column = values[idx] if values else []
        if not isinstance(column, list):
            raise FrameDecodeError(f"field {name!r} values must be an array")

        if wire_type == _TIME_TYPE:
            column_nanos = nanos[idx] if idx < len(nanos) and isinstance(nanos[idx], list) else []
            column = [_decode_time_cell(name, row, cell, column_nanos) for row, cell in enumerate(column)]
        fields.append(Field(name=name, values=list(column), type=wire_type))

    return Frame(name=str(schema.get("name", "")), fields=fields)


def _decode_time_cell(name: str, row: int, cell: object, column_nanos: list[Any]) -> Timestamp | None:
    if cell is None:
        return None
    if isinstance(cell, bool) or not isinstance(cell, int | float):
        raise FrameDecodeError(f"time field {name!r} row {row} is not epoch milliseconds")
    extra = column_nanos[row] if row < len(column_nanos) and isinstance(column_nanos[row], int) else 0
    return _from_epoch_millis(cell, extra)


def frame_to_json(frame: Frame) -> dict[str, Any]:
    """Encode a ``Frame`` as Grafana data frame JSON."""
    schema_fields: list[dict[str, str]] = []
    values: list[list[Any]] = []
    nanos: list[list[int] | None] = []

    for column in frame.fields:
        wire_type = column.type or _infer_wire_type(column.values)
        schema_fields.append({"name": column.name, "type": wire_type})
        if wire_type == _TIME_TYPE:
            millis: list[int | None] = []
            remainders: list[int] = []
            for cell in column.values:
                if isinstance(cell, Timestamp | datetime):
                    ms, rest = _to_epoch_millis(cell)
                    millis.append(ms)
                    remainders.append(rest)
                else:
                    millis.append(None)
                    remainders.append(0)
            values.append(millis)  # type: ignore[arg-type]
            nanos.append(remainders if any(remainders) else None)
        else:
            values.append(list(column.values))
            nanos.append(None)

    data: dict[str, Any] = {"values": values}
    if any(n is not None for n in nanos):
        data["nanos"] = nanos
    return {"schema": {"name": frame.name, "fields": schema_fields}, "data": data}


def _infer_wire_type(values: list[Any]) -> str:
    for cell in values:
        if cell is None:
            continue
        if isinstance(cell, Timestamp | datetime):
            return _TIME_TYPE
        if isinstance(cell, bool):
            return "boolean"
        if isinstance(cell, int | float):
            return "number"
        if isinstance(cell, str):
            return "string"
        return "other"
    return "other"
