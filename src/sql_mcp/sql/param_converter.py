"""Parameter conversion for PostgreSQL structured inserts.

asyncpg encodes parameters in binary and requires each Python value to
match the parameter's type exactly, while tool input arrives as plain JSON:
strings, numbers, booleans, objects and arrays. This module converts those
values into the Python types asyncpg expects, using the parameter types
PostgreSQL reports for the prepared INSERT.

Conversions by parameter type:
    - text family (text, varchar, bpchar, name, citext): str(value), JSON for objects
    - date, timestamp, timestamptz, time, timetz: parsed from ISO-8601 strings
    - numeric: Decimal; integers and floats from numeric strings
    - bool: "true"/"false" style strings and 0/1
    - uuid: UUID from str
    - json, jsonb: JSON text
    - bytea: UTF-8 encoded str
    - arrays: element-wise by element type

Values of any other type are passed through unchanged.

Example:
    converter = ParamConverter()
    stmt = await conn.prepare(sql)
    params = converter.convert_params(values, stmt.get_parameters())
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

TEXT_TYPES = frozenset({"text", "varchar", "bpchar", "char", "name", "citext", "xml"})
INTEGER_TYPES = frozenset({"int2", "int4", "int8", "oid"})
FLOAT_TYPES = frozenset({"float4", "float8"})
JSON_TYPES = frozenset({"json", "jsonb"})

_TRUE_STRINGS = frozenset({"t", "true", "y", "yes", "on", "1"})
_FALSE_STRINGS = frozenset({"f", "false", "n", "no", "off", "0"})


class ParamConverter:
    """Converts JSON-shaped values to asyncpg parameter types."""

    def convert_params(self, values: Sequence[Any], param_types: Sequence[Any]) -> list[Any]:
        """Convert each value for its parameter.

        Args:
            values: Values in placeholder order
            param_types: asyncpg Type records from PreparedStatement.get_parameters()

        Returns:
            Converted values in the same order

        Raises:
            ValueError: If a value cannot be represented as its parameter type
        """
        converted = []
        for index, (value, param_type) in enumerate(zip(values, param_types, strict=True)):
            try:
                converted.append(self.convert(value, param_type.name, param_type.kind))
            except (ValueError, TypeError, InvalidOperation) as e:
                raise ValueError(
                    f"invalid value for ${index + 1} ({param_type.name}): {value!r}"
                ) from e
        return converted

    def convert(self, value: Any, type_name: str, kind: str = "scalar") -> Any:
        """Convert one value for a parameter of the named PostgreSQL type."""
        if value is None:
            return None

        if kind == "array":
            # Array type names are the element type name prefixed with "_"
            if isinstance(value, str):
                value = json.loads(value)
            if not isinstance(value, list):
                raise TypeError(f"expected a list for {type_name}")
            element = type_name[1:] if type_name.startswith("_") else type_name
            return [self.convert(item, element) for item in value]

        if type_name in JSON_TYPES:
            return self._to_json(value)
        if type_name in TEXT_TYPES:
            return self._to_text(value)
        if type_name in INTEGER_TYPES:
            return self._to_int(value)
        if type_name in FLOAT_TYPES:
            return float(value) if isinstance(value, (str, int)) else value
        if type_name == "numeric":
            return self._to_decimal(value)
        if type_name == "bool":
            return self._to_bool(value)
        if type_name == "uuid":
            return UUID(value) if isinstance(value, str) else value
        if type_name == "date":
            return date.fromisoformat(value) if isinstance(value, str) else value
        if type_name in ("timestamp", "timestamptz"):
            return self._to_datetime(value, type_name)
        if type_name in ("time", "timetz"):
            return time.fromisoformat(value) if isinstance(value, str) else value
        if type_name == "bytea":
            return value.encode("utf-8") if isinstance(value, str) else value
        return value

    def _to_text(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value)

    def _to_json(self, value: Any) -> str:
        # Strings that already hold JSON are kept; anything else is encoded
        if isinstance(value, str):
            try:
                json.loads(value)
            except ValueError:
                return json.dumps(value)
            return value
        return json.dumps(value)

    def _to_int(self, value: Any) -> Any:
        if isinstance(value, str):
            return int(value.strip())
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError("fractional value for integer column")
            return int(value)
        return value

    def _to_decimal(self, value: Any) -> Any:
        if isinstance(value, bool):
            raise TypeError("boolean for numeric column")
        if isinstance(value, (int, float, str)):
            return Decimal(str(value).strip())
        return value

    def _to_bool(self, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            raise ValueError("not a boolean")
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        return value

    def _to_datetime(self, value: Any, type_name: str) -> Any:
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        elif isinstance(value, date) and not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        if type_name == "timestamp" and isinstance(value, datetime) and value.tzinfo is not None:
            # timestamp without time zone rejects aware datetimes
            value = value.replace(tzinfo=None)
        return value
