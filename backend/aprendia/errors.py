"""Exceptions and validation error formatting shared by the API."""

from typing import Any, Dict, List, Sequence

from fastapi.encoders import jsonable_encoder


class DuplicateEmailError(Exception):
    """Raised when a registrant with the same email already exists."""
    pass


class StorageUnavailableError(Exception):
    """Raised when the database connector has no usable engine."""
    pass


FIELD_MESSAGES = {
    "name": "El nombre debe tener entre 2 y 100 caracteres",
    "email": "Debe ser un email válido",
    "municipality": "Municipio no válido",
    "education": "Nivel educativo no válido",
}


def collect_field_errors(errors: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Reduce pydantic error dicts to one entry per invalid field.

    Request body errors are located as ``("body", <field>)``; an error
    on the body itself (not an object, unparsable JSON) is reported
    under the field name ``body``.
    """
    out: List[Dict[str, Any]] = []
    seen = set()
    for err in errors:
        loc = [part for part in err.get("loc", ()) if part != "body"]
        field = str(loc[0]) if loc and err.get("type") != "json_invalid" else "body"
        if field in seen:
            continue
        seen.add(field)
        value = None if err.get("type") == "missing" else err.get("input")
        out.append({
            "field": field,
            "msg": FIELD_MESSAGES.get(field, err.get("msg", "invalid value")),
            "value": jsonable_encoder(value),
        })
    return out
