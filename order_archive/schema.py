"""
Order payload contract.

The payload is a commercetools-style order message (snapshot or delta). Only the
envelope fields are checked; everything else passes through untouched.

Notes:
- `extra=allow` so upstream schema additions never cause rejections.
- Exactly one of `order` (object) / `orderId` (string) must be present.
- Validation never raises for a bad payload; callers get an `OrderValidation`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Dict, Mapping, Optional, Union

from pydantic import (
    AllowInfNan,
    BaseModel,
    ConfigDict,
    Strict,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

JsonNumber = Union[StrictInt, Annotated[float, Strict(), AllowInfNan(False)]]

# (field, expected type label, required)
FIELD_RULES: tuple[tuple[str, str, bool], ...] = (
    ("id", "string", True),
    ("createdAt", "string", True),
    ("lastModifiedAt", "string", True),
    ("resource", "object", True),
    ("resourceVersion", "number", True),
    ("sequenceNumber", "number", True),
    ("type", "string", True),
    ("version", "number", True),
    ("order", "object", False),
    ("orderId", "string", False),
)
_EXPECTED = {name: label for name, label, _ in FIELD_RULES}

EXCLUSIVE_FIELDS = ("order", "orderId")


def exactly_one_violation(present: Any) -> Optional[str]:
    """
    Check the order/orderId rule against a collection of present keys.
    """
    have = [k for k in EXCLUSIVE_FIELDS if k in present]
    if len(have) == 1:
        return None
    got = "both" if have else "neither"
    return f'exactly one of "order" or "orderId" is required (got {got})'


class OrderPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: StrictStr
    createdAt: StrictStr
    lastModifiedAt: StrictStr
    resource: Dict[str, Any]
    resourceVersion: JsonNumber
    sequenceNumber: JsonNumber
    type: StrictStr
    version: JsonNumber

    order: Optional[Dict[str, Any]] = None
    orderId: Optional[StrictStr] = None

    @field_validator("order", "orderId", mode="before")
    @classmethod
    def _present_means_not_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("must not be null")
        return v

    @model_validator(mode="after")
    def _exactly_one_of_order_or_order_id(self) -> "OrderPayload":
        problem = exactly_one_violation(self.model_fields_set)
        if problem:
            raise ValueError(problem)
        return self


@dataclass(frozen=True, slots=True)
class OrderValidation:
    ok: bool
    violations: tuple[str, ...] = ()

    def describe(self) -> str:
        return "; ".join(self.violations)


def _field_violation(field: str, error_type: str) -> str:
    if error_type == "missing":
        return f'"{field}" is required'
    expected = _EXPECTED.get(field)
    if expected is None:
        return f'"{field}" is invalid'
    return f'"{field}" must be a valid {expected}'


def _violations_from(exc: ValidationError, data: Mapping[str, Any]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for err in exc.errors():
        loc = err.get("loc") or ()
        if not loc:
            # Model-level rule; re-derived below from the raw keys.
            continue
        field = str(loc[0])
        if field in seen:
            # Union members report one error each; keep a single line per field.
            continue
        seen.add(field)
        out.append(_field_violation(field, str(err.get("type") or "")))

    problem = exactly_one_violation(data.keys())
    if problem:
        out.append(problem)
    return out


def validate_order(payload: Any) -> OrderValidation:
    """
    Validate a decoded payload; report every violated rule, in field order.
    """
    if not isinstance(payload, Mapping):
        return OrderValidation(ok=False, violations=('"value" must be an object',))

    try:
        OrderPayload.model_validate(dict(payload))
    except ValidationError as e:
        return OrderValidation(ok=False, violations=tuple(_violations_from(e, payload)))
    return OrderValidation(ok=True)


async def validate_order_async(payload: Any) -> OrderValidation:
    return validate_order(payload)
