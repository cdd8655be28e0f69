# -*- coding: utf-8 -*-
"""
Parameter Annotations - Declarative constraints via typing.Annotated.

Provides constraint marker types (``Range``, ``Desc``) for use inside
``typing.Annotated`` annotations on configuration dataclasses, plus the
``ParamSpec`` introspection class and ``validate_fields`` which checks a
dataclass instance against its declared constraints.

Usage
-----
Declare constrained fields on a dataclass and validate in
``__post_init__``::

    from typing import Annotated
    from blockmatch.params import Range, Desc, validate_fields

    @dataclass(frozen=True)
    class MyParams:
        sigma: Annotated[float, Range(min=0.1), Desc('Gaussian sigma')] = 2.0

        def __post_init__(self):
            validate_fields(self)

Author
------
Steven Siebert

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-02

Modified
--------
2026-03-10
"""

# Standard library
import math
from typing import (
    Annotated,
    Any,
    Optional,
    Tuple,
    Union,
    get_origin,
    get_type_hints,
)

# blockmatch internal
from blockmatch.exceptions import ValidationError


# =====================================================================
# Constraint marker types  (used inside Annotated[...])
# =====================================================================

class ParamMeta:
    """Base marker for parameter metadata in ``Annotated`` types."""


class Range(ParamMeta):
    """Numeric range constraint.

    Parameters
    ----------
    min : int or float, optional
        Minimum allowed value.
    max : int or float, optional
        Maximum allowed value.
    min_exclusive : bool
        If True, ``min`` itself is not allowed. Default False.
    max_exclusive : bool
        If True, ``max`` itself is not allowed. Default False.
    """

    __slots__ = ('min', 'max', 'min_exclusive', 'max_exclusive')

    def __init__(
        self,
        min: Optional[Union[int, float]] = None,
        max: Optional[Union[int, float]] = None,
        min_exclusive: bool = False,
        max_exclusive: bool = False,
    ) -> None:
        self.min = min
        self.max = max
        self.min_exclusive = min_exclusive
        self.max_exclusive = max_exclusive

    def __repr__(self) -> str:
        parts = []
        if self.min is not None:
            parts.append(f"min={self.min!r}")
        if self.max is not None:
            parts.append(f"max={self.max!r}")
        if self.min_exclusive:
            parts.append("min_exclusive=True")
        if self.max_exclusive:
            parts.append("max_exclusive=True")
        return f"Range({', '.join(parts)})"


class Desc(ParamMeta):
    """Human-readable parameter description.

    Parameters
    ----------
    text : str
        Description text.
    """

    __slots__ = ('text',)

    def __init__(self, text: str) -> None:
        self.text = text

    def __repr__(self) -> str:
        return f"Desc({self.text!r})"


# =====================================================================
# ParamSpec
# =====================================================================

class ParamSpec:
    """Resolved specification for a single constrained field.

    Attributes
    ----------
    name : str
        Field name.
    param_type : type
        Expected Python type (``float``, ``int``, ...). ``object`` skips
        the type check.
    description : str
        Human-readable description.
    range : Range or None
        Numeric constraint, applied element-wise to tuple values.
    """

    __slots__ = ('name', 'param_type', 'description', 'range')

    def __init__(
        self,
        name: str,
        param_type: type,
        description: str,
        range: Optional[Range],
    ) -> None:
        self.name = name
        self.param_type = param_type
        self.description = description
        self.range = range

    def validate(self, value: Any) -> None:
        """Validate *value* against this spec's type and range.

        ``int`` is accepted where ``float`` is declared, ``bool`` is never
        accepted as a number, and tuple values have the range applied to
        each element. Non-finite floats (NaN, inf) are rejected.

        Raises
        ------
        ValidationError
            If *value* has the wrong type or violates the range.
        """
        values = value if isinstance(value, tuple) else (value,)
        for v in values:
            self._check_type(v)
            self._check_finite(v)
            self._check_range(v)

    def _check_type(self, value: Any) -> None:
        if self.param_type is object:
            return
        if isinstance(value, bool):
            raise ValidationError(
                f"Parameter '{self.name}' must be "
                f"{self.param_type.__name__}, got bool"
            )
        allowed = (int, float) if self.param_type is float else (self.param_type,)
        if not isinstance(value, allowed):
            raise ValidationError(
                f"Parameter '{self.name}' must be "
                f"{self.param_type.__name__}, got {type(value).__name__}"
            )

    def _check_finite(self, value: Any) -> None:
        if isinstance(value, float) and not math.isfinite(value):
            raise ValidationError(
                f"Parameter '{self.name}' must be finite, got {value!r}"
            )

    def _check_range(self, value: Any) -> None:
        rng = self.range
        if rng is None:
            return
        if rng.min is not None:
            below = value <= rng.min if rng.min_exclusive else value < rng.min
            if below:
                raise ValidationError(
                    f"Parameter '{self.name}' value {value!r} "
                    f"is below minimum {rng.min!r}"
                )
        if rng.max is not None:
            above = value >= rng.max if rng.max_exclusive else value > rng.max
            if above:
                raise ValidationError(
                    f"Parameter '{self.name}' value {value!r} "
                    f"is above maximum {rng.max!r}"
                )

    def __repr__(self) -> str:
        parts = (
            f"ParamSpec(name={self.name!r}, "
            f"param_type={self.param_type.__name__}"
        )
        if self.range is not None:
            parts += f", range={self.range!r}"
        return parts + ")"


# =====================================================================
# Annotation collection and validation
# =====================================================================

def collect_param_specs(cls: type) -> Tuple[ParamSpec, ...]:
    """Parse ``Annotated`` type hints on *cls* into ``ParamSpec`` objects.

    Only fields whose metadata includes at least one ``ParamMeta``
    instance are collected. For ``Annotated[Union[int, Tuple[int, int]],
    ...]`` style hints the element type is taken as the first argument of
    the union.

    Parameters
    ----------
    cls : type
        Class to introspect.

    Returns
    -------
    Tuple[ParamSpec, ...]
        Specs in declaration order.
    """
    hints = get_type_hints(cls, include_extras=True)
    specs = []
    for name, hint in hints.items():
        if get_origin(hint) is not Annotated:
            continue
        metas = [m for m in hint.__metadata__ if isinstance(m, ParamMeta)]
        if not metas:
            continue

        base_type = hint.__args__[0]
        if get_origin(base_type) is Union:
            base_type = base_type.__args__[0]

        range_meta = next((m for m in metas if isinstance(m, Range)), None)
        desc_meta = next((m for m in metas if isinstance(m, Desc)), None)
        specs.append(ParamSpec(
            name=name,
            param_type=base_type if isinstance(base_type, type) else object,
            description=desc_meta.text if desc_meta else '',
            range=range_meta,
        ))
    return tuple(specs)


def validate_fields(instance: Any) -> None:
    """Validate every constrained field of *instance*.

    Parameters
    ----------
    instance : Any
        Object whose class declares ``Annotated`` fields.

    Raises
    ------
    ValidationError
        On the first field that violates its declaration.
    """
    for spec in collect_param_specs(type(instance)):
        spec.validate(getattr(instance, spec.name))
