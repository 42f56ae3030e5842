"""
Pydantic v2 schemas for request validation and response serialisation.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field, model_validator


Scalar = Union[int, float, str]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Macro table
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class MacroResponse(BaseModel):
    name: str
    parameters: list[str]
    arity: int
    template: str
    signature: str


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Expansion
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ExpandRequest(BaseModel):
    """Either a whole ``expression`` or a single call as ``name`` + ``args``."""

    expression: Optional[str] = Field(default=None, min_length=1, max_length=10_000)
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    args: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def exactly_one_form(self) -> "ExpandRequest":
        if (self.expression is None) == (self.name is None):
            raise ValueError("Provide either 'expression' or 'name', not both")
        return self


# -----------------------------------------------------------------------------

class ExpandResponse(BaseModel):
    expansion: str


# -----------------------------------------------------------------------------

class EvaluateRequest(BaseModel):
    expression: str = Field(..., min_length=1, max_length=10_000)
    variables: dict[str, Scalar] = Field(default_factory=dict)


# -----------------------------------------------------------------------------

class EvaluateResponse(BaseModel):
    expansion: str
    value: Scalar
