#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Macros router
=============
GET  /api/v1/macros              — the whole table
GET  /api/v1/macros/{name}       — one definition
POST /api/v1/macros/expand       — expand an expression or a single call
POST /api/v1/macros/evaluate     — expand, then evaluate with the reference host
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from calcmacros.schemas import (
    EvaluateRequest,
    EvaluateResponse,
    ExpandRequest,
    ExpandResponse,
    MacroResponse,
)
from calcmacros.services.macros import (
    EvaluationError,
    MacroDefinition,
    MacroEngine,
    MacroError,
    evaluate,
    parse,
    render,
)

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------

router = APIRouter(prefix="/macros", tags=["Macros"])


def get_engine() -> MacroEngine:
    return MacroEngine()


def _to_response(definition: MacroDefinition) -> MacroResponse:
    return MacroResponse(
        name=definition.name,
        parameters=list(definition.parameters),
        arity=definition.arity,
        template=definition.source,
        signature=definition.signature,
    )


# -----------------------------------------------------------------------------

@router.get("", response_model=list[MacroResponse])
async def list_macros(engine: MacroEngine = Depends(get_engine)):
    table = engine.table
    return [_to_response(table[name]) for name in table.names()]


@router.get("/{name}", response_model=MacroResponse)
async def get_macro(name: str, engine: MacroEngine = Depends(get_engine)):
    definition = engine.table.get(name)
    if definition is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, f"Unknown macro: {name}")
    return _to_response(definition)


# -----------------------------------------------------------------------------
# Expansion and evaluation are CPU-bound; plain def routes run in the threadpool.

@router.post("/expand", response_model=ExpandResponse)
def expand_macros(body: ExpandRequest, engine: MacroEngine = Depends(get_engine)):
    try:
        if body.expression is not None:
            expansion = engine.expand_text(body.expression)
        else:
            expansion = render(engine.expand(body.name, body.args))
    except MacroError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
    return ExpandResponse(expansion=expansion)


@router.post("/evaluate", response_model=EvaluateResponse)
def evaluate_expression(body: EvaluateRequest, engine: MacroEngine = Depends(get_engine)):
    try:
        expanded = engine.expand_expr(parse(body.expression))
    except MacroError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc)) from exc

    try:
        value = evaluate(expanded, body.variables)
    except EvaluationError as exc:
        logger.debug("Evaluation of %r failed: %s", body.expression, exc)
        raise HTTPException(422, str(exc)) from exc

    return EvaluateResponse(expansion=render(expanded), value=value)


# -----------------------------------------------------------------------------
