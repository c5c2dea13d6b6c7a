"""Plan and template endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from nutrition_planner.api.models import (
    ApplyTemplateResponse,
    EvaluationResponse,
    PlanModel,
    TemplateSummaryModel,
    evaluation_response,
    plan_model,
    save_result_model,
    template_summary,
)
from nutrition_planner.services.plans import SaveStatus

if TYPE_CHECKING:
    from nutrition_planner.containers import AppContainer

router = APIRouter(tags=["plans"])

_logger = logging.getLogger(__name__)


@router.get("/plans/{plan_id}")
async def get_plan(plan_id: str, request: Request) -> PlanModel:
    """Return a plan with hydrated entries and live totals."""
    container: AppContainer = request.app.state.container
    return plan_model(container.plan_service.load(plan_id))


@router.get("/plans/{plan_id}/evaluation")
async def evaluate_plan(
    plan_id: str, request: Request, client_id: str | None = None
) -> EvaluationResponse:
    """Compare the plan's daily totals with the client's goals."""
    container: AppContainer = request.app.state.container
    composer = container.plan_service.load(plan_id)
    goals = container.goals_service.get_goals(client_id or composer.plan.client_id)
    totals = composer.daily_totals()
    return evaluation_response(totals, goals, composer.evaluate(goals))


@router.post(
    "/plans/{plan_id}/apply-template/{template_id}",
    response_model=ApplyTemplateResponse,
)
async def apply_template(
    plan_id: str, template_id: str, request: Request
) -> ApplyTemplateResponse | JSONResponse:
    """Replace the plan's meals and substitutions with a template and save."""
    container: AppContainer = request.app.state.container
    composer = container.plan_service.load(plan_id)
    materialized = container.template_materializer.apply(composer.plan, template_id)
    composer.install(materialized)
    result = container.plan_service.save(composer)
    payload = ApplyTemplateResponse(
        save=save_result_model(result, container.settings),
        plan=plan_model(composer),
    )
    if result.status is SaveStatus.ERROR:
        _logger.warning(
            "Template %s applied to plan %s but the save failed at %s",
            template_id,
            plan_id,
            result.failed_step,
        )
        return JSONResponse(status_code=502, content=payload.model_dump())
    return payload


@router.get("/templates")
async def list_templates(request: Request) -> dict[str, list[TemplateSummaryModel]]:
    """List templates by name."""
    container: AppContainer = request.app.state.container
    return {
        "templates": [
            template_summary(template)
            for template in container.template_service.list_templates()
        ]
    }
