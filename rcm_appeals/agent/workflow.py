"""LangGraph drafting pipeline: resolve template, render letter, optionally enhance it.

The graph only produces a draft. Persisting the appeal, moving the denial and
writing the audit trail happen afterwards in one store transaction.
"""

import logging
from datetime import date
from typing import Literal, Optional, TypedDict

from langgraph.graph import END, StateGraph

from ..models import AppealTemplate, DenialContext, GenerateAppealOptions
from .enhancement import BASELINE_CONFIDENCE, AppealEnhancer
from .substitution import AppealVariables, build_appeal_variables, render_template
from .templates import TemplateResolver

logger = logging.getLogger(__name__)


class AppealDraftState(TypedDict, total=False):
    # Input
    denial_context: DenialContext
    options: GenerateAppealOptions
    today: date

    # Produced by the graph
    template: AppealTemplate
    variables: AppealVariables
    subject_line: str
    letter_body: str
    ai_confidence: int
    enhanced: bool


def create_drafting_workflow(resolver: TemplateResolver, enhancer: Optional[AppealEnhancer] = None):
    """Compile the drafting graph around the given resolver and enhancer."""

    async def resolve_template_node(state: AppealDraftState) -> AppealDraftState:
        denial = state["denial_context"].denial
        template = resolver.resolve(denial, state["options"].template_id)
        return {"template": template}

    async def render_letter_node(state: AppealDraftState) -> AppealDraftState:
        template = state["template"]
        variables = build_appeal_variables(state["denial_context"], state["options"], today=state.get("today"))
        mapping = variables.as_mapping()
        return {
            "variables": variables,
            "subject_line": render_template(template.subject_template, mapping),
            "letter_body": render_template(template.body_template, mapping),
            "ai_confidence": BASELINE_CONFIDENCE,
            "enhanced": False,
        }

    async def enhance_letter_node(state: AppealDraftState) -> AppealDraftState:
        result = await enhancer.enhance(
            denial=state["denial_context"].denial,
            base_letter=state["letter_body"],
            clinical_justification=state["options"].clinical_justification,
        )
        if result.enhanced:
            logger.info(f"Appeal letter for denial {state['denial_context'].denial.id} enhanced")
        return {
            "letter_body": result.letter_body,
            "ai_confidence": result.confidence,
            "enhanced": result.enhanced,
        }

    def route_after_render(state: AppealDraftState) -> Literal["enhance_letter", END]:
        if enhancer is not None and state["options"].clinical_justification:
            return "enhance_letter"
        return END

    workflow = StateGraph(AppealDraftState)
    workflow.add_node("resolve_template", resolve_template_node)
    workflow.add_node("render_letter", render_letter_node)
    workflow.add_node("enhance_letter", enhance_letter_node)

    workflow.set_entry_point("resolve_template")
    workflow.add_edge("resolve_template", "render_letter")
    workflow.add_conditional_edges("render_letter", route_after_render)
    workflow.add_edge("enhance_letter", END)

    return workflow.compile()
