from .enhancement import (
    AppealEnhancer,
    EnhancedAppealLetter,
    EnhancementResult,
    BASELINE_CONFIDENCE,
    ENHANCED_CONFIDENCE,
)
from .substitution import AppealVariables, build_appeal_variables, render_template, find_placeholders
from .templates import TemplateResolver, FALLBACK_TEMPLATE, FALLBACK_TEMPLATE_ID
from .workflow import AppealDraftState, create_drafting_workflow

__all__ = [
    "AppealEnhancer",
    "EnhancedAppealLetter",
    "EnhancementResult",
    "BASELINE_CONFIDENCE",
    "ENHANCED_CONFIDENCE",
    "AppealVariables",
    "build_appeal_variables",
    "render_template",
    "find_placeholders",
    "TemplateResolver",
    "FALLBACK_TEMPLATE",
    "FALLBACK_TEMPLATE_ID",
    "AppealDraftState",
    "create_drafting_workflow",
]
