"""Optional AI enhancement of rendered appeal letters.

The enhancer is fail-soft: a missing credential, a timeout, a provider error
or an empty answer all fall back to the unenhanced letter. Appeal generation
never fails because of this step.
"""

import asyncio
import logging
from typing import Any, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, Field

from ..config import Settings
from ..models import Denial
from .system_prompts import APPEAL_ENHANCEMENT_SYSTEM_PROMPT
from .user_prompts_builder import build_enhancement_user_prompt

logger = logging.getLogger(__name__)

BASELINE_CONFIDENCE = 70
# Not derived from the model output.
ENHANCED_CONFIDENCE = 85


class EnhancedAppealLetter(BaseModel):
    """Structured output returned by the enhancement model."""
    letter_body: str = Field(..., description="The complete enhanced appeal letter body")


class EnhancementResult(BaseModel):
    letter_body: str
    confidence: int
    enhanced: bool = False


class AppealEnhancer:
    """Sends a rendered letter plus clinical justification to a chat model."""

    def __init__(self, model: Optional[Any] = None, timeout_seconds: float = 20.0):
        self.model = model
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppealEnhancer":
        if not settings.openai_api_key:
            logger.info("No AI credential configured; appeal letters will not be enhanced")
            return cls(model=None, timeout_seconds=settings.ai_timeout_seconds)
        model = ChatOpenAI(
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            timeout=settings.ai_timeout_seconds,
            max_retries=0,
        )
        return cls(model=model, timeout_seconds=settings.ai_timeout_seconds)

    @property
    def configured(self) -> bool:
        return self.model is not None

    def _unchanged(self, base_letter: str) -> EnhancementResult:
        return EnhancementResult(letter_body=base_letter, confidence=BASELINE_CONFIDENCE, enhanced=False)

    async def enhance(
        self,
        denial: Denial,
        base_letter: str,
        clinical_justification: str,
    ) -> EnhancementResult:
        if not self.configured:
            return self._unchanged(base_letter)

        user_prompt = build_enhancement_user_prompt(
            denial=denial,
            base_letter=base_letter,
            clinical_justification=clinical_justification,
        )

        try:
            structured_model = self.model.with_structured_output(EnhancedAppealLetter)
            response: EnhancedAppealLetter = await asyncio.wait_for(
                structured_model.ainvoke([
                    SystemMessage(APPEAL_ENHANCEMENT_SYSTEM_PROMPT),
                    HumanMessage(user_prompt),
                ]),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Appeal enhancement timed out after {self.timeout_seconds}s for denial {denial.id}; "
                "keeping unenhanced letter"
            )
            return self._unchanged(base_letter)
        except Exception as e:
            logger.warning(
                f"Appeal enhancement failed for denial {denial.id}: {type(e).__name__}: {e}; "
                "keeping unenhanced letter"
            )
            return self._unchanged(base_letter)

        letter_body = response.letter_body.strip() if response and response.letter_body else ""
        if not letter_body:
            logger.warning(f"Appeal enhancement returned an empty letter for denial {denial.id}")
            return self._unchanged(base_letter)

        return EnhancementResult(letter_body=letter_body, confidence=ENHANCED_CONFIDENCE, enhanced=True)
