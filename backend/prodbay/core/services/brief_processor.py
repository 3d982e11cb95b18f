"""
Brief Processor: turn a project brief into assets.

Keyword classification is the default. With ``use_ai`` the AI allocation
service is asked first and the keyword classifier takes over when it fails.
"""

import logging
import time
from typing import Any, Dict, Mapping, Optional

from prodbay.config import settings
from prodbay.core.briefs.keyword_classifier import matched_keywords
from prodbay.core.errors import InvalidRequestError
from prodbay.core.llm.ai_allocation_service import AIAllocationService
from prodbay.core.services.automation_service import AutomationService

logger = logging.getLogger("prodbay.brief_processor")

STRATEGY_KEYWORD = "keyword"
STRATEGY_AI = "ai"
STRATEGY_KEYWORD_FALLBACK = "keyword_fallback"


def check_brief_length(brief: Optional[str]) -> None:
    if brief and len(brief) > settings.max_brief_length:
        raise InvalidRequestError(
            f"Brief description exceeds {settings.max_brief_length} characters"
        )


def validate_brief(brief: Optional[str]) -> str:
    if brief is None or not str(brief).strip():
        raise InvalidRequestError("Brief description is required")
    check_brief_length(brief)
    return brief


class BriefProcessor:
    def __init__(self, automation: AutomationService, allocator: Optional[AIAllocationService] = None):
        self._automation = automation
        self._allocator = allocator

    async def process_brief(
        self,
        project_id: Any,
        brief: str,
        use_ai: bool = False,
        project_context: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Create assets for a project from its brief.

        Returns:
            {"project_id", "identified_assets", "matched_keywords",
             "created_assets", "processing_time_ms", "strategy", "warning"}
        """
        brief = validate_brief(brief)
        start = time.monotonic()
        warning = None

        if use_ai and self._allocator is not None:
            analysis = await self._allocator.analyze_brief_for_assets(brief, project_context)
            if analysis["success"] and analysis["assets"]:
                created = await self._allocator.create_assets_from_suggestions(project_id, analysis["assets"])
                return {
                    "project_id": project_id,
                    "identified_assets": [a.asset_name for a in created],
                    "matched_keywords": {},
                    "created_assets": created,
                    "processing_time_ms": int((time.monotonic() - start) * 1000),
                    "strategy": STRATEGY_AI,
                    "warning": None,
                }
            warning = f"AI analysis unavailable, used keyword matching: {analysis.get('error') or 'no assets suggested'}"
            logger.warning(f"Project {project_id}: {warning}")

        created = await self._automation.create_assets_for_project(project_id, brief)
        elapsed = int((time.monotonic() - start) * 1000)
        strategy = STRATEGY_KEYWORD_FALLBACK if use_ai else STRATEGY_KEYWORD
        logger.info(f"Processed brief for project {project_id} ({strategy}) in {elapsed}ms")

        return {
            "project_id": project_id,
            "identified_assets": self._automation.parse_assets_from_brief(brief),
            "matched_keywords": matched_keywords(brief),
            "created_assets": created,
            "processing_time_ms": elapsed,
            "strategy": strategy,
            "warning": warning,
        }
