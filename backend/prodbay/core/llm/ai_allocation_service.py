"""
AI asset allocation for project briefs.

Asks the LLM to break a brief into production assets, each citing the brief
excerpt it came from. Any failure (no API key, request error, unparseable
answer) yields a degraded result carrying rule-based fallback assets, so
callers can always continue. Every analysis is recorded in
``ai_processing_logs``.

Usage:
    from prodbay.core.llm.ai_allocation_service import AIAllocationService

    allocator = AIAllocationService(database, llm)
    result = await allocator.analyze_brief_for_assets(brief, {"financial_parameters": 5000})
    if result["success"]:
        await allocator.create_assets_from_suggestions(project_id, result["assets"])
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from prodbay.core.briefs.keyword_classifier import default_specifications, parse_assets_from_brief
from prodbay.core.errors import ConflictError, ExternalServiceError, InvalidRequestError
from prodbay.core.llm.llm_service import LLMService
from prodbay.core.services.lookups import get_or_404
from prodbay.core.shared.database_service import DatabaseService
from prodbay.core.statuses import AssetStatus
from prodbay.database.models import AIProcessingLog, Asset, Project

logger = logging.getLogger("prodbay.ai")

PROCESSING_TYPE = "asset_creation"

SYSTEM_PROMPT = (
    "You are an expert event production manager. Analyze project briefs and identify "
    "required assets with detailed specifications. You must respond with ONLY valid JSON - "
    "no markdown formatting, no code blocks, no explanations outside the JSON structure."
)

ASSET_ANALYSIS_PROMPT = """
Analyze this event/project brief and identify all required assets with detailed specifications.

Project Brief: "{brief}"

Additional Context:
- Budget: {budget}
- Timeline: {timeline}
- Physical Parameters: {physical}

Respond with ONLY a JSON object in this exact format (no markdown, no code blocks):
{{
  "assets": [
    {{
      "asset_name": "Asset Name",
      "specifications": "Detailed specifications and requirements",
      "priority": "high|medium|low",
      "estimated_cost_range": "low|medium|high",
      "source_text": "Exact excerpt of the brief this asset was derived from",
      "tags": ["Supplier category", "..."]
    }}
  ],
  "reasoning": "Explanation of why these assets were identified",
  "confidence": 0.85
}}

Focus on identifying:
- Production equipment (audio, lighting, staging)
- Marketing materials (printing, graphics, banners)
- Services (catering, transport, security)
- Design and creative assets
- Logistics and support services

Copy source_text verbatim from the brief. Be specific and practical in your asset identification.
"""


def build_asset_analysis_prompt(brief: str, context: Optional[Mapping[str, Any]] = None) -> str:
    context = context or {}
    return ASSET_ANALYSIS_PROMPT.format(
        brief=brief,
        budget=context.get("financial_parameters") or "Not specified",
        timeline=context.get("timeline_deadline") or "Not specified",
        physical=context.get("physical_parameters") or "Not specified",
    )


def get_fallback_assets(brief: str) -> List[Dict[str, Any]]:
    """Rule-based suggestions in the same shape as the AI's."""
    return [
        {
            "asset_name": name,
            "specifications": default_specifications(name),
            "priority": "medium",
            "estimated_cost_range": "medium",
            "source_text": None,
            "tags": [],
        }
        for name in parse_assets_from_brief(brief)
    ]


class AIAllocationService:
    """Service for AI-driven asset suggestions."""

    def __init__(self, database: DatabaseService, llm: LLMService):
        self._db = database
        self._llm = llm

    def parse_ai_response(self, content: str) -> Dict[str, Any]:
        """
        Decode the allocation answer and normalize its asset entries.

        Raises:
            ExternalServiceError: no JSON object, or no ``assets`` list in it
        """
        data = LLMService.parse_json_response(content)
        raw_assets = data.get("assets")
        if not isinstance(raw_assets, list):
            raise ExternalServiceError("Failed to parse AI response: missing assets list")

        assets = []
        for item in raw_assets:
            if not isinstance(item, dict) or not str(item.get("asset_name") or "").strip():
                continue
            tags = item.get("tags") or []
            assets.append({
                "asset_name": str(item["asset_name"]).strip(),
                "specifications": item.get("specifications"),
                "priority": item.get("priority"),
                "estimated_cost_range": item.get("estimated_cost_range"),
                "source_text": item.get("source_text") or None,
                "tags": [str(t).strip() for t in tags if str(t).strip()] if isinstance(tags, list) else [],
            })

        confidence = data.get("confidence")
        return {
            "assets": assets,
            "reasoning": data.get("reasoning"),
            "confidence": float(confidence) if isinstance(confidence, (int, float)) else None,
        }

    async def analyze_brief_for_assets(
        self,
        brief: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Suggest assets for a brief.

        Returns:
            On success: {"success": True, "assets", "reasoning", "confidence", "processing_time_ms"}
            On failure: {"success": False, "error", "fallback_assets", "processing_time_ms"}
        """
        start = time.monotonic()
        input_data = {"brief_description": brief, "project_context": dict(context or {})}

        try:
            content = await self._llm.complete(
                SYSTEM_PROMPT,
                build_asset_analysis_prompt(brief, context),
            )
            parsed = self.parse_ai_response(content)
        except ExternalServiceError as e:
            elapsed = int((time.monotonic() - start) * 1000)
            logger.warning(f"AI asset analysis failed, using keyword fallback: {e.message}")
            await self._log_processing(input_data, None, elapsed, False, e.message)
            return {
                "success": False,
                "error": e.message,
                "fallback_assets": get_fallback_assets(brief),
                "processing_time_ms": elapsed,
            }

        elapsed = int((time.monotonic() - start) * 1000)
        await self._log_processing(input_data, parsed, elapsed, True)
        logger.info(f"AI suggested {len(parsed['assets'])} assets in {elapsed}ms")
        return {"success": True, **parsed, "processing_time_ms": elapsed}

    async def _log_processing(
        self,
        input_data: Dict[str, Any],
        output_data: Optional[Dict[str, Any]],
        processing_time_ms: int,
        success: bool,
        error_message: Optional[str] = None,
    ) -> None:
        try:
            async with self._db.get_session() as session:
                session.add(
                    AIProcessingLog(
                        processing_type=PROCESSING_TYPE,
                        input_data=input_data,
                        output_data=output_data,
                        processing_time_ms=processing_time_ms,
                        success=success,
                        error_message=error_message,
                    )
                )
        except Exception as e:
            logger.warning(f"Failed to log AI processing: {e}")

    async def create_assets_from_suggestions(
        self,
        project_id: Any,
        suggestions: Iterable[Mapping[str, Any]],
    ) -> List[Asset]:
        """
        Insert suggested assets as Pending and stamp the project.

        Raises:
            InvalidRequestError: no suggestions
            ConflictError: suggestions were already applied to this project
        """
        suggestions = list(suggestions)
        if not suggestions:
            raise InvalidRequestError("At least one asset suggestion is required")

        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            if project.ai_allocation_completed_at is not None:
                raise ConflictError(
                    "AI asset allocation has already been applied to this project",
                    code="AI_ALLOCATION_COMPLETED",
                )

            assets = [
                Asset(
                    project_id=project.id,
                    asset_name=s["asset_name"],
                    specifications=s.get("specifications") or default_specifications(s["asset_name"]),
                    status=AssetStatus.PENDING.value,
                    source_text=s.get("source_text"),
                    tags=list(s.get("tags") or []),
                )
                for s in suggestions
            ]
            session.add_all(assets)
            project.ai_allocation_completed_at = datetime.utcnow()
            await session.flush()
            for asset in assets:
                await session.refresh(asset)

        logger.info(f"Created {len(assets)} AI-suggested assets for project {project_id}")
        return assets

    async def check_health(self) -> Dict[str, Any]:
        return await self._llm.test_connection()
