"""
Brief highlights: AI field extraction and source-span highlighting.

``extract_highlights`` asks the LLM for the headline fields of a brief
(project name, client, budget, deadline, physical parameters) so a new
project form can be pre-filled.

``get_brief_segments`` works without AI: it locates every asset's
``source_text`` inside the project's current brief and physical parameters
and returns the text split into highlighted and plain segments.
"""

import logging
import re
import time
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from prodbay.config import settings
from prodbay.core.briefs.span_locator import HighlightSource, build_highlight_segments
from prodbay.core.errors import InvalidRequestError
from prodbay.core.llm.llm_service import LLMService
from prodbay.core.services.lookups import get_or_404
from prodbay.core.shared.database_service import DatabaseService
from prodbay.database.models import Asset, Project

logger = logging.getLogger("prodbay.ai.highlights")

SYSTEM_PROMPT = """You are an expert event production project manager. Your task is to extract key data from project briefs while ignoring PDF artifacts like headers, footers, page numbers, and legal boilerplate.

CRITICAL RULES:
1. FOCUS: Prioritize Event Specifications, Dimensions (Spatial Layout), and Talent (DJs/Headline Acts).
2. SANITIZE: Always convert LaTeX (e.g., 360^{\\circ}) into plain text (e.g., '360 degrees').
3. FORMAT: Output ONLY valid JSON. All backslashes and quotes must be properly escaped according to JSON standards.
4. DIMENSIONS: Standardize spatial data as 'Length m x Width m' (e.g., '50 m x 40 m') whenever possible.
5. NOISE: Ignore repeated branding, document metadata, and table of contents.

You must respond with ONLY a valid JSON object matching this schema:
{
  "projectName": string | null,
  "clientName": string | null,
  "budget": number | null,
  "deadline": string | null,
  "physicalParameters": string | null
}

Extraction Rules:
- If information cannot be found in the brief, set the value to null
- For projectName: Extract the project/event name (ignore document titles and headers)
- For clientName: Extract the client/company/organization name (ignore repeated branding)
- For budget: Extract only numeric values (convert from any currency format to a number)
- For deadline: Extract dates in YYYY-MM-DD format. If only month/year is given, use the last day of that month
- For physicalParameters: Extract dimensions (standardize as 'X m x Y m'), venue details, capacity, and spatial layout."""

_LATEX_DEGREES = re.compile(r"\$?(\d+)\s*\^?\s*\\?\{?\s*\\circ\s*\}?\s*\$?")


def sanitize_brief_text(brief: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Flatten a brief for prompting.

    Newlines become spaces, LaTeX degree notation becomes plain text, and
    the result is cut at ``max_length`` with a trailing ellipsis.
    """
    if not brief:
        return ""
    max_length = max_length or settings.max_highlight_brief_length
    text = re.sub(r"\r\n|\r|\n", " ", brief)
    text = _LATEX_DEGREES.sub(r"\1 degrees", text)
    text = text.strip()
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return text


class BriefHighlightService:
    def __init__(self, database: DatabaseService, llm: LLMService):
        self._db = database
        self._llm = llm

    async def extract_highlights(self, brief: Optional[str]) -> Dict[str, Any]:
        """
        Extract headline fields from a brief.

        Returns:
            {"highlights": {project_name, client_name, budget, deadline,
             physical_parameters}, "processing_time_ms": int}

        Raises:
            InvalidRequestError: empty brief
            ExternalServiceError: AI unavailable or unusable answer
        """
        if not brief or not brief.strip():
            raise InvalidRequestError("Brief text is required")

        start = time.monotonic()
        content = await self._llm.complete(
            SYSTEM_PROMPT,
            f"Analyze this project brief and extract the key information:\n\n{sanitize_brief_text(brief)}",
            max_tokens=500,
            json_mode=True,
        )
        data = LLMService.parse_json_response(content)
        elapsed = int((time.monotonic() - start) * 1000)

        budget = data.get("budget")
        highlights = {
            "project_name": data.get("projectName") or None,
            "client_name": data.get("clientName") or None,
            "budget": float(budget) if isinstance(budget, (int, float)) and not isinstance(budget, bool) else None,
            "deadline": data.get("deadline") or None,
            "physical_parameters": data.get("physicalParameters") or None,
        }
        logger.info(f"Brief highlights extracted in {elapsed}ms")
        return {"highlights": highlights, "processing_time_ms": elapsed}

    async def get_brief_segments(self, project_id: Any) -> Dict[str, Any]:
        """
        Highlight segments for a project's brief and physical parameters.

        An asset whose source text is found in neither field is listed in
        ``unmatched_asset_ids``.
        """
        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            result = await session.execute(
                select(Asset)
                .where(Asset.project_id == project.id, Asset.source_text.isnot(None))
                .order_by(Asset.created_at)
            )
            assets = list(result.scalars().all())

        sources = [
            HighlightSource(asset_id=str(a.id), asset_name=a.asset_name, source_text=a.source_text)
            for a in assets
            if (a.source_text or "").strip()
        ]
        brief_segments = build_highlight_segments(project.brief_description or "", sources)
        physical_segments = build_highlight_segments(project.physical_parameters or "", sources)

        matched = {
            s.asset_id
            for s in brief_segments + physical_segments
            if s.highlighted
        }
        unmatched: List[str] = [s.asset_id for s in sources if s.asset_id not in matched]
        if unmatched:
            logger.debug(f"Project {project.id}: {len(unmatched)} asset spans not found in brief")

        return {
            "project_id": project.id,
            "brief_segments": brief_segments,
            "physical_parameter_segments": physical_segments,
            "unmatched_asset_ids": unmatched,
        }
