# backend/prodbay/api/v1/schemas.py
"""
Request and response models for the ProdBay v1 API.

Rows are validated at the boundary: ORM objects are converted with
``from_attributes`` and every response is wrapped in ``ApiResponse``::

    {"success": true, "data": {...}, "message": "..."}
"""

from datetime import date, datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from prodbay.core.statuses import ActionAssignee, ActionType, AssetStatus, MilestoneStatus, ProjectStatus

T = TypeVar("T")


# =========================================================================
# ENVELOPE
# =========================================================================

class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    warning: Optional[str] = None


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail


# =========================================================================
# PROJECTS
# =========================================================================

class ProjectBase(BaseModel):
    project_name: str = Field(..., min_length=1, max_length=255)
    client_name: str = Field(..., min_length=1, max_length=255)
    brief_description: str = ""
    physical_parameters: Optional[str] = None
    financial_parameters: Optional[float] = Field(None, ge=0, description="Budget")
    timeline_deadline: Optional[date] = None
    event_date: Optional[date] = None


class ProjectCreateRequest(ProjectBase):
    generate_assets: bool = Field(False, description="Derive assets from the brief after creating the project")
    use_ai: bool = Field(False, description="Use AI analysis for asset derivation (falls back to keywords)")


class ProjectUpdateRequest(BaseModel):
    project_name: Optional[str] = Field(None, min_length=1, max_length=255)
    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    brief_description: Optional[str] = None
    physical_parameters: Optional[str] = None
    financial_parameters: Optional[float] = Field(None, ge=0)
    timeline_deadline: Optional[date] = None
    event_date: Optional[date] = None
    project_status: Optional[ProjectStatus] = None


class ProjectResponse(ProjectBase):
    id: UUID
    project_status: str
    ai_allocation_completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# =========================================================================
# SUPPLIERS
# =========================================================================

class ContactPerson(BaseModel):
    name: str
    email: Optional[str] = None
    role: Optional[str] = None
    phone: Optional[str] = None
    is_primary: bool = False


class SupplierCreateRequest(BaseModel):
    supplier_name: str = Field(..., min_length=1, max_length=255)
    contact_email: EmailStr
    service_categories: List[str] = Field(default_factory=list)
    contact_persons: List[ContactPerson] = Field(default_factory=list)


class SupplierUpdateRequest(BaseModel):
    supplier_name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_email: Optional[EmailStr] = None
    service_categories: Optional[List[str]] = None
    contact_persons: Optional[List[ContactPerson]] = None


class SupplierResponse(BaseModel):
    id: UUID
    supplier_name: str
    contact_email: str
    service_categories: List[str] = Field(default_factory=list)
    contact_persons: List[ContactPerson] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SuggestedSupplierResponse(SupplierResponse):
    already_contacted: bool = False


# =========================================================================
# ASSETS
# =========================================================================

class AssetCreateRequest(BaseModel):
    asset_name: str = Field(..., min_length=1, max_length=255)
    specifications: Optional[str] = None
    timeline: Optional[str] = None
    status: AssetStatus = AssetStatus.PENDING
    assigned_supplier_id: Optional[UUID] = None
    source_text: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)
    tags: List[str] = Field(default_factory=list)


class AssetUpdateRequest(BaseModel):
    asset_name: Optional[str] = Field(None, min_length=1, max_length=255)
    specifications: Optional[str] = None
    timeline: Optional[str] = None
    status: Optional[AssetStatus] = None
    assigned_supplier_id: Optional[UUID] = None
    source_text: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)
    tags: Optional[List[str]] = None


class AssetResponse(BaseModel):
    id: UUID
    project_id: UUID
    asset_name: str
    specifications: Optional[str] = None
    timeline: Optional[str] = None
    status: str
    assigned_supplier_id: Optional[UUID] = None
    source_text: Optional[str] = None
    quantity: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AssetWithSupplierResponse(AssetResponse):
    assigned_supplier: Optional[SupplierResponse] = None


# =========================================================================
# QUOTES & MESSAGES
# =========================================================================

class QuoteResponse(BaseModel):
    id: UUID
    asset_id: UUID
    supplier_id: UUID
    cost: float
    notes_capacity: Optional[str] = None
    status: str
    access_token: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class QuoteWithSupplierResponse(QuoteResponse):
    supplier: Optional[SupplierResponse] = None
    asset_name: Optional[str] = None


class QuoteAcceptanceResponse(BaseModel):
    quote: QuoteResponse
    asset: AssetResponse
    rejected_quote_ids: List[UUID] = Field(default_factory=list)


class ComparedQuote(QuoteWithSupplierResponse):
    cost_rank: int
    cost_percentage_of_lowest: Optional[float] = None


class QuoteMetrics(BaseModel):
    lowest_cost: Optional[float] = None
    highest_cost: Optional[float] = None
    average_cost: Optional[float] = None
    quote_count: int = 0
    cost_range: Optional[float] = None


class QuoteComparisonResponse(BaseModel):
    asset: AssetResponse
    quotes: List[ComparedQuote]
    metrics: QuoteMetrics


class MessageCreateRequest(BaseModel):
    content: str = Field(..., description="Message text (1-5000 characters once trimmed)")


class PortalMessageRequest(MessageCreateRequest):
    token: str


class MessageResponse(BaseModel):
    id: UUID
    quote_id: UUID
    sender_type: str
    content: str
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class MessageListResponse(BaseModel):
    messages: List[MessageResponse]
    poll_interval_seconds: int


class SubmitQuoteRequest(BaseModel):
    token: str
    cost: float
    notes_capacity: Optional[str] = None


class PortalSessionResponse(BaseModel):
    quote: QuoteResponse
    asset: AssetResponse
    project: ProjectResponse
    supplier: SupplierResponse
    messages: List[MessageResponse]
    poll_interval_seconds: int


# =========================================================================
# QUOTE REQUESTS
# =========================================================================

class SenderInfo(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr


class CustomizedEmail(BaseModel):
    supplier_id: UUID
    subject: Optional[str] = None
    body: Optional[str] = None


class QuoteRequestPreviewRequest(BaseModel):
    asset_id: UUID
    supplier_ids: List[UUID] = Field(..., min_length=1)
    sender: Optional[SenderInfo] = Field(None, alias="from")

    class Config:
        populate_by_name = True


class SendQuoteRequestsRequest(QuoteRequestPreviewRequest):
    customized_emails: List[CustomizedEmail] = Field(default_factory=list)


class PreviewEmail(BaseModel):
    to: str
    subject: str
    body: str


class SupplierEmailPreview(BaseModel):
    id: UUID
    supplier_name: str
    contact_email: str
    contact_persons: List[ContactPerson] = Field(default_factory=list)
    preview_email: PreviewEmail


class EmailPreviewResponse(BaseModel):
    asset: AssetResponse
    suppliers: List[SupplierEmailPreview]


class QuoteRequestResult(BaseModel):
    supplier_id: UUID
    supplier_name: str
    quote_id: UUID
    access_token: str
    email_sent: bool


class QuoteRequestError(BaseModel):
    supplier_id: UUID
    supplier_name: Optional[str] = None
    error: str


class SendQuoteRequestsResponse(BaseModel):
    total_suppliers: int
    successful_requests: int
    failed_requests: int
    results: List[QuoteRequestResult]
    errors: List[QuoteRequestError]


class AutoQuoteRequestBody(BaseModel):
    required_tags: List[str] = Field(default_factory=list)
    sender: Optional[SenderInfo] = Field(None, alias="from")

    class Config:
        populate_by_name = True


class QuotableAsset(AssetResponse):
    quote_request_id: UUID
    quote_status: str
    project_name: str
    client_name: str


class QuotableAssetsResponse(BaseModel):
    supplier: SupplierResponse
    assets: List[QuotableAsset]
    total_count: int


# =========================================================================
# BRIEFS & AI
# =========================================================================

class ProcessBriefRequest(BaseModel):
    project_id: UUID
    brief_description: str
    use_ai: bool = False
    project_context: Optional[Dict[str, Any]] = None


class ProcessBriefResponse(BaseModel):
    project_id: UUID
    identified_assets: List[str]
    matched_keywords: Dict[str, List[str]] = Field(default_factory=dict)
    created_assets: List[AssetResponse]
    processing_time_ms: int
    strategy: str


class AssetSuggestion(BaseModel):
    asset_name: str = Field(..., min_length=1)
    specifications: Optional[str] = None
    priority: Optional[str] = None
    estimated_cost_range: Optional[str] = None
    source_text: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class AIAllocateRequest(BaseModel):
    brief_description: str
    project_id: Optional[UUID] = None
    project_context: Optional[Dict[str, Any]] = None


class AIAllocationResponse(BaseModel):
    success: bool
    assets: List[AssetSuggestion] = Field(default_factory=list)
    reasoning: Optional[str] = None
    confidence: Optional[float] = None
    processing_time_ms: int = 0
    error: Optional[str] = None
    fallback_assets: List[AssetSuggestion] = Field(default_factory=list)


class AICreateAssetsRequest(BaseModel):
    project_id: UUID
    assets: List[AssetSuggestion] = Field(..., min_length=1)


class ExtractHighlightsRequest(BaseModel):
    brief_description: str


class BriefHighlights(BaseModel):
    project_name: Optional[str] = None
    client_name: Optional[str] = None
    budget: Optional[float] = None
    deadline: Optional[str] = None
    physical_parameters: Optional[str] = None


class HighlightSegmentResponse(BaseModel):
    text: str
    highlighted: bool
    asset_id: Optional[str] = None
    asset_name: Optional[str] = None
    strategy: Optional[str] = None


class BriefHighlightSegmentsResponse(BaseModel):
    project_id: UUID
    brief_segments: List[HighlightSegmentResponse]
    physical_parameter_segments: List[HighlightSegmentResponse]
    unmatched_asset_ids: List[str] = Field(default_factory=list)


# =========================================================================
# PRODUCER SETTINGS
# =========================================================================

class ProducerSettingsRequest(BaseModel):
    from_name: str = Field(..., min_length=1, max_length=255)
    from_email: EmailStr


class ProducerSettingsResponse(BaseModel):
    id: UUID
    from_name: str
    from_email: str
    updated_at: datetime

    class Config:
        from_attributes = True


# =========================================================================
# PROJECT TRACKING
# =========================================================================

class MilestoneCreateRequest(BaseModel):
    milestone_name: str = Field(..., min_length=1, max_length=255)
    milestone_date: date
    description: Optional[str] = None


class MilestoneUpdateRequest(BaseModel):
    milestone_name: Optional[str] = Field(None, min_length=1, max_length=255)
    milestone_date: Optional[date] = None
    status: Optional[MilestoneStatus] = None
    description: Optional[str] = None


class MilestoneResponse(BaseModel):
    id: UUID
    project_id: UUID
    milestone_name: str
    milestone_date: date
    status: str
    description: str = ""
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ActionItemCreateRequest(BaseModel):
    action_type: ActionType
    action_description: str = Field(..., min_length=1)
    assigned_to: ActionAssignee
    asset_id: Optional[UUID] = None
    quote_id: Optional[UUID] = None
    priority: int = Field(1, ge=1, le=5)
    due_date: Optional[date] = None


class ActionItemResponse(BaseModel):
    id: UUID
    project_id: UUID
    asset_id: Optional[UUID] = None
    quote_id: Optional[UUID] = None
    action_type: str
    action_description: str
    status: str
    assigned_to: str
    priority: int
    due_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ActionCounts(BaseModel):
    producer_actions: int
    supplier_actions: int


class QuoteStatusHistoryResponse(BaseModel):
    id: UUID
    quote_id: UUID
    status: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class QuoteHistoryResponse(BaseModel):
    quote: QuoteResponse
    history: List[QuoteStatusHistoryResponse]


# =========================================================================
# DASHBOARDS
# =========================================================================

class ProjectStats(BaseModel):
    total_assets: int
    completed: int
    in_progress: int
    pending: int
    total_cost: float
    progress_percentage: int


class BudgetSummary(BaseModel):
    total: float
    spent: float
    remaining: float
    percentage_used: float


class ProjectSummaryResponse(BaseModel):
    project: ProjectResponse
    stats: ProjectStats
    budget: BudgetSummary
    days_remaining: Optional[int] = None
    status_color: str
    milestones: List[MilestoneResponse]
    actions: ActionCounts


class ProjectDetailsResponse(BaseModel):
    project: ProjectResponse
    assets: List[AssetWithSupplierResponse]
    quotes: List[QuoteWithSupplierResponse]


class DashboardProject(BaseModel):
    project: ProjectResponse
    stats: ProjectStats
    status_priority: int
    status_color: str


class DashboardResponse(BaseModel):
    projects: List[DashboardProject]
    total_projects: int
    total_cost: float


# =========================================================================
# HEALTH
# =========================================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
    database: Dict[str, Any]
    llm_available: bool
    email_backend: str
