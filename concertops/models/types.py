from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

UserRole = Literal["tm", "pm", "pa"]
TourScale = Literal["club", "theater", "arena", "stadium"]
ChatMode = Literal["chat", "knowledge", "budget", "settlement", "crisis"]
TourType = Literal["headline", "support", "festival"]
SubscriptionPlan = Literal["free", "pro_monthly", "pro_annual"]
SubscriptionStatus = Literal["active", "canceled", "past_due", "trialing"]
Feedback = Literal["helpful", "not_helpful"]

ROLE_LABELS: Dict[str, str] = {
    "tm": "Tour Manager",
    "pm": "Production Manager",
    "pa": "Production Assistant",
}

SCALE_LABELS: Dict[str, str] = {
    "club": "Club",
    "theater": "Theater",
    "arena": "Arena",
    "stadium": "Stadium",
}

PRO_PLANS = ("pro_monthly", "pro_annual")


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None


class DocChunkHit(BaseModel):
    id: str
    doc_id: str
    chunk_text: str
    chunk_index: int
    file_name: str
    doc_type: str
    similarity: float


# Usage
class UsageCheckResult(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    total_queries: int
    # None means unlimited (active Pro)
    remaining: Optional[int] = None
    plan: SubscriptionPlan = "free"
    soft_warning: Optional[Literal[1, 2]] = None


class UsageSummary(BaseModel):
    plan: SubscriptionPlan
    is_pro_active: bool
    total_queries: int
    queries_this_month: int = 0
    remaining: Optional[int] = None
    limit: int


# AI
class HistoryTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    role: UserRole
    tour_scale: TourScale
    mode: ChatMode
    tour_id: Optional[str] = None
    conversation_history: List[HistoryTurn] = Field(default_factory=list)


class ChatResponse(BaseModel):
    message: str
    remaining_queries: Optional[int] = None
    soft_warning: Optional[int] = None
    conversation_log_id: Optional[str] = None


class KnowledgeRequest(BaseModel):
    query: str = Field(min_length=1)
    role: UserRole
    tour_scale: TourScale
    topic: Optional[str] = None


class KnowledgeResponse(BaseModel):
    answer: str
    remaining_queries: Optional[int] = None
    sources: List[str] = Field(default_factory=list)


# Ingestion
class IngestRequest(BaseModel):
    file_name: str = ""
    doc_type: Optional[str] = None
    raw_text: str = ""


class IngestResult(BaseModel):
    success: bool = True
    doc_id: str
    chunks_created: int
    total_chunks: int
    llm: Dict[str, Any] = Field(default_factory=dict)


# Tours
class TourIn(BaseModel):
    name: str = ""
    artist_name: str = ""
    tour_scale: Optional[TourScale] = None
    tour_type: Optional[TourType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    regions: Optional[List[str]] = None
    currency: Optional[str] = None
    num_shows: Optional[int] = None
    avg_capacity: Optional[int] = None
    avg_guarantee: Optional[float] = None
    notes: Optional[str] = None


class TourUpdate(BaseModel):
    name: Optional[str] = None
    artist_name: Optional[str] = None
    tour_scale: Optional[TourScale] = None
    tour_type: Optional[TourType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    regions: Optional[List[str]] = None
    currency: Optional[str] = None
    num_shows: Optional[int] = None
    avg_capacity: Optional[int] = None
    avg_guarantee: Optional[float] = None
    notes: Optional[str] = None
    is_archived: Optional[bool] = None


class TourOut(BaseModel):
    id: str
    name: str
    artist_name: str
    tour_scale: str
    tour_type: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    regions: List[str] = Field(default_factory=list)
    currency: str
    num_shows: Optional[int] = None
    avg_capacity: Optional[int] = None
    avg_guarantee: Optional[float] = None
    notes: Optional[str] = None
    is_archived: bool = False


# Conversations
class ConversationOut(BaseModel):
    id: str
    tour_id: Optional[str] = None
    role: str
    tour_scale: str
    mode: str
    user_message: str
    assistant_message: str
    is_starred: bool = False
    user_feedback: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None


class ConversationUpdate(BaseModel):
    is_starred: Optional[bool] = None
    user_feedback: Optional[Feedback] = None
    tags: Optional[List[str]] = None


# Profile
class ProfileOut(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole
    tour_scale: TourScale


class PreferencesOut(BaseModel):
    default_role: Optional[UserRole] = None
    default_tour_scale: Optional[TourScale] = None
    default_currency: str = "USD"
    crisis_mode_enabled: bool = False


class ProfileResponse(BaseModel):
    profile: ProfileOut
    preferences: PreferencesOut


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[UserRole] = None
    tour_scale: Optional[TourScale] = None


class PreferencesUpdate(BaseModel):
    default_role: Optional[UserRole] = None
    default_tour_scale: Optional[TourScale] = None
    default_currency: Optional[str] = None
    crisis_mode_enabled: Optional[bool] = None


# Billing
class CheckoutRequest(BaseModel):
    plan: Literal["monthly", "annual"] = "monthly"


class CheckoutResponse(BaseModel):
    url: Optional[str] = None


# Settlement
class SettlementIn(BaseModel):
    show_name: str = ""
    show_date: Optional[date] = None
    venue_name: Optional[str] = None
    venue_city: Optional[str] = None
    currency: str = "USD"
    gross_tickets: float = 0.0
    total_taxes: float = 0.0
    total_fees: float = 0.0
    venue_rent: float = 0.0
    marketing_costs: float = 0.0
    production_reimbursements: float = 0.0
    artist_guarantee: float = 0.0
    overage_percentage: float = 85.0
    capacity: Optional[int] = None
    avg_ticket_price: Optional[float] = None
    merch_deal_details: Optional[str] = None
    tour_id: Optional[str] = None
    include_ai: bool = True


class SettlementData(BaseModel):
    gross_potential: float
    adjusted_gross: float
    house_nut: float
    net_receipts: float
    overage_pool: float
    artist_overage: float
    total_artist_payment: float
    venue_share: float


class SettlementOut(BaseModel):
    id: Optional[str] = None
    show_name: str
    currency: str
    settlement_data: SettlementData
    watchouts: List[str] = Field(default_factory=list)
    ai_breakdown: Optional[str] = None
    remaining_queries: Optional[int] = None


# Budget
class BudgetData(BaseModel):
    travel: float = 0.0
    hotels: float = 0.0
    per_diems: float = 0.0
    crew_wages: float = 0.0
    production: float = 0.0
    buses: float = 0.0
    trucks: float = 0.0
    insurance: float = 0.0
    merch_costs: float = 0.0
    contingency: float = 0.0
    other: float = 0.0
    notes: Optional[str] = None


class BudgetIn(BaseModel):
    name: str = "Untitled budget"
    tour_id: Optional[str] = None
    tour_type: TourType = "headline"
    tour_scale: TourScale = "theater"
    num_shows: Optional[int] = None
    avg_capacity: Optional[int] = None
    avg_guarantee: Optional[float] = None
    regions: str = "US"
    currency: str = "USD"
    budget_data: BudgetData = Field(default_factory=BudgetData)
    include_ai: bool = True


class BudgetSummary(BaseModel):
    total_cost: float
    projected_gross: Optional[float] = None
    estimated_margin_low: Optional[float] = None
    estimated_margin_high: Optional[float] = None
    largest_category: Optional[str] = None


class BudgetOut(BaseModel):
    id: Optional[str] = None
    name: str
    currency: str
    budget_data: BudgetData
    summary: BudgetSummary
    ai_summary: Optional[str] = None
    remaining_queries: Optional[int] = None
