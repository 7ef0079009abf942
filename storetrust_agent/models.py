from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Priority = Literal["CRITICAL", "HIGH", "MEDIUM", "LOW"]
Grade = Literal["A", "B", "C", "D"]
BadgeKind = Literal["payment", "security", "generic"]
MatchReason = Literal["keyword", "container", "footer_row", "footer_keyword"]


class ScanRequest(BaseModel):
    url: str = Field(..., min_length=1)
    include_ai: bool = Field(True)
    timeout_ms: int = Field(30000, ge=1000, le=120000)


class PageLinks(BaseModel):
    has_contact: bool = False
    has_about: bool = False
    has_return_policy: bool = False
    has_privacy_policy: bool = False


class Badge(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: BadgeKind
    source_ref: str
    alt_text: str
    top_offset_px: float
    left_offset_px: float
    is_above_fold: bool
    match_reason: MatchReason


class TrustBadges(BaseModel):
    total_count: int = 0
    items: list[Badge] = Field(default_factory=list)
    above_fold_items: list[Badge] = Field(default_factory=list)

    @classmethod
    def from_items(cls, items: list[Badge]) -> TrustBadges:
        return cls(
            total_count=len(items),
            items=list(items),
            above_fold_items=[b for b in items if b.is_above_fold],
        )


class ShippingSignals(BaseModel):
    free_shipping_mentioned: bool = False
    delivery_estimate_mentioned: bool = False


class GuaranteeSignals(BaseModel):
    money_back_mentioned: bool = False
    warranty_mentioned: bool = False


class SecuritySignals(BaseModel):
    secure_checkout_mentioned: bool = False
    security_badge_detected: bool = False


class SocialProofSignals(BaseModel):
    customer_count_mentioned: bool = False
    press_mention_detected: bool = False


class SupportSignals(BaseModel):
    live_chat_widget_detected: bool = False
    support_hours_mentioned: bool = False


class Screenshots(BaseModel):
    # Raw PNG bytes in-process, base64 in JSON.
    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    desktop: bytes | None = None
    mobile: bytes | None = None


class ProductSignals(BaseModel):
    found: bool = False
    url: str | None = None
    reviews_visible: bool = False
    trust_badges_near_action: bool = False
    return_policy_mentioned: bool = False
    size_or_spec_info_present: bool = False
    in_stock_signal: bool = False
    multiple_distinct_images: bool = False
    screenshots: Screenshots = Field(default_factory=Screenshots)


class AiAssessment(BaseModel):
    design_score: int = Field(..., ge=1, le=10)
    assessment: str
    priority_fixes: list[str] = Field(default_factory=list)
    niche_comparison: str = ""


class PageSignals(BaseModel):
    url: str
    is_secure: bool = False
    pages: PageLinks = Field(default_factory=PageLinks)
    emails: list[str] = Field(default_factory=list)
    has_reviews: bool = False
    trust_badges: TrustBadges = Field(default_factory=TrustBadges)
    shipping: ShippingSignals = Field(default_factory=ShippingSignals)
    guarantees: GuaranteeSignals = Field(default_factory=GuaranteeSignals)
    security: SecuritySignals = Field(default_factory=SecuritySignals)
    social_proof: SocialProofSignals = Field(default_factory=SocialProofSignals)
    support: SupportSignals = Field(default_factory=SupportSignals)
    screenshots: Screenshots = Field(default_factory=Screenshots)
    product_page: ProductSignals | None = None
    ai_assessment: AiAssessment | None = None


class BreakdownEntry(BaseModel):
    category: str
    points_awarded: int
    max_points: int
    passed: bool


class Recommendation(BaseModel):
    priority: Priority
    issue_title: str
    impact_level: str
    effort_level: str
    estimated_cost: str
    fix_instructions: str
    category: str = "trust_signals"
    resource_links: list[str] = Field(default_factory=list)


class ScoreResult(BaseModel):
    score: int = Field(..., ge=0, le=100)
    grade: Grade
    breakdown: list[BreakdownEntry]
    recommendations: list[Recommendation]


class ProductScoreResult(BaseModel):
    found: bool
    score: int = Field(..., ge=0, le=100)
    breakdown: list[BreakdownEntry]
    recommendations: list[Recommendation]


class ScanReport(BaseModel):
    url: str
    hostname: str
    signals: PageSignals
    result: ScoreResult
    product_result: ProductScoreResult

    # metadata
    scan_id: str = ""
    scanned_at: str
    timings_ms: dict[str, int]
    warnings: list[str] = []
