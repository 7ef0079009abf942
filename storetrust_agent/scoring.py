"""Deterministic trust score from extracted page signals.

Categories are evaluated in a fixed order and each one is independently
pass/fail. Without an AI assessment the ceiling is 85 points.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

from .models import (
    BreakdownEntry,
    Grade,
    PageSignals,
    ProductScoreResult,
    ProductSignals,
    Recommendation,
    ScoreResult,
)

_PRIORITY_RANK = {"CRITICAL": 0, "HIGH": 1, "MEDIUM": 2, "LOW": 3}

AI_MAX_POINTS = 15
AI_PASS_DESIGN_SCORE = 7
DESIGN_NEEDS_WORK_MAX = 6


@dataclass(frozen=True)
class _Check:
    category: str
    points: int
    passed: Callable[[PageSignals], bool]
    recommendation: Recommendation


_CHECKS: tuple[_Check, ...] = (
    _Check(
        category="Trust Badges Above Fold",
        points=25,
        passed=lambda s: bool(s.trust_badges.above_fold_items),
        recommendation=Recommendation(
            priority="HIGH",
            category="trust_signals",
            issue_title="Payment badges not visible above the fold",
            impact_level="15-25% conversion lift",
            effort_level="5-min fix",
            estimated_cost="$0",
            fix_instructions=(
                "1. Install a free trust badge app\n"
                "2. Place badges in header or hero section\n"
                "3. Ensure visible on mobile without scrolling"
            ),
            resource_links=["https://apps.shopify.com/ultimate-trust-badges"],
        ),
    ),
    _Check(
        category="SSL Certificate",
        points=20,
        passed=lambda s: s.is_secure,
        recommendation=Recommendation(
            priority="CRITICAL",
            category="technical",
            issue_title="SSL (HTTPS) not enabled",
            impact_level="Critical for trust & SEO",
            effort_level="5-min fix",
            estimated_cost="$0 (included with most hosts)",
            fix_instructions=(
                "1. Open your store's domain settings\n"
                "2. Enable or renew the SSL certificate\n"
                "3. Redirect all http:// traffic to https://"
            ),
            resource_links=["https://help.shopify.com/en/manual/domains/managing-domains/ssl"],
        ),
    ),
    _Check(
        category="Contact Page",
        points=10,
        passed=lambda s: s.pages.has_contact,
        recommendation=Recommendation(
            priority="HIGH",
            category="content",
            issue_title="Missing Contact page",
            impact_level="15-20% trust increase",
            effort_level="10-min fix",
            estimated_cost="$0",
            fix_instructions=(
                "1. Create page /pages/contact\n"
                "2. Add contact form or email/phone details\n"
                "3. Link in footer menu"
            ),
            resource_links=["https://help.shopify.com/en/manual/online-store/pages/contact-page"],
        ),
    ),
    _Check(
        category="About Page",
        points=10,
        passed=lambda s: s.pages.has_about,
        recommendation=Recommendation(
            priority="MEDIUM",
            category="content",
            issue_title="Missing About Us page",
            impact_level="Improves brand affinity",
            effort_level="30-min fix",
            estimated_cost="$0",
            fix_instructions=(
                "1. Create page /pages/about-us\n"
                "2. Tell your brand story and mission\n"
                "3. Add team photos if available"
            ),
            resource_links=["https://www.shopify.com/blog/about-us-page"],
        ),
    ),
    _Check(
        category="Return/Refund Policy",
        points=10,
        passed=lambda s: s.pages.has_return_policy,
        recommendation=Recommendation(
            priority="HIGH",
            category="content",
            issue_title="Missing Return Policy",
            impact_level="Reduces buyer anxiety",
            effort_level="15-min fix",
            estimated_cost="$0",
            fix_instructions=(
                "1. Go to Settings > Policies\n"
                "2. Generate from template or write custom policy\n"
                "3. Add to footer menu"
            ),
            resource_links=["https://help.shopify.com/en/manual/checkout-settings/refund-privacy-tos"],
        ),
    ),
    _Check(
        category="Privacy Policy",
        points=10,
        passed=lambda s: s.pages.has_privacy_policy,
        recommendation=Recommendation(
            priority="MEDIUM",
            category="content",
            issue_title="Missing Privacy Policy",
            impact_level="Legal compliance",
            effort_level="5-min fix",
            estimated_cost="$0",
            fix_instructions=(
                "1. Go to Settings > Policies\n"
                "2. Generate from template\n"
                "3. Add to footer menu"
            ),
            resource_links=["https://help.shopify.com/en/manual/checkout-settings/refund-privacy-tos"],
        ),
    ),
)

AI_CATEGORY = "AI Design Analysis"

_DESIGN_RECOMMENDATION = Recommendation(
    priority="MEDIUM",
    category="design",
    issue_title="Store design needs improvement",
    impact_level="Professional look builds first-visit trust",
    effort_level="1-2 hour fix",
    estimated_cost="$0-$200",
    fix_instructions=(
        "1. Use consistent fonts and brand colours\n"
        "2. Replace low-resolution or stock imagery\n"
        "3. Simplify the hero section around one clear offer"
    ),
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def grade_for(score: int) -> Grade:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 60:
        return "C"
    return "D"


def _rank(recommendations: list[Recommendation]) -> list[Recommendation]:
    return sorted(recommendations, key=lambda r: _PRIORITY_RANK[r.priority])


def score(signals: PageSignals) -> ScoreResult:
    total = 0
    breakdown: list[BreakdownEntry] = []
    recommendations: list[Recommendation] = []

    for check in _CHECKS:
        passed = bool(check.passed(signals))
        awarded = check.points if passed else 0
        total += awarded
        breakdown.append(
            BreakdownEntry(category=check.category, points_awarded=awarded, max_points=check.points, passed=passed)
        )
        if not passed:
            recommendations.append(check.recommendation.model_copy(deep=True))

    ai = signals.ai_assessment
    if ai is not None:
        awarded = _round_half_up(ai.design_score / 10 * AI_MAX_POINTS)
        total += awarded
        breakdown.append(
            BreakdownEntry(
                category=AI_CATEGORY,
                points_awarded=awarded,
                max_points=AI_MAX_POINTS,
                passed=ai.design_score >= AI_PASS_DESIGN_SCORE,
            )
        )
        for fix in ai.priority_fixes:
            recommendations.append(
                Recommendation(
                    priority="MEDIUM",
                    category="ai_insight",
                    issue_title="AI priority fix",
                    impact_level="Flagged by visual design review",
                    effort_level="Varies",
                    estimated_cost="Varies",
                    fix_instructions=fix,
                )
            )
        if ai.design_score <= DESIGN_NEEDS_WORK_MAX:
            recommendations.append(_DESIGN_RECOMMENDATION.model_copy(deep=True))

    final = max(0, min(100, total))
    return ScoreResult(
        score=final,
        grade=grade_for(final),
        breakdown=breakdown,
        recommendations=_rank(recommendations),
    )


# ---------------------------------------------------------------------------
# Product page


@dataclass(frozen=True)
class _ProductCheck:
    category: str
    passed: Callable[[ProductSignals], bool]
    recommendation: Recommendation


_PRODUCT_POINTS = 10

_PRODUCT_CHECKS: tuple[_ProductCheck, ...] = (
    _ProductCheck(
        category="Product Reviews",
        passed=lambda p: p.reviews_visible,
        recommendation=Recommendation(
            priority="HIGH",
            category="trust_signals",
            issue_title="No reviews on product page",
            impact_level="High impact on conversion",
            effort_level="15-min fix",
            estimated_cost="$0",
            fix_instructions="1. Enable review widget on product template\n2. Ensure stars are visible above the fold",
            resource_links=["https://apps.shopify.com/judgeme"],
        ),
    ),
    _ProductCheck(
        category="Trust Badges (ATC)",
        passed=lambda p: p.trust_badges_near_action,
        recommendation=Recommendation(
            priority="HIGH",
            category="trust_signals",
            issue_title="Missing trust badges near Add to Cart",
            impact_level="Increases ATC rate",
            effort_level="5-min fix",
            estimated_cost="$0",
            fix_instructions='1. Add payment icons or "Secure Checkout" text directly below the Add to Cart button',
        ),
    ),
    _ProductCheck(
        category="Clear Return Policy",
        passed=lambda p: p.return_policy_mentioned,
        recommendation=Recommendation(
            priority="MEDIUM",
            category="content",
            issue_title="Return policy not mentioned on product page",
            impact_level="Reduces hesitation",
            effort_level="10-min fix",
            estimated_cost="$0",
            fix_instructions='1. Add a "Shipping & Returns" tab or link near the description',
        ),
    ),
    _ProductCheck(
        category="Size Guide / Specs",
        passed=lambda p: p.size_or_spec_info_present,
        recommendation=Recommendation(
            priority="MEDIUM",
            category="content",
            issue_title="Missing Size Guide or Specifications",
            impact_level="Reduces returns",
            effort_level="20-min fix",
            estimated_cost="$0",
            fix_instructions="1. Add a size chart image or popup\n2. List detailed product specifications",
        ),
    ),
    _ProductCheck(
        category="Stock Status",
        passed=lambda p: p.in_stock_signal,
        recommendation=Recommendation(
            priority="LOW",
            category="content",
            issue_title="Stock status unclear",
            impact_level="Creates urgency",
            effort_level="5-min fix",
            estimated_cost="$0",
            fix_instructions='1. Ensure "In Stock" or "Only X left" is visible',
        ),
    ),
    _ProductCheck(
        category="Multiple Images",
        passed=lambda p: p.multiple_distinct_images,
        recommendation=Recommendation(
            priority="HIGH",
            category="content",
            issue_title="Only one product image found",
            impact_level="Critical for visual verification",
            effort_level="High effort",
            estimated_cost="$0",
            fix_instructions="1. Upload at least 3-4 images per product (angles, lifestyle, close-up)",
        ),
    ),
)


def score_product_page(product: ProductSignals | None) -> ProductScoreResult:
    if product is None or not product.found:
        return ProductScoreResult(
            found=False,
            score=0,
            breakdown=[BreakdownEntry(category="Product Analysis", points_awarded=0, max_points=100, passed=False)],
            recommendations=[],
        )

    raw = 0
    breakdown: list[BreakdownEntry] = []
    recommendations: list[Recommendation] = []
    for check in _PRODUCT_CHECKS:
        passed = bool(check.passed(product))
        awarded = _PRODUCT_POINTS if passed else 0
        raw += awarded
        breakdown.append(
            BreakdownEntry(category=check.category, points_awarded=awarded, max_points=_PRODUCT_POINTS, passed=passed)
        )
        if not passed:
            recommendations.append(check.recommendation.model_copy(deep=True))

    max_raw = _PRODUCT_POINTS * len(_PRODUCT_CHECKS)
    return ProductScoreResult(
        found=True,
        score=_round_half_up(raw / max_raw * 100),
        breakdown=breakdown,
        recommendations=_rank(recommendations),
    )
