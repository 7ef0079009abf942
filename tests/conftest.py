"""Snapshot and signal builders shared across tests."""

import pytest

from storetrust_agent.dom_snapshot import DomSnapshot, ElementInfo, LinkInfo
from storetrust_agent.models import (
    AiAssessment,
    Badge,
    PageLinks,
    PageSignals,
    TrustBadges,
)


def _element(**overrides) -> ElementInfo:
    defaults = dict(tag="img", width=60, height=40, top=50, left=100)
    defaults.update(overrides)
    return ElementInfo(**defaults)


def _snapshot(**overrides) -> DomSnapshot:
    defaults = dict(url="https://example.com/", viewport_height=1080)
    defaults.update(overrides)
    if "links" in defaults:
        defaults["links"] = [
            LinkInfo(href=link) if isinstance(link, str) else link for link in defaults["links"]
        ]
    return DomSnapshot(**defaults)


def _badge(**overrides) -> Badge:
    defaults = dict(
        kind="payment",
        source_ref="https://cdn.example.com/visa.svg",
        alt_text="Visa",
        top_offset_px=40,
        left_offset_px=10,
        is_above_fold=True,
        match_reason="keyword",
    )
    defaults.update(overrides)
    return Badge(**defaults)


def _signals(all_true: bool = False, design_score: int | None = None, **overrides) -> PageSignals:
    fields = dict(url="https://example.com/", is_secure=all_true)
    if all_true:
        fields["pages"] = PageLinks(
            has_contact=True, has_about=True, has_return_policy=True, has_privacy_policy=True
        )
        fields["trust_badges"] = TrustBadges.from_items([_badge()])
    if design_score is not None:
        fields["ai_assessment"] = AiAssessment(
            design_score=design_score,
            assessment="Clean and credible.",
            priority_fixes=["Add reviews to the hero", "Show delivery times"],
            niche_comparison="On par with niche leaders.",
        )
    fields.update(overrides)
    return PageSignals(**fields)


@pytest.fixture
def make_element():
    return _element


@pytest.fixture
def make_snapshot():
    return _snapshot


@pytest.fixture
def make_badge():
    return _badge


@pytest.fixture
def make_signals():
    return _signals
