"""Trust-signal heuristics over a ``DomSnapshot``.

Each signal family is a set of small independent predicates. Where a signal
has several detection strategies (emails, trust badges) they are kept as an
ordered tuple of detector functions whose results are merged with an
explicit dedup step.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Iterable
from urllib.parse import urljoin, urlparse, urlunparse

from .dom_snapshot import DomSnapshot, ElementInfo, LinkInfo
from .models import (
    Badge,
    BadgeKind,
    GuaranteeSignals,
    PageLinks,
    PageSignals,
    ProductSignals,
    SecuritySignals,
    ShippingSignals,
    SocialProofSignals,
    SupportSignals,
    TrustBadges,
)
from .vocab import (
    BADGE_DEDUP_DISTANCE_PX,
    CUSTOMER_COUNT_RE,
    DELIVERY_ESTIMATE_RE,
    EMAIL_RE,
    FALLBACK_EMAIL_PREFIXES,
    FILE_EXTENSION_SUFFIXES,
    FOOTER_ICON_MAX_HEIGHT_PX,
    FOOTER_ICON_MAX_WIDTH_PX,
    FOOTER_ICON_ROW_MIN_SIBLINGS,
    FREE_SHIPPING_RE,
    GENERIC_BADGE_RE,
    LIVE_CHAT_PHRASES,
    MAX_BADGE_HEIGHT_PX,
    MAX_BADGE_WIDTH_PX,
    MIN_BADGE_SIZE_PX,
    MONEY_BACK_RE,
    NOREPLY_PREFIXES,
    OFFSCREEN_TOP_LIMIT_PX,
    PAGE_LINK_KEYWORDS,
    PAYMENT_BRAND_RE,
    PLACEHOLDER_LOCAL_PARTS,
    PRESS_PHRASES,
    PRODUCT_IMAGE_MIN_COUNT,
    PRODUCT_IMAGE_MIN_PX,
    PRODUCT_PATH_EXCLUDE,
    PRODUCT_PATH_RE,
    RETURN_POLICY_RE,
    REVIEW_TEXT_KEYWORDS,
    SECURE_CHECKOUT_PHRASES,
    SECURITY_RE,
    SIZE_SPEC_PHRASES,
    SOCIAL_KEYWORDS,
    SOLD_OUT_PHRASES,
    STAR_GLYPHS_RE,
    SUPPORT_HOURS_RE,
    TRUST_CONTAINER_HINTS,
    WARRANTY_RE,
)

logger = logging.getLogger(__name__)


def page_domain(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def is_secure_url(url: str) -> bool:
    return urlparse(url).scheme.lower() == "https"


# ---------------------------------------------------------------------------
# Links


def classify_links(links: Iterable[LinkInfo]) -> PageLinks:
    haystacks = [f"{link.href} {link.text}".lower() for link in links]
    found = {
        field: any(kw in h for h in haystacks for kw in keywords)
        for field, keywords in PAGE_LINK_KEYWORDS.items()
    }
    return PageLinks(**found)


# ---------------------------------------------------------------------------
# Emails

EmailCandidate = tuple[str, str]


def _emails_in(text: str, provenance: str) -> list[EmailCandidate]:
    if not text:
        return []
    return [(m.group(0), provenance) for m in EMAIL_RE.finditer(text)]


def _emails_from_body(snapshot: DomSnapshot, domain: str) -> list[EmailCandidate]:
    return _emails_in(snapshot.body_text, "body")


def _emails_from_footer(snapshot: DomSnapshot, domain: str) -> list[EmailCandidate]:
    return _emails_in(snapshot.footer_text, "footer")


def _emails_from_contact_elements(snapshot: DomSnapshot, domain: str) -> list[EmailCandidate]:
    out: list[EmailCandidate] = []
    for text in snapshot.contact_texts:
        out.extend(_emails_in(text, "contact_element"))
    return out


def _emails_from_mailto(snapshot: DomSnapshot, domain: str) -> list[EmailCandidate]:
    out: list[EmailCandidate] = []
    for href in snapshot.mailto_hrefs:
        target = href.split(":", 1)[-1].split("?", 1)[0]
        out.extend(_emails_in(target, "mailto"))
    return out


def _emails_from_common_prefixes(snapshot: DomSnapshot, domain: str) -> list[EmailCandidate]:
    if not domain:
        return []
    body = snapshot.body_text.lower()
    out: list[EmailCandidate] = []
    for prefix in FALLBACK_EMAIL_PREFIXES:
        candidate = f"{prefix}@{domain}"
        # "info@example.com" must not match inside "info@example.community"
        if re.search(rf"(?<![\w.+-]){re.escape(candidate)}(?![\w-]|\.\w)", body):
            out.append((candidate, "common_prefix"))
    return out


EMAIL_DETECTORS: tuple[Callable[[DomSnapshot, str], list[EmailCandidate]], ...] = (
    _emails_from_body,
    _emails_from_footer,
    _emails_from_contact_elements,
    _emails_from_mailto,
    _emails_from_common_prefixes,
)


def _is_unwanted_email(email: str) -> bool:
    local = email.split("@", 1)[0]
    if email.startswith(NOREPLY_PREFIXES):
        return True
    if local in PLACEHOLDER_LOCAL_PARTS:
        return True
    return email.endswith(FILE_EXTENSION_SUFFIXES)


def _on_domain(email: str, domain: str) -> bool:
    host = email.rsplit("@", 1)[-1]
    return host == domain or host.endswith("." + domain)


def clean_emails(candidates: Iterable[str], domain: str) -> list[str]:
    """Lower-case, dedupe and filter raw email matches.

    Addresses on the page's own domain sort first; the order is otherwise
    the order of first appearance.
    """
    seen: set[str] = set()
    kept: list[str] = []
    for raw in candidates:
        email = (raw or "").strip().lower()
        if not email or email in seen:
            continue
        seen.add(email)
        if _is_unwanted_email(email):
            continue
        kept.append(email)

    domain = (domain or "").lower()
    if not domain:
        return kept
    # sorted() is stable
    return sorted(kept, key=lambda e: 0 if _on_domain(e, domain) else 1)


def discover_emails(snapshot: DomSnapshot, domain: str) -> list[str]:
    candidates: list[EmailCandidate] = []
    for detector in EMAIL_DETECTORS:
        candidates.extend(detector(snapshot, domain))
    return clean_emails((address for address, _ in candidates), domain)


# ---------------------------------------------------------------------------
# Reviews and secondary signal families


def detect_reviews(snapshot: DomSnapshot) -> bool:
    text = snapshot.body_text.lower()
    if any(kw in text for kw in REVIEW_TEXT_KEYWORDS):
        return True
    if STAR_GLYPHS_RE.search(snapshot.body_text):
        return True
    return snapshot.selector_hits.get("review_widget", 0) > 0


def detect_shipping(text: str) -> ShippingSignals:
    return ShippingSignals(
        free_shipping_mentioned=bool(FREE_SHIPPING_RE.search(text)),
        delivery_estimate_mentioned=bool(DELIVERY_ESTIMATE_RE.search(text)),
    )


def detect_guarantees(text: str) -> GuaranteeSignals:
    return GuaranteeSignals(
        money_back_mentioned=bool(MONEY_BACK_RE.search(text)),
        warranty_mentioned=bool(WARRANTY_RE.search(text)),
    )


def detect_security(text: str, selector_hits: dict[str, int]) -> SecuritySignals:
    return SecuritySignals(
        secure_checkout_mentioned=any(p in text for p in SECURE_CHECKOUT_PHRASES),
        security_badge_detected=selector_hits.get("security_seal", 0) > 0,
    )


def detect_social_proof(text: str, selector_hits: dict[str, int]) -> SocialProofSignals:
    return SocialProofSignals(
        customer_count_mentioned=bool(CUSTOMER_COUNT_RE.search(text)),
        press_mention_detected=any(p in text for p in PRESS_PHRASES) or selector_hits.get("press_logos", 0) > 0,
    )


def detect_support(text: str, selector_hits: dict[str, int]) -> SupportSignals:
    return SupportSignals(
        live_chat_widget_detected=selector_hits.get("live_chat", 0) > 0 or any(p in text for p in LIVE_CHAT_PHRASES),
        support_hours_mentioned=bool(SUPPORT_HOURS_RE.search(text)),
    )


# ---------------------------------------------------------------------------
# Trust badges


def is_above_fold(
    top_offset_px: float,
    viewport_height: float,
    in_footer: bool = False,
    footer_top: float | None = None,
) -> bool:
    """A badge counts as above the fold when it starts inside the first
    viewport, or when it sits in a footer that itself starts there."""
    if top_offset_px < viewport_height:
        return True
    return bool(in_footer and footer_top is not None and footer_top < viewport_height)


def _descriptor(el: ElementInfo) -> str:
    return " ".join((el.alt, el.title, el.aria_label, el.class_name, el.element_id, el.src)).lower()


def _is_social(text: str) -> bool:
    return any(kw in text for kw in SOCIAL_KEYWORDS)


def badge_kind(text: str) -> BadgeKind | None:
    if _is_social(text):
        return None
    if PAYMENT_BRAND_RE.search(text):
        return "payment"
    if SECURITY_RE.search(text):
        return "security"
    if GENERIC_BADGE_RE.search(text):
        return "generic"
    return None


def _eligible(el: ElementInfo) -> bool:
    if el.width < MIN_BADGE_SIZE_PX or el.height < MIN_BADGE_SIZE_PX:
        return False
    if el.width > MAX_BADGE_WIDTH_PX or el.height > MAX_BADGE_HEIGHT_PX:
        return False
    return el.top >= OFFSCREEN_TOP_LIMIT_PX


def _make_badge(el: ElementInfo, kind: BadgeKind, reason: str, snapshot: DomSnapshot) -> Badge:
    return Badge(
        kind=kind,
        source_ref=el.src,
        alt_text=el.alt or el.title or el.aria_label,
        top_offset_px=el.top,
        left_offset_px=el.left,
        is_above_fold=is_above_fold(el.top, snapshot.viewport_height, el.in_footer, el.footer_top),
        match_reason=reason,
    )


def _keyword_badges(snapshot: DomSnapshot) -> list[Badge]:
    out: list[Badge] = []
    for el in snapshot.elements:
        if not _eligible(el):
            continue
        kind = badge_kind(_descriptor(el))
        if kind:
            out.append(_make_badge(el, kind, "keyword", snapshot))
    return out


def _container_kind(context: str) -> BadgeKind:
    if "payment" in context or "card-icons" in context:
        return "payment"
    if "secure" in context or "guarantee" in context:
        return "security"
    return "generic"


def _container_badges(snapshot: DomSnapshot) -> list[Badge]:
    out: list[Badge] = []
    for el in snapshot.elements:
        if not _eligible(el):
            continue
        context = el.ancestor_context
        if _is_social(_descriptor(el)) or _is_social(context):
            continue
        if any(hint in context for hint in TRUST_CONTAINER_HINTS):
            out.append(_make_badge(el, _container_kind(context), "container", snapshot))
    return out


def _footer_badges(snapshot: DomSnapshot) -> list[Badge]:
    out: list[Badge] = []
    for el in snapshot.elements:
        if not el.in_footer or not _eligible(el):
            continue
        if el.width > FOOTER_ICON_MAX_WIDTH_PX or el.height > FOOTER_ICON_MAX_HEIGHT_PX:
            continue
        text = _descriptor(el)
        if _is_social(text) or _is_social(el.ancestor_context):
            continue
        kind = badge_kind(text)
        if kind:
            out.append(_make_badge(el, kind, "footer_keyword", snapshot))
        elif el.sibling_icon_count >= FOOTER_ICON_ROW_MIN_SIBLINGS:
            out.append(_make_badge(el, "generic", "footer_row", snapshot))
    return out


BADGE_DETECTORS: tuple[Callable[[DomSnapshot], list[Badge]], ...] = (
    _keyword_badges,
    _container_badges,
    _footer_badges,
)


def _same_badge(a: Badge, b: Badge) -> bool:
    if a.source_ref and a.source_ref == b.source_ref and a.alt_text == b.alt_text:
        return True
    return (
        abs(a.top_offset_px - b.top_offset_px) <= BADGE_DEDUP_DISTANCE_PX
        and abs(a.left_offset_px - b.left_offset_px) <= BADGE_DEDUP_DISTANCE_PX
    )


def merge_badges(groups: Iterable[list[Badge]]) -> list[Badge]:
    merged: list[Badge] = []
    for group in groups:
        for badge in group:
            if not any(_same_badge(badge, kept) for kept in merged):
                merged.append(badge)
    return merged


def detect_trust_badges(snapshot: DomSnapshot) -> TrustBadges:
    return TrustBadges.from_items(merge_badges(detector(snapshot) for detector in BADGE_DETECTORS))


# ---------------------------------------------------------------------------
# Page and product assembly


def build_page_signals(snapshot: DomSnapshot, url: str) -> PageSignals:
    final_url = snapshot.url or url
    domain = page_domain(final_url)
    text = snapshot.body_text.lower()
    badges = detect_trust_badges(snapshot)
    logger.debug("Detected %d trust badges (%d above fold) on %s", badges.total_count, len(badges.above_fold_items), final_url)
    return PageSignals(
        url=url,
        is_secure=is_secure_url(final_url),
        pages=classify_links(snapshot.links),
        emails=discover_emails(snapshot, domain),
        has_reviews=detect_reviews(snapshot),
        trust_badges=badges,
        shipping=detect_shipping(text),
        guarantees=detect_guarantees(text),
        security=detect_security(text, snapshot.selector_hits),
        social_proof=detect_social_proof(text, snapshot.selector_hits),
        support=detect_support(text, snapshot.selector_hits),
    )


def find_product_link(snapshot: DomSnapshot, base_url: str) -> str | None:
    """First same-site link that looks like a product-detail page."""
    host = page_domain(snapshot.url or base_url)
    for link in snapshot.links:
        absolute = urljoin(base_url, link.href)
        parsed = urlparse(absolute)
        if parsed.scheme not in ("http", "https"):
            continue
        if page_domain(absolute) != host:
            continue
        path = parsed.path.lower()
        if path.endswith(PRODUCT_PATH_EXCLUDE):
            continue
        if PRODUCT_PATH_RE.search(path):
            return urlunparse(parsed._replace(fragment=""))
    return None


def _trust_near_action(snapshot: DomSnapshot) -> bool:
    cta = snapshot.cta
    if not cta.found:
        return False
    for icon in cta.icons:
        if not _eligible(icon):
            continue
        if badge_kind(_descriptor(icon)):
            return True
        if not _is_social(icon.ancestor_context) and any(h in icon.ancestor_context for h in TRUST_CONTAINER_HINTS):
            return True
    text = cta.text.lower()
    return any(p in text for p in SECURE_CHECKOUT_PHRASES) or bool(MONEY_BACK_RE.search(text))


def _distinct_large_images(snapshot: DomSnapshot) -> int:
    sources: set[str] = set()
    for el in snapshot.elements:
        if el.tag != "img" or not el.src:
            continue
        if el.width < PRODUCT_IMAGE_MIN_PX or el.height < PRODUCT_IMAGE_MIN_PX:
            continue
        # CDN resize parameters do not make a different picture
        sources.add(el.src.split("?", 1)[0])
    return len(sources)


def build_product_signals(snapshot: DomSnapshot, url: str) -> ProductSignals:
    text = snapshot.body_text.lower()
    return ProductSignals(
        found=True,
        url=url,
        reviews_visible=detect_reviews(snapshot),
        trust_badges_near_action=_trust_near_action(snapshot),
        return_policy_mentioned=bool(RETURN_POLICY_RE.search(text)),
        size_or_spec_info_present=any(p in text for p in SIZE_SPEC_PHRASES),
        in_stock_signal=not any(p in text for p in SOLD_OUT_PHRASES),
        multiple_distinct_images=_distinct_large_images(snapshot) >= PRODUCT_IMAGE_MIN_COUNT,
    )
