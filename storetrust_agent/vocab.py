"""Keyword, pattern and selector tables used by the page heuristics.

Everything here is matched against lower-cased text unless noted otherwise.
"""
from __future__ import annotations

import re


# Link classification: a capability is present when any hyperlink (href or
# link text) contains one of its keywords.
PAGE_LINK_KEYWORDS: dict[str, tuple[str, ...]] = {
    "has_contact": ("contact", "support"),
    "has_about": ("about",),
    "has_return_policy": ("return", "refund", "policy"),
    "has_privacy_policy": ("privacy",),
}


# Emails
EMAIL_RE = re.compile(r"[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}", re.IGNORECASE)

FALLBACK_EMAIL_PREFIXES = ("support", "info", "hello", "contact", "help", "sales")

NOREPLY_PREFIXES = ("noreply", "no-reply")

PLACEHOLDER_LOCAL_PARTS = ("email", "name", "your", "youremail", "your-email", "yourname")

FILE_EXTENSION_SUFFIXES = (
    ".png", ".jpg", ".jpeg", ".gif", ".webp", ".avif", ".svg", ".ico", ".bmp",
    ".js", ".mjs", ".css", ".json",
    ".woff", ".woff2", ".ttf", ".otf", ".eot",
)


# Reviews
REVIEW_TEXT_KEYWORDS = ("reviews",)
STAR_GLYPHS_RE = re.compile(r"(?:[★☆⭐]\s?){3,}")


# Shipping
FREE_SHIPPING_RE = re.compile(r"\bfree\s+(?:standard\s+|express\s+|worldwide\s+)?(?:shipping|delivery)\b")
DELIVERY_ESTIMATE_RE = re.compile(
    r"\b\d{1,2}\s*(?:-|–|to)\s*\d{1,2}\s*(?:business\s+|working\s+)?days?\b"
    r"|\b(?:ships|dispatched|shipped)\s+within\b"
    r"|\bestimated\s+delivery\b"
    r"|\b(?:next|same)[\s-]day\s+(?:delivery|shipping|dispatch)\b"
)

# Guarantees
MONEY_BACK_RE = re.compile(
    r"\bmoney[\s-]back\b"
    r"|\bsatisfaction\s+guarantee"
    r"|\bfull\s+refund\b"
    r"|\b\d{1,3}[\s-]day\s+(?:free\s+)?(?:returns?|refunds?)\b"
)
WARRANTY_RE = re.compile(r"\bwarrant(?:y|ies)\b|\blifetime\s+guarantee\b")

# Security copy
SECURE_CHECKOUT_PHRASES = (
    "secure checkout",
    "secure payment",
    "safe checkout",
    "guaranteed safe",
    "ssl secured",
    "ssl encrypted",
    "256-bit",
    "encrypted payment",
    "100% secure",
)

# Social proof
CUSTOMER_COUNT_RE = re.compile(
    r"\b\d[\d,.]*\s*[km]?\+?\s+(?:happy\s+|satisfied\s+|loyal\s+)?(?:customers|clients|shoppers|buyers)\b"
)
PRESS_PHRASES = ("as seen in", "as seen on", "as featured in", "featured in", "featured on")

# Support
LIVE_CHAT_PHRASES = ("live chat", "chat with us", "chat now")
SUPPORT_HOURS_RE = re.compile(
    r"\b\d{1,2}(?::\d{2})?\s*(?:am|pm)\s*(?:-|–|to)\s*\d{1,2}(?::\d{2})?\s*(?:am|pm)\b"
    r"|\b(?:[01]?\d|2[0-3]):[0-5]\d\s*(?:-|–|to)\s*(?:[01]?\d|2[0-3]):[0-5]\d\b"
    r"|\b24/7\b"
    r"|\bmon(?:day)?\s*(?:-|–|to)\s*(?:fri|sat|sun)"
    r"|\b(?:business|office|support|customer service)\s+hours\b"
)


# Trust badges
PAYMENT_BRAND_KEYWORDS = (
    "visa",
    "mastercard",
    "master-card",
    "maestro",
    "amex",
    "american-express",
    "american express",
    "discover",
    "paypal",
    "apple-pay",
    "applepay",
    "apple pay",
    "google-pay",
    "googlepay",
    "google pay",
    "gpay",
    "shop-pay",
    "shoppay",
    "shop pay",
    "klarna",
    "afterpay",
    "affirm",
    "stripe",
    "diners",
    "jcb",
    "unionpay",
    "venmo",
)

SECURITY_KEYWORDS = (
    "secure",
    "security",
    "ssl",
    "norton",
    "mcafee",
    "trustedsite",
    "verified",
    "safe",
    "secured",
    "encrypted",
    "encryption",
    "truste",
    "bbb",
    "trustpilot",
    "guarantee",
    "guaranteed",
)

GENERIC_BADGE_KEYWORDS = (
    "badge",
    "trust",
    "seal",
    "payment",
    "certified",
    "certificate",
)

SOCIAL_KEYWORDS = (
    "facebook",
    "instagram",
    "twitter",
    "tiktok",
    "youtube",
    "pinterest",
    "linkedin",
    "snapchat",
    "whatsapp",
    "social",
)

# Ancestor class/id fragments that mark a payment/trust container.
TRUST_CONTAINER_HINTS = (
    "payment",
    "trust",
    "badge",
    "secure",
    "guarantee",
    "card-icons",
)


def _token_pattern(words: tuple[str, ...]) -> re.Pattern[str]:
    """Whole-token match for a keyword table, allowing a plural "s".

    Hyphens, dots, slashes and underscores count as separators so that
    "icon-visa.svg" matches "visa" while "striped" does not match "stripe".
    """
    alternation = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    return re.compile(rf"(?<![a-z0-9])(?:{alternation})s?(?![a-z0-9])")


PAYMENT_BRAND_RE = _token_pattern(PAYMENT_BRAND_KEYWORDS)
SECURITY_RE = _token_pattern(SECURITY_KEYWORDS)
GENERIC_BADGE_RE = _token_pattern(GENERIC_BADGE_KEYWORDS)

MIN_BADGE_SIZE_PX = 10
# Banners and product photos are larger than any badge.
MAX_BADGE_WIDTH_PX = 400
MAX_BADGE_HEIGHT_PX = 200
OFFSCREEN_TOP_LIMIT_PX = -100
BADGE_DEDUP_DISTANCE_PX = 5

# Footer fallback: small rectangular icons in a row.
FOOTER_ICON_MAX_WIDTH_PX = 160
FOOTER_ICON_MAX_HEIGHT_PX = 80
FOOTER_ICON_ROW_MIN_SIBLINGS = 3


# CSS selectors evaluated in the page; the browser reports a hit count for
# each name.
SELECTOR_GROUPS: dict[str, str] = {
    "review_widget": ", ".join(
        (
            "[class*='review' i]",
            "[id*='review' i]",
            "[class*='rating' i]",
            ".jdgm-widget",
            ".yotpo",
            ".loox-rating",
            ".stamped-main-widget",
            ".okeReviews",
            "[class*='trustpilot' i]",
        )
    ),
    "live_chat": ", ".join(
        (
            "iframe[src*='chat' i]",
            "iframe[title*='chat' i]",
            "[id*='chat-widget' i]",
            "[class*='chat-widget' i]",
            "#shopify-chat",
            "[id*='intercom' i]",
            "[class*='intercom' i]",
            "[id*='tidio' i]",
            "[class*='zendesk' i]",
            "[id*='gorgias' i]",
            "[class*='crisp-client' i]",
            "[class*='livechat' i]",
        )
    ),
    "security_seal": ", ".join(
        (
            "[class*='norton' i]",
            "[class*='mcafee' i]",
            "[class*='trustedsite' i]",
            "[class*='secure-badge' i]",
            "[class*='security-badge' i]",
            "img[src*='ssl' i]",
            "img[alt*='secure' i]",
            "img[alt*='ssl' i]",
        )
    ),
    "press_logos": ", ".join(
        (
            "[class*='as-seen' i]",
            "[class*='featured-in' i]",
            "[class*='press-logo' i]",
            "[id*='as-seen' i]",
        )
    ),
}

# Candidate visual elements for trust-badge detection.
BADGE_CANDIDATE_SELECTOR = ", ".join(
    (
        "img",
        "svg",
        "[class*='payment' i] [class*='icon' i]",
        "[class*='trust' i] [class*='icon' i]",
        "[class*='badge' i] [class*='icon' i]",
    )
)

# Call-to-action controls on a product page.
CTA_SELECTOR = ", ".join(
    (
        "form[action*='/cart/add'] [type='submit']",
        "button[name='add']",
        "[class*='add-to-cart' i]",
        "[id*='add-to-cart' i]",
        "[class*='addtocart' i]",
        "button[class*='buy' i]",
    )
)
CTA_TEXT_RE = re.compile(r"\b(?:add to (?:cart|bag|basket)|buy (?:it )?now)\b")


# Product sub-pass
PRODUCT_PATH_RE = re.compile(r"/(?:products?|p|item)/[^/?#]+", re.IGNORECASE)
PRODUCT_PATH_EXCLUDE = (".json", ".js", ".xml", ".oembed")
RETURN_POLICY_RE = re.compile(r"\b(?:returns?|refunds?|exchanges?)\b")
SIZE_SPEC_PHRASES = (
    "size guide",
    "size chart",
    "sizing",
    "fit guide",
    "specifications",
    "specs",
    "dimensions",
    "measurements",
    "materials",
)
SOLD_OUT_PHRASES = ("sold out",)
PRODUCT_IMAGE_MIN_PX = 200
PRODUCT_IMAGE_MIN_COUNT = 2
