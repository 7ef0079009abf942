"""Raw DOM facts collected from a rendered page in one evaluate call.

The script below only gathers data (links, texts, element geometry, selector
hit counts). All interpretation happens in ``heuristics`` so it can run
against a hand-built ``DomSnapshot`` without a browser.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .vocab import BADGE_CANDIDATE_SELECTOR, CTA_SELECTOR, CTA_TEXT_RE, SELECTOR_GROUPS


class LinkInfo(BaseModel):
    href: str
    text: str = ""


class ElementInfo(BaseModel):
    tag: str
    src: str = ""
    alt: str = ""
    title: str = ""
    aria_label: str = ""
    class_name: str = ""
    element_id: str = ""
    top: float = 0
    left: float = 0
    width: float = 0
    height: float = 0
    in_footer: bool = False
    # top of the footer that contains this element, if any
    footer_top: float | None = None
    # class/id of the nearest few ancestors, lower-cased and space-joined
    ancestor_context: str = ""
    # number of img/svg siblings sharing this element's row container
    sibling_icon_count: int = 0


class CtaContext(BaseModel):
    found: bool = False
    text: str = ""
    icons: list[ElementInfo] = Field(default_factory=list)


class DomSnapshot(BaseModel):
    url: str = ""
    viewport_height: float = 0
    body_text: str = ""
    footer_text: str = ""
    contact_texts: list[str] = Field(default_factory=list)
    mailto_hrefs: list[str] = Field(default_factory=list)
    links: list[LinkInfo] = Field(default_factory=list)
    elements: list[ElementInfo] = Field(default_factory=list)
    selector_hits: dict[str, int] = Field(default_factory=dict)
    cta: CtaContext = Field(default_factory=CtaContext)


SNAPSHOT_SCRIPT = r"""
(args) => {
  const lower = (v) => (v == null ? "" : String(v)).toLowerCase();
  const classOf = (el) => {
    const c = el.getAttribute && el.getAttribute("class");
    return lower(c || "");
  };

  const topOf = (el) => el.getBoundingClientRect().top + window.scrollY;

  // A <footer> nested in article/aside/main/nav/section belongs to that
  // section, not the page. Class-named footers only count when the page has
  // no semantic one, and only as a whole class token (not "drawer__footer").
  let footers = Array.from(document.querySelectorAll("footer, [role='contentinfo' i]")).filter(
    (f) => f.matches("[role='contentinfo' i]") || !(f.parentElement && f.parentElement.closest("article, aside, main, nav, section"))
  );
  if (!footers.length) {
    footers = Array.from(
      document.querySelectorAll("#footer, [class~='footer' i], [class*='site-footer' i], [id*='site-footer' i]")
    );
  }
  footers = footers.filter((f) => !footers.some((o) => o !== f && o.contains(f)));
  const footerEl = footers.length ? footers[footers.length - 1] : null;
  const footerOf = (el) => footers.find((f) => f.contains(el)) || null;

  const ancestorContext = (el) => {
    const parts = [];
    let node = el.parentElement;
    for (let i = 0; node && i < 4; i += 1) {
      parts.push(classOf(node), lower(node.id));
      node = node.parentElement;
    }
    return parts.filter(Boolean).join(" ");
  };

  const siblingIcons = (el) => {
    let row = el.parentElement;
    // Icons are often wrapped one level deep (li > img, a > svg).
    if (row && row.children.length === 1 && row.parentElement) row = row.parentElement;
    if (!row) return 0;
    return row.querySelectorAll("img, svg").length;
  };

  const describe = (el) => {
    const rect = el.getBoundingClientRect();
    const footer = footerOf(el);
    const tag = lower(el.tagName);
    let src = "";
    if (tag === "img") {
      src = el.currentSrc || el.src || el.getAttribute("data-src") || "";
    } else if (tag === "svg") {
      const use = el.querySelector("use");
      src = use ? (use.getAttribute("href") || use.getAttribute("xlink:href") || "") : "";
    } else {
      const bg = window.getComputedStyle(el).backgroundImage || "";
      src = bg === "none" ? "" : bg;
    }
    let title = el.getAttribute("title") || "";
    if (!title && tag === "svg") {
      const t = el.querySelector("title");
      title = t ? t.textContent || "" : "";
    }
    return {
      tag,
      src,
      alt: el.getAttribute("alt") || "",
      title,
      aria_label: el.getAttribute("aria-label") || "",
      class_name: classOf(el),
      element_id: lower(el.id),
      top: rect.top + window.scrollY,
      left: rect.left + window.scrollX,
      width: rect.width,
      height: rect.height,
      in_footer: Boolean(footer),
      footer_top: footer ? topOf(footer) : null,
      ancestor_context: ancestorContext(el),
      sibling_icon_count: siblingIcons(el),
    };
  };

  const seen = new Set();
  const elements = [];
  for (const el of document.querySelectorAll(args.candidateSelector)) {
    if (seen.has(el)) continue;
    seen.add(el);
    // Skip svg children of an already collected svg.
    if (lower(el.tagName) !== "svg" && el.closest("svg")) continue;
    elements.push(describe(el));
  }

  const selectorHits = {};
  for (const [name, selector] of Object.entries(args.selectorGroups)) {
    try {
      selectorHits[name] = document.querySelectorAll(selector).length;
    } catch (e) {
      selectorHits[name] = 0;
    }
  }

  const ctaPattern = new RegExp(args.ctaTextPattern, "i");
  let cta = document.querySelector(args.ctaSelector);
  if (!cta) {
    cta = Array.from(document.querySelectorAll("button, input[type='submit'], a")).find((el) =>
      ctaPattern.test(el.textContent || el.value || "")
    ) || null;
  }
  let ctaContext = { found: false, text: "", icons: [] };
  if (cta) {
    let scope = cta.closest("form") || cta.parentElement;
    for (let i = 0; scope && i < 2 && scope.parentElement && scope.parentElement !== document.body; i += 1) {
      scope = scope.parentElement;
    }
    if (scope) {
      ctaContext = {
        found: true,
        text: scope.innerText || "",
        icons: Array.from(scope.querySelectorAll("img, svg")).map(describe),
      };
    }
  }

  return {
    url: window.location.href,
    viewport_height: window.innerHeight,
    body_text: document.body ? document.body.innerText || "" : "",
    footer_text: footerEl ? footerEl.innerText || "" : "",
    contact_texts: Array.from(document.querySelectorAll("[class*='contact' i], [id*='contact' i]")).map(
      (el) => el.innerText || ""
    ),
    mailto_hrefs: Array.from(document.querySelectorAll("a[href^='mailto:' i]")).map(
      (a) => a.getAttribute("href") || ""
    ),
    links: Array.from(document.querySelectorAll("a[href]")).map((a) => ({
      href: a.href || "",
      text: (a.innerText || a.textContent || "").trim(),
    })),
    elements,
    selector_hits: selectorHits,
    cta: ctaContext,
  };
}
"""


def snapshot_args() -> dict[str, Any]:
    return {
        "candidateSelector": BADGE_CANDIDATE_SELECTOR,
        "selectorGroups": SELECTOR_GROUPS,
        "ctaSelector": CTA_SELECTOR,
        "ctaTextPattern": CTA_TEXT_RE.pattern,
    }


async def collect_snapshot(page) -> DomSnapshot:
    """Run the snapshot script in ``page`` (a Playwright page) and validate the result."""
    raw = await page.evaluate(SNAPSHOT_SCRIPT, snapshot_args())
    return DomSnapshot.model_validate(raw)


LINKS_SCRIPT = r"""
() => Array.from(document.querySelectorAll("a[href]")).map((a) => ({
  href: a.href || "",
  text: (a.innerText || a.textContent || "").trim(),
}))
"""


async def collect_links(page) -> DomSnapshot:
    """Links-only snapshot, enough for product-page discovery."""
    raw = await page.evaluate(LINKS_SCRIPT)
    return DomSnapshot.model_validate({"links": raw})
