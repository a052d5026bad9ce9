# compare.py
"""Visual/CSS comparison of an original page against its reproduction.

For each selector class the first matching element on both sides is
compared property by property on its computed style. Classes missing on
either side are skipped, not counted as mismatches.
"""
import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from playwright.async_api import async_playwright, BrowserContext, Error as PlaywrightError, Page

from scraper.constants import (
    COMPARISON_LOAD_TIMEOUT,
    COMPARISON_PAGE_PATHS,
    COMPARISON_PROPERTIES,
    COMPARISON_SELECTORS,
    PASS_THRESHOLD,
    VIEWPORT,
)
from scraper.errors import ComparisonLoadError
from scraper.models import ComparisonResult, ComparisonSummary, CssMatch, CssMismatch
from scraper.storage import save_comparison_summary
from scraper.utils import ensure_dir

logger = logging.getLogger(__name__)

StyleVectors = Dict[str, Optional[Dict[str, Optional[str]]]]

STYLE_VECTOR_SCRIPT = """
({selectors, properties}) => {
    const result = {};
    for (const selector of selectors) {
        const el = document.querySelector(selector);
        if (!el) {
            result[selector] = null;
            continue;
        }
        const styles = window.getComputedStyle(el);
        const vector = {};
        for (const property of properties) {
            vector[property] = styles[property];
        }
        result[selector] = vector;
    }
    return result;
}
"""

_WHITESPACE = re.compile(r'\s+')


def normalize_css_value(value: Any) -> str:
    if value is None:
        return ''
    return _WHITESPACE.sub('', str(value).lower())


def css_values_match(value1: Any, value2: Any) -> bool:
    return normalize_css_value(value1) == normalize_css_value(value2)


def compare_styles(
    original: StyleVectors,
    generated: StyleVectors,
    selectors: Sequence[str] = COMPARISON_SELECTORS,
    properties: Sequence[str] = COMPARISON_PROPERTIES,
) -> Tuple[List[CssMatch], List[CssMismatch]]:
    matches: List[CssMatch] = []
    mismatches: List[CssMismatch] = []
    for selector in selectors:
        original_styles = original.get(selector)
        generated_styles = generated.get(selector)
        if original_styles is None or generated_styles is None:
            continue
        for prop in properties:
            original_value = original_styles.get(prop)
            generated_value = generated_styles.get(prop)
            if css_values_match(original_value, generated_value):
                matches.append(CssMatch(selector, prop, original_value))
            else:
                mismatches.append(CssMismatch(selector, prop, original_value, generated_value))
    return matches, mismatches


def score(matches: Sequence[CssMatch], mismatches: Sequence[CssMismatch],
          threshold: float = PASS_THRESHOLD) -> Tuple[bool, str]:
    total = len(matches) + len(mismatches)
    if total == 0:
        return False, '0.00'
    percentage = len(matches) / total * 100
    return percentage >= threshold, f"{percentage:.2f}"


def page_url(root: str, page_identifier: str) -> str:
    path = COMPARISON_PAGE_PATHS.get(page_identifier, f"/{page_identifier}")
    return f"{root.rstrip('/')}{path}"


async def extract_style_vectors(
    page: Page,
    selectors: Sequence[str] = COMPARISON_SELECTORS,
    properties: Sequence[str] = COMPARISON_PROPERTIES,
) -> StyleVectors:
    return await page.evaluate(
        STYLE_VECTOR_SCRIPT, {'selectors': list(selectors), 'properties': list(properties)}
    ) or {}


class VisualComparator:
    def __init__(self, context: BrowserContext, screenshot_dir, load_timeout: int = COMPARISON_LOAD_TIMEOUT):
        self.context = context
        self.screenshot_dir = Path(screenshot_dir)
        self.load_timeout = load_timeout

    async def _load(self, page: Page, url: str) -> None:
        try:
            await page.goto(url, wait_until='networkidle', timeout=self.load_timeout)
        except PlaywrightError as e:
            raise ComparisonLoadError(url, e) from e

    async def compare(self, original_root: str, reproduction_root: str, page_identifier: str) -> ComparisonResult:
        result = ComparisonResult(page=page_identifier)
        opened: List[Page] = []
        try:
            original_page = await self.context.new_page()
            opened.append(original_page)
            generated_page = await self.context.new_page()
            opened.append(generated_page)

            # the two sides have no ordering dependency
            loads = await asyncio.gather(
                self._load(original_page, page_url(original_root, page_identifier)),
                self._load(generated_page, page_url(reproduction_root, page_identifier)),
                return_exceptions=True,
            )
            for outcome in loads:
                if isinstance(outcome, BaseException):
                    raise outcome

            ensure_dir(self.screenshot_dir)
            await original_page.screenshot(
                path=str(self.screenshot_dir / f"{page_identifier}-original.png"), full_page=True)
            await generated_page.screenshot(
                path=str(self.screenshot_dir / f"{page_identifier}-generated.png"), full_page=True)
            logger.info("    Screenshots captured")

            original_vectors = await extract_style_vectors(original_page)
            generated_vectors = await extract_style_vectors(generated_page)
            result.matches, result.mismatches = compare_styles(original_vectors, generated_vectors)
            result.passed, result.match_percentage = score(result.matches, result.mismatches)

            logger.info(f"    CSS matches: {len(result.matches)}")
            logger.info(f"    CSS mismatches: {len(result.mismatches)}")
        except (ComparisonLoadError, PlaywrightError) as e:
            logger.error(f"    Error testing {page_identifier}: {e}")
            result.error = str(e)
        finally:
            for page in opened:
                await page.close()
        return result


async def run_comparisons(comparator: VisualComparator, original_url: str, generated_url: str,
                          pages: Sequence[str]) -> ComparisonSummary:
    summary = ComparisonSummary()
    # one page at a time keeps resource use and log order predictable
    for page_identifier in pages:
        logger.info(f"  Testing {page_identifier} page...")
        result = await comparator.compare(original_url, generated_url, page_identifier)
        summary.tests.append(result)
        if result.passed:
            logger.info(f"  {page_identifier} page passed")
        else:
            logger.info(f"  {page_identifier} page failed ({len(result.mismatches)} differences)")
    return summary


async def run_visual_tests(original_url: str, generated_url: str, pages: Sequence[str],
                           results_dir, headless: bool = True) -> ComparisonSummary:
    logger.info("Setting up visual comparison...")
    results_dir = Path(results_dir)
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)
        try:
            context = await browser.new_context(viewport=VIEWPORT)
            comparator = VisualComparator(context, results_dir / 'screenshots')
            summary = await run_comparisons(comparator, original_url, generated_url, pages)
        finally:
            await browser.close()

    save_comparison_summary(summary, results_dir)
    return summary
