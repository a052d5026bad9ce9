# interactions.py
"""Selector resolution.

An intent ("the button that creates a project") is resolved by trying an
ordered list of strategies, most specific first. The first strategy that
finds a visible element wins and the action is performed on it immediately.
When every strategy misses, a diagnostic screenshot is taken and
ResolutionFailure is raised.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError, Page, TimeoutError as PlaywrightTimeoutError

from .constants import STRATEGY_TIMEOUT
from .errors import ResolutionFailure
from .utils import ensure_dir, slugify

logger = logging.getLogger(__name__)

# Runs in the page. With action 'probe' it only reports whether a visible
# candidate exists; with 'click' / 'fill' it also performs the action.
SCRIPT_SCAN = """
({texts, candidates, action, value}) => {
    const isVisible = (el) => {
        const rect = el.getBoundingClientRect();
        return rect.width > 0 && rect.height > 0 &&
            getComputedStyle(el).visibility !== 'hidden';
    };
    const isClickable = (el) =>
        el.tagName === 'BUTTON' ||
        el.getAttribute('role') === 'button' ||
        el.onclick !== null;
    const wanted = texts.map(t => t.toLowerCase());
    const target = Array.from(document.querySelectorAll(candidates)).find(el => {
        const text = (el.textContent || '').toLowerCase();
        return isVisible(el) &&
            (candidates !== '*' || isClickable(el)) &&
            wanted.some(t => text.includes(t));
    });
    if (!target) return false;
    if (action === 'click') {
        target.click();
    } else if (action === 'fill') {
        target.value = value;
        target.dispatchEvent(new Event('input', { bubbles: true }));
        target.dispatchEvent(new Event('change', { bubbles: true }));
    }
    return true;
}
"""


class SelectorStrategy:
    kind = 'strategy'

    async def try_locate(self, page: Page, timeout_ms: int) -> Optional[Any]:
        raise NotImplementedError

    def describe(self) -> str:
        return self.kind


class LocatorStrategy(SelectorStrategy):
    """Strategy backed by a Playwright locator."""

    def locator(self, page: Page):
        raise NotImplementedError

    async def try_locate(self, page: Page, timeout_ms: int) -> Optional[Any]:
        locator = self.locator(page).first
        try:
            await locator.wait_for(state='visible', timeout=timeout_ms)
        except PlaywrightTimeoutError:
            return None
        box = await locator.bounding_box()
        if not box or box.get('width', 0) <= 0 or box.get('height', 0) <= 0:
            return None
        return locator


class AttributeStrategy(LocatorStrategy):
    kind = 'attribute'

    def __init__(self, selector: str):
        self.selector = selector

    def locator(self, page: Page):
        return page.locator(self.selector)

    def describe(self) -> str:
        return f"css={self.selector}"


class TextStrategy(LocatorStrategy):
    kind = 'text'

    def __init__(self, text: str, exact: bool = False):
        self.text = text
        self.exact = exact

    def locator(self, page: Page):
        return page.get_by_text(self.text, exact=self.exact)

    def describe(self) -> str:
        return f"text={self.text!r}"


class RoleStrategy(LocatorStrategy):
    kind = 'role'

    def __init__(self, role: str, name: str, exact: bool = False):
        self.role = role
        self.name = name
        self.exact = exact

    def locator(self, page: Page):
        return page.get_by_role(self.role, name=self.name, exact=self.exact)

    def describe(self) -> str:
        return f"role={self.role}[name={self.name!r}]"


class ScriptHandle:
    """Handle returned by ScriptScanStrategy; actions re-run the scan in the page."""

    def __init__(self, page: Page, strategy: 'ScriptScanStrategy'):
        self.page = page
        self.strategy = strategy

    async def _run(self, action: str, value: Optional[str] = None) -> None:
        done = await self.page.evaluate(SCRIPT_SCAN, self.strategy.script_args(action, value))
        if not done:
            raise PlaywrightError(f"Script scan found no element for {self.strategy.describe()}")

    async def click(self, timeout: Optional[int] = None) -> None:
        await self._run('click')

    async def fill(self, value: str, timeout: Optional[int] = None) -> None:
        await self._run('fill', value)


class ScriptScanStrategy(SelectorStrategy):
    """Last resort: scan the whole tree inside the page for matching text."""
    kind = 'script'

    def __init__(self, texts: Sequence[str], candidates: str = '*'):
        self.texts = list(texts)
        self.candidates = candidates

    def script_args(self, action: str, value: Optional[str] = None) -> dict:
        return {'texts': self.texts, 'candidates': self.candidates, 'action': action, 'value': value}

    async def try_locate(self, page: Page, timeout_ms: int) -> Optional[Any]:
        found = await page.evaluate(SCRIPT_SCAN, self.script_args('probe'))
        return ScriptHandle(page, self) if found else None

    def describe(self) -> str:
        return f"script-scan={self.texts!r}"


@dataclass
class Resolution:
    intent: str
    strategy: str
    kind: str
    index: int
    attempts: int


async def perform(handle: Any, action: str, value: Optional[str], timeout_ms: int) -> None:
    if action == 'click':
        await handle.click(timeout=timeout_ms)
    elif action == 'fill':
        await handle.fill(value or '', timeout=timeout_ms)
    elif action == 'press':
        await handle.press(value, timeout=timeout_ms)
    else:
        raise ValueError(f"Unknown action: {action}")


class SelectorResolver:
    def __init__(self, page: Page, debug_dir='.', timeout_ms: int = STRATEGY_TIMEOUT):
        self.page = page
        self.debug_dir = Path(debug_dir)
        self.timeout_ms = timeout_ms
        self.resolutions: List[Resolution] = []

    def debug_screenshot_path(self, intent: str) -> Path:
        return self.debug_dir / f"debug-{slugify(intent)}.png"

    async def resolve(
        self,
        intent: str,
        strategies: Sequence[SelectorStrategy],
        action: str = 'click',
        value: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> Resolution:
        timeout_ms = self.timeout_ms if timeout_ms is None else timeout_ms

        for index, strategy in enumerate(strategies):
            try:
                handle = await strategy.try_locate(self.page, timeout_ms)
            except PlaywrightError as e:
                logger.debug(f"  {intent}: {strategy.describe()} failed: {e}")
                continue
            if handle is None:
                logger.debug(f"  {intent}: no visible match for {strategy.describe()}")
                continue
            try:
                await perform(handle, action, value, timeout_ms)
            except PlaywrightError as e:
                logger.debug(f"  {intent}: {action} failed using {strategy.describe()}: {e}")
                continue

            resolution = Resolution(intent, strategy.describe(), strategy.kind, index, index + 1)
            self.resolutions.append(resolution)
            logger.info(f"  {intent}: {action} using {strategy.describe()}")
            return resolution

        screenshot = await self._diagnostic_screenshot(intent)
        raise ResolutionFailure(intent, len(strategies), screenshot)

    async def _diagnostic_screenshot(self, intent: str) -> Optional[str]:
        path = self.debug_screenshot_path(intent)
        try:
            ensure_dir(path.parent)
            await self.page.screenshot(path=str(path), full_page=True)
        except PlaywrightError as e:
            logger.warning(f"Could not save diagnostic screenshot for {intent}: {e}")
            return None
        logger.info(f"Screenshot saved to: {path}")
        return str(path)
