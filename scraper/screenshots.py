# screenshots.py
import logging
from pathlib import Path
from typing import List, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError, Page

from .constants import ELEMENT_SCREENSHOT_TARGETS, SCREENSHOT_DIR
from .models import ElementCapture
from .utils import ensure_dir

logger = logging.getLogger(__name__)


async def take_screenshot(page: Page, filename: str, output_dir) -> str:
    path = ensure_dir(Path(output_dir) / SCREENSHOT_DIR) / filename
    await page.screenshot(path=str(path), full_page=True)
    logger.info(f"  Screenshot saved: {filename}")
    return str(path)


async def take_element_screenshots(
    page: Page,
    output_dir,
    page_name: str,
    targets: Sequence[Tuple[str, str]] = ELEMENT_SCREENSHOT_TARGETS,
) -> List[ElementCapture]:
    """Best effort: a missing or unscreenshottable element is skipped."""
    logger.info("  Capturing element screenshots...")
    captures = []
    for name, selector in targets:
        try:
            element = await page.query_selector(selector)
            if not element:
                continue
            path = ensure_dir(Path(output_dir) / SCREENSHOT_DIR) / f"{page_name}-{name}.png"
            await element.screenshot(path=str(path))
        except PlaywrightError as e:
            logger.warning(f"  Could not capture {name}: {e}")
            continue
        captures.append(ElementCapture(name=name, selector=selector, path=str(path)))
        logger.debug(f"  Captured {name}")
    return captures
