# capture.py
import logging
from typing import Any, Dict

from playwright.async_api import Page

from .models import PageCapture, ScreenshotSet, SessionCaptureDocument
from .network import NetworkCorrelator
from .screenshots import take_element_screenshots, take_screenshot
from .snapshots import extract_dom_snapshot, extract_interactive_elements

logger = logging.getLogger(__name__)


async def capture_page_data(
    page: Page,
    step_name: str,
    correlator: NetworkCorrelator,
    document: SessionCaptureDocument,
    config: Dict[str, Any],
) -> PageCapture:
    """Capture DOM, interactive elements, screenshots and API calls for one step."""
    logger.info(f"Capturing {step_name} data...")
    output_dir = config['output_dir']

    # let in-flight API traffic for the arrival state land
    await page.wait_for_timeout(config['capture_settle'])

    dom_structure = await extract_dom_snapshot(page, config['max_dom_depth'])
    interactive_elements = await extract_interactive_elements(page)

    logger.info("  Capturing screenshots...")
    main_screenshot = await take_screenshot(page, f"{step_name}-full.png", output_dir)
    element_screenshots = await take_element_screenshots(page, output_dir, step_name)

    api_calls = await correlator.flush_to_store(step_name)

    capture = PageCapture(
        name=step_name,
        url=page.url,
        dom_structure=dom_structure,
        interactive_elements=tuple(interactive_elements),
        api_calls=len(api_calls),
        screenshots=ScreenshotSet(main=main_screenshot, elements=element_screenshots),
    )
    document.append(capture)
    logger.info(f"Completed {step_name}")
    return capture
