# crawler.py
import logging
from typing import Any, Dict, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext

from .browser import create_context
from .models import SessionCaptureDocument
from .network import NetworkCorrelator
from .utils import ensure_dir
from .workflow import CaptureWorkflow

logger = logging.getLogger(__name__)


class CaptureRunner:
    """Owns the browser session for one capture run."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.playwright = None
        self.workflow: Optional[CaptureWorkflow] = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    async def initialize(self):
        logger.info("Launching browser...")
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(
            headless=not self.config.get('headful', False),
            args=["--start-maximized"],
        )
        self.context = await create_context(self.browser, self.config)

    async def cleanup(self):
        if self.context:
            await self.context.close()
        if self.browser:
            await self.browser.close()
        if self.playwright:
            await self.playwright.stop()

    async def run(self) -> SessionCaptureDocument:
        ensure_dir(self.config['output_dir'])
        page = await self.context.new_page()

        # one correlator for the page's whole lifetime
        correlator = NetworkCorrelator(self.config['output_dir'])
        correlator.attach(page)

        self.workflow = CaptureWorkflow(page, correlator, self.config)
        try:
            document = await self.workflow.run()
        finally:
            await page.close()

        total_api_calls = len(correlator.current_api_calls())
        total_screenshots = sum(1 + len(p.screenshots.elements) for p in document.pages)
        logger.info(f"Captured {len(document.pages)} pages")
        logger.info(f"Recorded {total_api_calls} API calls")
        logger.info(f"Saved {total_screenshots} screenshots")
        logger.info(f"All data saved to {self.config['output_dir']}")
        return document
