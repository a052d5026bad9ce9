# browser.py
import logging
import re
from pathlib import Path
from typing import Any, Dict, Sequence
from urllib.parse import urlparse

from playwright.async_api import Browser, BrowserContext, Error as PlaywrightError, Page

from .constants import DIALOG_CLOSE_SELECTORS, DIALOG_SETTLE, ESCAPE_SETTLE
from .errors import CredentialFailure, DialogDismissalMiss
from .utils import ensure_dir

logger = logging.getLogger(__name__)

EMAIL_INPUT = 'input[type="email"]'
PASSWORD_INPUT = 'input[type="password"]'


async def create_context(browser: Browser, config: Dict[str, Any]) -> BrowserContext:
    return await browser.new_context(
        viewport=config['viewport'],
        user_agent=config['user_agent'],
        locale=config['locale'],
        timezone_id=config['timezone_id'],
    )


def authenticated_url_matcher(pattern: str):
    regex = re.compile(pattern)

    def matches(url: str) -> bool:
        return bool(regex.search(urlparse(url).path))

    return matches


async def _dismiss_one(page: Page, selector: str, settle_ms: int) -> None:
    button = await page.query_selector(selector)
    if not button or not await button.is_visible():
        raise DialogDismissalMiss(selector)
    await button.click()
    await page.wait_for_timeout(settle_ms)


async def dismiss_dialogs(
    page: Page,
    selectors: Sequence[str] = DIALOG_CLOSE_SELECTORS,
    settle_ms: int = DIALOG_SETTLE,
    escape_settle_ms: int = ESCAPE_SETTLE,
) -> int:
    """Close onboarding/signup dialogs. Never raises; returns the number dismissed."""
    logger.debug("  Checking for dialogs to dismiss...")
    dismissed = 0
    for selector in selectors:
        try:
            await _dismiss_one(page, selector, settle_ms)
        except DialogDismissalMiss:
            continue
        except PlaywrightError as e:
            logger.debug(f"  Could not use close control {selector}: {e}")
            continue
        dismissed += 1
        logger.info("  Dismissed a dialog")

    try:
        await page.keyboard.press("Escape")
        await page.wait_for_timeout(escape_settle_ms)
    except PlaywrightError as e:
        logger.debug(f"  Escape key failed: {e}")
    return dismissed


async def login(page: Page, email: str, password: str, config: Dict[str, Any]) -> None:
    """Two-stage login: the identifier must be acknowledged before the secret is entered."""
    if not email or not password:
        raise CredentialFailure("ASANA_EMAIL and ASANA_PASSWORD must be set")

    logger.info("Logging into Asana...")
    try:
        await page.goto(config['login_url'], wait_until='load', timeout=config['login_navigation_timeout'])
        await page.wait_for_timeout(config['login_page_settle'])

        logger.info("  Step 1: Entering email...")
        await page.wait_for_selector(EMAIL_INPUT, timeout=config['login_field_timeout'])
        await page.fill(EMAIL_INPUT, email)
        await page.press(EMAIL_INPUT, "Enter")

        logger.info("  Step 2: Waiting for password field...")
        await page.wait_for_selector(PASSWORD_INPUT, timeout=config['login_field_timeout'])
        await page.fill(PASSWORD_INPUT, password)
        await page.press(PASSWORD_INPUT, "Enter")

        logger.info("  Waiting for home page to load...")
        await page.wait_for_url(
            authenticated_url_matcher(config['authenticated_path_pattern']),
            timeout=config['authenticated_url_timeout'],
        )
        await page.wait_for_load_state('load', timeout=config['load_state_timeout'])
        await page.wait_for_timeout(config['post_login_settle'])
    except PlaywrightError as e:
        logger.error(f"Login failed: {e}")
        logger.info(f"Current URL: {page.url}")
        screenshot = await _login_screenshot(page, config)
        raise CredentialFailure(f"Login failed: {e}", screenshot) from e

    await dismiss_dialogs(page, settle_ms=config['dialog_settle'], escape_settle_ms=config['escape_settle'])
    logger.info("Logged in successfully")


async def _login_screenshot(page: Page, config: Dict[str, Any]):
    path = ensure_dir(Path(config['debug_dir'])) / 'debug-login-failed.png'
    try:
        await page.screenshot(path=str(path), full_page=True)
    except PlaywrightError:
        return None
    logger.info(f"Screenshot saved to: {path}")
    return str(path)
