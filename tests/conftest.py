"""
Playwright fakes shared by the test modules
"""
import os
import sys
from pathlib import Path

import pytest

# project root on the import path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from scraper.config import DEFAULT_CONFIG

VISIBLE_BOX = {'x': 10, 'y': 10, 'width': 120, 'height': 32}


class FakeLocator:
    def __init__(self, visible=True, box=VISIBLE_BOX, on_click=None, fail_action=False):
        self.visible = visible
        self.box = box
        self.on_click = on_click
        self.fail_action = fail_action
        self.clicks = 0
        self.filled = []

    @property
    def first(self):
        return self

    async def wait_for(self, state='visible', timeout=None):
        if not self.visible:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded")

    async def bounding_box(self):
        return self.box

    async def click(self, timeout=None):
        if self.fail_action:
            raise PlaywrightError("Element is not attached to the DOM")
        self.clicks += 1
        if self.on_click:
            self.on_click()

    async def fill(self, value, timeout=None):
        if self.fail_action:
            raise PlaywrightError("Element is not an <input>")
        self.filled.append(value)


class FakeElementHandle:
    def __init__(self, visible=True, screenshot_error=None):
        self.visible = visible
        self.screenshot_error = screenshot_error
        self.clicks = 0

    async def is_visible(self):
        return self.visible

    async def click(self):
        self.clicks += 1

    async def screenshot(self, path=None):
        if self.screenshot_error:
            raise self.screenshot_error
        Path(path).write_bytes(b'\x89PNG')


class FakeKeyboard:
    def __init__(self):
        self.pressed = []

    async def press(self, key):
        self.pressed.append(key)


class FakeRequest:
    def __init__(self, url, method='GET', headers=None, post_data=None):
        self.url = url
        self.method = method
        self.headers = headers or {}
        self.post_data = post_data
        self.failure = None


class FakeResponse:
    def __init__(self, request, status=200, headers=None, body='', text_error=None):
        self.request = request
        self.url = request.url
        self.status = status
        self.headers = headers or {}
        self.body = body
        self.text_error = text_error

    async def text(self):
        if self.text_error:
            raise self.text_error
        return self.body


class FakePage:
    """Records what the code under test did to the page.

    Locators are looked up by ('css', selector), ('text', text) or
    ('role', role, name); anything unregistered is never visible. In-page
    scripts are answered by handlers registered in ``scripts``.
    """

    def __init__(self, url='about:blank'):
        self.url = url
        self.locators = {}
        self.scripts = {}
        self.elements = {}
        self.handlers = {}
        self.fields = {}
        self.keyboard = FakeKeyboard()
        self.screenshots = []
        self.visited = []
        self.missing_selectors = set()
        self.after_login_url = None
        self.goto_error = None
        self.slow_urls = set()
        self.closed = False

    def add_locator(self, key, locator=None):
        locator = locator or FakeLocator()
        self.locators[key] = locator
        return locator

    def locator(self, selector):
        return self.locators.get(('css', selector), FakeLocator(visible=False))

    def get_by_text(self, text, exact=False):
        return self.locators.get(('text', text), FakeLocator(visible=False))

    def get_by_role(self, role, name=None, exact=False):
        return self.locators.get(('role', role, name), FakeLocator(visible=False))

    async def evaluate(self, script, arg=None):
        handler = self.scripts.get(script)
        if handler is None:
            return None
        return handler(arg)

    async def screenshot(self, path=None, full_page=False):
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        Path(path).write_bytes(b'\x89PNG')
        self.screenshots.append(path)

    async def goto(self, url, wait_until=None, timeout=None):
        if self.goto_error:
            raise self.goto_error
        self.visited.append(url)
        self.url = url

    async def wait_for_timeout(self, ms):
        pass

    async def wait_for_url(self, url, timeout=None):
        matches = url(self.url) if callable(url) else self.url == url
        if not matches:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for URL")

    async def wait_for_load_state(self, state='load', timeout=None):
        if self.url in self.slow_urls:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {state}")

    async def wait_for_selector(self, selector, timeout=None):
        if selector in self.missing_selectors:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def fill(self, selector, value):
        self.fields[selector] = value

    async def press(self, selector, key):
        if 'password' in selector and key == 'Enter' and self.after_login_url:
            self.url = self.after_login_url

    async def query_selector(self, selector):
        return self.elements.get(selector)

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event, payload):
        for handler in self.handlers.get(event, []):
            handler(payload)

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, pages):
        self._pages = list(pages)
        self.opened = []

    async def new_page(self):
        if not self._pages:
            raise PlaywrightError("Target page, context or browser has been closed")
        page = self._pages.pop(0)
        self.opened.append(page)
        return page


@pytest.fixture
def config(tmp_path):
    """Run config writing under tmp_path, with every settle delay disabled."""
    cfg = dict(DEFAULT_CONFIG)
    cfg.update({
        'email': 'user@example.com',
        'password': 'secret',
        'output_dir': str(tmp_path / 'output'),
        'debug_dir': str(tmp_path / 'debug'),
        'results_dir': str(tmp_path / 'tests-output'),
        'login_page_settle': 0,
        'post_login_settle': 0,
        'step_settle': 0,
        'capture_settle': 0,
        'dialog_settle': 0,
        'escape_settle': 0,
    })
    return cfg
