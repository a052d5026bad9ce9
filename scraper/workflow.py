# workflow.py
"""The fixed capture workflow as an explicit state machine.

    LOGGED_OUT -> HOME -> CREATE_PROJECT_MENU -> BLANK_PROJECT_FORM
               -> PROJECT_VIEW -> MY_TASKS -> DONE

Each transition activates its trigger elements through the selector
resolver, waits for the page to settle, dismisses dialogs and captures the
arrival state. A failing step moves the machine to FAILED and aborts the
run; steps are never retried or resumed.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError, Page, TimeoutError as PlaywrightTimeoutError

from .browser import dismiss_dialogs, login
from .capture import capture_page_data
from .errors import CaptureError, NavigationTimeout, WorkflowError, WorkflowFailure
from .interactions import (
    AttributeStrategy,
    RoleStrategy,
    ScriptScanStrategy,
    SelectorResolver,
    SelectorStrategy,
    TextStrategy,
)
from .models import SessionCaptureDocument
from .network import NetworkCorrelator
from .storage import save_session_document
from .utils import ensure_dir

logger = logging.getLogger(__name__)


class WorkflowState(Enum):
    LOGGED_OUT = 'logged-out'
    HOME = 'home'
    CREATE_PROJECT_MENU = 'create-project-menu'
    BLANK_PROJECT_FORM = 'blank-project-form'
    PROJECT_VIEW = 'project-view'
    MY_TASKS = 'my-tasks'
    DONE = 'done'
    FAILED = 'failed'


TRANSITIONS = {
    WorkflowState.LOGGED_OUT: WorkflowState.HOME,
    WorkflowState.HOME: WorkflowState.CREATE_PROJECT_MENU,
    WorkflowState.CREATE_PROJECT_MENU: WorkflowState.BLANK_PROJECT_FORM,
    WorkflowState.BLANK_PROJECT_FORM: WorkflowState.PROJECT_VIEW,
    WorkflowState.PROJECT_VIEW: WorkflowState.MY_TASKS,
    WorkflowState.MY_TASKS: WorkflowState.DONE,
}

TERMINAL_STATES = {WorkflowState.DONE, WorkflowState.FAILED}


@dataclass
class StepAction:
    intent: str
    strategies: List[SelectorStrategy]
    action: str = 'click'
    value: Optional[str] = None


@dataclass
class WorkflowStep:
    source: WorkflowState
    target: WorkflowState
    actions: List[StepAction] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.target.value


def build_steps(project_name: str) -> List[WorkflowStep]:
    return [
        # credentials are submitted by login(), not by resolved actions
        WorkflowStep(WorkflowState.LOGGED_OUT, WorkflowState.HOME),
        WorkflowStep(WorkflowState.HOME, WorkflowState.CREATE_PROJECT_MENU, [
            StepAction('projects-sidebar-link', [
                TextStrategy('Projects', exact=True),
                AttributeStrategy('[aria-label*="Projects"]'),
                AttributeStrategy('a:has-text("Projects")'),
                RoleStrategy('button', 'Projects'),
            ]),
            StepAction('new-project-button', [
                RoleStrategy('button', 'New project'),
                AttributeStrategy('div[role="button"]:has-text("New project")'),
                TextStrategy('New project', exact=True),
                AttributeStrategy('[aria-label*="New project"]'),
                RoleStrategy('button', 'Create project'),
                AttributeStrategy('button:has(.PlusIcon)'),
                ScriptScanStrategy(['new project', 'create project'], 'button, div[role="button"], [role="button"]'),
            ]),
        ]),
        WorkflowStep(WorkflowState.CREATE_PROJECT_MENU, WorkflowState.BLANK_PROJECT_FORM, [
            StepAction('blank-project-button', [
                TextStrategy('Blank project'),
                AttributeStrategy('div[role="button"]:has-text("Blank project")'),
                RoleStrategy('button', 'Blank project'),
                AttributeStrategy('.ButtonPrimaryPresentation:has-text("Blank")'),
                AttributeStrategy('[role="button"].ButtonThemeablePresentation:has-text("Blank")'),
                ScriptScanStrategy(['blank project']),
            ]),
        ]),
        WorkflowStep(WorkflowState.BLANK_PROJECT_FORM, WorkflowState.PROJECT_VIEW, [
            StepAction('project-name-input', [
                AttributeStrategy('input[placeholder*="Project name"]'),
                AttributeStrategy('input[placeholder*="Name"]'),
                AttributeStrategy('input[name*="name"]'),
                AttributeStrategy('input[type="text"]'),
            ], action='fill', value=project_name),
            StepAction('continue-button', [
                RoleStrategy('button', 'Continue'),
                AttributeStrategy('button[type="submit"]'),
                RoleStrategy('button', 'Next'),
            ]),
            StepAction('create-project-button', [
                RoleStrategy('button', 'Create project'),
                AttributeStrategy('button:has-text("Create project")'),
                AttributeStrategy('button[type="submit"]'),
            ]),
        ]),
        WorkflowStep(WorkflowState.PROJECT_VIEW, WorkflowState.MY_TASKS, [
            StepAction('my-tasks-link', [
                TextStrategy('My tasks', exact=True),
                AttributeStrategy('a:has-text("My tasks")'),
                AttributeStrategy('[aria-label*="My tasks"]'),
                RoleStrategy('button', 'My tasks'),
            ]),
        ]),
    ]


class CaptureWorkflow:
    def __init__(
        self,
        page: Page,
        correlator: NetworkCorrelator,
        config: Dict[str, Any],
        steps: Optional[List[WorkflowStep]] = None,
    ):
        self.page = page
        self.correlator = correlator
        self.config = config
        self.steps = steps if steps is not None else build_steps(config['project_name'])
        self.resolver = SelectorResolver(page, config['debug_dir'], config['strategy_timeout'])
        self.document = SessionCaptureDocument.start(config['target_url'])
        self.state = WorkflowState.LOGGED_OUT
        self.failure: Optional[WorkflowFailure] = None

    def advance(self, target: WorkflowState) -> None:
        if target is WorkflowState.FAILED and self.state not in TERMINAL_STATES:
            self.state = target
            return
        if TRANSITIONS.get(self.state) is not target:
            raise WorkflowError(f"Illegal transition {self.state.value} -> {target.value}")
        logger.debug(f"Workflow state: {self.state.value} -> {target.value}")
        self.state = target

    async def run(self) -> SessionCaptureDocument:
        for number, step in enumerate(self.steps, start=1):
            logger.info(f"=== Step {number}: {step.name} ===")
            if self.state is not step.source:
                raise WorkflowError(f"Step {step.name} expects state {step.source.value}, got {self.state.value}")
            try:
                await self._run_step(step)
            except (CaptureError, PlaywrightError) as e:
                await self._fail(step, e)
            self.advance(step.target)

        self.advance(WorkflowState.DONE)
        save_session_document(self.document, self.config['output_dir'])
        return self.document

    async def _run_step(self, step: WorkflowStep) -> None:
        if step.source is WorkflowState.LOGGED_OUT:
            await login(self.page, self.config['email'], self.config['password'], self.config)
        else:
            url_before = self.page.url
            for action in step.actions:
                await self.resolver.resolve(action.intent, action.strategies, action.action, action.value)
            await self._wait_for_arrival(url_before)
            await dismiss_dialogs(
                self.page,
                settle_ms=self.config['dialog_settle'],
                escape_settle_ms=self.config['escape_settle'],
            )
        logger.info(f"  Current URL: {self.page.url}")
        await capture_page_data(self.page, step.name, self.correlator, self.document, self.config)

    async def _wait_for_arrival(self, url_before: str) -> None:
        """Wait for a URL change, at most one settle delay, then for the load state."""
        try:
            await self.page.wait_for_url(lambda url: url != url_before, timeout=self.config['step_settle'])
        except PlaywrightTimeoutError:
            logger.debug("  URL unchanged after settle delay")
        try:
            await self.page.wait_for_load_state('load', timeout=self.config['load_state_timeout'])
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(f"Page did not finish loading: {e}") from e

    async def _fail(self, step: WorkflowStep, cause: Exception) -> None:
        logger.error(f"Step {step.name} failed: {cause}")
        # ResolutionFailure and CredentialFailure carry their own screenshot
        if not getattr(cause, 'screenshot', None):
            await self._diagnostic_screenshot(step)
        self.advance(WorkflowState.FAILED)
        self.failure = WorkflowFailure(step.name, cause, self.document)
        save_session_document(self.document, self.config['output_dir'], partial=True)
        raise self.failure from cause

    async def _diagnostic_screenshot(self, step: WorkflowStep) -> None:
        path = ensure_dir(Path(self.config['debug_dir'])) / f"debug-{step.name}-failed.png"
        try:
            await self.page.screenshot(path=str(path), full_page=True)
            logger.info(f"Screenshot saved to: {path}")
        except PlaywrightError as e:
            logger.warning(f"Could not save diagnostic screenshot: {e}")
