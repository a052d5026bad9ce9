"""Run configuration.

Defaults come from ``constants.py``; an optional YAML file and command line
options override them, in that order.
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .constants import *

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'target_url': TARGET_URL,
    'login_url': LOGIN_URL,
    'authenticated_path_pattern': AUTHENTICATED_PATH_PATTERN,
    'email': None,
    'password': None,
    'output_dir': OUTPUT_DIR,
    'debug_dir': DEBUG_DIR,
    'project_name': PROJECT_NAME,
    'headful': False,
    'viewport': VIEWPORT,
    'user_agent': USER_AGENT,
    'locale': LOCALE,
    'timezone_id': TIMEZONE_ID,
    'login_navigation_timeout': LOGIN_NAVIGATION_TIMEOUT,
    'login_field_timeout': LOGIN_FIELD_TIMEOUT,
    'authenticated_url_timeout': AUTHENTICATED_URL_TIMEOUT,
    'load_state_timeout': LOAD_STATE_TIMEOUT,
    'strategy_timeout': STRATEGY_TIMEOUT,
    'login_page_settle': LOGIN_PAGE_SETTLE,
    'post_login_settle': POST_LOGIN_SETTLE,
    'step_settle': STEP_SETTLE,
    'capture_settle': CAPTURE_SETTLE,
    'dialog_settle': DIALOG_SETTLE,
    'escape_settle': ESCAPE_SETTLE,
    'max_dom_depth': MAX_DOM_DEPTH,
    'generated_url': GENERATED_URL,
    'comparison_pages': COMPARISON_PAGES,
    'results_dir': 'tests-output',
}


def load_config(path: Optional[str] = None, **overrides) -> Dict[str, Any]:
    config = dict(DEFAULT_CONFIG)
    config['email'] = os.environ.get('ASANA_EMAIL')
    config['password'] = os.environ.get('ASANA_PASSWORD')

    if path:
        with open(Path(path), encoding='utf-8') as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        unknown = set(file_config) - set(DEFAULT_CONFIG)
        if unknown:
            raise ValueError(f"Unknown config keys in {path}: {', '.join(sorted(unknown))}")
        config.update(file_config)
        logger.debug(f"Loaded config file {path}")

    config.update({key: value for key, value in overrides.items() if value is not None})
    return config
