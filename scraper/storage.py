# storage.py
import logging
from pathlib import Path
from typing import List

from .constants import (
    API_CALLS_SUFFIX,
    COMPARISON_RESULTS_FILE,
    PARTIAL_SCRAPED_DATA_FILE,
    SCRAPED_DATA_FILE,
)
from .models import ApiCall, ComparisonSummary, SessionCaptureDocument
from .utils import read_json, write_json

logger = logging.getLogger(__name__)


def session_document_path(output_dir, partial: bool = False) -> Path:
    return Path(output_dir) / (PARTIAL_SCRAPED_DATA_FILE if partial else SCRAPED_DATA_FILE)


def save_session_document(document: SessionCaptureDocument, output_dir, partial: bool = False) -> Path:
    path = write_json(session_document_path(output_dir, partial), document.to_dict())
    logger.info(f"Saved {len(document.pages)} page captures to {path}")
    return path


def load_session_document(output_dir) -> dict:
    path = session_document_path(output_dir)
    if not path.exists():
        raise FileNotFoundError(f"No scraped data found at {path}. Run the scrape command first.")
    return read_json(path)


def api_calls_path(output_dir, label: str) -> Path:
    return Path(output_dir) / f"{label}{API_CALLS_SUFFIX}"


def save_api_calls(api_calls: List[ApiCall], output_dir, label: str) -> Path:
    path = write_json(api_calls_path(output_dir, label), [call.to_dict() for call in api_calls])
    logger.info(f"Saved {len(api_calls)} API calls to {path.name}")
    return path


def load_api_calls(output_dir, label: str) -> list:
    path = api_calls_path(output_dir, label)
    if not path.exists():
        return []
    return read_json(path)


def save_comparison_summary(summary: ComparisonSummary, results_dir) -> Path:
    path = write_json(Path(results_dir) / COMPARISON_RESULTS_FILE, summary.to_dict())
    logger.info(f"Saved visual test results to {path}")
    return path
