"""Turn a capture document into generated frontend and backend source text.

Only the generated source is written; scaffolding (package manifests,
framework config) is left to the caller.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from agent.bedrock import GenerationClient, strip_code_fences
from agent.config import (
    COMPONENT_MAX_TOKENS, COMPONENT_TEMPERATURE,
    ENDPOINT_TEMPERATURE,
    SCHEMA_MAX_TOKENS, SCHEMA_SAMPLE_SIZE, SCHEMA_TEMPERATURE,
    TEST_CASE_TEMPERATURE,
    UI_PATTERN_TEMPERATURE,
)
from agent.prompt import (
    api_test_cases_prompt,
    component_prompt,
    endpoint_prompt,
    schema_prompt,
    ui_patterns_prompt,
)
from scraper.storage import load_api_calls, load_session_document
from scraper.utils import ensure_dir, path_from_url, slugify, write_json

logger = logging.getLogger(__name__)

# command suffix -> capture step names
PAGE_GROUPS: Dict[str, List[str]] = {
    'home': ['home'],
    'projects': ['create-project-menu', 'blank-project-form', 'project-view'],
    'tasks': ['my-tasks'],
}


def component_name(page_name: str) -> str:
    return ''.join(part.capitalize() for part in page_name.split('-') if part) + 'Page'


def select_pages(document: Dict[str, Any], page_names: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
    pages = document.get('pages', [])
    if page_names is None:
        return list(pages)
    selected = [page for page in pages if page['name'] in page_names]
    if not selected:
        raise ValueError(f"No pages found matching: {', '.join(page_names)}")
    return selected


def collect_api_calls(output_dir, page_names: Iterable[str]) -> List[Dict[str, Any]]:
    """Unique API calls across the pages' stores, keyed by method and path."""
    unique: Dict[str, Dict[str, Any]] = {}
    for name in page_names:
        for call in load_api_calls(output_dir, name):
            key = f"{call['method']} {path_from_url(call['url']).split('?')[0]}"
            unique.setdefault(key, call)
    return list(unique.values())


def endpoint_slug(api_call: Dict[str, Any]) -> str:
    path = path_from_url(api_call['url']).split('?')[0]
    return slugify(f"{api_call['method']} {path}") or 'endpoint'


class CodeGenerator:
    def __init__(self, client: GenerationClient, output_dir):
        self.client = client
        self.output_dir = Path(output_dir)
        self.frontend_dir = self.output_dir / 'frontend'
        self.backend_dir = self.output_dir / 'backend'

    def generate_frontend(self, pages: Sequence[Dict[str, Any]]) -> List[Path]:
        logger.info("  Analyzing UI patterns...")
        written = []
        design_patterns = []
        pages_dir = ensure_dir(self.frontend_dir / 'src' / 'pages')
        for page in pages:
            system, prompt = ui_patterns_prompt(page['domStructure'])
            design_patterns.append({
                'page': page['name'],
                'analysis': self.client.generate_structured(prompt, system, temperature=UI_PATTERN_TEMPERATURE),
            })

            name = component_name(page['name'])
            logger.info(f"  Generating {name} component...")
            system, prompt = component_prompt(name, page['domStructure'], page['interactiveElements'])
            code = self.client.generate(prompt, system, temperature=COMPONENT_TEMPERATURE,
                                        max_tokens=COMPONENT_MAX_TOKENS)
            path = pages_dir / f"{page['name']}.jsx"
            path.write_text(strip_code_fences(code) + '\n', encoding='utf-8')
            logger.info(f"    Created {path.relative_to(self.output_dir)}")
            written.append(path)

        written.append(write_json(self.frontend_dir / 'design-patterns.json', design_patterns))
        return written

    def generate_backend(self, pages: Sequence[Dict[str, Any]]) -> List[Path]:
        api_calls = collect_api_calls(self.output_dir, [page['name'] for page in pages])
        logger.info(f"  Found {len(api_calls)} unique API calls")
        if not api_calls:
            logger.warning("  No API calls captured; skipping backend generation")
            return []

        written = []
        ensure_dir(self.backend_dir)
        logger.info("  Generating database schema...")
        system, prompt = schema_prompt(api_calls[:SCHEMA_SAMPLE_SIZE])
        schema = self.client.generate(prompt, system, temperature=SCHEMA_TEMPERATURE, max_tokens=SCHEMA_MAX_TOKENS)
        schema_path = self.backend_dir / 'schema.sql'
        schema_path.write_text(strip_code_fences(schema) + '\n', encoding='utf-8')
        written.append(schema_path)

        routes_dir = ensure_dir(self.backend_dir / 'routes')
        tests_dir = ensure_dir(self.backend_dir / 'tests')
        for api_call in api_calls:
            slug = endpoint_slug(api_call)
            logger.info(f"  Generating endpoint: {api_call['method']} {path_from_url(api_call['url'])}")
            system, prompt = endpoint_prompt(api_call)
            code = self.client.generate(prompt, system, temperature=ENDPOINT_TEMPERATURE)
            route_path = routes_dir / f"{slug.replace('-', '_')}.py"
            route_path.write_text(strip_code_fences(code) + '\n', encoding='utf-8')
            written.append(route_path)

            system, prompt = api_test_cases_prompt(api_call)
            test_cases = self.client.generate_structured(prompt, system, temperature=TEST_CASE_TEMPERATURE)
            written.append(write_json(tests_dir / f"{slug}.json", test_cases))
        return written

    def run(self, page_names: Optional[Sequence[str]] = None) -> List[Path]:
        document = load_session_document(self.output_dir)
        pages = select_pages(document, page_names)
        logger.info(f"Found {len(pages)} page(s) to generate")

        logger.info("Generating frontend...")
        written = self.generate_frontend(pages)
        logger.info("Generating backend...")
        written.extend(self.generate_backend(pages))
        logger.info(f"Code generation complete: {len(written)} files")
        return written
