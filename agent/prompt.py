import json
from typing import Any, Dict, List, Sequence, Tuple

Prompt = Tuple[str, str]


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def component_prompt(name: str, dom_structure: Dict[str, Any],
                     interactive_elements: List[Dict[str, Any]], framework: str = "react") -> Prompt:
    """(system, user) prompt pair for one page component."""
    system = f"""You are an expert frontend developer specializing in {framework} and Tailwind CSS.
Generate high-quality, production-ready code that matches the exact visual design provided.
Focus on:
- Pixel-perfect styling using Tailwind utility classes
- Proper component structure and hierarchy
- Accessibility (ARIA labels, semantic HTML)
- Responsive design
Return ONLY the code, no explanations."""

    user = f"""Generate a {framework} component based on this structure:

Component Name: {name}
DOM Structure:
{_dump(dom_structure)}

Interactive Elements:
{_dump(interactive_elements)}

Requirements:
- Use Tailwind CSS for all styling
- Match the exact colors, spacing, and layout
- Include all interactive elements (buttons, inputs, etc.)
- Use proper semantic HTML and ARIA labels

Generate the complete component code."""
    return system, user


def ui_patterns_prompt(dom_structure: Dict[str, Any]) -> Prompt:
    system = """You are a UI/UX expert analyzing web application structures.
Identify reusable components, design patterns, and the component hierarchy.
Return your analysis as structured JSON."""

    user = f"""Analyze this DOM structure and identify:
1. Reusable components (buttons, cards, forms, etc.)
2. Layout patterns (header, sidebar, main content)
3. Component hierarchy
4. Design system patterns (colors, spacing, typography)

DOM Structure:
{_dump(dom_structure)}

Return as JSON:
{{
  "components": [{{"name": "ComponentName", "type": "button|card|form|etc", "occurrences": 0, "props": []}}],
  "layout": {{"type": "sidebar|navbar|etc", "structure": {{}}}},
  "designSystem": {{"colors": [], "spacing": [], "typography": []}}
}}"""
    return system, user


def schema_prompt(api_calls: Sequence[Dict[str, Any]]) -> Prompt:
    system = """You are a database schema expert. Analyze API responses and infer the underlying database schema.
Generate a SQLite schema with entities, relationships, data types, primary and foreign keys,
indexes for common queries and constraints.
Return ONLY the SQL schema, no explanations."""

    user = f"""Analyze these API responses and generate a database schema:

{_dump(list(api_calls))}

Generate a complete SQLite schema with CREATE TABLE statements, foreign keys and indexes.
Return only SQL code."""
    return system, user


def endpoint_prompt(api_call: Dict[str, Any]) -> Prompt:
    response = api_call.get('response') or {}
    system = """You are a backend API developer specializing in FastAPI.
Generate production-ready API endpoints that match the observed behavior, with Pydantic
request/response models, input validation and error handling.
Return ONLY the code, no explanations."""

    user = f"""Generate a FastAPI endpoint based on this observed API call:

Method: {api_call.get('method')}
URL: {api_call.get('url')}
Request Headers: {_dump(api_call.get('headers', {}))}
Request Body: {api_call.get('postData') or 'None'}

Response Status: {response.get('status')}
Response Headers: {_dump(response.get('headers', {}))}
Response Body: {_dump(response.get('body'))}

Return the complete code for this endpoint."""
    return system, user


def api_test_cases_prompt(api_call: Dict[str, Any]) -> Prompt:
    response = api_call.get('response') or {}
    system = """You are a QA engineer specializing in API testing.
Generate comprehensive test cases covering happy paths, edge cases, invalid inputs,
boundary conditions and error scenarios.
Return test cases as a structured JSON array."""

    user = f"""Generate exhaustive test cases for this API endpoint:

Method: {api_call.get('method')}
URL: {api_call.get('url')}
Request Parameters: {_dump(api_call.get('postData'))}
Response: {_dump(response.get('body'))}

Return as JSON array with format:
[
  {{
    "description": "Test case description",
    "input": {{}},
    "expectedStatus": 200,
    "expectedResponse": {{}}
  }}
]"""
    return system, user
