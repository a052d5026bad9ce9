# snapshots.py
import logging
from typing import Any, Dict, List, Optional

from playwright.async_api import Page

from .constants import MAX_DOM_DEPTH
from .models import (
    BoundingBox,
    ButtonElement,
    DomNode,
    DomSnapshot,
    InputElement,
    InteractiveElement,
    LinkElement,
    StyleRecord,
)

logger = logging.getLogger(__name__)

EXCLUDED_TAGS = {'script', 'style'}

DOM_SNAPSHOT_SCRIPT = """
(maxDepth) => {
    function extractElement(element, depth) {
        if (depth > maxDepth || !element) return null;

        const computedStyle = window.getComputedStyle(element);
        const rect = element.getBoundingClientRect();

        const attributes = {};
        for (const attr of element.attributes || []) {
            attributes[attr.name] = attr.value;
        }

        const children = [];
        for (const child of element.children || []) {
            if (child.tagName === 'SCRIPT' || child.tagName === 'STYLE') continue;
            const childRect = child.getBoundingClientRect();
            if (childRect.width > 0 && childRect.height > 0) {
                const childData = extractElement(child, depth + 1);
                if (childData) children.push(childData);
            }
        }

        const onlyChild = element.childNodes.length === 1 ? element.childNodes[0] : null;
        const singleTextChild = !!onlyChild && onlyChild.nodeType === Node.TEXT_NODE;

        return {
            tag: element.tagName.toLowerCase(),
            id: element.id || null,
            classes: Array.from(element.classList),
            attributes,
            styles: {
                display: computedStyle.display,
                position: computedStyle.position,
                width: computedStyle.width,
                height: computedStyle.height,
                margin: computedStyle.margin,
                padding: computedStyle.padding,
                backgroundColor: computedStyle.backgroundColor,
                color: computedStyle.color,
                fontSize: computedStyle.fontSize,
                fontFamily: computedStyle.fontFamily,
                fontWeight: computedStyle.fontWeight,
                borderRadius: computedStyle.borderRadius,
                border: computedStyle.border,
                boxShadow: computedStyle.boxShadow,
                flexDirection: computedStyle.flexDirection,
                justifyContent: computedStyle.justifyContent,
                alignItems: computedStyle.alignItems,
                gridTemplateColumns: computedStyle.gridTemplateColumns,
            },
            childNodeCount: element.childNodes.length,
            singleTextChild,
            text: singleTextChild ? element.textContent.trim() : null,
            position: { x: rect.x, y: rect.y, width: rect.width, height: rect.height },
            children,
        };
    }

    const appRoot =
        document.querySelector('[role="main"]') ||
        document.querySelector('#root') ||
        document.querySelector('.app') ||
        document.body;

    return {
        title: document.title,
        url: window.location.href,
        viewport: { width: window.innerWidth, height: window.innerHeight },
        structure: extractElement(appRoot, 0),
    };
}
"""

INTERACTIVE_ELEMENTS_SCRIPT = """
() => {
    const box = (el) => {
        const rect = el.getBoundingClientRect();
        return { x: rect.x, y: rect.y, width: rect.width, height: rect.height };
    };
    const elements = [];
    document.querySelectorAll('button, [role="button"]').forEach((el) => {
        elements.push({
            type: 'button',
            text: (el.textContent || '').trim(),
            ariaLabel: el.getAttribute('aria-label'),
            classes: Array.from(el.classList),
            position: box(el),
        });
    });
    document.querySelectorAll('input, textarea').forEach((el) => {
        elements.push({
            type: 'input',
            inputType: el.type,
            placeholder: el.placeholder,
            name: el.name,
            classes: Array.from(el.classList),
            position: box(el),
        });
    });
    document.querySelectorAll('a').forEach((el) => {
        elements.push({
            type: 'link',
            text: (el.textContent || '').trim(),
            href: el.href,
            classes: Array.from(el.classList),
            position: box(el),
        });
    });
    return elements;
}
"""


def parse_dom_node(raw: Optional[Dict[str, Any]], depth: int = 0, max_depth: int = MAX_DOM_DEPTH) -> Optional[DomNode]:
    """Build a DomNode from the raw in-page walk.

    The depth guard bounds recursion on pathological trees: anything below
    ``max_depth`` levels from the root is cut. Children with a zero box are
    dropped together with their subtrees, and text is kept only for nodes
    whose single child node is a text node.
    """
    if not raw or depth > max_depth:
        return None
    tag = (raw.get('tag') or '').lower()
    if tag in EXCLUDED_TAGS:
        return None

    text = None
    if raw.get('childNodeCount') == 1 and raw.get('singleTextChild'):
        text = raw.get('text')

    children = []
    for child in raw.get('children') or []:
        if not BoundingBox.from_raw(child.get('position')).has_area:
            continue
        node = parse_dom_node(child, depth + 1, max_depth)
        if node is not None:
            children.append(node)

    return DomNode(
        tag=tag,
        id=raw.get('id') or None,
        classes=list(raw.get('classes') or []),
        attributes=dict(raw.get('attributes') or {}),
        styles=StyleRecord.from_raw(raw.get('styles')),
        text=text,
        position=BoundingBox.from_raw(raw.get('position')),
        children=children,
    )


async def extract_dom_snapshot(page: Page, max_depth: int = MAX_DOM_DEPTH) -> DomSnapshot:
    logger.info("  Analyzing DOM structure...")
    raw = await page.evaluate(DOM_SNAPSHOT_SCRIPT, max_depth) or {}
    snapshot = DomSnapshot(
        title=raw.get('title', ''),
        url=raw.get('url', page.url),
        viewport=raw.get('viewport') or {},
        structure=parse_dom_node(raw.get('structure'), 0, max_depth),
    )
    logger.info("  DOM structure analyzed")
    return snapshot


def parse_interactive_element(raw: Dict[str, Any]) -> Optional[InteractiveElement]:
    position = BoundingBox.from_raw(raw.get('position'))
    if not position.has_area:
        return None
    classes = list(raw.get('classes') or [])
    kind = raw.get('type')
    if kind == 'button':
        return ButtonElement(classes, position, text=raw.get('text') or '', aria_label=raw.get('ariaLabel'))
    if kind == 'input':
        return InputElement(
            classes, position,
            input_type=raw.get('inputType'),
            placeholder=raw.get('placeholder'),
            name=raw.get('name'),
        )
    if kind == 'link':
        return LinkElement(classes, position, text=raw.get('text') or '', href=raw.get('href'))
    return None


async def extract_interactive_elements(page: Page) -> List[InteractiveElement]:
    logger.info("  Extracting interactive elements...")
    raw_elements = await page.evaluate(INTERACTIVE_ELEMENTS_SCRIPT) or []
    elements = [e for e in (parse_interactive_element(raw) for raw in raw_elements) if e is not None]
    logger.info(f"  Found {len(elements)} interactive elements")
    return elements
