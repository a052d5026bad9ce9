# models.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional, Tuple


@dataclass
class BoundingBox:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def has_area(self) -> bool:
        return self.width > 0 and self.height > 0

    @classmethod
    def from_raw(cls, raw: Optional[Dict[str, Any]]) -> 'BoundingBox':
        raw = raw or {}
        return cls(
            x=raw.get('x') or 0.0,
            y=raw.get('y') or 0.0,
            width=raw.get('width') or 0.0,
            height=raw.get('height') or 0.0,
        )

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}


# (field name, computed style key)
STYLE_FIELDS: List[Tuple[str, str]] = [
    ('display', 'display'),
    ('position', 'position'),
    ('width', 'width'),
    ('height', 'height'),
    ('margin', 'margin'),
    ('padding', 'padding'),
    ('background_color', 'backgroundColor'),
    ('color', 'color'),
    ('font_size', 'fontSize'),
    ('font_family', 'fontFamily'),
    ('font_weight', 'fontWeight'),
    ('border_radius', 'borderRadius'),
    ('border', 'border'),
    ('box_shadow', 'boxShadow'),
    ('flex_direction', 'flexDirection'),
    ('justify_content', 'justifyContent'),
    ('align_items', 'alignItems'),
    ('grid_template_columns', 'gridTemplateColumns'),
]


@dataclass
class StyleRecord:
    """Computed style subset recorded for every DOM node."""
    display: Optional[str] = None
    position: Optional[str] = None
    width: Optional[str] = None
    height: Optional[str] = None
    margin: Optional[str] = None
    padding: Optional[str] = None
    background_color: Optional[str] = None
    color: Optional[str] = None
    font_size: Optional[str] = None
    font_family: Optional[str] = None
    font_weight: Optional[str] = None
    border_radius: Optional[str] = None
    border: Optional[str] = None
    box_shadow: Optional[str] = None
    flex_direction: Optional[str] = None
    justify_content: Optional[str] = None
    align_items: Optional[str] = None
    grid_template_columns: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Optional[Dict[str, Any]]) -> 'StyleRecord':
        raw = raw or {}
        return cls(**{name: raw.get(key) for name, key in STYLE_FIELDS})

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {key: getattr(self, name) for name, key in STYLE_FIELDS}


@dataclass
class DomNode:
    tag: str
    id: Optional[str]
    classes: List[str]
    attributes: Dict[str, str]
    styles: StyleRecord
    text: Optional[str]
    position: BoundingBox
    children: List['DomNode'] = field(default_factory=list)

    def depth(self) -> int:
        """Height of the subtree rooted here (a leaf has depth 0)."""
        if not self.children:
            return 0
        return 1 + max(child.depth() for child in self.children)

    def iter_nodes(self):
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tag': self.tag,
            'id': self.id,
            'classes': list(self.classes),
            'attributes': dict(self.attributes),
            'styles': self.styles.to_dict(),
            'textContent': self.text,
            'position': self.position.to_dict(),
            'children': [child.to_dict() for child in self.children],
        }


@dataclass
class DomSnapshot:
    title: str
    url: str
    viewport: Dict[str, int]
    structure: Optional[DomNode]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'url': self.url,
            'viewport': dict(self.viewport),
            'structure': self.structure.to_dict() if self.structure else None,
        }


@dataclass
class InteractiveElement:
    classes: List[str]
    position: BoundingBox

    kind: ClassVar[str] = ''

    def _fields(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        data = {'type': self.kind}
        data.update(self._fields())
        data['classes'] = list(self.classes)
        data['position'] = self.position.to_dict()
        return data


@dataclass
class ButtonElement(InteractiveElement):
    text: str = ''
    aria_label: Optional[str] = None

    kind: ClassVar[str] = 'button'

    def _fields(self) -> Dict[str, Any]:
        return {'text': self.text, 'ariaLabel': self.aria_label}


@dataclass
class InputElement(InteractiveElement):
    input_type: Optional[str] = None
    placeholder: Optional[str] = None
    name: Optional[str] = None

    kind: ClassVar[str] = 'input'

    def _fields(self) -> Dict[str, Any]:
        return {'inputType': self.input_type, 'placeholder': self.placeholder, 'name': self.name}


@dataclass
class LinkElement(InteractiveElement):
    text: str = ''
    href: Optional[str] = None

    kind: ClassVar[str] = 'link'

    def _fields(self) -> Dict[str, Any]:
        return {'text': self.text, 'href': self.href}


@dataclass
class ApiResponse:
    status: int
    headers: Dict[str, str]
    body: Any
    content_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'headers': dict(self.headers),
            'body': self.body,
            'contentType': self.content_type,
        }


@dataclass
class ApiCall:
    id: str
    url: str
    method: str
    headers: Dict[str, str]
    post_data: Optional[str]
    timestamp: int
    response: ApiResponse

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'url': self.url,
            'method': self.method,
            'headers': dict(self.headers),
            'postData': self.post_data,
            'timestamp': self.timestamp,
            'response': self.response.to_dict(),
        }


@dataclass
class ElementCapture:
    name: str
    selector: str
    path: str

    def to_dict(self) -> Dict[str, str]:
        return {'name': self.name, 'selector': self.selector, 'path': self.path}


@dataclass
class ScreenshotSet:
    main: str
    elements: List[ElementCapture] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'main': self.main, 'elements': [e.to_dict() for e in self.elements]}


@dataclass(frozen=True)
class PageCapture:
    name: str
    url: str
    dom_structure: DomSnapshot
    interactive_elements: Tuple[InteractiveElement, ...]
    api_calls: int
    screenshots: ScreenshotSet

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'url': self.url,
            'domStructure': self.dom_structure.to_dict(),
            'interactiveElements': [e.to_dict() for e in self.interactive_elements],
            'apiCalls': self.api_calls,
            'screenshots': self.screenshots.to_dict(),
        }


@dataclass
class SessionCaptureDocument:
    timestamp: str
    target_url: str
    pages: List[PageCapture] = field(default_factory=list)

    @classmethod
    def start(cls, target_url: str) -> 'SessionCaptureDocument':
        return cls(timestamp=datetime.now(timezone.utc).isoformat(), target_url=target_url)

    def append(self, capture: PageCapture) -> None:
        if any(page.name == capture.name for page in self.pages):
            raise ValueError(f"Duplicate step name in capture document: {capture.name}")
        self.pages.append(capture)

    @property
    def step_names(self) -> List[str]:
        return [page.name for page in self.pages]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'targetRoot': self.target_url,
            'pages': [page.to_dict() for page in self.pages],
        }


@dataclass
class CssMatch:
    selector: str
    property: str
    value: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {'selector': self.selector, 'property': self.property, 'value': self.value}


@dataclass
class CssMismatch:
    selector: str
    property: str
    original: Optional[str]
    generated: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'selector': self.selector,
            'property': self.property,
            'original': self.original,
            'generated': self.generated,
        }


@dataclass
class ComparisonResult:
    page: str
    passed: bool = False
    match_percentage: Optional[str] = None
    matches: List[CssMatch] = field(default_factory=list)
    mismatches: List[CssMismatch] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'page': self.page,
            'passed': self.passed,
            'matchPercentage': self.match_percentage,
            'cssMatches': [m.to_dict() for m in self.matches],
            'cssMismatches': [m.to_dict() for m in self.mismatches],
        }
        if self.error is not None:
            data['error'] = self.error
        return data


@dataclass
class ComparisonSummary:
    tests: List[ComparisonResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for t in self.tests if t.passed)

    @property
    def failed(self) -> int:
        return len(self.tests) - self.passed

    @property
    def accuracy(self) -> str:
        if not self.tests:
            return '0.00'
        return f"{self.passed / len(self.tests) * 100:.2f}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'passed': self.passed,
            'failed': self.failed,
            'tests': [t.to_dict() for t in self.tests],
            'accuracy': self.accuracy,
        }
