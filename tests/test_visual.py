"""
Visual/CSS comparison tests
"""
import json

import pytest
from playwright.async_api import Error as PlaywrightError

from conftest import FakeContext, FakePage
from scraper.constants import COMPARISON_PROPERTIES, COMPARISON_SELECTORS
from scraper.models import CssMatch, CssMismatch
from visual.compare import (
    STYLE_VECTOR_SCRIPT,
    VisualComparator,
    compare_styles,
    css_values_match,
    page_url,
    run_comparisons,
    score,
)

BASE_STYLE = {
    'color': 'rgb(30, 31, 33)',
    'backgroundColor': 'rgba(0, 0, 0, 0)',
    'fontSize': '14px',
    'fontWeight': '400',
    'fontFamily': 'TWK Lausanne, sans-serif',
    'padding': '0px 12px',
    'margin': '0px',
    'borderRadius': '6px',
    'display': 'flex',
}


def vectors(present=('button', 'h1', 'nav'), **overrides):
    result = {selector: None for selector in COMPARISON_SELECTORS}
    for selector in present:
        result[selector] = dict(BASE_STYLE, **overrides.get(selector.replace('.', ''), {}))
    return result


def styled_page(style_vectors):
    page = FakePage()
    page.scripts[STYLE_VECTOR_SCRIPT] = lambda arg: style_vectors
    return page


class TestCssValuesMatch:
    """Normalized value equality"""

    def test_whitespace_and_case_ignored(self):
        assert css_values_match('Rgb( 1 , 2 , 3 )', 'rgb(1,2,3)')

    def test_none_equals_empty(self):
        assert css_values_match(None, '')

    def test_different_values(self):
        assert not css_values_match('10px', '11px')


class TestCompareStyles:
    """Per-class property comparison"""

    def test_identical_styles_pass_fully(self):
        matches, mismatches = compare_styles(vectors(), vectors())
        passed, percentage = score(matches, mismatches)

        assert len(matches) == 3 * len(COMPARISON_PROPERTIES)
        assert mismatches == []
        assert passed is True
        assert percentage == '100.00'

    def test_missing_class_is_skipped(self):
        """A class absent on either side contributes nothing"""
        matches, mismatches = compare_styles(vectors(present=('button', 'h1')), vectors(present=('h1', 'nav')))
        assert {m.selector for m in matches} == {'h1'}
        assert mismatches == []

    def test_mismatch_records_both_values(self):
        generated = vectors(button={'fontSize': '16px'})
        matches, mismatches = compare_styles(vectors(), generated)
        assert mismatches == [CssMismatch('button', 'fontSize', '14px', '16px')]
        assert len(matches) == 3 * len(COMPARISON_PROPERTIES) - 1

    def test_swapping_sides_only_swaps_values(self):
        """Counts and percentage are symmetric; mismatch fields trade places"""
        a = vectors(button={'color': 'rgb(0, 0, 0)'}, nav={'display': 'block'})
        b = vectors(h1={'margin': '8px'})

        ab_matches, ab_mismatches = compare_styles(a, b)
        ba_matches, ba_mismatches = compare_styles(b, a)

        assert len(ab_matches) == len(ba_matches)
        assert score(ab_matches, ab_mismatches) == score(ba_matches, ba_mismatches)
        assert [(m.selector, m.property, m.generated, m.original) for m in ab_mismatches] == \
            [(m.selector, m.property, m.original, m.generated) for m in ba_mismatches]

    def test_nothing_comparable(self):
        assert score([], []) == (False, '0.00')

    def test_threshold(self):
        matches = [CssMatch('a', 'color', 'red')] * 4
        assert score(matches, [CssMismatch('a', 'margin', '0px', '1px')]) == (True, '80.00')
        assert score(matches[:3], [CssMismatch('a', 'margin', '0px', '1px')]) == (False, '75.00')


class TestVisualComparator:
    """Page-level comparison through a browser context"""

    def test_page_url(self):
        assert page_url('http://localhost:3000/', 'projects') == 'http://localhost:3000/projects'
        assert page_url('https://app.asana.com', 'inbox') == 'https://app.asana.com/inbox'

    @pytest.mark.asyncio
    async def test_identical_pages(self, tmp_path):
        original, generated = styled_page(vectors()), styled_page(vectors())
        comparator = VisualComparator(FakeContext([original, generated]), tmp_path)

        result = await comparator.compare('https://app.asana.com', 'http://localhost:3000', 'home')

        assert result.passed is True
        assert result.match_percentage == '100.00'
        assert result.mismatches == []
        assert result.error is None
        assert original.visited == ['https://app.asana.com/home']
        assert generated.visited == ['http://localhost:3000/home']
        assert (tmp_path / 'home-original.png').exists()
        assert (tmp_path / 'home-generated.png').exists()
        assert original.closed and generated.closed

    @pytest.mark.asyncio
    async def test_load_failure_recorded(self, tmp_path):
        """A page that will not load is reported, not raised"""
        original, generated = styled_page(vectors()), styled_page(vectors())
        generated.goto_error = PlaywrightError('net::ERR_CONNECTION_REFUSED')
        comparator = VisualComparator(FakeContext([original, generated]), tmp_path)

        result = await comparator.compare('https://app.asana.com', 'http://localhost:3000', 'tasks')

        assert result.passed is False
        assert result.match_percentage is None
        assert 'http://localhost:3000/tasks' in result.error
        assert original.closed and generated.closed
        assert 'error' in result.to_dict()

    @pytest.mark.asyncio
    async def test_page_open_failure_closes_opened_page(self, tmp_path):
        """Only pages that were actually opened are closed"""
        original = styled_page(vectors())
        comparator = VisualComparator(FakeContext([original]), tmp_path)

        result = await comparator.compare('https://app.asana.com', 'http://localhost:3000', 'home')

        assert result.passed is False
        assert 'has been closed' in result.error
        assert original.closed
        assert original.visited == []

    @pytest.mark.asyncio
    async def test_batch_continues_after_failure(self, tmp_path):
        broken = styled_page(vectors())
        broken.goto_error = PlaywrightError('net::ERR_NAME_NOT_RESOLVED')
        pages = [broken, styled_page(vectors()),
                 styled_page(vectors()), styled_page(vectors(button={'padding': '4px'}))]
        comparator = VisualComparator(FakeContext(pages), tmp_path)

        summary = await run_comparisons(comparator, 'https://app.asana.com', 'http://localhost:3000',
                                        ['home', 'projects'])

        assert [t.page for t in summary.tests] == ['home', 'projects']
        assert summary.tests[0].error is not None
        assert summary.tests[1].passed is True
        assert summary.passed == 1
        assert summary.failed == 1
        assert summary.accuracy == '50.00'
        data = json.loads(json.dumps(summary.to_dict()))
        assert data['tests'][1]['cssMismatches'][0]['property'] == 'padding'
