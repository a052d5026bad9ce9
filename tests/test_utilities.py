"""
Configuration, storage, helper and command line tests
"""
import json
from unittest.mock import AsyncMock, patch

import pytest

from scraper.config import DEFAULT_CONFIG, load_config
from scraper.main import build_parser, config_from_args, main
from scraper.models import ComparisonResult, ComparisonSummary, SessionCaptureDocument
from scraper.storage import (
    load_api_calls,
    load_session_document,
    save_comparison_summary,
    save_session_document,
)
from scraper.utils import path_from_url, slugify


class TestConfig:
    """Layered configuration"""

    def test_defaults_and_environment(self, monkeypatch):
        monkeypatch.setenv('ASANA_EMAIL', 'env@example.com')
        monkeypatch.setenv('ASANA_PASSWORD', 'env-secret')

        config = load_config()

        assert config['email'] == 'env@example.com'
        assert config['password'] == 'env-secret'
        assert config['target_url'] == DEFAULT_CONFIG['target_url']
        assert config['max_dom_depth'] == 15

    def test_yaml_file_then_overrides(self, tmp_path, monkeypatch):
        monkeypatch.delenv('ASANA_EMAIL', raising=False)
        path = tmp_path / 'clone.yml'
        path.write_text("project_name: Demo\nstep_settle: 500\noutput_dir: ./from-file\n")

        config = load_config(str(path), output_dir='./from-cli', email=None)

        assert config['project_name'] == 'Demo'
        assert config['step_settle'] == 500
        assert config['output_dir'] == './from-cli'
        assert config['email'] is None

    def test_unknown_keys_rejected(self, tmp_path):
        path = tmp_path / 'clone.yml'
        path.write_text("max_states: 100\n")
        with pytest.raises(ValueError, match="max_states"):
            load_config(str(path))

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / 'clone.yml'
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_config(str(path))


class TestStorage:
    """JSON persistence"""

    def test_session_document_round_trip(self, tmp_path):
        document = SessionCaptureDocument.start('https://app.asana.com')
        save_session_document(document, tmp_path)

        data = load_session_document(tmp_path)

        assert data['targetRoot'] == 'https://app.asana.com'
        assert data['pages'] == []

    def test_partial_document_is_separate(self, tmp_path):
        save_session_document(SessionCaptureDocument.start('https://app.asana.com'), tmp_path, partial=True)
        assert (tmp_path / 'scraped-data.partial.json').exists()
        with pytest.raises(FileNotFoundError):
            load_session_document(tmp_path)

    def test_missing_api_calls(self, tmp_path):
        assert load_api_calls(tmp_path, 'home') == []

    def test_comparison_summary(self, tmp_path):
        summary = ComparisonSummary([ComparisonResult('home', True, '100.00'), ComparisonResult('tasks')])
        path = save_comparison_summary(summary, tmp_path)

        data = json.loads(path.read_text())
        assert path.name == 'visual-test-results.json'
        assert data['passed'] == 1
        assert data['failed'] == 1
        assert data['accuracy'] == '50.00'
        assert data['tests'][1]['matchPercentage'] is None

    def test_empty_summary_accuracy(self):
        assert ComparisonSummary().accuracy == '0.00'


class TestUtils:
    def test_path_from_url(self):
        assert path_from_url('https://app.asana.com/api/1.0/tasks?limit=5') == '/api/1.0/tasks?limit=5'
        assert path_from_url('/relative') == '/relative'

    def test_slugify(self):
        assert slugify('New Project  Button!') == 'new-project-button'


class TestCommandLine:
    """python -m scraper.main"""

    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        assert args.command == 'scrape'
        assert args.headful is False

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['deploy'])

    def test_options_override_config(self, monkeypatch):
        monkeypatch.delenv('ASANA_EMAIL', raising=False)
        args = build_parser().parse_args([
            'test', '--url', 'https://example.com', '--pages', 'home,tasks',
            '--generated-url', 'http://localhost:5173', '--output', 'out',
        ])

        config = config_from_args(args)

        assert config['target_url'] == 'https://example.com'
        assert config['comparison_pages'] == ['home', 'tasks']
        assert config['generated_url'] == 'http://localhost:5173'
        assert config['output_dir'] == 'out'
        assert config['headful'] is False

    @pytest.mark.asyncio
    @patch('scraper.main.GenerationClient')
    async def test_generate_without_capture_exits_nonzero(self, mock_client, tmp_path):
        assert await main(['generate', '--output', str(tmp_path)]) == 1

    @pytest.mark.asyncio
    async def test_generate_group_dispatch(self, tmp_path):
        with patch('scraper.main.run_generation') as mock_generation:
            assert await main(['generate:projects', '--output', str(tmp_path)]) == 0
        assert mock_generation.call_args.args[2] == 'projects'

    @pytest.mark.asyncio
    async def test_test_command_runs_comparisons(self, tmp_path):
        summary = ComparisonSummary([ComparisonResult('home', True, '100.00')])
        with patch('scraper.main.run_visual_tests', new=AsyncMock(return_value=summary)) as mock_tests:
            assert await main(['test', '--pages', 'home', '--output', str(tmp_path)]) == 0
        assert mock_tests.call_args.args[2] == ['home']
