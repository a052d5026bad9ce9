# main.py
import argparse
import asyncio
import logging
import sys
import time

from agent.bedrock import GenerationClient, GenerationConfig, ProviderError
from agent.generator import CodeGenerator, PAGE_GROUPS
from visual.compare import run_visual_tests

from .config import load_config
from .crawler import CaptureRunner
from .errors import CaptureError, WorkflowFailure

logger = logging.getLogger(__name__)

COMMANDS = ['scrape', 'generate', 'generate:home', 'generate:projects', 'generate:tasks', 'test', 'all']


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Capture a web application and score its reproduction')
    parser.add_argument('command', nargs='?', default='scrape', choices=COMMANDS, help='Stage to run')
    parser.add_argument('--url', default=None, help='Target application root')
    parser.add_argument('--email', default=None, help='Login email (default: $ASANA_EMAIL)')
    parser.add_argument('--password', default=None, help='Login password (default: $ASANA_PASSWORD)')
    parser.add_argument('--output', default=None, help='Output directory')
    parser.add_argument('--config', default=None, help='YAML config file')
    parser.add_argument('--headful', action='store_true', help='Show browser')
    parser.add_argument('--pages', default=None, help='Comma separated pages to compare')
    parser.add_argument('--generated-url', default=None, help='Root of the reproduction under test')
    parser.add_argument('--model', default=None, help='Bedrock model id for code generation')
    parser.add_argument('--debug', action='store_true', help='Verbose logging')
    return parser


def config_from_args(args) -> dict:
    return load_config(
        args.config,
        target_url=args.url,
        email=args.email,
        password=args.password,
        output_dir=args.output,
        headful=args.headful or None,
        comparison_pages=args.pages.split(',') if args.pages else None,
        generated_url=args.generated_url,
    )


async def run_scraping(config: dict):
    logger.info("Stage 1: Scraping...")
    async with CaptureRunner(config) as runner:
        return await runner.run()


def run_generation(config: dict, model=None, group=None):
    logger.info("Stage 2: Generating code...")
    generation_config = GenerationConfig(model_id=model) if model else GenerationConfig()
    generator = CodeGenerator(GenerationClient(generation_config), config['output_dir'])
    return generator.run(PAGE_GROUPS[group] if group else None)


async def run_testing(config: dict):
    logger.info("Stage 3: Running visual tests...")
    summary = await run_visual_tests(
        config['target_url'],
        config['generated_url'],
        config['comparison_pages'],
        config['results_dir'],
        headless=not config['headful'],
    )
    logger.info(f"  Passed: {summary.passed}")
    logger.info(f"  Failed: {summary.failed}")
    logger.info(f"  Accuracy: {summary.accuracy}%")
    return summary


async def dispatch(command: str, config: dict, model=None) -> None:
    if command == 'scrape':
        await run_scraping(config)
    elif command == 'generate':
        run_generation(config, model)
    elif command.startswith('generate:'):
        run_generation(config, model, command.split(':', 1)[1])
    elif command == 'test':
        await run_testing(config)
    elif command == 'all':
        start = time.time()
        await run_scraping(config)
        run_generation(config, model)
        logger.info("Start the generated apps, then run the 'test' command to score them")
        logger.info(f"Total time: {time.time() - start:.2f}s")


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug or args.headful else logging.INFO,
        format='%(asctime)s %(levelname)-5s %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )

    try:
        config = config_from_args(args)
        await dispatch(args.command, config, args.model)
    except WorkflowFailure as e:
        logger.error(f"Agent failed at step {e.step_name}: {e.cause}")
        return 1
    except (CaptureError, ProviderError, FileNotFoundError, ValueError) as e:
        logger.error(f"Agent failed: {e}")
        return 1

    logger.info("Agent completed successfully")
    return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
