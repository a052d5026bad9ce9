import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

import boto3
import botocore.exceptions

from agent.config import (
    AWS_REGION, BEDROCK_MODEL_ID,
    DEFAULT_TEMPERATURE, DEFAULT_MAX_TOKENS,
    MAX_RETRIES, RETRY_DELAY,
)

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```[\w+-]*\s*\n?(.*?)\n?```\s*$", re.DOTALL)


class ProviderError(Exception):
    """The model provider rejected or failed a request."""


@dataclass
class GenerationConfig:
    model_id: str = BEDROCK_MODEL_ID
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    region: str = AWS_REGION
    max_retries: int = MAX_RETRIES
    retry_delay: float = RETRY_DELAY


def strip_code_fences(text: str) -> str:
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    return match.group(1).strip() if match else stripped


def parse_structured(text: str) -> Any:
    """Parse model output as JSON; malformed output is returned as raw text."""
    try:
        return json.loads(strip_code_fences(text))
    except ValueError:
        logger.warning("Model output is not valid JSON; keeping raw text")
        return text


class GenerationClient:
    def __init__(self, config: Optional[GenerationConfig] = None, client=None):
        self.config = config or GenerationConfig()
        self.client = client or boto3.client("bedrock-runtime", region_name=self.config.region)

    def _converse(self, **request) -> dict:
        for attempt in range(self.config.max_retries + 1):
            try:
                return self.client.converse(**request)
            except botocore.exceptions.ClientError as e:
                code = e.response.get('Error', {}).get('Code')
                if code != 'ThrottlingException':
                    raise ProviderError(f"Bedrock request failed: {e}") from e
                if attempt == self.config.max_retries:
                    raise ProviderError(f"Bedrock still throttling after {attempt + 1} attempts") from e
                logger.warning(
                    f"Throttled, retrying in {self.config.retry_delay}s "
                    f"(attempt {attempt + 1}/{self.config.max_retries + 1})"
                )
                time.sleep(self.config.retry_delay)
            except botocore.exceptions.BotoCoreError as e:
                raise ProviderError(f"Bedrock request failed: {e}") from e

    def generate(self, prompt: str, system_prompt: str,
                 temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> str:
        response = self._converse(
            modelId=self.config.model_id,
            messages=[{"role": "user", "content": [{"text": prompt}]}],
            system=[{"text": system_prompt}],
            inferenceConfig={
                "maxTokens": max_tokens if max_tokens is not None else self.config.max_tokens,
                "temperature": temperature if temperature is not None else self.config.temperature,
            },
        )

        usage = response.get('usage', {})
        logger.debug(f"Tokens: input={usage.get('inputTokens', 0)} output={usage.get('outputTokens', 0)}")
        if response.get('stopReason') == 'max_tokens':
            logger.warning("Reached max tokens; output may be truncated")

        content = response['output']['message']['content']
        return "".join(block['text'] for block in content if 'text' in block)

    def generate_structured(self, prompt: str, system_prompt: str,
                            temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> Any:
        return parse_structured(self.generate(prompt, system_prompt, temperature, max_tokens))
