"""
Code generation settings
Bedrock model and inference defaults live here
"""

AWS_REGION = "us-west-2"
BEDROCK_MODEL_ID = "us.anthropic.claude-3-7-sonnet-20250219-v1:0"

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096

# ThrottlingException retry policy
MAX_RETRIES = 3
RETRY_DELAY = 15  # seconds

# Per-artifact inference settings
COMPONENT_TEMPERATURE = 0.3
COMPONENT_MAX_TOKENS = 8000
SCHEMA_TEMPERATURE = 0.2
SCHEMA_MAX_TOKENS = 8000
ENDPOINT_TEMPERATURE = 0.3
TEST_CASE_TEMPERATURE = 0.4
UI_PATTERN_TEMPERATURE = 0.5

# API calls sent to schema inference
SCHEMA_SAMPLE_SIZE = 20
