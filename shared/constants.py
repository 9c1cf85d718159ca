"""Centralized constants"""

# Execution store
DEFAULT_EXECUTION_HISTORY_SIZE = 100
DEFAULT_EXECUTION_PAGE_SIZE = 50
DEFAULT_WORKFLOW_EXECUTION_PAGE_SIZE = 20

# Workflow-level error entries use this in place of a step id
WORKFLOW_ERROR_STEP_ID = "workflow"

# Definitions
DEFAULT_WORKFLOW_VERSION = "1.0.0"
DEFAULT_OUTPUT_NAME = "result"

# LLM completion defaults
DEFAULT_LLM_MODEL = "gpt-4o-mini"
DEFAULT_LLM_MAX_TOKENS = 150
DEFAULT_LLM_TEMPERATURE = 0.7
PROMPT_CACHE_TTL_SECONDS = 60

# External API
DEFAULT_EXTERNAL_API_TIMEOUT_SECONDS = 30
YOUTUBE_DATA_API_URL = "https://www.googleapis.com/youtube/v3"
YOUTUBE_ANALYTICS_API_URL = "https://youtubeanalytics.googleapis.com/v2"
DEFAULT_ANALYTICS_DAYS = 90

# Compiler input wiring
PREFERRED_WIRING_INPUTS = ("content", "data", "video_ids", "rows", "input", "payload")
RUN_INPUT_NAMES = {"access_token", "channel_id"}
CREDENTIAL_SUFFIXES = ("_token", "_api_key")

# Redis keys
WORKFLOW_DEFINITION_KEY = "workflow:def:{id}"
WORKFLOW_KEYS_HASH = "workflow:keys"
WORKFLOW_INDEX_KEY = "workflow:index"
PROMPT_KEY = "prompts:{key}"

# Definition limits enforced on upload
MAX_STEPS_PER_WORKFLOW = 100
MAX_CONFIG_SIZE_BYTES = 65536
