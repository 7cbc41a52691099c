"""Global pytest configuration."""

import os

# Force the deterministic stub LLM client for tests before any imports
os.environ["OPENAI_API_KEY"] = ""
