"""Central .env loader. Every entry point imports this first."""
from pathlib import Path
from dotenv import load_dotenv

# Load the project-root .env; variables already set in the environment win
_env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(_env_path, override=False)
