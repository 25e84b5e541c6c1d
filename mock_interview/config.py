from pydantic_settings import BaseSettings, NoDecode
from pydantic import field_validator
from typing import Annotated, List
import json
from dotenv import load_dotenv


# Ensure .env is loaded eagerly
load_dotenv(dotenv_path=".env")


class Settings(BaseSettings):
	# Server
	host: str = "0.0.0.0"
	port: int = 5050
	cors_allow_origins: Annotated[List[str], NoDecode] = ["*"]

	# Auth
	api_key: str | None = None  # simple bearer key if provided

	# LLM Provider Selection
	llm_provider: str = "gemini"  # options: gemini, groq

	# Google Gemini
	gemini_api_key: str | None = None
	gemini_model: str = "gemini-flash-latest"

	# Groq
	groq_api_key: str | None = None
	groq_model: str = "openai/gpt-oss-120b"

	llm_temperature: float = 0.4
	llm_max_tokens: int = 2048

	# Interview defaults
	default_role: str = "Full Stack Developer"
	default_stack: Annotated[List[str], NoDecode] = ["React", "Node.js"]

	# Uploads
	upload_dir: str = "uploads"
	max_upload_bytes: int = 5 * 1024 * 1024

	# Client
	api_base_url: str = "http://localhost:5050"
	store_path: str = "data/candidates.json"
	client_timeout: float = 60.0

	# Logging
	log_level: str = "INFO"
	analytics_path: str | None = None  # e.g., logs/interview.jsonl

	@field_validator("llm_temperature")
	@classmethod
	def clamp_temperature(cls, v: float) -> float:
		return max(0.0, min(1.0, v))

	@field_validator("cors_allow_origins", "default_stack", mode="before")
	@classmethod
	def parse_csv_list(cls, v):
		# Environment overrides may be a JSON list or comma separated
		if isinstance(v, str):
			if v.strip().startswith("["):
				return json.loads(v)
			return [item.strip() for item in v.split(",") if item.strip()]
		return v

	class Config:
		env_file = ".env"
		env_file_encoding = "utf-8"


settings = Settings()
