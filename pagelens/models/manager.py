from __future__ import annotations
from typing import Optional, Dict, Any, List, Mapping, Union
from pathlib import Path
from dataclasses import dataclass, field
from enum import Enum
import os
import yaml
import time
import logging

from .prompts import PromptManager
from .providers.base import ChatRequest, ModelResponse, ModelError
from .providers.openai_sdk import OpenAIProvider
from .services.ocr_base import DocumentSource, OcrRequest, OcrResponse
from .services.mistral_ocr import MistralOcrService

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PAGELENS_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parents[1] / "config" / "config.yaml"
DEFAULT_PROMPTS_DIR = Path(__file__).parents[1] / "prompts"


class Provider(Enum):
    OPENAI = "openai"
    MISTRAL_OCR = "mistral_ocr"

CHAT_PROVIDERS = {Provider.OPENAI.value}
OCR_PROVIDERS = {Provider.MISTRAL_OCR.value}

@dataclass(frozen=True)
class TaskConfig:
    provider: str
    model: str
    params: Dict[str, Any]
    prompt_ref: Optional[str] #e.g. "vision/describe_page@v1"

@dataclass(frozen=True)
class StartupCheck:
    ok: bool
    missing: List[str] = field(default_factory=list)

    @property
    def reason(self) -> str:
        if self.ok:
            return "all credentials present"
        return "missing environment variables: " + ", ".join(self.missing)


def resolve_config_path(config_path: Optional[Union[Path, str]] = None) -> Path:
    if config_path:
        return Path(config_path)
    return Path(os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)


def load_config(config_path: Path) -> Dict:
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")
    with open(config_path) as f:
        config = yaml.safe_load(f) or {}

    if 'providers' not in config:
        raise ValueError("Config missing 'providers'")
    if 'tasks' not in config:
        raise ValueError("Config missing 'tasks'")

    for task_name, task_cfg in config['tasks'].items():
        if 'provider' not in task_cfg:
            raise ValueError(f"Task '{task_name}' missing provider")
        if 'model' not in task_cfg:
            raise ValueError(f"Task '{task_name}' missing model")
        if task_cfg['provider'] not in config['providers']:
            raise ValueError(f"Task '{task_name}' references unknown provider '{task_cfg['provider']}'")

    for provider_name, provider_cfg in config['providers'].items():
        provider_type = (provider_cfg or {}).get('type')
        if provider_type not in CHAT_PROVIDERS | OCR_PROVIDERS:
            raise ValueError(f"Provider '{provider_name}' has unknown type '{provider_type}'")

    return config


class ModelManager:
    def __init__(self, config_path: Optional[Union[Path, str]] = None, prompts_dir: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        self.config_path = resolve_config_path(config_path)
        self.config = load_config(self.config_path)
        self.environ = environ if environ is not None else os.environ
        self.prompts = PromptManager(prompts_dir or DEFAULT_PROMPTS_DIR)
        self._providers = {}
        self._stats = {} #performance tracking

    def section(self, name: str) -> Dict[str, Any]:
        """Non-provider config blocks (fetcher, pipeline, server)."""
        return dict(self.config.get(name) or {})

    def task(self, name: str) -> TaskConfig:
        if name not in self.config["tasks"]:
            raise ValueError(f"Unknown task: {name}")
        task_cfg = self.config["tasks"][name]
        return TaskConfig(
            provider=task_cfg["provider"],
            model=task_cfg["model"],
            params=dict(task_cfg.get("params") or {}),
            prompt_ref=task_cfg.get("prompt_ref"),
        )

    def _provider_settings(self, provider_name: str) -> Dict[str, Any]:
        settings = dict(self.config["providers"][provider_name].get("settings") or {})
        api_key_env = settings.pop("api_key_env", None)
        if api_key_env:
            settings["api_key"] = self.environ.get(api_key_env) or None
        return settings

    def check_credentials(self) -> StartupCheck:
        """Startup validation: every provider used by a task must have its credential set."""
        missing = []
        used = {task_cfg["provider"] for task_cfg in self.config["tasks"].values()}
        for provider_name in sorted(used):
            settings = self.config["providers"][provider_name].get("settings") or {}
            api_key_env = settings.get("api_key_env")
            if api_key_env and not self.environ.get(api_key_env) and api_key_env not in missing:
                missing.append(api_key_env)
        return StartupCheck(ok=not missing, missing=missing)

    def _get_provider(self, provider_name: str):
        if provider_name in self._providers:
            return self._providers[provider_name]
        if provider_name not in self.config['providers']:
            raise ValueError(f"Unknown provider: {provider_name}")

        provider_type = self.config["providers"][provider_name]["type"]
        settings = self._provider_settings(provider_name)

        if provider_type == Provider.OPENAI.value:
            provider = OpenAIProvider(**settings)
        elif provider_type == Provider.MISTRAL_OCR.value:
            provider = MistralOcrService(**settings)
        else:
            raise ValueError(f"Unknown provider type: {provider_type}")
        self._providers[provider_name] = provider
        logger.info(f"initialized provider: {provider_name}")
        return provider

    async def call(self, task: str, prompt_ref: Optional[str] = None, variables: Optional[Dict[str, Any]] = None, images: Optional[List[str]] = None, **params_override) -> ModelResponse:
        start_time = time.perf_counter()
        task_cfg = self.task(task)

        prompt_ref = prompt_ref or task_cfg.prompt_ref
        if not prompt_ref:
            raise ValueError(f"Task '{task}' has no prompt_ref and none was given")
        rendered = self.prompts.render(prompt_ref, variables or {})

        request = ChatRequest(
            model=task_cfg.model,
            messages=rendered,
            images=images,
            params={**task_cfg.params, **params_override},
        )

        provider = self._get_provider(task_cfg.provider)
        try:
            response = await provider.chat(request)
        except ModelError:
            self._track_stats(task, (time.perf_counter() - start_time) * 1000, success=False)
            raise
        self._track_stats(task, (time.perf_counter() - start_time) * 1000, success=True)
        return response

    async def ocr(self, task: str, source: DocumentSource) -> OcrResponse:
        start_time = time.perf_counter()
        task_cfg = self.task(task)

        request = OcrRequest(source=source, model=task_cfg.model, include_image_base64=True, extra=task_cfg.params or None)

        engine = self._get_provider(task_cfg.provider)
        try:
            response = await engine.ocr(request)
        except ModelError:
            self._track_stats(task, (time.perf_counter() - start_time) * 1000, success=False)
            raise
        self._track_stats(task, (time.perf_counter() - start_time) * 1000, success=True)
        return response

    def _track_stats(self, task: str, latency_ms: float, success: bool):
        if task not in self._stats:
            self._stats[task] = {
                'total_calls': 0,
                'successful_calls': 0,
                'total_latency_ms': 0
            }

        stats = self._stats[task]
        stats['total_calls'] += 1
        if success:
            stats['successful_calls'] += 1
            stats['total_latency_ms'] += latency_ms

    def get_stats(self, task: Optional[str] = None) -> Dict:
        if task:
            return self._stats.get(task, {})
        return self._stats

    def provider_names(self) -> List[str]:
        return list(self.config["providers"].keys())

    async def aclose(self):
        for name, provider in self._providers.items():
            try:
                await provider.aclose()
                logger.info(f"Closed provider: {name}")
            except Exception as e:
                logger.error(f"Closing provider {name} failed: {e}")

        self._providers.clear()
