"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware (CORS, security headers)
- Build shared resources once per process (provider clients,
  throttle, response generator, gateway)
- Register routes and error handlers
"""

from typing import Optional

from anthropic import AsyncAnthropic
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from adapters.llm.anthropic_messages import AnthropicMessagesAdapter
from adapters.llm.base import LLMAdapter
from adapters.llm.openai_chat import OpenAIChatAdapter
from adapters.tts.base import TTSAdapter
from adapters.tts.openai_speech import OpenAISpeechAdapter
from adapters.tts.speechmatics import SpeechmaticsTTSAdapter
from config import AppConfig
from observability import logger
from observability.logger import log_event
from orchestrator.responder import ResponseGenerator
from orchestrator.throttle import InMemoryTimestampStore, SessionThrottle
from session.gateway import ChatGateway
from spec import GROQ_BASE_URL

from server.routes import register_error_handlers, register_routes


SECURITY_HEADERS: dict[str, str] = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


def create_app(
    config: Optional[AppConfig] = None,
    *,
    gateway: Optional[ChatGateway] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with a prebuilt gateway (fake providers, fake clock)
    - Environment-specific setup
    - ASGI server compatibility
    """
    config = config or AppConfig.load_from_env()
    logger.configure(json_lines=config.enable_json_logs)

    app = FastAPI(title="Chat Companion API")

    app.state.config = config
    app.state.gateway = gateway or build_gateway(config)

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def add_security_headers(request, call_next):  # pyright: ignore[reportUnusedFunction]
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        return response

    # Routes
    register_routes(app)
    register_error_handlers(app)

    log_event({
        "event_type": "APP_STARTED",
        "env": config.env,
        "providers": app.state.gateway.responder.provider_names,
        "cooldown_ms": app.state.gateway.throttle.cooldown_ms,
    })

    return app


# ------------------------------------------------------------------
# Builders
# ------------------------------------------------------------------

def build_gateway(config: AppConfig) -> ChatGateway:
    """Wire throttle and response generator from configuration."""
    openai_client = build_llm_client(config)

    responder = ResponseGenerator(
        providers=build_llm_providers(config, openai_client),
        tts=build_tts_adapter(config, openai_client),
    )
    throttle = SessionThrottle(
        store=InMemoryTimestampStore(),
        cooldown_ms=config.chat_cooldown_ms,
    )
    return ChatGateway(throttle=throttle, responder=responder)


def build_llm_client(config: AppConfig) -> Optional[AsyncOpenAI]:
    """Build the OpenAI-compatible client for the selected provider, if keyed."""
    api_key = config.primary_llm_api_key
    if not api_key:
        return None

    if config.llm_provider.lower() == "groq":
        return AsyncOpenAI(
            api_key=api_key,
            base_url=GROQ_BASE_URL,
        )

    return AsyncOpenAI(api_key=api_key)


def build_llm_providers(
    config: AppConfig,
    openai_client: Optional[AsyncOpenAI],
) -> list[LLMAdapter]:
    """Primary OpenAI-compatible provider first, then Anthropic."""
    providers: list[LLMAdapter] = []

    if openai_client is not None:
        providers.append(
            OpenAIChatAdapter(
                client=openai_client,
                model=config.chat_model,
                provider=config.llm_provider.lower(),
            )
        )

    if config.anthropic_api_key:
        providers.append(
            AnthropicMessagesAdapter(
                client=AsyncAnthropic(api_key=config.anthropic_api_key),
                model=config.anthropic_model,
            )
        )

    return providers


def build_tts_adapter(
    config: AppConfig,
    openai_client: Optional[AsyncOpenAI] = None,
) -> Optional[TTSAdapter]:
    """Speech adapter for the configured provider, or None if unavailable."""
    provider = config.tts_provider.lower()

    if provider == "speechmatics" and config.speechmatics_api_key:
        return SpeechmaticsTTSAdapter(
            api_key=config.speechmatics_api_key,
            voice=config.speechmatics_voice or "sarah",
        )

    # Speech always goes to OpenAI itself, even when chat goes to Groq
    if provider == "openai" and config.openai_api_key:
        if openai_client is None or config.llm_provider.lower() != "openai":
            openai_client = AsyncOpenAI(api_key=config.openai_api_key)
        return OpenAISpeechAdapter(
            client=openai_client,
            model=config.openai_tts_model,
            voice=config.openai_tts_voice,
        )

    return None
