from datetime import timedelta

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """Hosted language model settings."""

    endpoint: str | None = Field(
        default=None,
        description="Optional OpenAI-compatible base URL; None uses the provider default",
    )
    api_key: str = Field(default="", description="Model API key")
    provider: str = Field(default="OpenAI", description="Provider label for /health")
    model_name: str = Field(default="gpt-4o-mini", description="Model identifier")
    temperature: float = Field(default=0.3, description="Sampling temperature")
    max_tokens: int = Field(default=1024, description="Maximum tokens per completion")
    max_retries: int = Field(default=1, description="Client-side retries on failure")
    timeout: timedelta = Field(
        default=timedelta(seconds=60),
        description="Per-call timeout for the model API",
    )


class ChatConfig(BaseModel):
    """Configuration for the conversation loop."""

    max_tool_steps: int = Field(
        default=5,
        ge=1,
        description="Maximum model prompting steps per request (tool-call loop bound)",
    )
    max_history_messages: int = Field(
        default=40,
        ge=1,
        description="Only the most recent messages are forwarded to the model",
    )
    max_message_length: int = Field(
        default=4000, description="Maximum characters in a single customer message"
    )


class CatalogConfig(BaseModel):
    """Commerce platform admin API settings."""

    store_domain: str = Field(
        default="example.myshopify.com", description="Store admin domain"
    )
    access_token: str = Field(default="", description="Admin API access token")
    api_version: str = Field(default="2024-04", description="Admin API version")
    search_limit: int = Field(
        default=20, description="Products requested per catalog search"
    )
    variants_per_product: int = Field(
        default=10, description="Variants requested per product"
    )
    top_n: int = Field(default=5, description="Products shown per lookup result")
    shop_build_days: int = Field(
        default=5,
        ge=0,
        description="Shop build buffer always added to special-order lead times",
    )
    lead_time_namespace: str = Field(
        default="custom", description="Metafield namespace holding lead time"
    )
    lead_time_key: str = Field(
        default="lead_time_days", description="Metafield key holding lead time"
    )
    timeout: timedelta = Field(
        default=timedelta(seconds=10), description="HTTP timeout for catalog calls"
    )


class SpokeCalcConfig(BaseModel):
    """External spoke-length calculation service."""

    url: str = Field(default="", description="Calculation endpoint URL")
    secret: str = Field(default="", description="Shared secret header value")
    timeout: timedelta = Field(
        default=timedelta(seconds=10), description="HTTP timeout for calculation calls"
    )


class CorsConfig(BaseModel):
    """CORS settings for the storefront widget."""

    allowed_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed browser origins"
    )
    allow_credentials: bool = Field(default=False)
    allowed_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "OPTIONS"]
    )
    allowed_headers: list[str] = Field(
        default_factory=lambda: ["Content-Type", "Authorization"]
    )


class LoggingConfig(BaseModel):
    """Root logger settings."""

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(
        default=True, description="Emit JSON lines instead of coloured text"
    )
    quiet_loggers: list[str] = Field(
        default_factory=lambda: ["httpx", "httpcore", "openai", "opentelemetry"],
        description="Third-party loggers capped at WARNING",
    )


class TracingConfig(BaseModel):
    """OpenTelemetry export settings."""

    enabled: bool = Field(default=False)
    endpoint: str = Field(default="", description="OTLP/HTTP traces endpoint")
    service_name: str = Field(default="wheelchat")
    sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    excluded_urls: list[str] = Field(
        default_factory=lambda: ["/health", "/metrics"]
    )


class PromptConfig(BaseModel):
    """Prompt texts. ``system_prompt`` normally comes from ``prompt.yml``."""

    system_prompt: str = Field(
        default="You are the shop's automated wheel building lead tech.",
        description="Persona and store policy directives",
    )
    context_template: str = Field(
        default=(
            "\n[CURRENT BUILD STATE]:\n"
            "- Step: {step}\n"
            "- Riding Style: {riding_style}\n"
            "- Position: {position}\n"
            "- Axle Spacing: {axle_spacing}\n"
            "- Brake Interface: {brake_interface}\n"
            "- Specs: {specs}\n"
            "- Selected Components: {components}\n"
            "- Estimated Weight: {weight}g\n"
            "- Subtotal: ${subtotal}\n"
            "- Estimated Shop Lead Time: {lead_time} Days\n"
        ),
        description="BuildContext injection appended to the system prompt",
    )
    admin_directive: str = Field(
        default=(
            "\n[STAFF MODE]: You are talking to shop staff. You may show raw "
            "inventory quantities, lead-time arithmetic and tool diagnostics."
        ),
    )
    clarify_position: str = Field(
        default=(
            "Happy to check stock on that. Which one do you need, Front or Rear?"
        ),
    )
    fallback_intro: str = Field(default="Here's what I found:\n\n")
    fallback_need_detail: str = Field(
        default=(
            "I need a bit more detail to help with that. Which component are "
            "you asking about, and is it for the front or rear wheel?"
        ),
    )
    stream_interrupted: str = Field(
        default="\n\nSorry, I lost my connection while answering. Please try again.",
    )
