"""
Agent configuration: company identity, service catalog, tone and fallbacks.

Everything here is read from the environment on every call. Loading and
default substitution are separate steps so the substitution policy stays
visible to callers:

    result = load_agent_config()
    if not result.ok:
        ...  # inspect result.issues

    config = get_agent_config()  # always returns a valid AgentConfig
"""

import copy
import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, ValidationError

from app.logging_config import get_logger

logger = get_logger(__name__)


class ServiceDefinition(BaseModel):
    """One offering from the service catalog, used as prompt material."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    response_highlights: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("responseHighlights", "response_highlights"),
    )


class FallbackMessages(BaseModel):
    model_config = ConfigDict(frozen=True)

    generic: str
    outside_hours: str
    escalation: str


class AgentConfig(BaseModel):
    """Resolved agent configuration. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    company_name: str = Field(min_length=1)
    company_description: str = Field(min_length=1)
    services: List[ServiceDefinition] = Field(min_length=1)
    tone: str
    escalation_email: Optional[EmailStr] = None
    business_hours: str
    fallbacks: FallbackMessages
    openai_model: str = Field(min_length=1)
    temperature: float = Field(ge=0.0, le=2.0)


DEFAULT_SERVICES: List[Dict[str, Any]] = [
    {
        "name": "General Consultation",
        "description": "15-minute discovery call to understand client needs and recommend the right service plan.",
        "response_highlights": [
            "Consultations are free to book",
            "Held remotely via Google Meet or WhatsApp call",
            "Available within 1-2 business days",
        ],
    },
    {
        "name": "Full-Service Engagement",
        "description": (
            "Hands-on support package covering strategy, implementation, "
            "and ongoing optimization for client projects."
        ),
        "response_highlights": [
            "Projects start within 7 business days after contract signing",
            "Custom proposals sent within 24 hours",
            "Multi-channel communication with dedicated account manager",
        ],
    },
]

DEFAULTS: Dict[str, Any] = {
    "company_name": "Acme Client Services & Co.",
    "company_description": (
        "We help small and mid-sized businesses streamline their operations with tailored "
        "consulting, automation, and customer support solutions."
    ),
    "services": DEFAULT_SERVICES,
    "tone": "warm, clear, and proactive",
    "escalation_email": None,
    "business_hours": "Monday to Friday • 9:00 – 17:00 (local time)",
    "fallbacks": {
        "generic": "Thanks for reaching out! I’ll pass this along to our human team and they’ll follow up shortly.",
        "outside_hours": (
            "Thanks for contacting us. Our team is currently offline, "
            "but we’ll get back to you as soon as we return."
        ),
        "escalation": (
            "This request looks like it needs a specialist. "
            "I will connect you with a teammate for further help."
        ),
    },
    "openai_model": "gpt-4o-mini",
    "temperature": 0.5,
}


@dataclass(frozen=True)
class ConfigIssue:
    """A single validation failure, located by its path in the raw config."""
    loc: Tuple[Any, ...]
    message: str

    @property
    def field(self) -> str:
        return ".".join(str(part) for part in self.loc)


@dataclass
class ConfigLoadResult:
    raw: Dict[str, Any]
    config: Optional[AgentConfig] = None
    issues: List[ConfigIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.config is not None


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Trimmed value of an environment variable; blank counts as unset."""
    value = environ.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_services(value: Optional[str]) -> Any:
    if value is None:
        return copy.deepcopy(DEFAULT_SERVICES)

    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        logger.warning("company_services_invalid_json", error=str(e))
        return copy.deepcopy(DEFAULT_SERVICES)


def _raw_from_environment(environ: Mapping[str, str]) -> Dict[str, Any]:
    def env_or_default(name: str, key: str) -> Any:
        value = _env(environ, name)
        return value if value is not None else DEFAULTS[key]

    fallback_defaults = DEFAULTS["fallbacks"]

    return {
        "company_name": env_or_default("COMPANY_NAME", "company_name"),
        "company_description": env_or_default("COMPANY_DESCRIPTION", "company_description"),
        "services": _parse_services(_env(environ, "COMPANY_SERVICES")),
        "tone": env_or_default("AGENT_TONE", "tone"),
        "escalation_email": _env(environ, "AGENT_ESCALATION_EMAIL"),
        "business_hours": env_or_default("AGENT_BUSINESS_HOURS", "business_hours"),
        "fallbacks": {
            "generic": _env(environ, "AGENT_FALLBACK_GENERIC") or fallback_defaults["generic"],
            "outside_hours": _env(environ, "AGENT_FALLBACK_OUTSIDE_HOURS") or fallback_defaults["outside_hours"],
            "escalation": _env(environ, "AGENT_FALLBACK_ESCALATION") or fallback_defaults["escalation"],
        },
        "openai_model": env_or_default("OPENAI_MODEL", "openai_model"),
        "temperature": env_or_default("AGENT_TEMPERATURE", "temperature"),
    }


def load_agent_config(environ: Optional[Mapping[str, str]] = None) -> ConfigLoadResult:
    """
    Read and validate the agent configuration.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        ConfigLoadResult with either a typed config or the validation issues.
        No defaults are substituted for invalid fields here.
    """
    raw = _raw_from_environment(os.environ if environ is None else environ)

    try:
        return ConfigLoadResult(raw=raw, config=AgentConfig.model_validate(raw))
    except ValidationError as e:
        issues = [ConfigIssue(loc=tuple(err["loc"]), message=err["msg"]) for err in e.errors()]
        return ConfigLoadResult(raw=raw, issues=issues)


def substitute_defaults(raw: Dict[str, Any], issues: List[ConfigIssue]) -> Dict[str, Any]:
    """Replace every field that failed validation with its default, keep the rest."""
    patched = copy.deepcopy(raw)

    for issue in issues:
        if not issue.loc:
            continue
        top = issue.loc[0]
        if top == "fallbacks" and len(issue.loc) > 1 and issue.loc[1] in DEFAULTS["fallbacks"]:
            patched["fallbacks"][issue.loc[1]] = DEFAULTS["fallbacks"][issue.loc[1]]
        elif top in DEFAULTS:
            patched[top] = copy.deepcopy(DEFAULTS[top])

    return patched


def get_agent_config(environ: Optional[Mapping[str, str]] = None) -> AgentConfig:
    """Resolve the agent configuration, falling back to defaults for invalid fields."""
    result = load_agent_config(environ)
    if result.ok:
        return result.config

    logger.warning(
        "agent_config_invalid",
        fields=sorted({issue.field for issue in result.issues}),
        errors=[f"{issue.field}: {issue.message}" for issue in result.issues],
    )

    return AgentConfig.model_validate(substitute_defaults(result.raw, result.issues))
