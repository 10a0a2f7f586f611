"""Mood analysis — provider interface, remote and demo providers, gateway."""

from typing import Optional

from mindcare.analysis.base import (
    AnalysisProvider,
    DayAnalysis,
    DayReport,
    MonthlyInsights,
    PeriodAnalysis,
)
from mindcare.analysis.demo import DemoProvider
from mindcare.analysis.gateway import AnalysisGateway
from mindcare.analysis.gemini import GeminiProvider
from mindcare.utils.config import Settings, get_settings
from mindcare.utils.logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_KEYS = {"demo_gemini_api_key", "YOUR_GEMINI_API_KEY"}


def is_demo_mode(settings: Settings) -> bool:
    key = settings.gemini_api_key.strip()
    return not key or key in PLACEHOLDER_KEYS


def select_provider(settings: Optional[Settings] = None) -> AnalysisProvider:
    settings = settings or get_settings()
    if is_demo_mode(settings):
        logger.info("analysis_provider_selected", provider="demo")
        return DemoProvider(latency=settings.demo_latency)
    logger.info("analysis_provider_selected", provider="gemini", model=settings.gemini_model)
    return GeminiProvider(settings)


def build_gateway(settings: Optional[Settings] = None) -> AnalysisGateway:
    settings = settings or get_settings()
    return AnalysisGateway(select_provider(settings), settings)


__all__ = [
    "AnalysisProvider", "PeriodAnalysis", "DayAnalysis", "MonthlyInsights", "DayReport",
    "DemoProvider", "GeminiProvider", "AnalysisGateway",
    "is_demo_mode", "select_provider", "build_gateway",
]
