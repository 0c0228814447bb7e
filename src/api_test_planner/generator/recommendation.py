"""Primary/complementary strategy recommendation for an endpoint."""

import hashlib
import logging
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from api_test_planner.catalog.strategies import StrategyCategory, StrategyType, alternatives
from api_test_planner.catalog.strategies import catalog_order as strategy_order
from api_test_planner.catalog.strategies import strategy as strategy_info
from api_test_planner.model.cache import LruCache, canonical_form

logger = logging.getLogger(__name__)


class RecommendationLevel(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFORMATIONAL = "informational"


class StrategyRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    endpoint_key: str
    primary_strategy: StrategyType
    complementary_strategies: tuple[StrategyType, ...] = ()
    confidence: float = Field(ge=0.0, le=1.0)
    level: RecommendationLevel
    estimated_minutes: int
    estimated_test_count: int
    alternatives: tuple[StrategyType, ...] = ()
    benefits: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()

    @property
    def strategies(self) -> list[StrategyType]:
        return [self.primary_strategy, *self.complementary_strategies]


def recommendation_level(confidence: float) -> RecommendationLevel:
    if confidence >= 0.9:
        return RecommendationLevel.CRITICAL
    if confidence >= 0.8:
        return RecommendationLevel.HIGH
    if confidence >= 0.7:
        return RecommendationLevel.MEDIUM
    if confidence >= 0.5:
        return RecommendationLevel.LOW
    return RecommendationLevel.INFORMATIONAL


def primary_strategy(endpoint) -> StrategyType:
    if endpoint.authenticated:
        return StrategyType.SECURITY_BASIC
    if endpoint.complexity_score > 50:
        return StrategyType.PERFORMANCE_BASIC
    if endpoint.complexity_score > 20:
        return StrategyType.FUNCTIONAL_COMPREHENSIVE
    return StrategyType.FUNCTIONAL_BASIC


def complementary_strategies(endpoint, primary: StrategyType) -> list[StrategyType]:
    found = set()
    if endpoint.authenticated and strategy_info(primary).category is not StrategyCategory.SECURITY:
        found |= {StrategyType.SECURITY_AUTHENTICATION, StrategyType.SECURITY_AUTHORIZATION}
    if endpoint.parameters:
        found |= {StrategyType.FUNCTIONAL_BOUNDARY, StrategyType.FUNCTIONAL_EDGE_CASE}
    if endpoint.method in ("POST", "PUT"):
        found |= {StrategyType.SECURITY_INJECTION, StrategyType.SECURITY_XSS}
    if endpoint.complexity_score > 30:
        found.add(StrategyType.PERFORMANCE_LOAD)
    found.discard(primary)
    return strategy_order(found)


def _risk_factors(endpoint) -> list[str]:
    factors = [f"security risk: {risk.value}" for risk in sorted(endpoint.security_risks)]
    if endpoint.data_modifying:
        factors.append("modifies server-side data")
    if endpoint.analysis.handles_personal_data:
        factors.append("handles personal data")
    if endpoint.analysis.high_traffic:
        factors.append("high traffic")
    return factors


def recommend_strategy(endpoint) -> StrategyRecommendation:
    """Pick a primary strategy and its complements for an EndpointProfile."""
    primary = primary_strategy(endpoint)
    complements = complementary_strategies(endpoint, primary)
    confidence = 0.8
    if endpoint.parameters:
        confidence += 0.1
    if endpoint.responses:
        confidence += 0.1
    confidence = max(0.0, min(1.0, round(confidence, 2)))
    chosen = [primary, *complements]
    recommendation = StrategyRecommendation(
        endpoint_key=endpoint.key,
        primary_strategy=primary,
        complementary_strategies=tuple(complements),
        confidence=confidence,
        level=recommendation_level(confidence),
        estimated_minutes=sum(strategy_info(s).duration_minutes for s in chosen),
        estimated_test_count=len(chosen),
        alternatives=tuple(alternatives(primary)),
        benefits=tuple(strategy_info(s).description for s in chosen),
        risk_factors=tuple(_risk_factors(endpoint)),
    )
    logger.debug("Recommended %s for %s (confidence %.2f)", primary, endpoint.key, confidence)
    return recommendation


def endpoint_fingerprint(endpoint) -> str:
    """Structural identity of an endpoint profile's classification inputs."""
    data = {
        "key": endpoint.key,
        "parameters": [[p.name, p.location.value, p.constraint.fingerprint] for p in endpoint.parameters],
        "responses": sorted(endpoint.responses),
        "security": list(endpoint.security_schemes),
        "complexity": endpoint.complexity_score,
        "strategies": sorted(endpoint.enabled_strategies),
    }
    return hashlib.sha1(canonical_form(data).encode("utf-8")).hexdigest()


class RecommendationCache(LruCache):
    """Caller-owned memo of recommendations keyed by endpoint identity."""

    def __init__(self, max_entries: int = 256):
        super().__init__(max_entries)

    def recommend(self, endpoint) -> StrategyRecommendation:
        key = (endpoint.key, endpoint_fingerprint(endpoint))
        return self.get_or_compute(key, lambda: recommend_strategy(endpoint))
