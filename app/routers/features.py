"""
Features Router
Resolved feature-flag configuration for this process, the profile and flag
catalogs, and on-demand derivation for recorded platform facts.

The process configuration is derived once at startup (see app.main) and
published to ``app.state.features``; this router only reads it.
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel, Field

from feature_resolver.core.resolved import ConfigurationSlot  # type: ignore
from feature_resolver.errors import (  # type: ignore
    ConfigurationNotPublishedError,
    DependencyViolationError,
    FeatureResolverError,
)
from feature_resolver.io.schema import (  # type: ignore
    FlagInfo,
    PlatformFactsModel,
    ProfileInfo,
    ResolvedConfigReport,
)
from feature_resolver.policy.flags import FLAG_CATALOG  # type: ignore
from feature_resolver.policy.profile import PROFILES  # type: ignore
from feature_resolver.runner import derive_configuration  # type: ignore

logger = logging.getLogger(__name__)


# =============================================================================
# Request/Response Models
# =============================================================================

class DeriveRequest(BaseModel):
    """Request to derive a configuration for recorded facts."""
    facts: PlatformFactsModel
    profile: Optional[str] = Field(
        None,
        description="Profile name or code (default: FULL if packing is possible, else PORTABLE)",
    )
    overrides: Dict[str, bool] = Field(
        default_factory=dict,
        description="Boolean flag overrides",
    )


class DerivationErrorDetail(BaseModel):
    """Body of a 422 for a failed derivation."""
    error: str
    message: str
    rule: Optional[str] = None
    violations: List[str] = Field(default_factory=list)


# =============================================================================
# Router
# =============================================================================

router = APIRouter()


def _slot(request: Request) -> ConfigurationSlot:
    return request.app.state.features


@router.get(
    "/resolved",
    response_model=ResolvedConfigReport,
    summary="Configuration resolved for this process",
)
async def get_resolved(request: Request):
    try:
        config = _slot(request).get()
    except ConfigurationNotPublishedError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )
    return ResolvedConfigReport.from_config(config)


@router.get(
    "/profiles",
    response_model=List[ProfileInfo],
    summary="Profile catalog",
)
async def list_profiles():
    return [ProfileInfo.from_definition(d) for d in PROFILES.values()]


@router.get(
    "/flags",
    response_model=List[FlagInfo],
    summary="Flag catalog",
)
async def list_flags():
    return [FlagInfo.from_spec(spec) for spec in FLAG_CATALOG.values()]


@router.post(
    "/derive",
    response_model=ResolvedConfigReport,
    status_code=status.HTTP_200_OK,
    summary="Derive a configuration for supplied platform facts",
)
async def derive(request: DeriveRequest):
    """
    Pure derivation: nothing is published or written.

    Fatal derivation errors return 422 with the error type and, for
    validator failures, the failing rule.
    """
    try:
        config = derive_configuration(
            request.facts.to_facts(),
            selector=request.profile,
            overrides=request.overrides,
        )
    except FeatureResolverError as e:
        logger.warning("Derivation failed: %s", e)
        detail = DerivationErrorDetail(error=type(e).__name__, message=str(e))
        if isinstance(e, DependencyViolationError):
            detail.rule = e.rule
            detail.violations = list(e.violations)
        raise HTTPException(
            status_code=422,
            detail=detail.model_dump(),
        )
    return ResolvedConfigReport.from_config(config)
