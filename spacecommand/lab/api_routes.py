"""API routes for the combat lab."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..balance import BalanceHarness
from ..errors import CombatEngineError
from ..models import FleetSnapshot, RetreatOrder
from ..power import FleetPowerCalculator
from ..simulators.combat import CombatResolver

logger = logging.getLogger(__name__)

router = APIRouter()

_resolver = CombatResolver()
_calculator = FleetPowerCalculator(_resolver.catalog, _resolver.settings)

MAX_LAB_TRIALS = 5000


# Request/Response models
class FleetModel(BaseModel):
    owner_id: Any = None
    composition: Dict[str, int]
    experience: int = 0
    morale: int = 100
    supplies: int = 100

    def to_snapshot(self, default_owner: str) -> FleetSnapshot:
        data = self.model_dump()
        if data["owner_id"] is None:
            data["owner_id"] = default_owner
        return FleetSnapshot.from_dict(data)


class RetreatModel(BaseModel):
    side: str
    after_round: int = 1


class AssessRequest(BaseModel):
    fleet: FleetModel


class ResolveRequest(BaseModel):
    attacker: FleetModel
    defender: FleetModel
    attack_type: str = "assault"
    seed: Optional[int] = None
    retreat: Optional[RetreatModel] = None
    location: Optional[Dict[str, Any]] = None


class MatchupRequest(BaseModel):
    attacker: FleetModel
    defender: FleetModel
    attack_type: str = "assault"
    trials: int = Field(default=100, ge=1, le=MAX_LAB_TRIALS)
    seed: int = 12345


def _unprocessable(exc: Exception) -> HTTPException:
    logger.info("Rejected lab request: %s", exc)
    return HTTPException(status_code=422, detail=str(exc))


# ============================================================================
# Catalog
# ============================================================================

@router.get("/ships")
async def list_ships() -> Dict[str, Any]:
    """Ship catalog plus the engine settings it runs with."""
    return {
        "ships": _resolver.catalog.as_dict(),
        "settings": _resolver.settings.to_dict(),
    }


# ============================================================================
# Engine
# ============================================================================

@router.post("/assess")
async def assess_fleet(request: AssessRequest) -> Dict[str, Any]:
    try:
        a = _calculator.assess(request.fleet.to_snapshot("fleet"))
    except (CombatEngineError, ValueError) as exc:
        raise _unprocessable(exc)
    return {
        "total_attack": a.total_attack,
        "total_health": a.total_health,
        "effective_power": a.effective_power,
        "ship_count": a.ship_count,
        "experience_bonus": a.experience_bonus,
        "morale_bonus": a.morale_bonus,
        "empty": a.empty,
    }


@router.post("/resolve")
async def resolve_battle(request: ResolveRequest) -> Dict[str, Any]:
    """Resolve one battle and return the full combat record."""
    try:
        retreat = None
        if request.retreat is not None:
            retreat = RetreatOrder(side=request.retreat.side, after_round=request.retreat.after_round)
        record = _resolver.resolve(
            request.attacker.to_snapshot("attacker"),
            request.defender.to_snapshot("defender"),
            request.attack_type,
            seed=request.seed,
            retreat=retreat,
            location=request.location,
        )
    except (CombatEngineError, ValueError) as exc:
        raise _unprocessable(exc)
    return record.to_dict()


@router.post("/balance/matchup")
def balance_matchup(request: MatchupRequest) -> Dict[str, Any]:
    """Monte-Carlo win rate of one fleet attacking another."""
    harness = BalanceHarness(_resolver, trials=request.trials, seed=request.seed)
    try:
        stats = harness.win_rate(
            request.attacker.to_snapshot("attacker"),
            request.defender.to_snapshot("defender"),
            request.attack_type,
        )
    except (CombatEngineError, ValueError) as exc:
        raise _unprocessable(exc)
    return stats.to_dict()
