"""
Police Rank Ladder — seniority checks over the configured rank order.

Authorization code elsewhere resolves which minimum rank an operation needs;
this module only answers how two configured ranks compare. Ranks are ordered
as configured in ``policeStructure.ranks``: the first entry is the most
junior rank, the last the most senior.

Decisions:

- AUTHORIZED: the officer's rank is at or above the required rank
- INSUFFICIENT_RANK: the officer's rank is below it
- UNKNOWN_RANK: either rank is not configured for this deployment → deny
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from crms.deployment.schema import PoliceStructure, PoliceStructureType

logger = logging.getLogger(__name__)


class RankDecision(str, Enum):
    """Result of a rank check."""

    AUTHORIZED = "authorized"
    INSUFFICIENT_RANK = "insufficient_rank"
    UNKNOWN_RANK = "unknown_rank"


@dataclass
class RankCheckResult:
    """Result of checking an officer's rank against a required minimum."""

    decision: RankDecision
    rank: str
    required_rank: str
    reason: str

    @property
    def is_allowed(self) -> bool:
        return self.decision == RankDecision.AUTHORIZED


class RankLadder:
    """Ordered view of one deployment's police ranks and hierarchy levels."""

    def __init__(
        self,
        ranks: tuple[str, ...] | list[str],
        levels: tuple[str, ...] | list[str] = (),
        structure_type: PoliceStructureType = PoliceStructureType.CENTRALIZED,
    ) -> None:
        self.ranks: tuple[str, ...] = tuple(ranks)
        self.levels: tuple[str, ...] = tuple(levels)
        self.structure_type = structure_type
        self._seniority = {rank: index for index, rank in enumerate(self.ranks)}

    @classmethod
    def from_structure(cls, structure: PoliceStructure) -> RankLadder:
        return cls(structure.ranks, structure.levels, structure.type)

    def is_valid_rank(self, rank: str) -> bool:
        return rank in self._seniority

    def is_valid_level(self, level: str) -> bool:
        return level in self.levels

    def seniority(self, rank: str) -> int | None:
        """0 for the most junior rank; None if ``rank`` is not configured."""
        return self._seniority.get(rank)

    def compare(self, rank: str, other: str) -> int:
        """
        Negative if ``rank`` is junior to ``other``, zero if equal, positive if senior.

        Raises:
            KeyError: Either rank is not configured.
        """
        return self._seniority[rank] - self._seniority[other]

    def check_minimum(self, rank: str, required_rank: str) -> RankCheckResult:
        """Check whether ``rank`` meets ``required_rank``. Unknown ranks are denied."""
        for name in (rank, required_rank):
            if name not in self._seniority:
                return RankCheckResult(
                    decision=RankDecision.UNKNOWN_RANK,
                    rank=rank,
                    required_rank=required_rank,
                    reason=f"Rank {name!r} is not configured for this deployment",
                )

        if self._seniority[rank] >= self._seniority[required_rank]:
            return RankCheckResult(
                decision=RankDecision.AUTHORIZED,
                rank=rank,
                required_rank=required_rank,
                reason=f"Rank {rank!r} meets the required rank {required_rank!r}",
            )

        logger.debug("Rank %s below required %s", rank, required_rank)
        return RankCheckResult(
            decision=RankDecision.INSUFFICIENT_RANK,
            rank=rank,
            required_rank=required_rank,
            reason=f"Rank {rank!r} is junior to the required rank {required_rank!r}",
        )
