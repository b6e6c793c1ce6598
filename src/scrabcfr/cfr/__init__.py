"""CFR solvers and their shared information set store."""

from scrabcfr.cfr.game_graph import GameGraph, build_game_graph
from scrabcfr.cfr.outcome_sampling import OutcomeSamplingCFR
from scrabcfr.cfr.regret_matching import regret_matching, sample_action, segmented_regret_matching
from scrabcfr.cfr.store import (
    InconsistentInformationSetError,
    InformationSetStore,
    RegretTableEntry,
)
from scrabcfr.cfr.vanilla import VanillaCFR
from scrabcfr.cfr.vanilla_graph import VanillaGraphCFR

__all__ = [
    "GameGraph",
    "build_game_graph",
    "OutcomeSamplingCFR",
    "regret_matching",
    "sample_action",
    "segmented_regret_matching",
    "InconsistentInformationSetError",
    "InformationSetStore",
    "RegretTableEntry",
    "VanillaCFR",
    "VanillaGraphCFR",
]
