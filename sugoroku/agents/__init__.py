from sugoroku.agents.base import CpuAgent
from sugoroku.agents.classic import ClassicCpu, decide_buy, decide_route
from sugoroku.agents.treasure import TreasureCpu, generate_personality, score_route

__all__ = [
    "CpuAgent",
    "ClassicCpu",
    "TreasureCpu",
    "decide_buy",
    "decide_route",
    "generate_personality",
    "score_route",
]
