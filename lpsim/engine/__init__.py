from lpsim.engine.interface import PoolEngine
from lpsim.engine.memory_engine import InMemoryPoolEngine

__all__ = ["PoolEngine", "InMemoryPoolEngine"]
