from .base import NodeResult, NodeRunner, UnsupportedRunner
from .factory import default_runner_for

__all__ = ["NodeResult", "NodeRunner", "UnsupportedRunner", "default_runner_for"]
