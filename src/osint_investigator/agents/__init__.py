from .base import BaseAgent
from .http_agent import HttpFunctionAgent
from .registry import AgentRegistry
from .web_search import WebSearchAgent

__all__ = ["BaseAgent", "HttpFunctionAgent", "AgentRegistry", "WebSearchAgent"]
