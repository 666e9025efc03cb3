"""
LLM Providers
"""
from .llm_client import GenerationOutput, LLMClient
from .openrouter_async import AsyncOpenRouterProvider, extract_json_object

__all__ = ['GenerationOutput', 'LLMClient', 'AsyncOpenRouterProvider', 'extract_json_object']
