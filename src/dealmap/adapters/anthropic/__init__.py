from dealmap.adapters.anthropic.client import AnthropicClient, OracleAuthError, OracleError

__all__ = ["AnthropicClient", "OracleAuthError", "OracleError"]
