from .httpx_port import HttpxRequestPort, build_params, failure_from_response

__all__ = ["HttpxRequestPort", "build_params", "failure_from_response"]
