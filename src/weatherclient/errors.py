from __future__ import annotations

from typing import Any, Dict, Optional


class WeatherError(Exception):
    pass


class TransportError(WeatherError):
    """The HTTP exchange itself failed: unreachable host, timeout, non-2xx or unparseable body."""

    def __init__(self, message: str, operation: str = '', cause: Optional[BaseException] = None):
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class ProviderError(WeatherError):
    """A logical failure reported by the provider inside a well-formed response body."""

    def __init__(self, code: Optional[int], type: str, info: str):
        super().__init__(info)
        self.code = code
        self.type = type
        self.info = info

    @property
    def message(self) -> str:
        return self.info

    @classmethod
    def from_descriptor(cls, descriptor: Dict[str, Any]) -> 'ProviderError':
        code = descriptor.get('code')
        try:
            code = int(code) if code is not None else None
        except (TypeError, ValueError):
            code = None
        return cls(code=code, type=str(descriptor.get('type') or ''), info=str(descriptor.get('info') or ''))

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> Optional['ProviderError']:
        """Return the error embedded in a response body, or None when the body has none."""
        descriptor = body.get('error') if isinstance(body, dict) else None
        if not descriptor:
            return None
        if not isinstance(descriptor, dict):
            return cls(code=None, type='', info=str(descriptor))
        return cls.from_descriptor(descriptor)

    def __repr__(self) -> str:
        return f"ProviderError(code={self.code!r}, type={self.type!r}, info={self.info!r})"
