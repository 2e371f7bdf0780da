"""Gateway reference shared by the host adapters."""

from typing import Callable, Optional, Union

from ..exceptions import ComponentReferenceError
from ..gateway import Gateway

GatewaySource = Union[Gateway, Callable[[], Optional[Gateway]]]


class GatewayAdapter:
    """
    Base for adapters that forward host events to a gateway.

    Accepts either a gateway or a zero-argument factory. A factory is called
    once, on first use.
    """

    def __init__(self, gateway: GatewaySource):
        if gateway is None:
            raise ComponentReferenceError(f"{type(self).__name__} requires a gateway")
        if isinstance(gateway, Gateway):
            self._gateway: Optional[Gateway] = gateway
            self._gateway_factory = None
        elif callable(gateway):
            self._gateway = None
            self._gateway_factory = gateway
        else:
            raise ComponentReferenceError(
                f"{type(self).__name__} cannot use {type(gateway).__name__!r} as a gateway"
            )

    @property
    def gateway(self) -> Gateway:
        """
        Resolve the gateway.

        Raises:
            ComponentReferenceError: The factory did not produce a gateway
        """
        if self._gateway is None:
            candidate = self._gateway_factory()
            if not isinstance(candidate, Gateway):
                raise ComponentReferenceError(
                    f"{type(self).__name__} gateway factory returned {type(candidate).__name__!r}"
                )
            self._gateway = candidate
        return self._gateway
