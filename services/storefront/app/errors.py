from __future__ import annotations


class StorefrontError(Exception):
    """Base class for errors shown to the shopper as an alert."""


class CartStoreConflictError(StorefrontError):
    def __init__(self, cart_store_id: str, requested_store_id: str) -> None:
        super().__init__(
            "Tu carrito pertenece a otro restaurante. Finaliza o vacíalo para cambiar."
        )
        self.cart_store_id = cart_store_id
        self.requested_store_id = requested_store_id


class MixedStoreCartError(StorefrontError, ValueError):
    def __init__(self, store_ids: set[str]) -> None:
        super().__init__(f"A cart holds lines from one store only, got {sorted(store_ids)}")
        self.store_ids = store_ids


class CheckoutFormError(StorefrontError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Completa los campos requeridos: {', '.join(missing)}")
        self.missing = missing


class OrderSubmissionError(StorefrontError):
    """The order was not created. Nothing is retried."""


class OrderValidationError(OrderSubmissionError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Invalid order, missing: {', '.join(missing)}")
        self.missing = missing


class TransportError(StorefrontError):
    """Network failure talking to the API."""
