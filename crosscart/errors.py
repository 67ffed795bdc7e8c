"""Exception hierarchy shared by the wardrobe, render and purchase flows."""

from __future__ import annotations


class CrossCartError(RuntimeError):
    """Base class for every failure raised by this package."""


class ConfigurationMissing(CrossCartError):
    """Raised when a required credential or setting is absent."""


class ValidationFailure(CrossCartError):
    """Raised when caller input has the wrong shape or value."""


class InvalidPrice(ValidationFailure):
    """Raised when an item price cannot become a settlement amount."""

    def __init__(self, item_id: str, price: object) -> None:
        self.item_id = item_id
        self.price = price
        super().__init__(f"Item {item_id} has an invalid price: {price!r}")


class InvalidDataUrl(ValidationFailure):
    """Raised when a string is not a ``data:<mime>;base64,<payload>`` URL."""


class NoRenderableAssets(ValidationFailure):
    """Raised when no equipped slot resolves to image bytes."""


class MissingPortrait(ValidationFailure):
    """Raised when no base portrait is available for rendering."""


class InvalidPortraitUpload(ValidationFailure):
    """Raised when an uploaded portrait is too large or has an unsupported type."""


class EmptyPurchaseOrder(ValidationFailure):
    """Raised when a purchase is requested without any equipped items."""


class UnknownSlot(ValidationFailure):
    """Raised when a slot name does not match the wardrobe taxonomy."""


class ExternalCallFailure(CrossCartError):
    """Raised when a collaborator responds with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RenderIncomplete(CrossCartError):
    """Raised when the image model returns no image."""


class RenderPassFailed(RenderIncomplete):
    """Raised when one compositing pass produced no image; later passes are skipped."""

    def __init__(self, pass_index: int, chunk_count: int = 0) -> None:
        self.pass_index = pass_index
        self.chunk_count = chunk_count
        super().__init__(
            f"Render pass {pass_index} returned no image after {chunk_count} chunks.",
        )


class AgentRunIncomplete(CrossCartError):
    """Raised when an agent run ends without a success result."""
