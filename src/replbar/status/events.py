"""Bus events consumed by the status line."""

from pydantic import BaseModel

from ..core.bus import BusEvent


class ContextChangedProps(BaseModel):
    """No payload: subscribers ask for the active context themselves."""


ContextChanged = BusEvent.define("context.changed", ContextChangedProps)
